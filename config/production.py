import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "field_service"),
}

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "1")))

EARLY_CHECKOUT_CUTOFF_HOUR = int(os.getenv("EARLY_CHECKOUT_CUTOFF_HOUR", "19"))
AUTO_CHECKOUT_HOUR = int(os.getenv("AUTO_CHECKOUT_HOUR", "19"))

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
