import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "field_service_test"),
}

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"
LOG_JSON = False

EARLY_CHECKOUT_CUTOFF_HOUR = 19
AUTO_CHECKOUT_HOUR = 19

DEFAULT_PAGE_SIZE = 20
