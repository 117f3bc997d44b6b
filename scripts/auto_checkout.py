"""Close every attendance session still open today.

Meant to be run by cron shortly after the auto-checkout hour.
"""
from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.field_service.field_service.common.logging import configure_logging
from src.field_service.field_service.container import build_container
from src.field_service.field_service.core.exceptions import ValidationError

logger = logging.getLogger("field_service.auto_checkout")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), json_output=bool(getattr(settings, "LOG_JSON", False)))

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        settings={
            "AUTO_CHECKOUT_HOUR": getattr(settings, "AUTO_CHECKOUT_HOUR", 19),
            "EARLY_CHECKOUT_CUTOFF_HOUR": getattr(settings, "EARLY_CHECKOUT_CUTOFF_HOUR", 19),
        },
    )
    try:
        closed = container.attendance_service.auto_checkout()
    except ValidationError as e:
        logger.error("Auto-checkout refused: %s", e)
        raise SystemExit(1)
    for record in closed:
        logger.info("Closed session", extra={"user_id": record.user_id, "attendance_id": record.id})
    print(f"OK: auto-checkout completed for {len(closed)} users")


if __name__ == "__main__":
    main()
