"""Administrative re-run of the attendance backfill.

    python scripts/run_backfill.py                      # full history
    python scripts/run_backfill.py 2024-01-10           # one elapsed day
    python scripts/run_backfill.py 2024-01-01 2024-01-31
"""

from __future__ import annotations

import importlib
import json
import logging
import sys

from dotenv import load_dotenv

from hr_attendance.config import get_settings_module
from hr_attendance.container import build_container
from hr_attendance.logging_config import configure_logging

logger = logging.getLogger("hr_attendance.scripts.run_backfill")


def main(argv: list[str]) -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    backfill = build_container(db_config=dict(settings.DB_CONFIG)).backfill_service

    if len(argv) == 0:
        result = backfill.backfill_all().to_dict()
    elif len(argv) == 1:
        result = backfill.mark_day(argv[0]).to_dict()
    elif len(argv) == 2:
        result = [s.to_dict() for s in backfill.mark_range(argv[0], argv[1])]
    else:
        logger.error("usage: run_backfill.py [DATE | START END]")
        return 2

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
