#!/usr/bin/env python3
"""Database bootstrap: run Alembic migrations (production-safe).

- Always run `alembic upgrade head` on startup.
- If migrations fail, fail fast (don't start with an unknown schema).
- With --check-drift, also report constellation rows that disagree with the
  resonance log (read-only; repair with scripts/rebuild_constellation.py).
"""

import argparse
import os
import sys
import time

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

load_dotenv()


def check_db_ready(url: str) -> bool:
    """Check if database is ready"""
    try:
        engine = create_engine(url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        engine.dispose()
        return True
    except OperationalError:
        return False


def _get_alembic_config():
    """Load Alembic config for programmatic migrations."""
    from alembic.config import Config

    here = os.path.dirname(os.path.abspath(__file__))
    cfg = Config(os.path.join(here, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(here, "alembic"))
    return cfg


def alembic_upgrade_head() -> None:
    """Apply all pending migrations."""
    from alembic import command

    command.upgrade(_get_alembic_config(), "head")


def report_drift() -> int:
    from core.database import get_db_sync
    from services.constellation_rebuild import find_drift

    db = get_db_sync()
    try:
        drift = find_drift(db)
    finally:
        db.close()

    for entry in drift:
        print(f"  drift {entry.day.isoformat()} {entry.axis_slug}: "
              f"log={entry.expected_count}@{entry.expected_intensity} "
              f"aggregate={entry.actual_count}@{entry.actual_intensity}")
    print(f"Constellation drift check: {len(drift)} mismatched row(s)")
    return len(drift)


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply database migrations.")
    parser.add_argument("--check-drift", action="store_true", help="Report aggregate/log drift after migrating")
    parser.add_argument("--max-retries", type=int, default=30)
    args = parser.parse_args()

    from core.config import settings

    print("Waiting for database to be ready...")
    for attempt in range(1, args.max_retries + 1):
        if check_db_ready(settings.database_url):
            print("Database is ready!")
            break
        print(f"Database is unavailable - sleeping (attempt {attempt}/{args.max_retries})")
        time.sleep(1)
    else:
        print("ERROR: Database is not ready after maximum retries")
        return 1

    try:
        alembic_upgrade_head()
    except Exception as e:
        print(f"ERROR: Alembic upgrade failed: {e}")
        return 1
    print("Migrations completed successfully!")

    if args.check_drift and report_drift():
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
