from __future__ import annotations

import argparse
from datetime import date


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Compare constellation aggregates with the resonance log and optionally rebuild them."
    )
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Only this day (YYYY-MM-DD); default: all days")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without rewriting anything")
    parser.add_argument("--sample", type=int, default=20, help="Show up to N drifted rows (default: 20)")
    parser.add_argument("--log-level", default="INFO", help="Log level for the rebuild (default: INFO)")
    args = parser.parse_args()

    # NOTE: Run inside the API runtime where the app modules (`core`, `models`,
    # `services`) are importable. Pause check-ins (RESONANCE_ENABLED=false) first.
    from core.database import get_db_sync
    from core.logging import setup_logging
    from services.constellation_rebuild import find_drift, rebuild_constellation

    setup_logging(level=args.log_level, fmt="text")
    db = get_db_sync()
    try:
        drift = find_drift(db, args.date)

        print("Constellation consistency check")
        print(f"- scope: {args.date.isoformat() if args.date else 'all days'}")
        print(f"- drifted rows: {len(drift)}")
        for entry in drift[: max(0, args.sample)]:
            print(f"  - {entry.day.isoformat()} {entry.axis_slug}: "
                  f"log={entry.expected_count}@{entry.expected_intensity} "
                  f"aggregate={entry.actual_count}@{entry.actual_intensity}")

        if not drift:
            return 0
        if args.dry_run:
            print("Dry run: no rows rewritten.")
            return 1

        written = rebuild_constellation(db, args.date)
        db.commit()
        print(f"Rebuilt {written} constellation row(s).")
        return 0
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
