#!/usr/bin/env python3
"""
Repair hour record start/end values stored as bare time-of-day text or
anchored on the wrong date.

Usage:
    python -m worksheet_tracker.scripts.repair_record_times [--dry-run]
"""

import argparse
import sys

from worksheet_tracker.core.config import get_settings
from worksheet_tracker.core.db import build_engine, build_session_factory, dispose_engine
from worksheet_tracker.core.observability import setup_structured_logging
from worksheet_tracker.maintenance.record_time_repair import RecordTimeRepairJob


def main(argv: list[str] | None = None) -> int:
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Repair malformed hour record start/end values"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be repaired without writing",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_structured_logging(settings)
    engine = build_engine(settings)
    try:
        report = RecordTimeRepairJob(build_session_factory(engine)).run(
            dry_run=args.dry_run
        )
    finally:
        dispose_engine(engine)

    mode = "would fix" if report.dry_run else "fixed"
    print(f"Scanned {report.scanned} hour records")
    print(f"   {mode}: {report.fixed}")
    print(f"   skipped: {report.skipped}")
    print(f"   failed: {report.failed}")
    for error in report.errors:
        print(f"   - {error}")

    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
