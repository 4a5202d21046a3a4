from __future__ import annotations

"""Create the school timetable tables.

Safe to run multiple times (tables that already exist are left alone).
"""

import argparse
import sys
from pathlib import Path

# Allow running this script from any working directory.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import inspect

from core.database import ENGINE
from models import Base


def main() -> int:
    parser = argparse.ArgumentParser(description="Create school timetable tables")
    parser.add_argument("--yes", action="store_true", help="Actually apply changes")
    args = parser.parse_args()

    existing = set(inspect(ENGINE).get_table_names())
    wanted = sorted(Base.metadata.tables)
    missing = [t for t in wanted if t not in existing]

    print(f"Tables present: {sorted(existing & set(wanted))}")
    print(f"Tables to create: {missing}")

    if not args.yes:
        print("Dry run. Re-run with --yes to apply.")
        return 0

    Base.metadata.create_all(ENGINE)
    print("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
