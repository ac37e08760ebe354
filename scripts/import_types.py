#!/usr/bin/env python3
"""
Load expanded math types from a JSON file into expanded_math_types.

Every row is validated (type_code grammar, 1 <= difficulty_min <= difficulty_max <= 5,
cognitive domain) before anything is written. A file that repeats a type_code is
rejected as a whole. Existing codes are updated and reactivated; codes missing
from the file are left as they are.

USAGE:
    python -m scripts.import_types types.json [--dry-run]
    python -m scripts.import_types --deactivate MA-HS0-POL-01-003 MA-HS0-POL-01-004 [--dry-run]

FILE FORMAT:
    [{"type_code": "MA-HS0-POL-01-001", "type_name": "...", "standard_code": "[10수학01-01]",
      "cognitive": "CALCULATION", "difficulty_min": 1, "difficulty_max": 3,
      "level_code": "HS0", "domain_code": "POL", ...}, ...]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from database.database import SessionLocal
from database import crud
from taxonomy.schemas import TypeRecord, check_unique_codes

log = logging.getLogger("scripts.import_types")


def load_records(path: Path) -> List[TypeRecord]:
    """
    Parse and validate every row; report all bad rows at once.

    Raises:
        ValueError: unreadable file or one or more invalid rows
    """
    try:
        rows = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: not valid JSON ({e})") from e
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON array of type rows")

    records, errors = [], []
    for index, row in enumerate(rows):
        try:
            records.append(TypeRecord.model_validate(row))
        except ValidationError as e:
            code = row.get("type_code", "?") if isinstance(row, dict) else "?"
            errors.append(f"  row {index} ({code}): {e.error_count()} error(s): {e.errors()[0]['msg']}")
    if errors:
        raise ValueError(f"{len(errors)} invalid row(s):\n" + "\n".join(errors))
    return records


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import or deactivate expanded math types",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("file", nargs="?", type=Path, help="JSON array of type rows")
    parser.add_argument("--dry-run", action="store_true", help="Validate and report only, write nothing")
    parser.add_argument("--deactivate", nargs="+", metavar="TYPE_CODE", help="Soft-delete these type codes")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")

    if not args.file and not args.deactivate:
        parser.print_help()
        print("\nERROR: Must specify a file or --deactivate")
        return 1

    db = SessionLocal()
    try:
        if args.deactivate:
            if args.dry_run:
                active = [code for code in args.deactivate if crud.get_type(db, code)]
                print(f"[DRY RUN] would deactivate {len(active)} type(s): {', '.join(active) or '-'}")
            else:
                count = crud.deactivate_types(db, args.deactivate)
                print(f"Deactivated {count} type(s)")

        if args.file:
            try:
                records = load_records(args.file)
                if args.dry_run:
                    check_unique_codes(r.type_code for r in records)
                    print(f"[DRY RUN] {len(records)} valid row(s) in {args.file}")
                    return 0
                created, updated = crud.upsert_types(db, records)
            except (ValueError, OSError) as e:
                print(f"ERROR: {e}")
                return 1
            print(f"Imported {args.file}: {created} created, {updated} updated")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
