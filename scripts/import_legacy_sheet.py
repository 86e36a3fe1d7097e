"""Import a legacy khairat member register (.xlsx) from the command line.

Same code path as ``POST /khairat/upload-excel``, for large registers or for
loading data before the service is deployed. Re-running on the same file is
safe: members are upserted by IC number and payments by (member, year).

Usage examples:
  # Preview only (default dry-run): detected columns and row counts
  ENV_FILE=.env python scripts/import_legacy_sheet.py data/khairat_2024.xlsx

  # Apply changes
  ENV_FILE=.env python scripts/import_legacy_sheet.py data/khairat_2024.xlsx --apply

  # Record who ran the import in the upload log
  ENV_FILE=.env python scripts/import_legacy_sheet.py data/khairat_2024.xlsx --apply --by bendahari
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))


def _load_env_file() -> None:
    env_file = os.environ.get("ENV_FILE", ".env")
    env_path = (PROJECT_ROOT / env_file).resolve()
    if not env_path.exists():
        # In containers, env vars are often injected without mounting the env file.
        if os.environ.get("DATABASE_URL"):
            print(f"Env file not found at {env_path}; using existing environment vars.")
            return
        raise FileNotFoundError(f"Env file not found: {env_path}")
    load_dotenv(env_path, override=True)


def _print_plan(rows: list[list], filename: str) -> None:
    from services.khairat_service.services.sheet_layout import (
        detect_layout,
        extract_member_fields,
    )

    layout = detect_layout(rows)
    found = {name: col for name, col in layout.columns.items() if col >= 0}
    usable = sum(
        1
        for row in rows[layout.header_row + 1 :]
        if row and extract_member_fields(row, layout) is not None
    )

    print(f"Dry run summary for {filename}")
    print(f"Header row: {layout.header_row + 1}")
    print(f"Columns: {', '.join(f'{k}={v}' for k, v in found.items()) or '-'}")
    print(f"Child columns: {len(layout.child_cols)}")
    print(f"Payment years: {', '.join(str(y.year) for y in layout.years) or '-'}")
    print(f"Usable member rows: {usable}")


async def _apply(content: bytes, filename: str, uploaded_by: str | None) -> None:
    from libs.db.config import AsyncSessionLocal
    from services.khairat_service.services.legacy_import import import_workbook

    async with AsyncSessionLocal() as session:
        stats = await import_workbook(
            session, content, filename=filename, uploaded_by=uploaded_by
        )

    print("")
    print("Import complete")
    print(f"Inserted: {stats.inserted}")
    print(f"Updated: {stats.updated}")
    print(f"Errors: {stats.errors}")
    print(f"Total: {stats.total}")


async def _main() -> None:
    parser = argparse.ArgumentParser(
        description="Import a legacy khairat member register into the old-system tables."
    )
    parser.add_argument("path", type=Path, help="Path to the .xlsx workbook.")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply changes (default is dry-run).",
    )
    parser.add_argument(
        "--by",
        default="cli",
        help="Name recorded as uploader in the upload log.",
    )
    args = parser.parse_args()

    _load_env_file()

    from services.khairat_service.services.legacy_import import read_workbook

    content = args.path.read_bytes()
    rows = read_workbook(content)
    _print_plan(rows, args.path.name)

    if not args.apply:
        print("")
        print("Dry-run only. Re-run with --apply to execute.")
        return

    await _apply(content, args.path.name, args.by)


if __name__ == "__main__":
    asyncio.run(_main())
