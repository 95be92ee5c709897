"""Room schedule ingestion for BIMSched.

Parses CSV/XLSX room schedule exports and creates record rows.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from bimsched.db.models import RecordModel

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 50
MAX_ROWS = 50000

REQUIRED_COLUMNS = {"Number", "Name"}
TEXT_COLUMNS = ("Number", "Name", "Department", "Comments", "Level")


def ingest_rooms(
    session: Session,
    file_path: Path,
    category: str = "Rooms",
) -> tuple[int, list[str]]:
    """Ingest a room schedule from a CSV or XLSX file.

    Expected columns:
    - Number (required)
    - Name (required)
    - Department, Comments, Level (optional, text)
    - Area (optional, numeric)

    Columns absent from the file are absent from the records; empty cells
    are stored as null values.

    Args:
        session: Database session
        file_path: Path to CSV or XLSX file
        category: Record category to store the rows under

    Returns:
        Tuple of (success_count, error_messages)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file format is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Room schedule file not found: {file_path}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > MAX_FILE_SIZE_MB:
        raise ValueError(
            f"File too large ({file_size_mb:.1f}MB). Maximum allowed: {MAX_FILE_SIZE_MB}MB"
        )

    # Read everything as text: room numbers like "010" must not become integers
    if file_path.suffix.lower() == ".csv":
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False, na_values=[""])
    elif file_path.suffix.lower() in (".xlsx", ".xls"):
        df = pd.read_excel(file_path, dtype=str)
    else:
        raise ValueError(f"Unsupported file format: {file_path.suffix}. Use CSV or XLSX.")

    if len(df) > MAX_ROWS:
        raise ValueError(f"Too many rows ({len(df):,}). Maximum allowed: {MAX_ROWS:,}")

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")

    success_count = 0
    errors = []

    for idx, row in df.iterrows():
        try:
            attributes: dict[str, str | float | None] = {}
            for col in TEXT_COLUMNS:
                if col in df.columns:
                    attributes[col] = _get_str(row, col)
            if "Area" in df.columns:
                attributes["Area"] = _get_float(row, "Area")

            if not attributes["Number"] or not attributes["Name"]:
                errors.append(f"Row {idx}: Missing room number or name")
                continue

            session.add(
                RecordModel(
                    category=category,
                    attributes=attributes,
                    source_file=str(file_path),
                )
            )
            success_count += 1

        except ValueError as e:
            errors.append(f"Row {idx}: {e}")
            continue

    session.commit()
    logger.info("Imported %d %s records from %s", success_count, category, file_path)

    return success_count, errors


def _get_str(row: pd.Series, col_name: str) -> str | None:
    """Get string value from row; empty cells read as None."""
    if col_name in row and pd.notna(row[col_name]):
        return str(row[col_name])
    return None


def _get_float(row: pd.Series, col_name: str) -> float | None:
    """Get float value from row.

    Raises:
        ValueError: If the cell holds a non-numeric value
    """
    if col_name in row and pd.notna(row[col_name]):
        try:
            return float(row[col_name])
        except (ValueError, TypeError):
            raise ValueError(f"{col_name} must be numeric, got {row[col_name]!r}")
    return None
