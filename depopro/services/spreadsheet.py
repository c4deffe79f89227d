"""
Spreadsheet boundary - raw rows in, plain values out.

Upload parsing happens here, before anything touches the database, so a bad
file can never leave half-applied state behind.
"""
import csv
import io
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from depopro.core import settings
from depopro.core.errors import ExternalIOError
from depopro.models.base import to_decimal

# First data row in a spreadsheet with a header row
FIRST_DATA_ROW = 2


def read_csv_rows(content: bytes) -> List[Dict[str, Any]]:
    """Decode an uploaded CSV (UTF-8, optional BOM) into header-keyed rows"""
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ExternalIOError("File too large")
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ExternalIOError("File encoding error. Please upload a UTF-8 encoded CSV file.")

    try:
        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise ExternalIOError("File is empty or has no header row")
        rows = []
        for raw in reader:
            row = {(k or "").strip(): v for k, v in raw.items() if k is not None}
            if any(str(v or "").strip() for v in row.values()):
                rows.append(row)
    except csv.Error as e:
        raise ExternalIOError(f"Invalid CSV format: {e}")

    if not rows:
        raise ExternalIOError("No data rows found in file")
    return rows


def cell(row: Dict[str, Any], *aliases: str) -> Optional[Any]:
    """First non-blank value among the header aliases"""
    for alias in aliases:
        value = row.get(alias)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def text_cell(row: Dict[str, Any], *aliases: str) -> Optional[str]:
    value = cell(row, *aliases)
    return str(value).strip() if value is not None else None


def _decimal(value: Any, label: str) -> Decimal:
    """Cell -> Decimal; accepts a comma as the decimal separator"""
    if isinstance(value, bool):
        raise ValueError(f"{label} is not a number")
    try:
        number = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"{label} '{value}' is not a number")
    if not number.is_finite():
        raise ValueError(f"{label} '{value}' is not a number")
    try:
        return to_decimal(number)
    except InvalidOperation:
        raise ValueError(f"{label} '{value}' is out of range")


def parse_quantity(value: Any) -> Decimal:
    """
    Positive quantity from a cell, decimals allowed (2,5 m hose).

    Raises ValueError with a user-facing reason.
    """
    number = _decimal(value, "quantity")
    if number <= 0:
        raise ValueError("quantity must be greater than zero")
    return number


def parse_number(value: Any, default) -> Decimal:
    """Optional numeric cell with default; raises ValueError on junk"""
    if value is None:
        return to_decimal(default)
    return _decimal(value, "value")
