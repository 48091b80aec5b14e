"""Conversion of driver row values into manifest seed cells."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict

from manifest.models import SeedRow, SeedValue


def _format_timedelta(value: timedelta) -> str:
    # pymysql returns TIME columns as timedelta; render them the way MySQL prints TIME.
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def to_seed_value(value: Any) -> SeedValue:
    """Map a driver value onto the string/number/bool/null cell union."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return _format_timedelta(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(item) for item in value))
    return str(value)


def to_seed_row(row: Dict[str, Any]) -> SeedRow:
    """Convert one fetched row, keeping column order."""
    return {str(column): to_seed_value(value) for column, value in row.items()}
