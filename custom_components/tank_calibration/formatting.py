"""Text parsing and rendering for calibration data.

Output here is meant to be shown and copied by hand; nothing is written to
disk.
"""

from __future__ import annotations

from collections.abc import Iterable
import json
import math
import re

from .calibration import CalibrationRecord
from .const import CSV_HEADER, CSV_SEPARATOR, DEFAULT_FILE_BASE

_UNSAFE_FILE_CHARS = re.compile(r"[^\w\-]+", re.ASCII)
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value: str | float | int | None) -> float:
    """Parse a number typed with either a decimal comma or point.

    Trailing text such as a unit is ignored ("12 mm" gives 12.0). Returns NaN
    when the text does not start with a number.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip().replace(",", ".", 1)
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return math.nan

    number = float(match.group())
    return number if math.isfinite(number) else math.nan


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 to 3, -2.5 to -2)."""
    return math.floor(value + 0.5)


def sanitize_file_name(name: str | None) -> str:
    """Reduce a user-entered name to a safe file base name."""
    return _UNSAFE_FILE_CHARS.sub("_", str(name or DEFAULT_FILE_BASE))


def render_table_csv(rows: Iterable[tuple[float, float]]) -> str:
    """Render table rows as semicolon-separated text with integer values."""
    lines = [CSV_HEADER]
    for volume, height in rows:
        lines.append(f"{round_half_up(volume)}{CSV_SEPARATOR}{round_half_up(height)}")
    return "\n".join(lines) + "\n"


def render_records_json(records: Iterable[CalibrationRecord]) -> str:
    """Render records as a pretty-printed JSON array, in the given order."""
    return json.dumps([record.as_dict() for record in records], indent=2)


def load_records_json(text: str) -> list[CalibrationRecord]:
    """Parse render_records_json() output back into records."""
    return [CalibrationRecord.from_dict(item) for item in json.loads(text)]
