"""Value coercion helpers for loosely-typed source records."""

import math
from datetime import date, datetime
from typing import Any


def to_number(value: Any) -> float:
    """Coerce a possibly-missing field to float, defaulting to 0.

    Handles None, empty strings, currency symbols and thousands separators
    ("$1,250.00" -> 1250.0). Anything unparseable, NaN or infinite becomes 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).replace(",", "").replace("$", "").strip()
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_bool(value: Any) -> bool:
    """Coerce flags that may arrive as strings ("true", "1", "yes")."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes", "y")
    return bool(value)


def date_text(value: Any) -> str:
    """Return the ``YYYY-MM-DD`` portion of a date-like value, or "".

    Full ISO timestamps keep only the date part. The result is not
    validated; parsing happens downstream.
    """
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value).strip()[:10]


def to_datetime(value: Any) -> datetime | None:
    """Parse a timestamp (datetime, date or ISO string). None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None
