import datetime
import re
from typing import Any, Optional, Union

from hospital_billing.core.config import settings
from hospital_billing.pricing import money

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{0,15}$")
PHONE_SEPARATORS_RE = re.compile(r"[\s\-()]")
FILE_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_currency(amount: Any, symbol: Optional[str] = None) -> str:
    """Format an amount for display, e.g. ``₦1,234.50``."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    value = money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def _as_datetime(value: Union[str, datetime.date, datetime.datetime]) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(text)


def format_date(value: Union[str, datetime.date, datetime.datetime], include_time: bool = False) -> str:
    """``Jan 5, 2024`` or, with time, ``Jan 5, 2024, 03:04 PM``."""
    dt = _as_datetime(value)
    text = f"{dt:%b} {dt.day}, {dt.year}"
    if include_time:
        text += f", {dt:%I:%M %p}"
    return text


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def validate_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(PHONE_SEPARATORS_RE.sub("", phone or "")))


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def get_initials(name: str) -> str:
    return "".join(word[0] for word in name.split()).upper()[:2]


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(FILE_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {FILE_SIZE_UNITS[unit]}"
