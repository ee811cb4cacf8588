"""
Human-readable identifiers for invoices, patients and catalog entries.

Codes are generated client-side as a suggestion; the server remains the
authority on uniqueness.
"""

import datetime
import random
from typing import Optional

_random = random.Random()


def _now(now: Optional[datetime.datetime]) -> datetime.datetime:
    return now or datetime.datetime.now()


def _digits(width: int, rng: Optional[random.Random]) -> str:
    return str((rng or _random).randrange(10 ** width)).zfill(width)


def generate_invoice_number(now: Optional[datetime.datetime] = None, rng: Optional[random.Random] = None) -> str:
    """INV-YYYYMMDD-NNNN"""
    return f"INV-{_now(now):%Y%m%d}-{_digits(4, rng)}"


def _monthly_code(prefix: str, now: Optional[datetime.datetime], rng: Optional[random.Random]) -> str:
    return f"{prefix}-{_now(now):%y%m}-{_digits(3, rng)}"


def generate_patient_code(now: Optional[datetime.datetime] = None, rng: Optional[random.Random] = None) -> str:
    """PAT-YYMM-NNN"""
    return _monthly_code("PAT", now, rng)


def generate_treatment_code(now: Optional[datetime.datetime] = None, rng: Optional[random.Random] = None) -> str:
    """TRT-YYMM-NNN"""
    return _monthly_code("TRT", now, rng)


def generate_package_code(now: Optional[datetime.datetime] = None, rng: Optional[random.Random] = None) -> str:
    """PKG-YYMM-NNN"""
    return _monthly_code("PKG", now, rng)


def generate_item_code(category: str, rng: Optional[random.Random] = None) -> str:
    """First three letters of the category, upper-cased, then four digits."""
    return f"{category[:3].upper()}-{_digits(4, rng)}"
