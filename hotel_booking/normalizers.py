"""
Fail-soft coercion of loosely typed booking payload values.

Partner front-ends send prices as numbers or strings with thousands
separators, and stay dates in several textual formats. A malformed value
must never abort a booking, so every helper here returns a default
(zero, empty string or ``None``) instead of raising. This is deliberate.
"""
import datetime
import logging
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger("hotel_booking.normalizers")

ZERO = Decimal("0")

_YEAR_FIRST = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


class PaymentStatus(str, Enum):
    PAID = "Paid"
    FAILED = "Failed"
    PENDING = "Pending"


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_amount(value: Any) -> Decimal:
    """
    Parses a monetary value, stripping thousands separators.

    Returns 0 for None, empty or unparsable input.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO

    text = str(value).replace(",", "").strip()
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.debug(f"Unparsable amount {value!r}, defaulting to 0")
        return ZERO
    return amount if amount.is_finite() else ZERO


def to_count(value: Any) -> int:
    """Whole-number variant of to_amount; fractions are truncated."""
    return int(to_amount(value))


def parse_stay_date(value: Any) -> Optional[datetime.date]:
    """
    Parses a check-in/check-out date.

    Accepted shapes, after normalizing '/' and '.' to '-':
      * YYYY-M-D
      * D-M-YYYY, always read as day-month-year

    Returns None (and logs) when the value cannot be read as a calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value

    text = str(value).strip().replace("/", "-").replace(".", "-")
    if not text:
        return None

    try:
        match = _YEAR_FIRST.match(text)
        if match:
            year, month, day = match.groups()
            return datetime.date(int(year), int(month), int(day))

        match = _DAY_FIRST.match(text)
        if match:
            day, month, year = match.groups()
            return datetime.date(int(year), int(month), int(day))
    except ValueError as e:
        logger.warning(f"Invalid date {value!r}: {e}")
        return None

    logger.warning(f"Unrecognised date format {value!r}")
    return None


def normalize_payment_status(value: Any) -> PaymentStatus:
    if value is None:
        return PaymentStatus.PENDING
    if isinstance(value, PaymentStatus):
        return value

    status = str(value).lower()
    if "paid" in status or "success" in status:
        return PaymentStatus.PAID
    if "failed" in status:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING
