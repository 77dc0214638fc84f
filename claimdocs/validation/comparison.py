"""Type-aware comparison and format checks for extracted values.

Numeric tolerances are evaluated with Decimal so that values sitting exactly
on a tolerance boundary compare deterministically.
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser
from dateutil.parser import ParserError

CURRENCY_TOLERANCE = Decimal("0.01")
PERCENTAGE_TOLERANCE = Decimal("0.1")
DATE_TOLERANCE = timedelta(days=1)
TEXT_SIMILARITY_THRESHOLD = 0.9

_CURRENCY_FORMAT_RE = re.compile(r"^\d+(\.\d{2})?$")


def parse_decimal(value: object) -> Decimal | None:
    """Parse a number, ignoring thousands separators. None when unparsable."""
    text = str(value).replace(",", "").strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_percentage(value: object) -> Decimal | None:
    return parse_decimal(str(value).replace("%", ""))


def parse_date(value: object) -> datetime | None:
    """Parse a date string. Naive results are taken as UTC."""
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = date_parser.parse(text)
    except (ParserError, ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance using the two-row Wagner-Fischer algorithm."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
        previous = current
    return previous[len(b)]


def string_similarity(a: str, b: str) -> float:
    """1 - distance / longest length. Two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def values_match(document_value: str, claimed_value: str, data_type: str) -> bool:
    """Compare an extracted value with a claimed one according to its type."""
    if data_type in ("currency", "number"):
        return _within(parse_decimal(document_value), parse_decimal(claimed_value), CURRENCY_TOLERANCE)
    if data_type == "percentage":
        return _within(
            parse_percentage(document_value), parse_percentage(claimed_value), PERCENTAGE_TOLERANCE
        )
    if data_type == "date":
        left = parse_date(document_value)
        right = parse_date(claimed_value)
        if left is None or right is None:
            return False
        return abs(left - right) < DATE_TOLERANCE
    return string_similarity(document_value, claimed_value) >= TEXT_SIMILARITY_THRESHOLD


def is_valid_currency(value: str) -> bool:
    return bool(_CURRENCY_FORMAT_RE.match(value.replace(",", "")))


def is_valid_percentage(value: str) -> bool:
    number = parse_percentage(value)
    return number is not None and 0 <= number <= 100


def is_valid_date(value: str) -> bool:
    return parse_date(value) is not None


def is_valid_number(value: str) -> bool:
    return parse_decimal(value) is not None


def _within(left: Decimal | None, right: Decimal | None, tolerance: Decimal) -> bool:
    if left is None or right is None:
        return False
    return abs(left - right) < tolerance
