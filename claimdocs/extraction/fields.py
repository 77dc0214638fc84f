"""Field-name normalization and semantic type detection for key/value pairs."""

import re

from claimdocs.documents.models import DataType

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_CURRENCY_RE = re.compile(r"₹|\$|\binr\b|\brupees?\b|\brs\.?(?=[\s\d]|$)", re.IGNORECASE)
_DATE_RE = re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}")
_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")


def normalize_field_name(name: str) -> str:
    """Lower-case, collapse non-alphanumeric runs to '_', trim underscores.

    >>> normalize_field_name("  Employee ID # ")
    'employee_id'
    """
    return _NON_ALNUM_RE.sub("_", name.lower()).strip("_")


def detect_data_type(value: str, field_name: str) -> DataType:
    """Infer the semantic type of a generic key/value pair.

    Checks run in priority order: currency, percentage, date, number, text.
    """
    if _CURRENCY_RE.search(value) or "amount" in field_name or "salary" in field_name:
        return "currency"
    if "%" in value or "percentage" in field_name or "grade" in field_name:
        return "percentage"
    if _DATE_RE.search(value) or "date" in field_name:
        return "date"
    if _NUMBER_RE.match(value.strip().replace(",", "")):
        return "number"
    return "text"
