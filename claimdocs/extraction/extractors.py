"""Document-type field extractors.

Each extractor scans the assembled full text with an ordered list of regular
expressions per target concept and emits at most one field per concept. The
confidence is fixed because these values do not come from the provider.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from claimdocs.documents.models import DataType, ExtractedField
from claimdocs.documents.registry import DocumentTypeRegistry

_AMOUNT = r"([0-9][0-9,]*(?:\.[0-9]{2})?)"
_NAME = r"([A-Za-z][A-Za-z .']*[A-Za-z.])"
_EMPLOYEE_ID = r"((?=[A-Z]*[0-9])[A-Z0-9]{6,10})\b"


def _strip_commas(value: str) -> str:
    return value.replace(",", "")


def _strip(value: str) -> str:
    return value.strip()


def _upper(value: str) -> str:
    return value.strip().upper()


@dataclass(frozen=True)
class PatternRule:
    """Ordered patterns for one concept; the first match wins."""

    field_name: str
    patterns: tuple[re.Pattern[str], ...]
    confidence: float
    data_type: DataType
    clean: Callable[[str], str] = _strip

    def match(self, text: str) -> ExtractedField | None:
        for pattern in self.patterns:
            found = pattern.search(text)
            if found is None:
                continue
            value = self.clean(found.group(1))
            if value:
                return ExtractedField(
                    field_name=self.field_name,
                    value=value,
                    confidence=self.confidence,
                    data_type=self.data_type,
                )
        return None


class BaseFieldExtractor(ABC):
    """Contract for document-type specific extractors."""

    @abstractmethod
    def extract(self, text: str) -> list[ExtractedField]:
        """Recover domain fields from the document's full text."""


class PatternFieldExtractor(BaseFieldExtractor):
    RULES: ClassVar[tuple[PatternRule, ...]] = ()

    def extract(self, text: str) -> list[ExtractedField]:
        fields: list[ExtractedField] = []
        for rule in self.RULES:
            extracted = rule.match(text)
            if extracted is not None:
                fields.append(extracted)
        return fields


class IncomeFieldExtractor(PatternFieldExtractor):
    RULES = (
        PatternRule(
            field_name="salary_amount",
            patterns=(
                re.compile(r"(?:salary|income|amount)[:\s]*(?:₹|rs\.?|inr)?\s*" + _AMOUNT, re.IGNORECASE),
                re.compile(r"₹\s*" + _AMOUNT),
            ),
            confidence=0.85,
            data_type="currency",
            clean=_strip_commas,
        ),
        PatternRule(
            field_name="employee_id",
            patterns=(
                re.compile(
                    r"\bemp(?:loyee)?\.?\s*(?:id|no|code)\b[:#.\s]*" + _EMPLOYEE_ID,
                    re.IGNORECASE,
                ),
                re.compile(r"\bid\b[:#.\s]*" + _EMPLOYEE_ID, re.IGNORECASE),
            ),
            confidence=0.9,
            data_type="text",
            clean=_upper,
        ),
    )


class MedicalFieldExtractor(PatternFieldExtractor):
    RULES = (
        PatternRule(
            field_name="bill_amount",
            patterns=(
                re.compile(r"(?:total|amount|bill)[:\s]*(?:₹|rs\.?|inr)?\s*" + _AMOUNT, re.IGNORECASE),
            ),
            confidence=0.85,
            data_type="currency",
            clean=_strip_commas,
        ),
        PatternRule(
            field_name="patient_name",
            patterns=(
                re.compile(r"patient(?:'s)?\s*name[:\s]+" + _NAME, re.IGNORECASE),
                re.compile(r"(?:patient|name)[:\s]+" + _NAME, re.IGNORECASE),
            ),
            confidence=0.8,
            data_type="text",
        ),
    )


class EducationFieldExtractor(PatternFieldExtractor):
    RULES = (
        PatternRule(
            field_name="grade_percentage",
            patterns=(
                re.compile(r"(?:percentage|grade|marks)[:\s]*([0-9]+(?:\.[0-9]{1,2})?)\s*%?", re.IGNORECASE),
                re.compile(r"([0-9]+(?:\.[0-9]{1,2})?)\s*%"),
            ),
            confidence=0.85,
            data_type="percentage",
        ),
        PatternRule(
            field_name="student_name",
            patterns=(
                re.compile(r"student(?:'s)?\s*name[:\s]+" + _NAME, re.IGNORECASE),
                re.compile(r"(?:student|name)[:\s]+" + _NAME, re.IGNORECASE),
            ),
            confidence=0.8,
            data_type="text",
        ),
    )


class BankFieldExtractor(PatternFieldExtractor):
    RULES = (
        PatternRule(
            field_name="account_number",
            patterns=(
                re.compile(r"(?:account|a/c)(?:\s*(?:no|number))?\.?[:\s]*([0-9]{9,18})\b", re.IGNORECASE),
            ),
            confidence=0.9,
            data_type="text",
        ),
        PatternRule(
            field_name="ifsc_code",
            patterns=(
                re.compile(r"(?:ifsc|code)[:\s]*([A-Z]{4}0[A-Z0-9]{6})\b", re.IGNORECASE),
            ),
            confidence=0.9,
            data_type="text",
            clean=_upper,
        ),
    )


def build_extractor_registry() -> DocumentTypeRegistry[BaseFieldExtractor]:
    """Registry with the built-in income, medical, education and bank extractors."""
    registry: DocumentTypeRegistry[BaseFieldExtractor] = DocumentTypeRegistry()
    registry.register_category("income", IncomeFieldExtractor())
    registry.register_category("medical", MedicalFieldExtractor())
    registry.register_category("education", EducationFieldExtractor())
    registry.register_category("bank", BankFieldExtractor())
    return registry
