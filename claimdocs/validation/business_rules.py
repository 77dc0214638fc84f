"""Document-type specific business rules, dispatched through a registry."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, ClassVar

from claimdocs.documents.models import ExtractedField, OCRData
from claimdocs.documents.registry import DocumentTypeRegistry
from claimdocs.validation.claims import claimed_value
from claimdocs.validation.comparison import (
    parse_decimal,
    parse_percentage,
    string_similarity,
)
from claimdocs.validation.issues import IssueCollector

NAME_SIMILARITY_THRESHOLD = 0.8
# Bill vs claim discrepancy tolerated before warning, as a share of the bill.
AMOUNT_TOLERANCE_RATIO = Decimal("0.05")


def find_field(ocr_data: OCRData, *fragments: str) -> ExtractedField | None:
    """First extracted field whose name contains any of the fragments."""
    for extracted in ocr_data.extracted_fields:
        if any(fragment in extracted.field_name for fragment in fragments):
            return extracted
    return None


class BaseBusinessRules(ABC):
    """Contract for document-type specific rule sets.

    ``reconciled_fields`` maps an extracted field to the issue code that replaces
    the generic DATA_MISMATCH for it when both fire.
    """

    reconciled_fields: ClassVar[dict[str, str]] = {}

    @abstractmethod
    def apply(
        self,
        ocr_data: OCRData,
        claims: Mapping[str, Any] | None,
        issues: IssueCollector,
    ) -> None:
        """Check extracted fields against the claim, recording issues."""


class IncomeRules(BaseBusinessRules):
    reconciled_fields = {"employee_id": "EMPLOYEE_ID_MISMATCH"}

    def apply(self, ocr_data: OCRData, claims: Mapping[str, Any] | None, issues: IssueCollector) -> None:
        salary_field = find_field(ocr_data, "salary", "amount")
        claim_amount = claimed_value(claims, "claimAmount")
        if salary_field is not None and claim_amount is not None:
            extracted = parse_decimal(salary_field.value)
            claimed = parse_decimal(claim_amount)
            if extracted is not None and claimed is not None and claimed > extracted:
                issues.error(
                    "salary_amount",
                    f"Claim amount ({claimed}) exceeds documented salary ({extracted})",
                    "CLAIM_EXCEEDS_SALARY",
                )

        employee_field = find_field(ocr_data, "employee_id")
        employee_id = claimed_value(claims, "employeeId")
        if employee_field is not None and employee_id is not None and employee_field.value != employee_id:
            issues.error(
                "employee_id",
                f"Employee ID mismatch: document shows {employee_field.value}, "
                f"application shows {employee_id}",
                "EMPLOYEE_ID_MISMATCH",
            )


class MedicalRules(BaseBusinessRules):
    def apply(self, ocr_data: OCRData, claims: Mapping[str, Any] | None, issues: IssueCollector) -> None:
        bill_field = find_field(ocr_data, "bill_amount", "amount")
        claim_amount = claimed_value(claims, "claimAmount")
        if bill_field is not None and claim_amount is not None:
            extracted = parse_decimal(bill_field.value)
            claimed = parse_decimal(claim_amount)
            if (
                extracted is not None
                and claimed is not None
                and abs(claimed - extracted) > extracted * AMOUNT_TOLERANCE_RATIO
            ):
                issues.warning(
                    "bill_amount",
                    f"Claim amount ({claimed}) differs from bill amount ({extracted})",
                    "AMOUNT_DISCREPANCY",
                )

        patient_field = find_field(ocr_data, "patient_name", "name")
        beneficiary = claimed_value(claims, "beneficiaryName")
        if patient_field is not None and beneficiary is not None:
            if string_similarity(patient_field.value, beneficiary) < NAME_SIMILARITY_THRESHOLD:
                issues.warning(
                    "patient_name",
                    f'Patient name "{patient_field.value}" may not match beneficiary "{beneficiary}"',
                    "NAME_SIMILARITY_LOW",
                )


class EducationRules(BaseBusinessRules):
    def apply(self, ocr_data: OCRData, claims: Mapping[str, Any] | None, issues: IssueCollector) -> None:
        grade_field = find_field(ocr_data, "grade", "percentage")
        minimum = claimed_value(claims, "minimumGrade")
        if grade_field is not None and minimum is not None:
            extracted = parse_percentage(grade_field.value)
            required = parse_percentage(minimum)
            if extracted is not None and required is not None and extracted < required:
                issues.error(
                    "grade_percentage",
                    f"Grade {extracted}% is below minimum requirement of {required}%",
                    "GRADE_BELOW_MINIMUM",
                )

        student_field = find_field(ocr_data, "student_name", "name")
        student_name = claimed_value(claims, "studentName")
        if student_field is not None and student_name is not None:
            if string_similarity(student_field.value, student_name) < NAME_SIMILARITY_THRESHOLD:
                issues.warning(
                    "student_name",
                    f'Student name "{student_field.value}" may not match application "{student_name}"',
                    "NAME_SIMILARITY_LOW",
                )


class BankRules(BaseBusinessRules):
    reconciled_fields = {
        "account_number": "ACCOUNT_NUMBER_MISMATCH",
        "ifsc_code": "IFSC_CODE_MISMATCH",
    }

    def apply(self, ocr_data: OCRData, claims: Mapping[str, Any] | None, issues: IssueCollector) -> None:
        account_field = find_field(ocr_data, "account_number")
        bank_account = claimed_value(claims, "bankAccount")
        if account_field is not None and bank_account is not None and account_field.value != bank_account:
            issues.error(
                "account_number",
                f"Account number mismatch: document shows {account_field.value}, "
                f"application shows {bank_account}",
                "ACCOUNT_NUMBER_MISMATCH",
            )

        ifsc_field = find_field(ocr_data, "ifsc_code")
        ifsc_code = claimed_value(claims, "ifscCode")
        if ifsc_field is not None and ifsc_code is not None and ifsc_field.value != ifsc_code:
            issues.error(
                "ifsc_code",
                f"IFSC code mismatch: document shows {ifsc_field.value}, "
                f"application shows {ifsc_code}",
                "IFSC_CODE_MISMATCH",
            )


def build_rules_registry() -> DocumentTypeRegistry[BaseBusinessRules]:
    """Registry with the built-in income, medical, education and bank rule sets."""
    registry: DocumentTypeRegistry[BaseBusinessRules] = DocumentTypeRegistry()
    registry.register_category("income", IncomeRules())
    registry.register_category("medical", MedicalRules())
    registry.register_category("education", EducationRules())
    registry.register_category("bank", BankRules())
    return registry
