from collections.abc import Mapping
from typing import Any

# Extracted field name -> attribute of the applicant's claim.
CLAIM_FIELD_MAP: dict[str, str] = {
    "employee_id": "employeeId",
    "salary_amount": "salary",
    "bill_amount": "claimAmount",
    "patient_name": "beneficiaryName",
    "student_name": "studentName",
    "grade_percentage": "grade",
    "account_number": "bankAccount",
    "ifsc_code": "ifscCode",
}


def claimed_value(claims: Mapping[str, Any] | None, attribute: str) -> str | None:
    """Return the claimed value as a string, or None when absent or blank."""
    if not claims:
        return None
    value = claims.get(attribute)
    if value is None or value == "":
        return None
    return str(value)


def claimed_value_for_field(claims: Mapping[str, Any] | None, field_name: str) -> str | None:
    attribute = CLAIM_FIELD_MAP.get(field_name)
    if attribute is None:
        return None
    return claimed_value(claims, attribute)
