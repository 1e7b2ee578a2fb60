"""
Input Validation

DESIGN DECISION: Callers (forms) validate before calling the core, but
the core checks again at its boundary. An operation that receives bad
input is rejected BEFORE anything is mutated: no ledger adjustment,
no staged record.

Validation NEVER silently fixes issues. Amounts are not clamped and
blank text is not replaced; the issue is reported to the caller.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from fintrack.models.records import DayOfWeek, Transaction
from fintrack.models.results import ValidationIssue, ValidationResult


# Matches the max_length of the text fields on the record models
MAX_TEXT_LENGTH = 200


class ValidationError(Exception):
    """Malformed input reached a core operation. Nothing was changed."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Invalid {result.subject}: {messages}")


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a user-supplied amount to Decimal.

    Floats go through str() so 0.1 stays 0.1. Returns None when
    the value is not a number.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None


class InputValidator:
    """
    Validates the input of core operations.

    Every validate_* method returns a ValidationResult; require_valid()
    turns a failing result into a ValidationError.
    """

    def _check_amount(
        self,
        issues: list[ValidationIssue],
        value: Any,
        field: str = "amount",
        allow_zero: bool = False,
    ) -> Optional[Decimal]:
        amount = to_decimal(value)
        if amount is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing" if value is None else "invalid_format",
                message=f"{field.replace('_', ' ').capitalize()} must be a number",
                severity="error",
                suggested_fix="Enter digits with an optional decimal point",
            ))
            return None

        if not amount.is_finite():
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_finite",
                message=f"{field.replace('_', ' ').capitalize()} must be a finite number",
                severity="error",
            ))
            return None

        if amount < 0 or (amount == 0 and not allow_zero):
            issues.append(ValidationIssue(
                field=field,
                issue_type="negative" if allow_zero else "not_positive",
                message=(
                    f"{field.replace('_', ' ').capitalize()} cannot be negative"
                    if allow_zero
                    else f"{field.replace('_', ' ').capitalize()} must be greater than zero"
                ),
                severity="error",
            ))
            return None

        # More than cents is allowed but probably a typo
        if amount.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field=field,
                issue_type="sub_cent_precision",
                message=f"{field.replace('_', ' ').capitalize()} ({amount}) has more than two decimal places",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return amount

    def _check_text(
        self,
        issues: list[ValidationIssue],
        value: Optional[str],
        field: str,
        max_length: int = MAX_TEXT_LENGTH,
    ) -> None:
        if value is None or not str(value).strip():
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.replace('_', ' ').capitalize()} is required",
                severity="error",
            ))
        elif len(str(value).strip()) > max_length:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field.replace('_', ' ').capitalize()} must be at most {max_length} characters",
                severity="error",
            ))

    def _check_day(
        self,
        issues: list[ValidationIssue],
        value: Any,
    ) -> None:
        try:
            DayOfWeek(value)
        except ValueError:
            issues.append(ValidationIssue(
                field="day_of_week",
                issue_type="invalid_value",
                message=f"'{value}' is not a day of the week",
                severity="error",
                suggested_fix="Use Monday through Sunday",
            ))

    def _result(self, subject: str, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            subject=subject,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def validate_transaction(
        self,
        description: Optional[str],
        amount: Any,
        day_of_week: Any = DayOfWeek.MONDAY,
        subject: str = "transaction",
    ) -> ValidationResult:
        """Validate a new or edited transaction (or weekly template)."""
        issues: list[ValidationIssue] = []
        self._check_text(issues, description, "description")
        self._check_amount(issues, amount)
        self._check_day(issues, day_of_week)
        return self._result(subject, issues)

    def validate_quick_add(
        self,
        description: Optional[str],
        amount: Any,
    ) -> ValidationResult:
        """Validate a quick add template (no day)."""
        issues: list[ValidationIssue] = []
        self._check_text(issues, description, "description")
        self._check_amount(issues, amount)
        return self._result("quick_add_transaction", issues)

    def validate_cash_flow_item(
        self,
        name: Optional[str],
        amount: Any,
    ) -> ValidationResult:
        """Validate a manually entered cash flow item."""
        issues: list[ValidationIssue] = []
        self._check_text(issues, name, "name")
        self._check_amount(issues, amount)
        return self._result("cash_flow_item", issues)

    def validate_amount(
        self,
        amount: Any,
        subject: str = "amount",
        allow_zero: bool = False,
    ) -> ValidationResult:
        """Validate a bare amount (manual and ledger adjustments)."""
        issues: list[ValidationIssue] = []
        self._check_amount(issues, amount, allow_zero=allow_zero)
        return self._result(subject, issues)

    def validate_balance(self, value: Any) -> ValidationResult:
        """Validate a replacement balance. Any finite number is allowed."""
        issues: list[ValidationIssue] = []
        balance = to_decimal(value)
        if balance is None or not balance.is_finite():
            issues.append(ValidationIssue(
                field="net_income",
                issue_type="invalid_format",
                message="Net income must be a finite number",
                severity="error",
            ))
        return self._result("net_income", issues)

    def validate_promotion(
        self,
        transaction: Transaction,
        extra_cost: Any,
    ) -> ValidationResult:
        """Only completed income can become an IOU."""
        issues: list[ValidationIssue] = []
        if not transaction.is_income:
            issues.append(ValidationIssue(
                field="is_income",
                issue_type="invalid_value",
                message="Only income transactions can be added to cash flow",
                severity="error",
            ))
        if not transaction.is_completed:
            issues.append(ValidationIssue(
                field="is_completed",
                issue_type="invalid_value",
                message="Mark the transaction complete before adding it to cash flow",
                severity="error",
            ))
        self._check_amount(issues, extra_cost, field="extra_cost", allow_zero=True)
        return self._result("cash_flow_promotion", issues)

    def require_valid(self, result: ValidationResult) -> None:
        """Raise ValidationError if the result has any error-level issue."""
        if result.has_errors:
            raise ValidationError(result)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a short summary a form can show next to the Save button."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
