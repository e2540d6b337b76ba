from typing import List, Optional

from pydantic import BaseModel

from .rules import BuiltInRules


class ValidationError(BaseModel):
    message: str
    severity: str = "error"  # error, warning
    location: Optional[int] = None


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationError]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self.errors if e.severity == "warning"]


class ValidationEngine:
    """Compares a converted document against its source."""

    def validate(self, original: str, converted: str) -> ValidationResult:
        errors = []

        for msg in BuiltInRules.check_code_blocks(original, converted):
            errors.append(ValidationError(message=msg, severity="error"))

        for msg in BuiltInRules.check_urls(original, converted):
            errors.append(ValidationError(message=msg, severity="error"))

        for msg in BuiltInRules.check_display_delimiters(converted):
            errors.append(ValidationError(message=msg, severity="error"))

        for line_no, msg in BuiltInRules.check_inline_dollars(converted):
            errors.append(
                ValidationError(message=msg, severity="warning", location=line_no)
            )

        # Warnings do not make a result invalid
        valid = not any(e.severity == "error" for e in errors)
        return ValidationResult(valid=valid, errors=errors)
