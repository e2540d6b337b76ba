from .engine import ValidationEngine, ValidationError, ValidationResult

__all__ = ["ValidationEngine", "ValidationError", "ValidationResult"]
