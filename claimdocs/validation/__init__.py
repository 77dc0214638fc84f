from claimdocs.validation.engine import ValidationEngine, quality_for

__all__ = ["ValidationEngine", "quality_for"]
