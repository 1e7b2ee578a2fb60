"""Input validation package."""

from fintrack.validation.validator import InputValidator, ValidationError, to_decimal

__all__ = ["InputValidator", "ValidationError", "to_decimal"]
