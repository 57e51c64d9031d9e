"""Utility functions and classes."""

from reapply.utils.validators import (
    ValidationResult,
    clamp_follow_up_count,
    parse_custom_date,
    validate_follow_up_request,
)

__all__ = [
    "ValidationResult",
    "clamp_follow_up_count",
    "parse_custom_date",
    "validate_follow_up_request",
]
