"""
modules/validation package: request guards and catalog data-quality checks.
"""
from tripline.modules.validation.request_validator import (
    ValidationResult,
    ensure_valid_request,
    filter_valid,
    validate_request,
    validate_spot_record,
)

__all__ = [
    "ValidationResult",
    "ensure_valid_request",
    "filter_valid",
    "validate_request",
    "validate_spot_record",
]
