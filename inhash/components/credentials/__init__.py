"""
Credentials component - Structural validation of login inputs.

Runs before any network call so the UI can show field-level messages.
"""

from .component import (
    EMAIL_REGEX,
    validate_app_credentials,
    validate_lms_credentials,
)
from .models import ValidationOutput

__all__ = [
    # Entry points
    "validate_app_credentials",
    "validate_lms_credentials",
    # Models
    "ValidationOutput",
    # Constants
    "EMAIL_REGEX",
]
