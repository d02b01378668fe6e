"""
Auth component - App account session management.

Handles login, signup and logout for the application account.
"""

from .component import AuthSessionManager
from .models import AuthOutput
from .ports import AuthBackendPort

__all__ = [
    # Entry points
    "AuthSessionManager",
    # Models
    "AuthOutput",
    # Ports
    "AuthBackendPort",
]
