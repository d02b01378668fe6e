"""
LMS component - External LMS authentication and data collection.

Authenticates against the LMS and runs the cancellable, progress-reporting
collection of courses, assignments and lectures.
"""

from ._impl import ProgressTracker, compute_backoff
from .component import LmsLinkClient
from .models import CollectionOutput, LmsAuthOutput, ProgressCallback
from .ports import LmsBackendPort

__all__ = [
    # Entry points
    "LmsLinkClient",
    # Models
    "CollectionOutput",
    "LmsAuthOutput",
    "ProgressCallback",
    # Ports
    "LmsBackendPort",
    # Helpers
    "ProgressTracker",
    "compute_backoff",
]
