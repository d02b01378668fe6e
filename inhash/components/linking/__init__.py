"""
Linking component - Account linking orchestrator.

Single state machine the view layer observes: session, LMS linkage,
collection progress and the navigation route derived from them.
"""

from .component import AccountLinkingOrchestrator
from .models import LinkOutput
from .ports import LinkStateStorePort, ScheduleStorePort, TimePort

__all__ = [
    # Entry points
    "AccountLinkingOrchestrator",
    # Models
    "LinkOutput",
    # Ports
    "LinkStateStorePort",
    "ScheduleStorePort",
    "TimePort",
]
