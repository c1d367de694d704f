"""Activity log module.

Provides functionality for:
- Recording audit entries and notifications inside an operation's unit of work
- Listing the activity log
"""

from .manager import ActivityManager
from .models import Activity
from .recorder import ActivityRecorder
from .schemas import ActivityAction, ActivityPage, ActivityResponse, ActorType

__all__ = [
    "ActivityManager",
    "ActivityRecorder",
    "Activity",
    "ActivityAction",
    "ActivityPage",
    "ActivityResponse",
    "ActorType",
]
