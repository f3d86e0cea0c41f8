"""Weekly class scheduler core.

Activity catalog, 5 x 6 schedule grid, activity editor, intent dispatcher and
the versioned schedule file. Rendering is left to whatever UI drives the
Dispatcher and reads ScheduleState.snapshot().
"""

from src.classplan.dispatcher import Dispatcher
from src.classplan.models import Activity, ClassType, EditorField, SlotBinding
from src.classplan.persistence import load_or_empty, open_schedule, save_schedule
from src.classplan.state import ScheduleState, ScheduleView

__all__ = [
    "Activity",
    "ClassType",
    "Dispatcher",
    "EditorField",
    "ScheduleState",
    "ScheduleView",
    "SlotBinding",
    "load_or_empty",
    "open_schedule",
    "save_schedule",
]
