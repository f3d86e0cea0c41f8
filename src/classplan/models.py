"""Pydantic models for the weekly class schedule.

All data structures use Pydantic v2 for validation, serialization, and type safety.
The grid is a fixed 5 x 6 matrix: Monday..Friday, six 2-hour blocks from 08:00.
"""

from enum import Enum

from pydantic import BaseModel, Field

DAYS = 5
SLOTS_PER_DAY = 6
FIRST_SLOT_HOUR = 8  # 08:00
SLOT_HOURS = 2

DAY_NAMES: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


class ClassType(str, Enum):
    """Kind of class an activity represents."""

    LECTURE = "Lecture"
    PROBLEM_CLASS = "ProblemClass"
    TUTORIAL = "Tutorial"


DEFAULT_CLASS_TYPE = ClassType.LECTURE


class EditorField(str, Enum):
    """Text fields of the activity editor."""

    NAME = "Name"
    URL = "URL"

    @property
    def placeholder(self) -> str:
        if self is EditorField.NAME:
            return "Enter activity name"
        return "Enter activity URL"


class Activity(BaseModel):
    """A user-defined activity (a course, seminar, reading group, ...).

    `id` is stable for the lifetime of the activity and is reused only after
    the activity is removed (lowest free id wins).
    """

    id: int = Field(ge=0)
    name: str = ""
    url: str = ""
    class_type: ClassType = DEFAULT_CLASS_TYPE


class SlotBinding(BaseModel):
    """A grid cell bound to an activity.

    `label` caches the activity name so the cell renders without a catalog join.
    """

    activity_id: int = Field(ge=0)
    label: str = ""


def check_cell(day: int, slot: int) -> None:
    """Raise IndexError if (day, slot) is outside the 5 x 6 grid."""
    if not 0 <= day < DAYS:
        raise IndexError(f"day {day} out of range 0..{DAYS - 1}")
    if not 0 <= slot < SLOTS_PER_DAY:
        raise IndexError(f"slot {slot} out of range 0..{SLOTS_PER_DAY - 1}")


def slot_label(slot: int) -> str:
    """Start time of a slot, e.g. slot_label(0) == "08:00"."""
    if not 0 <= slot < SLOTS_PER_DAY:
        raise IndexError(f"slot {slot} out of range 0..{SLOTS_PER_DAY - 1}")
    return f"{FIRST_SLOT_HOUR + slot * SLOT_HOURS:02d}:00"
