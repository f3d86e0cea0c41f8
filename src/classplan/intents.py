"""User intents - the only way the UI layer mutates schedule state.

Each intent is a frozen model tagged by `kind`, so raw mappings coming from a
UI bridge or the command line can be validated with parse_intent().
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.classplan.models import DAYS, SLOTS_PER_DAY, ClassType, EditorField


class _Intent(BaseModel):
    model_config = ConfigDict(frozen=True)


class RequestNewActivity(_Intent):
    kind: Literal["RequestNewActivity"] = "RequestNewActivity"


class RequestEditActivity(_Intent):
    kind: Literal["RequestEditActivity"] = "RequestEditActivity"
    activity_id: int


class CancelEdit(_Intent):
    kind: Literal["CancelEdit"] = "CancelEdit"


class ActivityFieldChanged(_Intent):
    kind: Literal["ActivityFieldChanged"] = "ActivityFieldChanged"
    field: EditorField
    value: str


class ActivityTypeSelected(_Intent):
    kind: Literal["ActivityTypeSelected"] = "ActivityTypeSelected"
    class_type: ClassType


class SubmitActivity(_Intent):
    kind: Literal["SubmitActivity"] = "SubmitActivity"


class RemoveActivity(_Intent):
    kind: Literal["RemoveActivity"] = "RemoveActivity"
    activity_id: int


class AssignSlot(_Intent):
    """Bind a cell; activity_id None (or an unknown id) clears it."""

    kind: Literal["AssignSlot"] = "AssignSlot"
    day: int = Field(ge=0, lt=DAYS)
    slot: int = Field(ge=0, lt=SLOTS_PER_DAY)
    activity_id: int | None = None


class LaunchMeeting(_Intent):
    kind: Literal["LaunchMeeting"] = "LaunchMeeting"
    url: str


Intent = Annotated[
    Union[
        RequestNewActivity,
        RequestEditActivity,
        CancelEdit,
        ActivityFieldChanged,
        ActivityTypeSelected,
        SubmitActivity,
        RemoveActivity,
        AssignSlot,
        LaunchMeeting,
    ],
    Field(discriminator="kind"),
]

_intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)


def parse_intent(raw: dict) -> Intent:
    """Validate a raw mapping such as {"kind": "AssignSlot", "day": 0, "slot": 1}.

    Raises:
        pydantic.ValidationError: If the kind is unknown or a field is invalid.
    """
    return _intent_adapter.validate_python(raw)
