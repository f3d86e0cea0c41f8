"""Activity editor - the create/edit workflow for one catalog entry.

The editor is either closed or editing. An editing session targets either a
new activity (target_id is None) or an existing one, and holds the in-progress
field values until it is submitted or cancelled. Only one session can be open.
"""

from dataclasses import dataclass

from src.classplan.catalog import ActivityCatalog
from src.classplan.errors import ActivityNotFound, InvalidStateTransition
from src.classplan.logging import get_logger
from src.classplan.models import DEFAULT_CLASS_TYPE, ClassType, EditorField

log = get_logger(__name__)


@dataclass
class EditSession:
    """In-progress values of an open editor."""

    target_id: int | None = None
    name: str = ""
    url: str = ""
    class_type: ClassType | None = None

    @property
    def is_new(self) -> bool:
        return self.target_id is None


@dataclass(frozen=True)
class SubmitResult:
    """What a submit did to the catalog."""

    activity_id: int
    created: bool


class ActivityEditor:
    """Closed/Editing state machine over an ActivityCatalog."""

    def __init__(self) -> None:
        self.session: EditSession | None = None

    @property
    def is_open(self) -> bool:
        return self.session is not None

    @property
    def state_name(self) -> str:
        return "Editing" if self.session is not None else "Closed"

    def _require_open(self, intent: str) -> EditSession:
        if self.session is None:
            raise InvalidStateTransition(intent, self.state_name)
        return self.session

    def _require_closed(self, intent: str) -> None:
        if self.session is not None:
            raise InvalidStateTransition(intent, self.state_name)

    def request_new(self) -> EditSession:
        self._require_closed("RequestNewActivity")
        self.session = EditSession()
        log.debug("editor_opened", target_id=None)
        return self.session

    def request_edit(self, activity_id: int, catalog: ActivityCatalog) -> EditSession:
        """Open a session pre-filled from an existing activity.

        Raises:
            InvalidStateTransition: If a session is already open.
            ActivityNotFound: If the activity no longer exists.
        """
        self._require_closed("RequestEditActivity")
        activity = catalog.find(activity_id)
        if activity is None:
            raise ActivityNotFound(activity_id)
        self.session = EditSession(
            target_id=activity.id,
            name=activity.name,
            url=activity.url,
            class_type=activity.class_type,
        )
        log.debug("editor_opened", target_id=activity.id)
        return self.session

    def change_field(self, field: EditorField, value: str) -> None:
        session = self._require_open("ActivityFieldChanged")
        if field is EditorField.NAME:
            session.name = value
        else:
            session.url = value

    def select_type(self, class_type: ClassType) -> None:
        session = self._require_open("ActivityTypeSelected")
        session.class_type = class_type

    def submit(self, catalog: ActivityCatalog) -> SubmitResult:
        """Write the session into the catalog and close the editor.

        A missing class type defaults to Lecture. The editor is closed even if
        the target activity disappeared in the meantime.

        Raises:
            InvalidStateTransition: If no session is open.
            ActivityNotFound: If the edited activity was removed.
        """
        session = self._require_open("SubmitActivity")
        class_type = session.class_type or DEFAULT_CLASS_TYPE
        self.session = None

        if session.target_id is None:
            activity_id = catalog.add(session.name, session.url, class_type)
            return SubmitResult(activity_id=activity_id, created=True)

        catalog.update(session.target_id, session.name, session.url, class_type)
        return SubmitResult(activity_id=session.target_id, created=False)

    def cancel(self) -> None:
        """Discard the session. Cancelling a closed editor does nothing."""
        if self.session is not None:
            log.debug("editor_cancelled", target_id=self.session.target_id)
        self.session = None
