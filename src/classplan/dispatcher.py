"""Intent dispatcher - single entry point for every state mutation.

One intent is handled to completion before the next one. Catalog and grid are
updated within the same call, so a removed activity is never observed while a
slot still points at it.
"""

import functools
from collections.abc import Callable

from src.classplan.config import get_config
from src.classplan.errors import ActivityNotFound, InvalidStateTransition
from src.classplan.intents import (
    ActivityFieldChanged,
    ActivityTypeSelected,
    AssignSlot,
    CancelEdit,
    Intent,
    LaunchMeeting,
    RemoveActivity,
    RequestEditActivity,
    RequestNewActivity,
    SubmitActivity,
)
from src.classplan.launcher import launch_url
from src.classplan.logging import get_logger
from src.classplan.state import ScheduleState

log = get_logger(__name__)

UrlLauncher = Callable[[str], object]


class Dispatcher:
    """Routes intents to the catalog, grid and editor of one ScheduleState.

    Usage errors (InvalidStateTransition) propagate to the caller with the
    state untouched. Lookup misses are logged and treated as no-ops.
    """

    def __init__(
        self,
        state: ScheduleState,
        launcher: UrlLauncher | None = None,
        on_change: Callable[[ScheduleState], None] | None = None,
    ) -> None:
        self.state = state
        if launcher is None:
            launcher = functools.partial(launch_url, browser=get_config().browser or None)
        self.launcher = launcher
        self.on_change = on_change

    def handle(self, intent: Intent) -> None:
        """Apply one intent.

        Raises:
            InvalidStateTransition: If the editor is in the wrong state for the intent.
        """
        try:
            self._route(intent)
        except InvalidStateTransition as e:
            log.warning(
                "intent_rejected", intent=e.intent, editor_state=e.state
            )
            raise

        if self.on_change is not None:
            self.on_change(self.state)

    def _route(self, intent: Intent) -> None:
        state = self.state
        editor = state.editor

        if isinstance(intent, RequestNewActivity):
            editor.request_new()

        elif isinstance(intent, RequestEditActivity):
            try:
                editor.request_edit(intent.activity_id, state.catalog)
            except ActivityNotFound:
                log.warning("edit_request_ignored", activity_id=intent.activity_id)

        elif isinstance(intent, CancelEdit):
            editor.cancel()

        elif isinstance(intent, ActivityFieldChanged):
            editor.change_field(intent.field, intent.value)

        elif isinstance(intent, ActivityTypeSelected):
            editor.select_type(intent.class_type)

        elif isinstance(intent, SubmitActivity):
            self._submit()

        elif isinstance(intent, RemoveActivity):
            self._remove(intent.activity_id)

        elif isinstance(intent, AssignSlot):
            state.grid.assign(intent.day, intent.slot, intent.activity_id, state.catalog)

        elif isinstance(intent, LaunchMeeting):
            self._launch(intent.url)

        else:
            raise TypeError(f"Unknown intent {type(intent).__name__}")

    def _submit(self) -> None:
        state = self.state
        try:
            result = state.editor.submit(state.catalog)
        except ActivityNotFound as e:
            log.warning("edit_submit_ignored", activity_id=e.activity_id)
            return

        if not result.created:
            activity = state.catalog.find(result.activity_id)
            if activity is not None:
                state.grid.refresh_labels(activity.id, activity.name)

    def _remove(self, activity_id: int) -> None:
        state = self.state
        session = state.editor.session
        if session is not None and session.target_id == activity_id:
            state.editor.cancel()
        state.grid.on_activity_removed(activity_id)
        state.catalog.remove(activity_id)

    def _launch(self, url: str) -> None:
        try:
            self.launcher(url)
        except Exception as e:  # launch failures never reach state
            log.warning("launch_failed", url=url, error=str(e))
