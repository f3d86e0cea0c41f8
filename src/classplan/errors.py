"""Error hierarchy for the class scheduler.

Usage errors mean the caller broke the intent protocol (for example submitting
while no editor session is open). Lookup misses and persistence failures are
split out so callers can decide which ones to recover from.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientPersistenceError), stop=stop_after_attempt(3))
    def save_schedule(state, path):
        ...
"""


class PlannerError(Exception):
    """Base exception for all scheduler errors."""

    pass


class UsageError(PlannerError):
    """An intent arrived that the current state does not allow."""

    pass


class InvalidStateTransition(UsageError):
    """Editor transition rejected - the intent is ignored and state is unchanged.

    Examples: a second "new activity" request while a session is open,
    a field edit or submit while the editor is closed.
    """

    def __init__(self, intent: str, state: str) -> None:
        self.intent = intent
        self.state = state
        super().__init__(f"{intent} is not allowed while the editor is {state}")


class ActivityNotFound(PlannerError):
    """No activity with the given id exists in the catalog."""

    def __init__(self, activity_id: int) -> None:
        self.activity_id = activity_id
        super().__init__(f"No activity with id {activity_id}")


class PersistenceError(PlannerError):
    """Base exception for schedule file load/save failures."""

    pass


class TransientPersistenceError(PersistenceError):
    """OS-level I/O failure that may succeed on retry.

    Examples: file briefly locked, interrupted write, full temp directory.
    """

    pass


class CorruptScheduleError(PersistenceError):
    """Schedule file exists but cannot be decoded or validated.

    Retrying will not help - the file content itself is bad.
    """

    pass


class UnsupportedFormatVersion(CorruptScheduleError):
    """Schedule file was written by a newer format version than this build reads."""

    def __init__(self, version: int, latest: int) -> None:
        self.version = version
        self.latest = latest
        super().__init__(
            f"Schedule format version {version} is newer than supported ({latest})"
        )
