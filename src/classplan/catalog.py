"""Activity catalog - owns the user's activities and their ids."""

from collections.abc import Iterator

from src.classplan.errors import ActivityNotFound
from src.classplan.logging import get_logger
from src.classplan.models import DEFAULT_CLASS_TYPE, Activity, ClassType

log = get_logger(__name__)


def lowest_free_id(taken: list[int]) -> int:
    """Return the smallest non-negative integer not in `taken` (the mex).

    Walks the sorted ids and stops at the first position whose id does not
    match its index; {0, 1, 3} -> 2, {0, 1, 2} -> 3.
    """
    ordered = sorted(taken)
    for idx, activity_id in enumerate(ordered):
        if activity_id != idx:
            return idx
    return len(ordered)


class ActivityCatalog:
    """Ordered collection of activities keyed by a reusable integer id.

    Insertion order is preserved for display and for building slot choices.
    """

    def __init__(self, activities: list[Activity] | None = None) -> None:
        self._activities: list[Activity] = []
        for activity in activities or []:
            if self.find(activity.id) is not None:
                raise ValueError(f"Duplicate activity id {activity.id}")
            self._activities.append(activity)

    def __len__(self) -> int:
        return len(self._activities)

    def __iter__(self) -> Iterator[Activity]:
        return iter(self._activities)

    def __contains__(self, activity_id: object) -> bool:
        return any(a.id == activity_id for a in self._activities)

    def ids(self) -> list[int]:
        return [a.id for a in self._activities]

    def next_id(self) -> int:
        return lowest_free_id(self.ids())

    def add(
        self,
        name: str,
        url: str,
        class_type: ClassType = DEFAULT_CLASS_TYPE,
    ) -> int:
        """Create an activity under the lowest free id and return that id."""
        activity_id = self.next_id()
        self._activities.append(
            Activity(id=activity_id, name=name, url=url, class_type=class_type)
        )
        log.info("activity_added", activity_id=activity_id, name=name)
        return activity_id

    def update(
        self,
        activity_id: int,
        name: str,
        url: str,
        class_type: ClassType = DEFAULT_CLASS_TYPE,
    ) -> Activity:
        """Overwrite an activity's fields in place.

        Raises:
            ActivityNotFound: If no activity has `activity_id`.
        """
        activity = self.find(activity_id)
        if activity is None:
            raise ActivityNotFound(activity_id)
        activity.name = name
        activity.url = url
        activity.class_type = class_type
        log.info("activity_updated", activity_id=activity_id, name=name)
        return activity

    def remove(self, activity_id: int) -> bool:
        """Delete an activity. Unknown ids are ignored.

        Returns:
            True if an activity was removed.
        """
        before = len(self._activities)
        self._activities = [a for a in self._activities if a.id != activity_id]
        removed = len(self._activities) != before
        if removed:
            log.info("activity_removed", activity_id=activity_id)
        else:
            log.debug("activity_remove_skipped", activity_id=activity_id, reason="not_found")
        return removed

    def find(self, activity_id: int | None) -> Activity | None:
        if activity_id is None:
            return None
        for activity in self._activities:
            if activity.id == activity_id:
                return activity
        return None

    def list(self) -> list[Activity]:
        """Activities in insertion order."""
        return list(self._activities)
