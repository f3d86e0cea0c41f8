"""Weekly schedule grid - 5 days x 6 two-hour blocks of optional bindings."""

from collections.abc import Iterator

from src.classplan.catalog import ActivityCatalog
from src.classplan.logging import get_logger
from src.classplan.models import DAYS, SLOTS_PER_DAY, SlotBinding, check_cell

log = get_logger(__name__)


class ScheduleGrid:
    """Fixed-size matrix of optional SlotBinding, indexed by (day, slot).

    Cells are never destroyed, only cleared. Each binding references a catalog
    entry by id and carries a cached label for rendering.
    """

    def __init__(self) -> None:
        self._cells: list[list[SlotBinding | None]] = [
            [None] * SLOTS_PER_DAY for _ in range(DAYS)
        ]

    def get(self, day: int, slot: int) -> SlotBinding | None:
        check_cell(day, slot)
        return self._cells[day][slot]

    def restore(self, day: int, slot: int, binding: SlotBinding | None) -> None:
        """Store a binding as-is (used when restoring from disk)."""
        check_cell(day, slot)
        self._cells[day][slot] = binding

    def assign(
        self,
        day: int,
        slot: int,
        activity_id: int | None,
        catalog: ActivityCatalog,
    ) -> SlotBinding | None:
        """Bind a cell to an activity, or clear it if the id is unknown or None.

        Returns:
            The new binding, or None if the cell was cleared.
        """
        check_cell(day, slot)
        activity = catalog.find(activity_id)
        if activity is None:
            self._cells[day][slot] = None
            log.debug("slot_cleared", day=day, slot=slot, requested_id=activity_id)
            return None

        binding = SlotBinding(activity_id=activity.id, label=activity.name)
        self._cells[day][slot] = binding
        log.debug("slot_assigned", day=day, slot=slot, activity_id=activity.id)
        return binding

    def clear(self, day: int, slot: int) -> None:
        check_cell(day, slot)
        self._cells[day][slot] = None

    def on_activity_removed(self, activity_id: int) -> int:
        """Clear every cell bound to `activity_id`.

        Returns:
            Number of cells cleared.
        """
        cleared = 0
        for day, slot, binding in self.cells():
            if binding is not None and binding.activity_id == activity_id:
                self._cells[day][slot] = None
                cleared += 1
        if cleared:
            log.info("slots_released", activity_id=activity_id, count=cleared)
        return cleared

    def refresh_labels(self, activity_id: int, label: str) -> int:
        """Re-sync the cached label of every cell bound to `activity_id`."""
        refreshed = 0
        for _, _, binding in self.cells():
            if binding is not None and binding.activity_id == activity_id:
                binding.label = label
                refreshed += 1
        return refreshed

    def cells(self) -> Iterator[tuple[int, int, SlotBinding | None]]:
        """Yield (day, slot, binding) for all 30 cells, day-major."""
        for day in range(DAYS):
            for slot in range(SLOTS_PER_DAY):
                yield day, slot, self._cells[day][slot]

    def rows(self) -> list[list[SlotBinding | None]]:
        """Copy of the matrix as nested lists (day-major)."""
        return [list(row) for row in self._cells]

    def bound_ids(self) -> set[int]:
        return {b.activity_id for _, _, b in self.cells() if b is not None}
