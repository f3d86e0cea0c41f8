"""Schedule state aggregate and the read-only view handed to the UI layer."""

from collections import Counter

from pydantic import BaseModel, ConfigDict

from src.classplan.catalog import ActivityCatalog
from src.classplan.editor import ActivityEditor
from src.classplan.grid import ScheduleGrid
from src.classplan.models import (
    DAY_NAMES,
    SLOTS_PER_DAY,
    Activity,
    ClassType,
    slot_label,
)


class CellView(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int
    slot: int
    day_name: str
    start: str  # "08:00"
    activity_id: int | None = None
    label: str | None = None
    url: str | None = None  # meeting link; None disables the button


class EditorView(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: bool = False
    target_id: int | None = None
    name: str = ""
    url: str = ""
    class_type: ClassType | None = None


class ScheduleView(BaseModel):
    """Snapshot of everything the UI renders. Mutating it has no effect on state."""

    model_config = ConfigDict(frozen=True)

    activities: tuple[Activity, ...]
    cells: tuple[tuple[CellView, ...], ...]  # [day][slot]
    editor: EditorView

    def cell(self, day: int, slot: int) -> CellView:
        return self.cells[day][slot]


class ScheduleState:
    """Catalog, grid and editor owned together for the life of the process."""

    def __init__(
        self,
        catalog: ActivityCatalog | None = None,
        grid: ScheduleGrid | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else ActivityCatalog()
        self.grid = grid if grid is not None else ScheduleGrid()
        self.editor = ActivityEditor()

    def snapshot(self) -> ScheduleView:
        """Build the render view. Labels come from the catalog, not the cache."""
        rows = []
        for day, day_name in enumerate(DAY_NAMES):
            row = []
            for slot in range(SLOTS_PER_DAY):
                binding = self.grid.get(day, slot)
                activity = self.catalog.find(binding.activity_id) if binding else None
                row.append(
                    CellView(
                        day=day,
                        slot=slot,
                        day_name=day_name,
                        start=slot_label(slot),
                        activity_id=activity.id if activity else None,
                        label=activity.name if activity else None,
                        url=activity.url if activity else None,
                    )
                )
            rows.append(tuple(row))

        session = self.editor.session
        if session is None:
            editor = EditorView()
        else:
            editor = EditorView(
                open=True,
                target_id=session.target_id,
                name=session.name,
                url=session.url,
                class_type=session.class_type,
            )

        return ScheduleView(
            activities=tuple(a.model_copy() for a in self.catalog),
            cells=tuple(rows),
            editor=editor,
        )

    def check_consistency(self) -> list[str]:
        """List invariant violations; empty when catalog and grid agree."""
        problems = []
        counts = Counter(self.catalog.ids())
        for activity_id, count in sorted(counts.items()):
            if count > 1:
                problems.append(f"activity id {activity_id} used {count} times")
        for day, slot, binding in self.grid.cells():
            if binding is not None and binding.activity_id not in counts:
                problems.append(
                    f"slot ({day}, {slot}) references missing activity {binding.activity_id}"
                )
        return problems
