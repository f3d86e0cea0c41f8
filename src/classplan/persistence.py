"""Schedule file persistence - versioned JSON record of catalog + grid.

The record is upgraded through every older format before validation, so files
written by earlier builds keep loading:

  version 0  positional ids: activities carry no id, slots store the list
             index of the activity as {"index", "label"}
  version 1  explicit ids, legacy field names ("plan", "index")
  version 2  current: "grid" of {"activity_id", "label"} plus class_type

A missing file is a first run, not an error.
"""

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.classplan.catalog import ActivityCatalog
from src.classplan.config import PlannerConfig, get_config
from src.classplan.errors import (
    CorruptScheduleError,
    PersistenceError,
    TransientPersistenceError,
    UnsupportedFormatVersion,
)
from src.classplan.grid import ScheduleGrid
from src.classplan.logging import get_logger
from src.classplan.models import DAYS, SLOTS_PER_DAY, Activity, SlotBinding
from src.classplan.state import ScheduleState

log = get_logger(__name__)

FORMAT_VERSION = 2
SAVE_RETRY_WAIT_SECONDS = 0.2


class ScheduleRecord(BaseModel):
    """On-disk shape of the current format version."""

    version: int = FORMAT_VERSION
    activities: list[Activity] = Field(default_factory=list)
    grid: list[list[SlotBinding | None]] = Field(
        default_factory=lambda: [[None] * SLOTS_PER_DAY for _ in range(DAYS)],
        min_length=DAYS,
        max_length=DAYS,
    )

    @field_validator("grid")
    @classmethod
    def _check_rows(
        cls, rows: list[list[SlotBinding | None]]
    ) -> list[list[SlotBinding | None]]:
        for day, row in enumerate(rows):
            if len(row) != SLOTS_PER_DAY:
                raise ValueError(
                    f"day {day} has {len(row)} slots, expected {SLOTS_PER_DAY}"
                )
        return rows


# --- Format upgrades ---------------------------------------------------------


def _upgrade_v0(raw: dict[str, Any]) -> dict[str, Any]:
    """Positional ids -> explicit ids equal to the list position."""
    activities = []
    for position, item in enumerate(raw.get("activities") or []):
        activity = dict(item)
        activity["id"] = position
        activities.append(activity)

    out = dict(raw)
    out["activities"] = activities
    out["version"] = 1
    return out


def _upgrade_v1(raw: dict[str, Any]) -> dict[str, Any]:
    """Rename plan/index to grid/activity_id."""
    grid = []
    for row in raw.get("plan") or []:
        cells = []
        for cell in row:
            if cell is None:
                cells.append(None)
            else:
                cells.append({"activity_id": cell["index"], "label": cell.get("label", "")})
        grid.append(cells)

    out = {k: v for k, v in raw.items() if k != "plan"}
    out["grid"] = grid or ScheduleRecord().model_dump()["grid"]
    out["version"] = 2
    return out


_UPGRADES = {
    0: _upgrade_v0,
    1: _upgrade_v1,
}


def upgrade_record(raw: Any) -> dict[str, Any]:
    """Bring a decoded record up to FORMAT_VERSION.

    Raises:
        CorruptScheduleError: If the record is not a mapping or cannot be upgraded.
        UnsupportedFormatVersion: If the record is newer than FORMAT_VERSION.
    """
    if not isinstance(raw, dict):
        raise CorruptScheduleError(
            f"schedule record must be an object; got {type(raw).__name__}"
        )

    version = raw.get("version", 0)
    if not isinstance(version, int) or isinstance(version, bool) or version < 0:
        raise CorruptScheduleError(f"invalid format version {version!r}")
    if version > FORMAT_VERSION:
        raise UnsupportedFormatVersion(version, FORMAT_VERSION)

    out = raw
    while version < FORMAT_VERSION:
        try:
            out = _UPGRADES[version](out)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptScheduleError(
                f"cannot upgrade schedule from version {version}: {e}"
            ) from e
        log.info("schedule_upgraded", from_version=version, to_version=out["version"])
        version = out["version"]
    return out


# --- Record <-> state --------------------------------------------------------


def record_from_state(state: ScheduleState) -> ScheduleRecord:
    return ScheduleRecord(
        activities=[a.model_copy() for a in state.catalog],
        grid=[
            [b.model_copy() if b is not None else None for b in row]
            for row in state.grid.rows()
        ],
    )


def state_from_record(record: ScheduleRecord) -> ScheduleState:
    """Rebuild state, dropping bindings to unknown ids and re-syncing labels.

    Raises:
        CorruptScheduleError: If two activities share an id.
    """
    try:
        catalog = ActivityCatalog([a.model_copy() for a in record.activities])
    except ValueError as e:
        raise CorruptScheduleError(str(e)) from e

    grid = ScheduleGrid()
    dropped = 0
    for day, row in enumerate(record.grid):
        for slot, binding in enumerate(row):
            if binding is None:
                continue
            activity = catalog.find(binding.activity_id)
            if activity is None:
                dropped += 1
                continue
            grid.restore(day, slot, SlotBinding(activity_id=activity.id, label=activity.name))

    if dropped:
        log.warning("dangling_slots_dropped", count=dropped)
    return ScheduleState(catalog=catalog, grid=grid)


# --- File I/O ----------------------------------------------------------------


def load_schedule(path: Path) -> ScheduleState:
    """Load the schedule at `path`; a missing file yields an empty schedule.

    Raises:
        CorruptScheduleError: If the file does not decode or validate.
        PersistenceError: If the file exists but cannot be read.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.info("schedule_missing", path=str(path))
        return ScheduleState()
    except UnicodeDecodeError as e:
        raise CorruptScheduleError(f"{path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}") from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptScheduleError(f"{path} is not valid JSON: {e}") from e

    try:
        record = ScheduleRecord.model_validate(upgrade_record(raw))
    except ValidationError as e:
        raise CorruptScheduleError(f"{path} failed validation: {e}") from e

    state = state_from_record(record)
    log.info(
        "schedule_loaded",
        path=str(path),
        activities=len(state.catalog),
        bound_slots=sum(1 for _, _, b in state.grid.cells() if b is not None),
    )
    return state


def _quarantine(path: Path) -> Path | None:
    """Move a corrupt file aside so the next save does not overwrite it."""
    target = path.with_name(path.name + ".corrupt")
    try:
        os.replace(path, target)
    except OSError as e:
        log.error("schedule_quarantine_failed", path=str(path), error=str(e))
        return None
    return target


def _load_guarded(path: Path) -> tuple[ScheduleState, bool]:
    """Load or fall back to empty; the flag says whether saving to `path` is safe.

    Saving is unsafe when an unusable file is still in place, since the
    empty fallback would overwrite it.
    """
    try:
        return load_schedule(path), True
    except CorruptScheduleError as e:
        moved_to = _quarantine(path)
        log.warning(
            "schedule_load_failed",
            path=str(path),
            error=str(e),
            moved_to=str(moved_to) if moved_to else None,
        )
        return ScheduleState(), moved_to is not None
    except PersistenceError as e:
        log.warning("schedule_load_failed", path=str(path), error=str(e))
        return ScheduleState(), False


def load_or_empty(path: Path) -> ScheduleState:
    """Load the schedule, starting empty (with a warning) if the file is unusable."""
    state, _ = _load_guarded(Path(path))
    return state


def _write_atomic(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    except OSError as e:
        with suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise TransientPersistenceError(f"Cannot write {path}: {e}") from e


def save_schedule(state: ScheduleState, path: Path, attempts: int = 3) -> None:
    """Write the schedule to `path`, retrying transient I/O failures.

    Raises:
        TransientPersistenceError: If every attempt failed.
    """
    path = Path(path)
    text = record_from_state(state).model_dump_json(indent=2)

    for attempt in Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(SAVE_RETRY_WAIT_SECONDS),
        retry=retry_if_exception_type(TransientPersistenceError),
        reraise=True,
    ):
        with attempt:
            _write_atomic(path, text)

    log.info("schedule_saved", path=str(path), activities=len(state.catalog))


@contextmanager
def open_schedule(
    path: Path | None = None, config: PlannerConfig | None = None
) -> Iterator[ScheduleState]:
    """Load the schedule for the duration of a block and save it on the way out.

    The save runs however the block exits (return or exception). A failing save
    is logged, never raised, so shutdown cannot crash on a second error. If the
    file could not be loaded and could not be moved aside, nothing is saved.
    """
    config = config or get_config()
    path = Path(path) if path is not None else config.data_file
    state, writable = _load_guarded(path)
    try:
        yield state
    finally:
        if writable:
            try:
                save_schedule(state, path, attempts=config.save_attempts)
            except PersistenceError as e:
                log.error("schedule_save_failed", path=str(path), error=str(e))
        else:
            log.error("schedule_save_skipped", path=str(path), reason="unreadable_file_kept")
