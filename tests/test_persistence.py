"""Tests for the versioned schedule file."""

import json
from pathlib import Path

import pytest

from src.classplan import persistence
from src.classplan.config import PlannerConfig
from src.classplan.errors import (
    CorruptScheduleError,
    TransientPersistenceError,
    UnsupportedFormatVersion,
)
from src.classplan.models import DAYS, SLOTS_PER_DAY, ClassType
from src.classplan.persistence import (
    FORMAT_VERSION,
    load_or_empty,
    load_schedule,
    open_schedule,
    save_schedule,
    upgrade_record,
)
from src.classplan.state import ScheduleState


@pytest.fixture(autouse=True)
def _no_retry_wait(monkeypatch):
    monkeypatch.setattr(persistence, "SAVE_RETRY_WAIT_SECONDS", 0)


def _populated() -> ScheduleState:
    state = ScheduleState()
    state.catalog.add("Algebra", "https://alg", ClassType.LECTURE)
    state.catalog.add("Physics", "https://phy", ClassType.PROBLEM_CLASS)
    state.catalog.add("Seminar", "https://sem", ClassType.TUTORIAL)
    state.catalog.remove(1)
    state.catalog.add("Chemistry", "https://chem")  # reuses id 1
    state.grid.assign(0, 0, 0, state.catalog)
    state.grid.assign(2, 3, 1, state.catalog)
    state.grid.assign(4, 5, 2, state.catalog)
    return state


def _assert_same(a: ScheduleState, b: ScheduleState) -> None:
    assert a.catalog.list() == b.catalog.list()
    assert a.grid.rows() == b.grid.rows()


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    state = load_schedule(tmp_path / "nope.json")
    assert len(state.catalog) == 0
    assert state.grid.bound_ids() == set()


def test_roundtrip_empty(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    save_schedule(ScheduleState(), path)
    _assert_same(load_schedule(path), ScheduleState())


def test_roundtrip_populated(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "plan.json"
    state = _populated()
    save_schedule(state, path)

    loaded = load_schedule(path)
    _assert_same(loaded, state)
    assert loaded.catalog.ids() == [0, 2, 1]


def test_roundtrip_all_slots_bound(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    state = ScheduleState()
    for n in range(3):
        state.catalog.add(f"A{n}", f"https://{n}")
    for day in range(DAYS):
        for slot in range(SLOTS_PER_DAY):
            state.grid.assign(day, slot, (day + slot) % 3, state.catalog)

    save_schedule(state, path)
    loaded = load_schedule(path)
    _assert_same(loaded, state)
    assert all(b is not None for _, _, b in loaded.grid.cells())


def test_saved_record_shape(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    save_schedule(_populated(), path)
    raw = json.loads(path.read_text(encoding="utf-8"))

    assert raw["version"] == FORMAT_VERSION
    assert raw["activities"][0] == {
        "id": 0,
        "name": "Algebra",
        "url": "https://alg",
        "class_type": "Lecture",
    }
    assert len(raw["grid"]) == DAYS
    assert raw["grid"][2][3] == {"activity_id": 1, "label": "Chemistry"}
    assert raw["grid"][1][1] is None
    assert not (tmp_path / "plan.json.tmp").exists()


def test_upgrade_from_version_1(tmp_path: Path) -> None:
    plan = [[None] * SLOTS_PER_DAY for _ in range(DAYS)]
    plan[1][2] = {"index": 3, "label": "Old Name"}
    raw = {
        "version": 1,
        "activities": [
            {"name": "Algebra", "url": "https://alg", "id": 0},
            {"name": "Analysis", "url": "https://ana", "id": 3},
        ],
        "plan": plan,
    }
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    state = load_schedule(path)
    assert state.catalog.ids() == [0, 3]
    assert state.catalog.find(3).class_type is ClassType.LECTURE
    binding = state.grid.get(1, 2)
    assert binding.activity_id == 3
    # Label is re-synced from the catalog
    assert binding.label == "Analysis"


def test_upgrade_from_positional_version_0() -> None:
    plan = [[None] * SLOTS_PER_DAY for _ in range(DAYS)]
    plan[0][0] = {"index": 1, "label": "Physics"}
    raw = {
        "activities": [
            {"name": "Algebra", "url": "a"},
            {"name": "Physics", "url": "p"},
        ],
        "plan": plan,
    }
    out = upgrade_record(raw)

    assert out["version"] == FORMAT_VERSION
    assert [a["id"] for a in out["activities"]] == [0, 1]
    assert out["grid"][0][0] == {"activity_id": 1, "label": "Physics"}
    assert "plan" not in out


def test_upgrade_current_version_is_unchanged() -> None:
    raw = {"version": FORMAT_VERSION, "activities": [], "grid": []}
    assert upgrade_record(raw) is raw


def test_newer_version_rejected() -> None:
    with pytest.raises(UnsupportedFormatVersion):
        upgrade_record({"version": FORMAT_VERSION + 1})


@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"version": "two"}),
        json.dumps({"version": 2, "activities": [], "grid": [[None] * 6] * 4}),
        json.dumps({"version": 1, "activities": [], "plan": [[{"label": "x"}]]}),
        json.dumps(
            {
                "version": 2,
                "activities": [{"id": 0, "name": "a"}, {"id": 0, "name": "b"}],
                "grid": [[None] * 6] * 5,
            }
        ),
    ],
    ids=["garbage", "array", "bad-version", "short-grid", "bad-v1-cell", "duplicate-ids"],
)
def test_corrupt_files_raise(tmp_path: Path, content: str) -> None:
    path = tmp_path / "plan.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CorruptScheduleError):
        load_schedule(path)


def test_dangling_bindings_dropped_on_load(tmp_path: Path) -> None:
    grid = [[None] * SLOTS_PER_DAY for _ in range(DAYS)]
    grid[0][0] = {"activity_id": 0, "label": "Algebra"}
    grid[0][1] = {"activity_id": 5, "label": "Ghost"}
    path = tmp_path / "plan.json"
    path.write_text(
        json.dumps(
            {"version": 2, "activities": [{"id": 0, "name": "Algebra"}], "grid": grid}
        ),
        encoding="utf-8",
    )

    state = load_schedule(path)
    assert state.grid.get(0, 0).activity_id == 0
    assert state.grid.get(0, 1) is None
    assert state.check_consistency() == []


def test_load_or_empty_quarantines_corrupt_file(tmp_path: Path, log_events) -> None:
    path = tmp_path / "plan.json"
    path.write_text("{broken", encoding="utf-8")

    state = load_or_empty(path)

    assert len(state.catalog) == 0
    assert not path.exists()
    assert (tmp_path / "plan.json.corrupt").read_text(encoding="utf-8") == "{broken"
    warning = next(e for e in log_events if e["event"] == "schedule_load_failed")
    assert warning["log_level"] == "warning"
    assert warning["moved_to"].endswith("plan.json.corrupt")


def test_save_retries_transient_failure(tmp_path: Path, monkeypatch) -> None:
    real_write = persistence._write_atomic
    calls = []

    def flaky(path: Path, text: str) -> None:
        calls.append(path)
        if len(calls) == 1:
            raise TransientPersistenceError("disk busy")
        real_write(path, text)

    monkeypatch.setattr(persistence, "_write_atomic", flaky)
    path = tmp_path / "plan.json"
    save_schedule(_populated(), path, attempts=3)

    assert len(calls) == 2
    assert path.exists()


def test_save_gives_up_after_attempts(tmp_path: Path, monkeypatch) -> None:
    calls = []

    def always_fail(path: Path, text: str) -> None:
        calls.append(path)
        raise TransientPersistenceError("read-only filesystem")

    monkeypatch.setattr(persistence, "_write_atomic", always_fail)
    with pytest.raises(TransientPersistenceError):
        save_schedule(ScheduleState(), tmp_path / "plan.json", attempts=2)
    assert len(calls) == 2


def test_open_schedule_saves_on_exit(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    config = PlannerConfig(data_file=path)

    with open_schedule(config=config) as state:
        state.catalog.add("Algebra", "https://alg")
        state.grid.assign(1, 1, 0, state.catalog)

    with open_schedule(config=config) as state:
        assert state.catalog.find(0).name == "Algebra"
        assert state.grid.get(1, 1).label == "Algebra"


def test_open_schedule_saves_when_block_raises(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"

    with pytest.raises(RuntimeError):
        with open_schedule(path, config=PlannerConfig()) as state:
            state.catalog.add("Algebra", "")
            raise RuntimeError("ui crashed")

    assert load_schedule(path).catalog.find(0).name == "Algebra"


def test_open_schedule_swallows_save_failure(tmp_path: Path, monkeypatch) -> None:
    def always_fail(path: Path, text: str) -> None:
        raise TransientPersistenceError("no space left")

    monkeypatch.setattr(persistence, "_write_atomic", always_fail)

    with open_schedule(tmp_path / "plan.json", config=PlannerConfig(save_attempts=1)) as state:
        state.catalog.add("Algebra", "")


def test_binary_file_is_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(CorruptScheduleError):
        load_schedule(path)


def test_binary_file_is_quarantined_and_session_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "plan.json"
    path.write_bytes(b"\xff\xfe\x00garbage")

    with open_schedule(path, config=PlannerConfig()) as state:
        assert len(state.catalog) == 0
        state.catalog.add("Fresh", "")

    assert (tmp_path / "plan.json.corrupt").read_bytes() == b"\xff\xfe\x00garbage"
    assert load_schedule(path).catalog.find(0).name == "Fresh"


def _unreadable(monkeypatch, path: Path) -> None:
    real_read_text = Path.read_text

    def read_text(self, *args, **kwargs):
        if self == path:
            raise PermissionError(13, "Permission denied", str(self))
        return real_read_text(self, *args, **kwargs)

    monkeypatch.setattr(Path, "read_text", read_text)


def test_unreadable_file_is_not_overwritten(tmp_path: Path, monkeypatch, log_events) -> None:
    path = tmp_path / "plan.json"
    state = ScheduleState()
    state.catalog.add("Keep", "https://keep")
    save_schedule(state, path)
    _unreadable(monkeypatch, path)

    with open_schedule(path, config=PlannerConfig()) as loaded:
        assert len(loaded.catalog) == 0

    assert "Keep" in path.read_bytes().decode("utf-8")
    assert any(e["event"] == "schedule_save_skipped" for e in log_events)


def test_corrupt_file_kept_when_it_cannot_be_moved(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "plan.json"
    path.write_text("{broken", encoding="utf-8")

    def refuse(src, dst):
        raise PermissionError(13, "Permission denied", str(src))

    monkeypatch.setattr(persistence.os, "replace", refuse)

    with open_schedule(path, config=PlannerConfig()) as state:
        state.catalog.add("Lost", "")

    monkeypatch.undo()
    assert path.read_text(encoding="utf-8") == "{broken"


def test_failed_write_removes_temp_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "plan.json"

    def refuse(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(persistence.os, "replace", refuse)
    with pytest.raises(TransientPersistenceError):
        save_schedule(ScheduleState(), path, attempts=1)

    assert not (tmp_path / "plan.json.tmp").exists()
    assert not path.exists()
