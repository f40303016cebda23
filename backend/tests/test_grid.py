import pytest

from periodgrid.core.exceptions import SchedulerError
from periodgrid.schemas.timetable import SlotEntry, SlotType
from periodgrid.services.grid import FacultyLoads, Grid


def _theory(subject_id: str, faculty_id: str) -> SlotEntry:
    return SlotEntry(
        subject_id=subject_id,
        subject_name=subject_id.upper(),
        faculty_id=faculty_id,
        faculty_name=faculty_id.upper(),
        room_number="A101",
        type=SlotType.theory,
    )


def test_place_into_occupied_cell_raises():
    grid = Grid(["Monday", "Tuesday"], 3)
    grid.place("Monday", 1, _theory("s1", "f1"))

    with pytest.raises(SchedulerError):
        grid.place("Monday", 1, _theory("s2", "f2"))


def test_unknown_day_or_period_is_rejected():
    grid = Grid(["Monday"], 3)

    with pytest.raises(SchedulerError):
        grid.get("Sunday", 1)
    with pytest.raises(SchedulerError):
        grid.get("Monday", 4)


def test_grid_requires_working_days():
    with pytest.raises(SchedulerError):
        Grid([], 7)


def test_schedule_round_trip_uses_period_labels():
    grid = Grid(["Monday", "Tuesday"], 3)
    grid.place("Tuesday", 2, _theory("s1", "f1"))

    schedule = grid.to_schedule()
    assert list(schedule["Monday"]) == ["P1", "P2", "P3"]
    assert schedule["Tuesday"]["P2"].subject_id == "s1"

    payload = {
        day: {label: entry.model_dump(by_alias=True) if entry else None for label, entry in periods.items()}
        for day, periods in schedule.items()
    }
    restored = Grid.from_schedule(payload, ["Monday", "Tuesday"], 3)
    assert restored.get("Tuesday", 2) == grid.get("Tuesday", 2)
    assert restored.empty_cells() == grid.empty_cells()


def test_copy_does_not_share_cells():
    grid = Grid(["Monday"], 2)
    clone = grid.copy()
    clone.place("Monday", 1, _theory("s1", "f1"))

    assert grid.is_free("Monday", 1)
    assert not clone.is_free("Monday", 1)


def test_loads_from_grid_skip_fillers_and_count_second_faculty():
    grid = Grid(["Monday"], 3)
    grid.place("Monday", 1, _theory("s1", "f1").model_copy(update={"second_faculty_id": "f2"}))
    grid.place("Monday", 2, _theory("s2", "f1"))
    grid.place("Monday", 3, SlotEntry(subject_name="Library", faculty_name="Librarian", type=SlotType.filler))

    loads = FacultyLoads.from_grid(grid)

    assert loads.day_load("f1", "Monday") == 2
    assert loads.week_load("f2") == 1
    assert loads.week_load("Librarian") == 0
