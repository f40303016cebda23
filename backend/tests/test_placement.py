import random

import pytest

from periodgrid.schemas.entities import ClassroomPayload, FacultyPayload, RoomType, SubjectPayload, SubjectType
from periodgrid.schemas.generator import GenerationSettings
from periodgrid.schemas.timetable import SlotEntry, SlotType
from periodgrid.services.constraints import ConstraintChecker
from periodgrid.services.grid import FacultyLoads, Grid
from periodgrid.services.placement import FacultyResolver, GapFiller, LabPlacer, TheoryPlacer, pick_room

ROOMS = (
    ClassroomPayload(id="r1", room_number="A101", room_type=RoomType.lecture),
    ClassroomPayload(id="r2", room_number="CS Lab 1", room_type=RoomType.lab),
)


@pytest.fixture
def settings():
    return GenerationSettings(random_seed=7)


@pytest.fixture
def faculty():
    return [
        FacultyPayload(id="f1", name="Asha", department_id="d1"),
        FacultyPayload(id="f2", name="Bala", department_id="d1"),
        FacultyPayload(id="f3", name="Year 2 - A", department_id="d1"),
    ]


def _lab_placer(resolver, settings, demands, seed=1):
    return LabPlacer(
        checker=ConstraintChecker(),
        resolver=resolver,
        classrooms=ROOMS,
        settings=settings,
        rng=random.Random(seed),
        demands=demands,
    )


def test_pick_room_prefers_matching_room_type():
    assert pick_room(ROOMS, lab=True).id == "r2"
    assert pick_room(ROOMS, lab=False).id == "r1"
    assert pick_room(ROOMS[:1], lab=True).id == "r1"
    assert pick_room((), lab=False) is None


def test_resolver_prefers_id_then_name(faculty):
    resolver = FacultyResolver(faculty)
    by_id = SubjectPayload(id="s1", name="Algorithms", faculty_id="f2", faculty_name="Asha", department_id="d1")
    by_name = SubjectPayload(id="s2", name="Databases", faculty_id="missing", faculty_name="Asha", department_id="d1")

    assert resolver.resolve(by_id).primary.id == "f2"
    assert resolver.resolve(by_name).primary.id == "f1"
    assert [(note.subject_id, note.method) for note in resolver.notes] == [("s2", "name")]


def test_resolver_ignores_placeholder_faculty(faculty):
    resolver = FacultyResolver(faculty, allow_department_fallback=False)
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_name="Year 2 - A", department_id="d1")

    assert resolver.resolve(subject).primary is None
    assert resolver.notes[0].method == "unresolved"
    assert all(item.id != "f3" for item in resolver.faculty)


def test_department_fallback_is_configurable(faculty):
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_name="Nobody", department_id="d1")

    with_fallback = FacultyResolver(faculty, allow_department_fallback=True)
    assert with_fallback.resolve(subject).primary.id == "f1"
    assert with_fallback.notes[0].method == "department"

    without_fallback = FacultyResolver(faculty, allow_department_fallback=False)
    assert without_fallback.resolve(subject).primary is None


def test_resolution_is_cached_per_subject(faculty):
    resolver = FacultyResolver(faculty)
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_name="Bala", department_id="d1")

    resolver.resolve(subject)
    resolver.resolve(subject)

    assert len(resolver.notes) == 1


def test_lab_occupies_one_allowed_block(faculty, settings):
    resolver = FacultyResolver(faculty)
    lab = SubjectPayload(id="lab", name="Networks Lab", type=SubjectType.lab, faculty_id="f1", secondary_faculty_id="f2")
    grid = Grid(settings.working_days, settings.periods_per_day)
    loads = FacultyLoads()
    demands = []

    assert _lab_placer(resolver, settings, demands).place_lab(grid, loads, lab)

    cells = [(day, period) for day, period, entry in grid.cells() if entry is not None]
    days = {day for day, _ in cells}
    periods = tuple(sorted(period for _, period in cells))
    assert len(days) == 1
    assert periods in settings.lab_blocks
    day = days.pop()
    entries = {grid.get(day, period) for period in periods}
    assert len(entries) == 1
    entry = entries.pop()
    assert entry.type == SlotType.lab
    assert entry.room_number == "CS Lab 1"
    assert entry.second_faculty_id == "f2"
    assert loads.day_load("f1", day) == 3
    assert loads.week_load("f2") == 3
    assert demands == []


def test_second_lab_never_shares_a_day(faculty, settings):
    resolver = FacultyResolver(faculty)
    grid = Grid(settings.working_days, settings.periods_per_day)
    loads = FacultyLoads()
    placer = _lab_placer(resolver, settings, [])
    first = SubjectPayload(id="lab1", name="Lab One", type=SubjectType.lab, faculty_id="f1")
    second = SubjectPayload(id="lab2", name="Lab Two", type=SubjectType.lab, faculty_id="f2")

    assert placer.place_lab(grid, loads, first)
    assert placer.place_lab(grid, loads, second)

    lab_days = {}
    for day, _, entry in grid.cells():
        if entry is not None and entry.is_lab:
            lab_days.setdefault(entry.subject_id, set()).add(day)
    assert lab_days["lab1"].isdisjoint(lab_days["lab2"])


def test_lab_respects_secondary_faculty_availability(settings):
    busy_everywhere = {day: {str(period): False for period in (2, 3, 4, 5, 6, 7)} for day in settings.working_days}
    faculty = [
        FacultyPayload(id="f1", name="Asha"),
        FacultyPayload(id="f2", name="Bala", availability=busy_everywhere),
    ]
    lab = SubjectPayload(id="lab", name="Networks Lab", type=SubjectType.lab, faculty_id="f1", secondary_faculty_id="f2")
    grid = Grid(settings.working_days, settings.periods_per_day)
    demands = []

    assert not _lab_placer(FacultyResolver(faculty), settings, demands).place_lab(grid, FacultyLoads(), lab)
    assert grid.empty_cells() == Grid(settings.working_days, settings.periods_per_day).empty_cells()
    assert demands[0].kind == "lab"


def test_lab_does_not_push_faculty_past_weekly_cap(settings):
    faculty = [FacultyPayload(id="f1", name="Asha", max_classes_per_week=4)]
    loads = FacultyLoads()
    loads.add("f1", "Monday", 2)
    lab = SubjectPayload(id="lab", name="Networks Lab", type=SubjectType.lab, faculty_id="f1")
    demands = []

    placed = _lab_placer(FacultyResolver(faculty), settings, demands).place_lab(
        Grid(settings.working_days, settings.periods_per_day), loads, lab
    )

    assert not placed
    assert loads.week_load("f1") == 2


def test_lab_without_faculty_is_recorded_unfilled(settings):
    demands = []
    lab = SubjectPayload(id="lab", name="Orphan Lab", type=SubjectType.lab)

    placer = _lab_placer(FacultyResolver([], allow_department_fallback=False), settings, demands)
    assert not placer.place_lab(Grid(settings.working_days, 7), FacultyLoads(), lab)
    assert demands[0].reason == "no faculty resolved"


def test_theory_instance_takes_first_legal_cell(faculty):
    grid = Grid(["Monday", "Tuesday"], 4)
    grid.place("Monday", 1, SlotEntry(subject_id="x", subject_name="X", faculty_id="f2", type=SlotType.theory))
    loads = FacultyLoads()
    demands = []
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_id="f1")
    placer = TheoryPlacer(checker=ConstraintChecker(), resolver=FacultyResolver(faculty), classrooms=ROOMS, demands=demands)

    assert placer.place_instance(grid, loads, subject)
    assert placer.place_instance(grid, loads, subject)

    assert grid.get("Monday", 2).subject_id == "s1"
    assert grid.get("Monday", 2).room_number == "A101"
    assert grid.get("Tuesday", 1).subject_id == "s1"
    assert loads.week_load("f1") == 2


def test_theory_instance_dropped_when_week_is_exhausted(faculty):
    grid = Grid(["Monday"], 3)
    demands = []
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_id="f1")
    placer = TheoryPlacer(checker=ConstraintChecker(), resolver=FacultyResolver(faculty), classrooms=ROOMS, demands=demands)

    assert placer.place_instance(grid, FacultyLoads(), subject)
    assert not placer.place_instance(grid, FacultyLoads(), subject)
    assert demands[0].kind == "theory"
    assert demands[0].subject_id == "s1"


def test_theory_entry_carries_only_the_main_faculty(faculty):
    grid = Grid(["Monday"], 3)
    loads = FacultyLoads()
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_id="f1", secondary_faculty_id="f2")
    placer = TheoryPlacer(checker=ConstraintChecker(), resolver=FacultyResolver(faculty), classrooms=ROOMS, demands=[])

    assert placer.place_instance(grid, loads, subject)

    assert grid.get("Monday", 1).faculty_ids == ("f1",)
    assert loads.week_load("f2") == 0


def test_gap_filler_reaches_full_density_with_pillars_once(faculty):
    settings = GenerationSettings(working_days=("Monday", "Tuesday", "Wednesday"))
    grid = Grid(settings.working_days, settings.periods_per_day)
    subject = SubjectPayload(id="s1", name="Algorithms", faculty_id="f1")

    GapFiller(
        checker=ConstraintChecker(),
        resolver=FacultyResolver(faculty),
        classrooms=ROOMS,
        theory_subjects=[subject],
        settings=settings,
        rng=random.Random(3),
    ).fill_gaps(grid, FacultyLoads())

    assert grid.is_full()
    entries = [entry for _, _, entry in grid.cells()]
    names = [entry.subject_name for entry in entries if entry.is_filler]
    assert names.count("Library") == 1
    assert names.count("PET") == 1
    pillar_periods = [period for _, period, entry in grid.cells() if entry.subject_name in {"Library", "PET"}]
    assert all(period in settings.pillar_preferred_periods for period in pillar_periods)
    extras = [entry for entry in entries if entry.type == SlotType.theory_extra]
    assert len(extras) == 3
    assert all(entry.faculty_id == "f1" for entry in extras)
    fillers = {entry.subject_name for entry in entries if entry.is_filler} - {"Library", "PET"}
    assert fillers <= {item.name for item in settings.filler_activities}
    assert all(entry.room_number == "Dept Hall" for entry in entries if entry.is_filler)
