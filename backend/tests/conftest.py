import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import periodgrid.models  # noqa: F401
from periodgrid.core.config import Settings
from periodgrid.db.base import Base
from periodgrid.models.department import Department
from periodgrid.models.faculty import Faculty
from periodgrid.models.user import User, UserRole
from periodgrid.schemas.entities import ClassroomPayload, EntitySet, FacultyPayload, RoomType, SubjectPayload, SubjectType
from periodgrid.schemas.timetable import SlotEntry, SlotType, TimetableSnapshot, period_label
from periodgrid.services.rearrangement import RearrangementCoordinator
from periodgrid.services.store import DatabaseStore


@pytest.fixture()
def db():
    engine = create_engine(  # isolated in-memory database per test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def store(db):
    return DatabaseStore(db)


@pytest.fixture()
def app_settings():
    return Settings(_env_file=None, database_url="sqlite+pysqlite://")


@pytest.fixture()
def coordinator_factory(store, app_settings):
    def build(**overrides) -> RearrangementCoordinator:
        settings = app_settings.model_copy(update=overrides) if overrides else app_settings
        return RearrangementCoordinator(
            entities=store,
            timetables=store,
            requests=store,
            notifications=store,
            users=store,
            settings=settings,
        )

    return build


@pytest.fixture()
def coordinator(coordinator_factory):
    return coordinator_factory()


@pytest.fixture()
def department_factory(db):
    def build(name: str, code: str) -> Department:
        record = Department(name=name, code=code)
        db.add(record)
        db.flush()
        return record

    return build


@pytest.fixture()
def faculty_factory(db):
    def build(name: str, department_id: str | None, **fields) -> Faculty:
        record = Faculty(name=name, department_id=department_id, availability=fields.pop("availability", {}), **fields)
        db.add(record)
        db.flush()
        return record

    return build


@pytest.fixture()
def user_factory(db):
    def build(name: str, role: UserRole, department_id: str | None = None) -> User:
        record = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            role=role,
            department_id=department_id,
        )
        db.add(record)
        db.flush()
        return record

    return build


@pytest.fixture()
def snapshot_factory(store):
    """Publish a live timetable whose only academic cells are the given ``{(day, period): (subject, faculty[, co_teacher])}``.

    A cell with a co-teacher is stored as a lab entry.
    """

    def build(
        department: Department,
        cells: dict[tuple[str, int], tuple],
        *,
        section: str = "A",
        year: int = 2,
        semester: int = 3,
    ) -> TimetableSnapshot:
        schedule: dict[str, dict[str, SlotEntry | None]] = {}
        for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"):
            schedule[day] = {}
            for period in range(1, 8):
                academic = cells.get((day, period))
                if academic is None:
                    schedule[day][period_label(period)] = SlotEntry(
                        subject_name="Seminar",
                        faculty_name="Dept Faculty",
                        room_number="Dept Hall",
                        type=SlotType.filler,
                    )
                    continue
                subject_name, faculty, *rest = academic
                co_teacher = rest[0] if rest else None
                schedule[day][period_label(period)] = SlotEntry(
                    subject_id=f"sub-{subject_name.lower().replace(' ', '-')}",
                    subject_name=subject_name,
                    subject_code=subject_name[:4].upper(),
                    faculty_id=faculty.id,
                    faculty_name=faculty.name,
                    second_faculty_id=co_teacher.id if co_teacher else None,
                    second_faculty_name=co_teacher.name if co_teacher else None,
                    room_number="CS Lab 1" if co_teacher else "A101",
                    type=SlotType.lab if co_teacher else SlotType.theory,
                )
        return store.publish_timetable(
            TimetableSnapshot(
                department_id=department.id,
                department_name=department.name,
                year=year,
                semester=semester,
                section=section,
                schedule=schedule,
            )
        )

    return build


@pytest.fixture()
def scenario_entities() -> EntitySet:
    """One lab (F1) and two six-hour theory subjects (F2, F3) with a lecture room and a lab room."""
    return EntitySet(
        department_id="dept-cse",
        year=2,
        semester=3,
        section="A",
        subjects=(
            SubjectPayload(id="s-lab", name="Networks Lab", code="CS291", type=SubjectType.lab, hours_per_week=3, department_id="dept-cse", faculty_id="f1", faculty_name="Asha"),
            SubjectPayload(id="s-t1", name="Algorithms", code="CS201", type=SubjectType.theory, hours_per_week=6, department_id="dept-cse", faculty_id="f2", faculty_name="Bala"),
            SubjectPayload(id="s-t2", name="Databases", code="CS202", type=SubjectType.theory, hours_per_week=6, department_id="dept-cse", faculty_id="f3", faculty_name="Chitra"),
        ),
        faculty=(
            FacultyPayload(id="f1", name="Asha", department_id="dept-cse"),
            FacultyPayload(id="f2", name="Bala", department_id="dept-cse"),
            FacultyPayload(id="f3", name="Chitra", department_id="dept-cse"),
        ),
        classrooms=(
            ClassroomPayload(id="r1", room_number="A101", room_type=RoomType.lecture),
            ClassroomPayload(id="r2", room_number="CS Lab 1", room_type=RoomType.lab),
        ),
    )


@pytest.fixture()
def department_entities() -> EntitySet:
    """A fuller section: four theory subjects, two co-taught labs, five faculty."""
    faculty = (
        FacultyPayload(id="f1", name="Anitha Rao", department_id="dept-cse"),
        FacultyPayload(id="f2", name="Kiran Menon", department_id="dept-cse"),
        FacultyPayload(id="f3", name="Farah Siddiqui", department_id="dept-cse"),
        FacultyPayload(id="f4", name="Vivek Nair", department_id="dept-cse"),
        FacultyPayload(id="f5", name="Leela Iyer", department_id="dept-cse", max_classes_per_week=6),
    )
    subjects = (
        SubjectPayload(id="t1", name="Data Structures", code="CS201", hours_per_week=5, department_id="dept-cse", faculty_id="f1"),
        SubjectPayload(id="t2", name="Discrete Mathematics", code="CS202", hours_per_week=4, department_id="dept-cse", faculty_id="f2"),
        SubjectPayload(id="t3", name="Computer Organization", code="CS203", hours_per_week=4, department_id="dept-cse", faculty_id="f3"),
        SubjectPayload(id="t4", name="Object Oriented Programming", code="CS204", hours_per_week=4, department_id="dept-cse", faculty_id="f4"),
        SubjectPayload(id="l1", name="Data Structures Lab", code="CS205", type=SubjectType.lab, hours_per_week=3, department_id="dept-cse", faculty_id="f1", secondary_faculty_id="f4"),
        SubjectPayload(id="l2", name="Digital Systems Lab", code="CS206", type=SubjectType.lab, hours_per_week=3, department_id="dept-cse", faculty_id="f3", secondary_faculty_id="f5"),
    )
    return EntitySet(
        department_id="dept-cse",
        year=2,
        semester=3,
        subjects=subjects,
        faculty=faculty,
        classrooms=(
            ClassroomPayload(id="r1", room_number="A101", room_type=RoomType.lecture),
            ClassroomPayload(id="r2", room_number="CS Lab 1", room_type=RoomType.lab),
        ),
    )
