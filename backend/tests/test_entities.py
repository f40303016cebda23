import pytest

from periodgrid.core.exceptions import InvalidRequestError
from periodgrid.models.classroom import Classroom
from periodgrid.models.subject import Subject
from periodgrid.schemas.entities import RoomType, SubjectType
from periodgrid.services.entities import is_placeholder_name, load_entity_set, semester_matches


@pytest.fixture
def cse(department_factory):
    return department_factory("Computer Science", "CSE")


def _subject(db, department_id, name, *, semester, year=2, type=SubjectType.theory):
    record = Subject(
        name=name,
        code=name[:5].upper(),
        type=type,
        hours_per_week=3 if type == SubjectType.lab else 4,
        department_id=department_id,
        year=year,
        semester=semester,
    )
    db.add(record)
    db.flush()
    return record


def _room(db, number, room_type=RoomType.lecture):
    record = Classroom(room_number=number, room_type=room_type)
    db.add(record)
    db.flush()
    return record


def test_semester_matches_relative_and_absolute_numbering():
    assert semester_matches(3, 3, 2)
    assert semester_matches(1, 3, 2)
    assert semester_matches(2, 4, 2)
    assert semester_matches(4, 4, 2)
    assert not semester_matches(2, 3, 2)
    assert not semester_matches(5, 3, 2)
    assert not semester_matches(None, 3, 2)
    assert not semester_matches(1, 3, None)


def test_placeholder_names():
    assert is_placeholder_name("2nd Year Faculty")
    assert is_placeholder_name("   ")
    assert is_placeholder_name(None)
    assert not is_placeholder_name("Dr. Asha Rao")
    assert is_placeholder_name("Guest Lecturer", markers=("guest",))


def test_load_entity_set_filters_subjects_and_faculty(db, store, cse, department_factory, faculty_factory):
    ece = department_factory("Electronics", "ECE")
    _subject(db, cse.id, "Algorithms", semester=3)
    _subject(db, cse.id, "Databases", semester=1)
    _subject(db, cse.id, "Networks Lab", semester=3, type=SubjectType.lab)
    _subject(db, cse.id, "Compilers", semester=4)
    _subject(db, cse.id, "Calculus", semester=3, year=1)
    _subject(db, ece.id, "Signals", semester=3)
    _room(db, "A101")
    _room(db, "CS Lab 1", RoomType.lab)
    asha = faculty_factory("Asha", cse.id)
    faculty_factory("2nd Year Faculty", cse.id)
    faculty_factory("Gopal", ece.id)

    entities = load_entity_set(store, department_id=cse.id, year=2, semester=3, section="B")

    assert sorted(item.name for item in entities.subjects) == ["Algorithms", "Databases", "Networks Lab"]
    assert [item.id for item in entities.faculty] == [asha.id]
    assert {item.room_number for item in entities.classrooms} == {"A101", "CS Lab 1"}
    assert entities.section == "B"
    assert (entities.year, entities.semester) == (2, 3)


def test_load_entity_set_honours_available_faculty(db, store, cse, faculty_factory):
    _subject(db, cse.id, "Algorithms", semester=3)
    _room(db, "A101")
    faculty_factory("Asha", cse.id)
    bala = faculty_factory("Bala", cse.id)

    entities = load_entity_set(store, department_id=cse.id, year=2, semester=3, available_faculty_ids=[bala.id])

    assert [item.name for item in entities.faculty] == ["Bala"]


def test_load_entity_set_requires_subjects(db, store, cse):
    _room(db, "A101")

    with pytest.raises(InvalidRequestError) as exc_info:
        load_entity_set(store, department_id=cse.id, year=2, semester=3)

    assert exc_info.value.message == "No subjects found for Year 2, Sem 3"


def test_load_entity_set_requires_classrooms(db, store, cse):
    _subject(db, cse.id, "Algorithms", semester=3)

    with pytest.raises(InvalidRequestError) as exc_info:
        load_entity_set(store, department_id=cse.id, year=2, semester=3)

    assert "No classrooms found" in exc_info.value.message
