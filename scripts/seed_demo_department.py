"""Seed a demo department, generate timetable candidates and publish the best one.

Run:
  PYTHONPATH=backend python scripts/seed_demo_department.py
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import select
from sqlalchemy.orm import Session

from periodgrid.core.config import get_settings
from periodgrid.db.session import SessionLocal
from periodgrid.models.classroom import Classroom
from periodgrid.models.department import Department
from periodgrid.models.faculty import Faculty
from periodgrid.models.subject import Subject
from periodgrid.models.user import User, UserRole
from periodgrid.schemas.entities import RoomType, SubjectType
from periodgrid.schemas.generator import GenerationSettings
from periodgrid.services.entities import load_entity_set
from periodgrid.services.generator import CandidateGenerator
from periodgrid.services.notifications import notify_roles
from periodgrid.services.store import DatabaseStore
from periodgrid.services.timetables import publish_candidate

DEPARTMENT_NAME = os.getenv("DEMO_DEPARTMENT", "Computer Science")
DEPARTMENT_CODE = os.getenv("DEMO_DEPARTMENT_CODE", "CSE")
YEAR = 2
SEMESTER = 3

DEMO_FACULTY = [
    {"name": "Dr. Anitha Rao", "email": "anitha.rao@periodgrid.demo"},
    {"name": "Prof. Kiran Menon", "email": "kiran.menon@periodgrid.demo"},
    {"name": "Dr. Farah Siddiqui", "email": "farah.siddiqui@periodgrid.demo"},
    {"name": "Mr. Vivek Nair", "email": "vivek.nair@periodgrid.demo"},
    {"name": "Mrs. Leela Iyer", "email": "leela.iyer@periodgrid.demo"},
]

DEMO_SUBJECTS = [
    {"code": "CS201", "name": "Data Structures", "type": SubjectType.theory, "hours": 5, "faculty": 0},
    {"code": "CS202", "name": "Discrete Mathematics", "type": SubjectType.theory, "hours": 4, "faculty": 1},
    {"code": "CS203", "name": "Computer Organization", "type": SubjectType.theory, "hours": 4, "faculty": 2},
    {"code": "CS204", "name": "Object Oriented Programming", "type": SubjectType.theory, "hours": 4, "faculty": 3},
    {"code": "CS205", "name": "Data Structures Lab", "type": SubjectType.lab, "hours": 3, "faculty": 0, "second": 3},
    {"code": "CS206", "name": "Digital Systems Lab", "type": SubjectType.lab, "hours": 3, "faculty": 2, "second": 4},
]

DEMO_ROOMS = [
    {"room_number": "A101", "room_type": RoomType.lecture, "capacity": 70},
    {"room_number": "CS Lab 1", "room_type": RoomType.lab, "capacity": 40},
]


def _upsert_department(session: Session) -> Department:
    department = session.execute(select(Department).where(Department.code == DEPARTMENT_CODE)).scalar_one_or_none()
    if department is None:
        department = Department(name=DEPARTMENT_NAME, code=DEPARTMENT_CODE)
        session.add(department)
        session.flush()
    return department


def _upsert_faculty(session: Session, department: Department) -> list[Faculty]:
    records: list[Faculty] = []
    for item in DEMO_FACULTY:
        record = session.execute(select(Faculty).where(Faculty.email == item["email"])).scalar_one_or_none()
        if record is None:
            record = Faculty(name=item["name"], email=item["email"], department_id=department.id, availability={})
            session.add(record)
        records.append(record)
    session.flush()
    return records


def _upsert_subjects(session: Session, department: Department, faculty: list[Faculty]) -> None:
    for item in DEMO_SUBJECTS:
        record = session.execute(
            select(Subject).where(Subject.code == item["code"], Subject.department_id == department.id)
        ).scalar_one_or_none()
        if record is None:
            record = Subject(code=item["code"], department_id=department.id)
            session.add(record)
        primary = faculty[item["faculty"]]
        secondary = faculty[item["second"]] if "second" in item else None
        record.name = item["name"]
        record.type = item["type"]
        record.hours_per_week = item["hours"]
        record.year = YEAR
        record.semester = SEMESTER
        record.faculty_id = primary.id
        record.faculty_name = primary.name
        record.secondary_faculty_id = secondary.id if secondary else None
        record.secondary_faculty_name = secondary.name if secondary else None
    session.flush()


def _upsert_rooms(session: Session) -> None:
    for item in DEMO_ROOMS:
        record = session.execute(
            select(Classroom).where(Classroom.room_number == item["room_number"])
        ).scalar_one_or_none()
        if record is None:
            session.add(Classroom(**item))
    session.flush()


def _upsert_user(session: Session, *, name: str, email: str, role: UserRole, department_id: str | None) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email, role=role, department_id=department_id)
        session.add(user)
    session.flush()
    return user


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    with SessionLocal() as session:
        department = _upsert_department(session)
        faculty = _upsert_faculty(session, department)
        _upsert_subjects(session, department, faculty)
        _upsert_rooms(session)
        _upsert_user(session, name="Demo Admin", email="admin@periodgrid.demo", role=UserRole.admin, department_id=None)
        _upsert_user(
            session,
            name="Demo HOD",
            email="hod@periodgrid.demo",
            role=UserRole.hod,
            department_id=department.id,
        )

        store = DatabaseStore(session)
        entities = load_entity_set(store, department_id=department.id, year=YEAR, semester=SEMESTER)
        generator = CandidateGenerator(GenerationSettings.from_settings(settings))
        candidates = generator.generate_candidates(entities, settings.candidate_count)
        best = candidates[0]
        published = publish_candidate(store, best, entities, department_name=department.name)
        notify_roles(
            session,
            roles=[UserRole.admin, UserRole.hod],
            title="Timetable Published",
            message=f"{published.class_label} timetable {published.version_label} is live (score {best.score:.1f}).",
            department_id=None,
        )
        session.commit()

    print(f"\nPublished {published.version_label} for {published.class_label}")
    for candidate in candidates:
        print(
            f"  - {candidate.id}: score={candidate.score:.1f} conflicts={len(candidate.conflicts)} "
            f"unfilled={len(candidate.unfilled)} seed={candidate.seed}"
        )
    for conflict in best.conflicts:
        print(f"    ! {conflict}")


if __name__ == "__main__":
    main()
