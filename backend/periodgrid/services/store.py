from __future__ import annotations

from datetime import date
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from periodgrid.core.exceptions import ResourceNotFoundError
from periodgrid.models.classroom import Classroom
from periodgrid.models.department import Department
from periodgrid.models.faculty import Faculty
from periodgrid.models.rearrangement_request import RearrangementRequest
from periodgrid.models.subject import Subject
from periodgrid.models.timetable import Timetable
from periodgrid.schemas.entities import ClassroomPayload, FacultyPayload, SubjectPayload
from periodgrid.schemas.rearrangement import NotificationType, RearrangementRequestOut, RearrangementStatus
from periodgrid.schemas.timetable import TimetableSnapshot
from periodgrid.services.notifications import create_notification, role_user_ids
from periodgrid.services.timetables import next_version_label

logger = logging.getLogger(__name__)


def faculty_to_payload(row: Faculty) -> FacultyPayload:
    return FacultyPayload(
        id=row.id,
        name=row.name,
        department_id=row.department_id,
        max_classes_per_day=row.max_classes_per_day,
        max_classes_per_week=row.max_classes_per_week,
        availability=row.availability or {},
    )


def subject_to_payload(row: Subject) -> SubjectPayload:
    return SubjectPayload(
        id=row.id,
        name=row.name,
        code=row.code or "N/A",
        type=row.type,
        hours_per_week=row.hours_per_week,
        department_id=row.department_id,
        year=row.year,
        semester=row.semester,
        faculty_id=row.faculty_id,
        faculty_name=row.faculty_name,
        secondary_faculty_id=row.secondary_faculty_id,
        secondary_faculty_name=row.secondary_faculty_name,
    )


def classroom_to_payload(row: Classroom) -> ClassroomPayload:
    return ClassroomPayload(id=row.id, room_number=row.room_number, room_type=row.room_type, capacity=row.capacity)


def timetable_to_snapshot(row: Timetable) -> TimetableSnapshot:
    return TimetableSnapshot.model_validate(
        {
            "id": row.id,
            "version_label": row.version_label,
            "department_id": row.department_id,
            "department_name": row.department_name,
            "year": row.year,
            "semester": row.semester,
            "section": row.section,
            "schedule": row.schedule or {},
            "summary": row.summary or {},
            "is_live": row.is_live,
            "is_rearranged": row.is_rearranged,
            "rearranged_for_date": row.rearranged_for_date,
            "original_timetable_id": row.original_timetable_id,
            "audit_trail": row.audit_trail or [],
            "created_at": row.created_at,
        }
    )


class DatabaseStore:
    """SQLAlchemy-backed entity source, timetable store, request store, notification sink and user directory.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # Entities

    def list_subjects(
        self,
        department_id: str | None,
        year: int | None,
        semester: int | None,
    ) -> list[SubjectPayload]:
        query = select(Subject)
        if department_id is not None:
            query = query.where(Subject.department_id == department_id)
        if year is not None:
            query = query.where(Subject.year == year)
        if semester is not None:
            query = query.where(Subject.semester == semester)
        rows = self.db.execute(query.order_by(Subject.code, Subject.id)).scalars()
        return [subject_to_payload(row) for row in rows]

    def list_faculty(self, department_id: str | None = None) -> list[FacultyPayload]:
        query = select(Faculty)
        if department_id is not None:
            query = query.where(Faculty.department_id == department_id)
        rows = self.db.execute(query.order_by(Faculty.name, Faculty.id)).scalars()
        return [faculty_to_payload(row) for row in rows]

    def list_classrooms(self) -> list[ClassroomPayload]:
        rows = self.db.execute(select(Classroom).order_by(Classroom.room_number)).scalars()
        return [classroom_to_payload(row) for row in rows]

    def get_faculty(self, faculty_id: str) -> FacultyPayload | None:
        row = self.db.get(Faculty, faculty_id)
        return faculty_to_payload(row) if row is not None else None

    def department_name(self, department_id: str | None) -> str | None:
        if department_id is None:
            return None
        row = self.db.get(Department, department_id)
        return row.name if row is not None else None

    # Timetables

    def list_live_timetables(self, department_id: str | None = None) -> list[TimetableSnapshot]:
        query = select(Timetable).where(Timetable.is_live.is_(True))
        if department_id is not None:
            query = query.where(Timetable.department_id == department_id)
        query = query.order_by(Timetable.year, Timetable.semester, Timetable.section, Timetable.id)
        return [timetable_to_snapshot(row) for row in self.db.execute(query).scalars()]

    def get_timetable(self, timetable_id: str) -> TimetableSnapshot | None:
        row = self.db.get(Timetable, timetable_id)
        return timetable_to_snapshot(row) if row is not None else None

    def list_versions(
        self,
        department_id: str | None,
        year: int | None,
        semester: int | None,
        section: str,
    ) -> list[TimetableSnapshot]:
        rows = self.db.execute(
            select(Timetable)
            .where(
                Timetable.department_id == department_id,
                Timetable.year == year,
                Timetable.semester == semester,
                Timetable.section == section,
            )
            .order_by(Timetable.created_at, Timetable.id)
        ).scalars()
        return sorted((timetable_to_snapshot(row) for row in rows), key=lambda item: _version_number(item.version_label))

    def publish_timetable(self, snapshot: TimetableSnapshot) -> TimetableSnapshot:
        siblings = list(
            self.db.execute(
                select(Timetable).where(
                    Timetable.department_id == snapshot.department_id,
                    Timetable.year == snapshot.year,
                    Timetable.semester == snapshot.semester,
                    Timetable.section == snapshot.section,
                )
            ).scalars()
        )
        for row in siblings:
            if row.is_live:
                row.is_live = False

        department_name = snapshot.department_name or self.department_name(snapshot.department_id)
        row = Timetable(
            version_label=next_version_label(item.version_label for item in siblings),
            department_id=snapshot.department_id,
            department_name=department_name,
            year=snapshot.year,
            semester=snapshot.semester,
            section=snapshot.section,
            schedule=snapshot.schedule_payload(),
            summary=dict(snapshot.summary),
            is_live=True,
            is_rearranged=snapshot.is_rearranged,
            rearranged_for_date=snapshot.rearranged_for_date,
            original_timetable_id=snapshot.original_timetable_id,
            audit_trail=[item.model_dump(mode="json") for item in snapshot.audit_trail],
        )
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        logger.info(
            "Timetable %s published for department=%s year=%s semester=%s section=%s",
            row.version_label,
            row.department_id,
            row.year,
            row.semester,
            row.section,
        )
        return timetable_to_snapshot(row)

    # Rearrangement requests

    def add_request(self, request: RearrangementRequestOut) -> RearrangementRequestOut:
        row = RearrangementRequest(**request.model_dump(exclude={"id", "created_at"}))
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return RearrangementRequestOut.model_validate(row)

    def get_request(self, request_id: str) -> RearrangementRequestOut | None:
        row = self.db.get(RearrangementRequest, request_id)
        return RearrangementRequestOut.model_validate(row) if row is not None else None

    def save_request(self, request: RearrangementRequestOut) -> RearrangementRequestOut:
        row = self.db.get(RearrangementRequest, request.id) if request.id else None
        if row is None:
            raise ResourceNotFoundError("RearrangementRequest", str(request.id))
        row.status = request.status
        row.responded_at = request.responded_at
        self.db.flush()
        self.db.refresh(row)
        return RearrangementRequestOut.model_validate(row)

    def list_accepted(self, absence_date: date, slot_id: str) -> list[RearrangementRequestOut]:
        rows = self.db.execute(
            select(RearrangementRequest).where(
                RearrangementRequest.absence_date == absence_date,
                RearrangementRequest.slot_id == slot_id,
                RearrangementRequest.status == RearrangementStatus.accepted,
            )
        ).scalars()
        return [RearrangementRequestOut.model_validate(row) for row in rows]

    # Notifications and users

    def notify(
        self,
        recipient_id: str,
        message: str,
        type: NotificationType,
        link: str | None = None,
        *,
        title: str | None = None,
        related_id: str | None = None,
    ) -> None:
        create_notification(
            self.db,
            recipient_id=recipient_id,
            title=title or type.value.capitalize(),
            message=message,
            notification_type=type,
            link=link,
            related_id=related_id,
        )

    def list_user_ids(self, role: str, department_id: str | None = None) -> list[str]:
        return role_user_ids(self.db, role=role, department_id=department_id)


def _version_number(label: str | None) -> int:
    if label and label.startswith("v") and label[1:].isdigit():
        return int(label[1:])
    return 0
