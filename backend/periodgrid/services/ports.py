from __future__ import annotations

from datetime import date
from typing import Protocol

from periodgrid.schemas.entities import ClassroomPayload, FacultyPayload, SubjectPayload
from periodgrid.schemas.rearrangement import NotificationType, RearrangementRequestOut
from periodgrid.schemas.timetable import TimetableSnapshot


class EntitySource(Protocol):
    def list_subjects(self, department_id: str | None, year: int | None, semester: int | None) -> list[SubjectPayload]: ...

    def list_faculty(self, department_id: str | None = None) -> list[FacultyPayload]: ...

    def list_classrooms(self) -> list[ClassroomPayload]: ...

    def get_faculty(self, faculty_id: str) -> FacultyPayload | None: ...


class TimetableStore(Protocol):
    def list_live_timetables(self, department_id: str | None = None) -> list[TimetableSnapshot]: ...

    def get_timetable(self, timetable_id: str) -> TimetableSnapshot | None: ...

    def publish_timetable(self, snapshot: TimetableSnapshot) -> TimetableSnapshot: ...


class RearrangementStore(Protocol):
    def add_request(self, request: RearrangementRequestOut) -> RearrangementRequestOut: ...

    def get_request(self, request_id: str) -> RearrangementRequestOut | None: ...

    def save_request(self, request: RearrangementRequestOut) -> RearrangementRequestOut: ...

    def list_accepted(self, absence_date: date, slot_id: str) -> list[RearrangementRequestOut]: ...


class NotificationSink(Protocol):
    def notify(
        self,
        recipient_id: str,
        message: str,
        type: NotificationType,
        link: str | None = None,
        *,
        title: str | None = None,
        related_id: str | None = None,
    ) -> None: ...


class UserDirectory(Protocol):
    def list_user_ids(self, role: str, department_id: str | None = None) -> list[str]: ...
