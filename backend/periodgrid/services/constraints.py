from __future__ import annotations

from periodgrid.schemas.entities import ClassroomPayload, FacultyPayload, SubjectPayload
from periodgrid.services.grid import FacultyLoads, Grid


class ConstraintChecker:
    """Placement legality for one (day, period, subject, faculty, room) choice.

    Rules run in a fixed order and the first failure wins. Lab subjects skip
    the daily cap because a lab block is validated as a whole by the placer.
    """

    def first_violation(
        self,
        grid: Grid,
        loads: FacultyLoads,
        day: str,
        period: int,
        subject: SubjectPayload,
        faculty: FacultyPayload,
        room: ClassroomPayload | None = None,
    ) -> str | None:
        if not grid.is_free(day, period):
            return "slot_occupied"

        previous = grid.get(day, period - 1) if period > 1 else None

        if subject.is_theory:
            if any(entry is not None and entry.subject_id == subject.id for entry in grid.day_entries(day)):
                return "subject_already_today"
            if previous is not None and previous.subject_id == subject.id:
                return "subject_back_to_back"

        if previous is not None and (
            previous.taught_by(faculty.id) or (previous.faculty_name and previous.faculty_name == faculty.name)
        ):
            return "faculty_back_to_back"

        if not subject.is_lab and loads.day_load(faculty.id, day) >= faculty.max_classes_per_day:
            return "daily_load"

        if loads.week_load(faculty.id) >= faculty.max_classes_per_week:
            return "weekly_load"

        if faculty.is_marked_busy(day, period):
            return "faculty_unavailable"

        return None

    def can_place(
        self,
        grid: Grid,
        loads: FacultyLoads,
        day: str,
        period: int,
        subject: SubjectPayload,
        faculty: FacultyPayload,
        room: ClassroomPayload | None = None,
    ) -> bool:
        return self.first_violation(grid, loads, day, period, subject, faculty, room) is None
