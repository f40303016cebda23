from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from periodgrid.core.exceptions import InvalidRequestError


class RearrangementStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


_DECISION_ALIASES = {
    "accept": RearrangementStatus.accepted,
    "accepted": RearrangementStatus.accepted,
    "reject": RearrangementStatus.rejected,
    "rejected": RearrangementStatus.rejected,
}


def parse_decision(value: str | RearrangementStatus) -> RearrangementStatus:
    key = value.value if isinstance(value, RearrangementStatus) else str(value).strip().lower()
    decision = _DECISION_ALIASES.get(key)
    if decision is None:
        raise InvalidRequestError(f"Invalid decision {value!r}; expected 'accepted' or 'rejected'")
    return decision


class NotificationType(str, Enum):
    request = "request"
    response = "response"
    info = "info"
    alert = "alert"
    success = "success"


class RearrangementContext(BaseModel):
    subject_name: str | None = Field(default=None, max_length=200)
    class_label: str | None = Field(default=None, max_length=200)
    source_timetable_id: str | None = None


class RearrangementRequestOut(BaseModel):
    id: str | None = None
    absence_date: date
    day_of_week: str
    slot_id: str
    period_label: str
    department_id: str | None = None
    requester_faculty_id: str
    requester_faculty_name: str
    substitute_faculty_id: str
    substitute_faculty_name: str
    subject_name: str
    class_label: str
    source_timetable_id: str | None = None
    context_resolved: bool = True
    status: RearrangementStatus = RearrangementStatus.pending
    created_at: datetime | None = None
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}

    @property
    def is_terminal(self) -> bool:
        return self.status != RearrangementStatus.pending


class AffectedSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    timetable_id: str | None
    day: str
    slot_id: str
    subject_name: str
    original_faculty_id: str
    original_faculty_name: str | None = None
    substitute_faculty_id: str | None = None
    substitute_faculty_name: str | None = None
    co_teacher_name: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.substitute_faculty_id is None and self.co_teacher_name is None

    def describe(self) -> str:
        if self.substitute_faculty_id is None and self.co_teacher_name:
            return f"{self.slot_id}: {self.subject_name} -> {self.co_teacher_name} only"
        if self.cancelled:
            return f"{self.slot_id}: {self.subject_name} -> CANCELLED"
        return f"{self.slot_id}: {self.subject_name} -> {self.substitute_faculty_name}"


class AbsenceResult(BaseModel):
    faculty_id: str
    absence_date: date
    day_of_week: str
    updated_slots: list[AffectedSlot] = Field(default_factory=list)
    new_timetable_ids: list[str] = Field(default_factory=list)

    @property
    def new_timetable_id(self) -> str | None:
        return self.new_timetable_ids[0] if self.new_timetable_ids else None
