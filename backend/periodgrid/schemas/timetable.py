from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from periodgrid.core.exceptions import InvalidRequestError

DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

CANCELLED_LABEL = "CANCELLED (No Sub)"


def normalize_day(value: str) -> str:
    return DAY_SHORT_MAP.get(value, value)


def weekday_name(value: date) -> str:
    return DAY_ORDER[value.weekday()]


def period_label(period: int) -> str:
    return f"P{period}"


def parse_period(value: str | int) -> int:
    """Accept 2, "2", "P2" or "p2" and return the period ordinal."""
    text = str(value).strip()
    if text[:1] in {"P", "p"}:
        text = text[1:]
    if not text.isdigit() or int(text) < 1:
        raise InvalidRequestError(f"Invalid period identifier: {value!r}")
    return int(text)


class SlotType(str, Enum):
    theory = "Theory"
    theory_extra = "Theory (Extra)"
    lab = "Lab"
    filler = "Filler"


class SlotEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject_id: str | None = Field(default=None, alias="subjectId")
    subject_name: str = Field(alias="subjectName")
    subject_code: str | None = Field(default=None, alias="subjectCode")
    faculty_id: str | None = Field(default=None, alias="facultyId")
    faculty_name: str | None = Field(default=None, alias="facultyName")
    second_faculty_id: str | None = Field(default=None, alias="secondFacultyId")
    second_faculty_name: str | None = Field(default=None, alias="secondFacultyName")
    room_number: str | None = Field(default=None, alias="roomNumber")
    type: SlotType
    is_substitution: bool = Field(default=False, alias="isSubstitution")
    original_faculty_id: str | None = Field(default=None, alias="originalFacultyId")
    original_faculty_name: str | None = Field(default=None, alias="originalFacultyName")
    is_cancelled: bool = Field(default=False, alias="isCancelled")

    @property
    def is_filler(self) -> bool:
        return self.type == SlotType.filler

    @property
    def is_lab(self) -> bool:
        return self.type == SlotType.lab

    @property
    def faculty_ids(self) -> tuple[str, ...]:
        return tuple(item for item in (self.faculty_id, self.second_faculty_id) if item)

    def taught_by(self, faculty_id: str) -> bool:
        return faculty_id in self.faculty_ids


class AuditEntry(BaseModel):
    absence_date: date
    recorded_at: datetime
    faculty_id: str | None = None
    changes: list[str] = Field(default_factory=list)


class TimetableSnapshot(BaseModel):
    """A published (or publishable) weekly timetable for one section."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    version_label: str | None = None
    department_id: str | None = None
    department_name: str | None = None
    year: int | None = None
    semester: int | None = None
    section: str = "A"
    schedule: dict[str, dict[str, SlotEntry | None]] = Field(default_factory=dict)
    is_live: bool = True
    is_rearranged: bool = False
    rearranged_for_date: date | None = None
    original_timetable_id: str | None = None
    audit_trail: list[AuditEntry] = Field(default_factory=list)
    summary: dict = Field(default_factory=dict)
    created_at: datetime | None = None

    @property
    def class_label(self) -> str:
        department = self.department_name or self.department_id or ""
        return f"{self.year} Year {department} - Section {self.section}".replace("  ", " ")

    def cell(self, day: str, period: int) -> SlotEntry | None:
        return self.schedule.get(day, {}).get(period_label(period))

    def schedule_payload(self) -> dict[str, dict[str, dict | None]]:
        return {
            day: {
                label: (entry.model_dump(by_alias=True, mode="json") if entry is not None else None)
                for label, entry in periods.items()
            }
            for day, periods in self.schedule.items()
        }
