from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubjectType(str, Enum):
    theory = "Theory"
    lab = "Lab"
    filler = "Filler"


class RoomType(str, Enum):
    lecture = "Lecture"
    lab = "Lab"
    seminar = "Seminar"


def normalize_period_key(value: str | int) -> str:
    """Map "P3", "p3", 3 and "3" to the same availability key "3"."""
    text = str(value).strip()
    if text[:1] in {"P", "p"}:
        text = text[1:]
    return text


class SubjectPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    code: str = "N/A"
    type: SubjectType = SubjectType.theory
    hours_per_week: int = Field(default=3, ge=0, le=40)
    department_id: str | None = None
    year: int | None = None
    semester: int | None = None
    faculty_id: str | None = None
    faculty_name: str | None = None
    secondary_faculty_id: str | None = None
    secondary_faculty_name: str | None = None

    @property
    def is_lab(self) -> bool:
        return self.type == SubjectType.lab

    @property
    def is_theory(self) -> bool:
        return self.type == SubjectType.theory


class FacultyPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    department_id: str | None = None
    max_classes_per_day: int = Field(default=4, ge=0, le=20)
    max_classes_per_week: int = Field(default=18, ge=0, le=100)
    availability: dict[str, dict[str, bool]] = Field(default_factory=dict)

    @field_validator("availability")
    @classmethod
    def normalize_availability(cls, value: dict[str, dict[str, bool]]) -> dict[str, dict[str, bool]]:
        return {
            day.strip(): {normalize_period_key(key): bool(flag) for key, flag in (periods or {}).items()}
            for day, periods in value.items()
        }

    def is_marked_busy(self, day: str, period: int) -> bool:
        day_matrix = self.availability.get(day)
        if not day_matrix:
            return False
        # Missing keys mean available.
        return day_matrix.get(normalize_period_key(period)) is False


class ClassroomPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=36)
    room_number: str = Field(min_length=1, max_length=100)
    room_type: RoomType = RoomType.lecture
    capacity: int = Field(default=60, ge=0, le=2000)

    @property
    def is_lab(self) -> bool:
        return self.room_type == RoomType.lab or "lab" in self.room_number.lower()


class EntitySet(BaseModel):
    """Snapshot of the inputs for one generation request."""

    model_config = ConfigDict(frozen=True)

    department_id: str | None = None
    year: int | None = None
    semester: int | None = None
    section: str = "A"
    subjects: tuple[SubjectPayload, ...] = ()
    faculty: tuple[FacultyPayload, ...] = ()
    classrooms: tuple[ClassroomPayload, ...] = ()

    @property
    def labs(self) -> list[SubjectPayload]:
        return [item for item in self.subjects if item.is_lab]

    @property
    def theory_subjects(self) -> list[SubjectPayload]:
        return [item for item in self.subjects if item.is_theory]

    def faculty_by_id(self) -> dict[str, FacultyPayload]:
        return {item.id: item for item in self.faculty}
