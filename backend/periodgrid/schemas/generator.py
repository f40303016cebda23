from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from periodgrid.schemas.timetable import DAY_ORDER, SlotEntry, normalize_day

if TYPE_CHECKING:
    from periodgrid.core.config import Settings

LAB_BLOCK_SIZE = 3

ScoringMode = Literal["penalty", "placement"]


class FillerActivity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=100)
    owner: str = Field(default="Dept Faculty", min_length=1, max_length=100)


DEFAULT_PILLARS = (
    FillerActivity(name="Library", owner="Librarian"),
    FillerActivity(name="PET", owner="Physical Director"),
)

DEFAULT_FILLERS = (
    FillerActivity(name="Seminar", owner="Dept Faculty"),
    FillerActivity(name="Skill Development", owner="Trainer"),
    FillerActivity(name="Counseling", owner="Mentor"),
)


class GenerationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    working_days: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
    periods_per_day: int = Field(default=7, ge=3, le=12)
    lab_blocks: tuple[tuple[int, ...], ...] = ((2, 3, 4), (5, 6, 7))
    pillar_activities: tuple[FillerActivity, ...] = DEFAULT_PILLARS
    pillar_preferred_periods: tuple[int, ...] = (5, 6, 7)
    filler_activities: tuple[FillerActivity, ...] = DEFAULT_FILLERS
    filler_room: str = "Dept Hall"
    placeholder_faculty_markers: tuple[str, ...] = ("year",)
    allow_department_fallback: bool = True
    min_academic_periods_per_day: int = Field(default=3, ge=0, le=12)
    scoring: ScoringMode = "penalty"
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    workers: int = Field(default=1, ge=1, le=64)

    @field_validator("working_days")
    @classmethod
    def validate_days(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        days = tuple(normalize_day(item.strip()) for item in value if item.strip())
        invalid = [day for day in days if day not in DAY_ORDER]
        if invalid:
            raise ValueError(f"Invalid working day(s): {', '.join(invalid)}")
        if not days:
            raise ValueError("At least one working day is required")
        if len(set(days)) != len(days):
            raise ValueError("Working days must be unique")
        return days

    @model_validator(mode="after")
    def validate_blocks(self) -> "GenerationSettings":
        for block in self.lab_blocks:
            if len(block) != LAB_BLOCK_SIZE:
                raise ValueError(f"Lab blocks must span exactly {LAB_BLOCK_SIZE} periods: {list(block)}")
            if list(block) != list(range(block[0], block[0] + LAB_BLOCK_SIZE)):
                raise ValueError(f"Lab block periods must be contiguous: {list(block)}")
            if block[0] < 1 or block[-1] > self.periods_per_day:
                raise ValueError(f"Lab block {list(block)} falls outside periods 1..{self.periods_per_day}")
        if not self.filler_activities:
            raise ValueError("At least one filler activity is required")
        pillar_names = {item.name for item in self.pillar_activities}
        if any(item.name in pillar_names for item in self.filler_activities):
            raise ValueError("Pillar activities cannot also be random fillers")
        return self

    @property
    def pillar_names(self) -> set[str]:
        return {item.name for item in self.pillar_activities}

    @classmethod
    def from_settings(cls, settings: "Settings", **overrides) -> "GenerationSettings":
        values = {
            "working_days": tuple(settings.working_days),
            "periods_per_day": settings.periods_per_day,
            "lab_blocks": tuple(tuple(block) for block in settings.lab_blocks),
            "allow_department_fallback": settings.allow_department_fallback,
            "min_academic_periods_per_day": settings.min_academic_periods_per_day,
            "random_seed": settings.random_seed,
            "workers": max(1, settings.generation_workers),
        }
        values.update(overrides)
        return cls(**values)


class UnfilledDemand(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_name: str
    kind: Literal["lab", "theory"]
    reason: str


class ResolutionNote(BaseModel):
    """Records a subject whose faculty was not resolved by id."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject_name: str
    role: Literal["primary", "secondary"] = "primary"
    method: Literal["name", "department", "unresolved"]
    faculty_id: str | None = None


class CandidateOut(BaseModel):
    id: str
    rank: int
    score: float
    seed: int
    conflicts: list[str]
    unfilled: list[UnfilledDemand]
    resolution_notes: list[ResolutionNote]
    schedule: dict[str, dict[str, SlotEntry | None]]
