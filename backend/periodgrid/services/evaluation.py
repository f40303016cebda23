from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from periodgrid.schemas.entities import FacultyPayload, SubjectPayload
from periodgrid.schemas.generator import GenerationSettings
from periodgrid.schemas.timetable import SlotEntry, SlotType, period_label
from periodgrid.services.grid import Grid

BASELINE_SCORE = 100.0

LIGHT_DAY_PENALTY = 10.0
DAILY_OVERLOAD_PENALTY = 15.0
WEEKLY_OVERLOAD_PENALTY = 20.0
HOURS_MISMATCH_PENALTY = 10.0
REPEATED_SUBJECT_PENALTY = 5.0
PILLAR_COUNT_PENALTY = 10.0
BACK_TO_BACK_PENALTY = 5.0

LAB_PLACEMENT_POINTS = 100
THEORY_PLACEMENT_POINTS = 10


@dataclass(frozen=True)
class Evaluation:
    score: float
    conflicts: tuple[str, ...]


def _same_lab_block(first: SlotEntry, second: SlotEntry) -> bool:
    return first.is_lab and second.is_lab and first == second


def placement_score(grid: Grid) -> int:
    """Count-based score: 100 per lab period and 10 per theory period (extras included)."""
    labs = sum(1 for _, _, entry in grid.cells() if entry is not None and entry.is_lab)
    theory = sum(
        1
        for _, _, entry in grid.cells()
        if entry is not None and entry.type in {SlotType.theory, SlotType.theory_extra}
    )
    return labs * LAB_PLACEMENT_POINTS + theory * THEORY_PLACEMENT_POINTS


class ScoreEvaluator:
    def __init__(
        self,
        subjects: Sequence[SubjectPayload],
        faculty: Sequence[FacultyPayload],
        settings: GenerationSettings | None = None,
    ) -> None:
        self.settings = settings or GenerationSettings()
        self.theory_subjects = [item for item in subjects if item.is_theory]
        self.faculty_by_id = {item.id: item for item in faculty}

    def evaluate(self, grid: Grid) -> Evaluation:
        conflicts: list[str] = []
        penalty = 0.0

        for day in grid.days:
            academic = sum(1 for entry in grid.day_entries(day) if entry is not None and not entry.is_filler)
            if academic < self.settings.min_academic_periods_per_day:
                penalty += LIGHT_DAY_PENALTY
                conflicts.append(
                    f"{day} has only {academic} academic periods "
                    f"(minimum {self.settings.min_academic_periods_per_day})"
                )

        daily: Counter = Counter()
        weekly: Counter = Counter()
        for day, _, entry in grid.cells():
            if entry is None or entry.is_filler:
                continue
            for faculty_id in entry.faculty_ids:
                daily[(faculty_id, day)] += 1
                weekly[faculty_id] += 1

        for (faculty_id, day), count in sorted(daily.items()):
            faculty = self.faculty_by_id.get(faculty_id)
            if faculty is not None and count > faculty.max_classes_per_day:
                penalty += DAILY_OVERLOAD_PENALTY
                conflicts.append(
                    f"{faculty.name} teaches {count} periods on {day} (limit {faculty.max_classes_per_day})"
                )

        for faculty_id, count in sorted(weekly.items()):
            faculty = self.faculty_by_id.get(faculty_id)
            if faculty is not None and count > faculty.max_classes_per_week:
                penalty += WEEKLY_OVERLOAD_PENALTY
                conflicts.append(
                    f"{faculty.name} teaches {count} periods this week (limit {faculty.max_classes_per_week})"
                )

        theory_counts: Counter = Counter()
        per_day: Counter = Counter()
        for day, _, entry in grid.cells():
            if entry is None or entry.subject_id is None:
                continue
            if entry.type == SlotType.theory:
                theory_counts[entry.subject_id] += 1
            if entry.type in {SlotType.theory, SlotType.theory_extra}:
                per_day[(entry.subject_id, day)] += 1

        for subject in self.theory_subjects:
            realized = theory_counts[subject.id]
            if realized != subject.hours_per_week:
                penalty += HOURS_MISMATCH_PENALTY
                conflicts.append(
                    f"{subject.name} has {realized} theory periods, expected {subject.hours_per_week}"
                )
            for day in grid.days:
                if per_day[(subject.id, day)] > 1:
                    penalty += REPEATED_SUBJECT_PENALTY
                    conflicts.append(f"{subject.name} occurs {per_day[(subject.id, day)]} times on {day}")

        pillar_counts = Counter(
            entry.subject_name for _, _, entry in grid.cells() if entry is not None and entry.is_filler
        )
        for pillar in self.settings.pillar_activities:
            if pillar_counts[pillar.name] != 1:
                penalty += PILLAR_COUNT_PENALTY
                conflicts.append(f"{pillar.name} scheduled {pillar_counts[pillar.name]} times (expected once)")

        for day in grid.days:
            entries = grid.day_entries(day)
            for index in range(1, len(entries)):
                previous, current = entries[index - 1], entries[index]
                if previous is None or current is None or _same_lab_block(previous, current):
                    continue
                shared = set(previous.faculty_ids) & set(current.faculty_ids)
                for faculty_id in sorted(shared):
                    faculty = self.faculty_by_id.get(faculty_id)
                    penalty += BACK_TO_BACK_PENALTY
                    conflicts.append(
                        f"{faculty.name if faculty else faculty_id} teaches back-to-back on {day} "
                        f"{period_label(index)}-{period_label(index + 1)}"
                    )

        return Evaluation(score=BASELINE_SCORE - penalty, conflicts=tuple(conflicts))
