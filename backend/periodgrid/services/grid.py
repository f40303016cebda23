from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from periodgrid.core.exceptions import SchedulerError
from periodgrid.schemas.timetable import SlotEntry, SlotType, period_label


class Grid:
    """Weekly day x period matrix of nullable slot entries for one section."""

    def __init__(self, days: Sequence[str], periods_per_day: int) -> None:
        if not days:
            raise SchedulerError("No working days configured for timetable generation")
        if periods_per_day < 1:
            raise SchedulerError("periods_per_day must be at least 1")
        self.days: tuple[str, ...] = tuple(days)
        self.periods: tuple[int, ...] = tuple(range(1, periods_per_day + 1))
        self._day_index = {day: index for index, day in enumerate(self.days)}
        self._cells: list[list[SlotEntry | None]] = [[None] * periods_per_day for _ in self.days]

    def _index(self, day: str, period: int) -> tuple[int, int]:
        day_index = self._day_index.get(day)
        if day_index is None:
            raise SchedulerError(f"Unknown day {day!r}")
        if period < 1 or period > len(self.periods):
            raise SchedulerError(f"Period {period} outside 1..{len(self.periods)}")
        return day_index, period - 1

    def get(self, day: str, period: int) -> SlotEntry | None:
        day_index, period_index = self._index(day, period)
        return self._cells[day_index][period_index]

    def is_free(self, day: str, period: int) -> bool:
        return self.get(day, period) is None

    def place(self, day: str, period: int, entry: SlotEntry) -> None:
        day_index, period_index = self._index(day, period)
        if self._cells[day_index][period_index] is not None:
            raise SchedulerError(
                f"Slot {day} {period_label(period)} is already occupied",
                details={"day": day, "period": period},
            )
        self._cells[day_index][period_index] = entry

    def day_entries(self, day: str) -> list[SlotEntry | None]:
        day_index, _ = self._index(day, 1)
        return list(self._cells[day_index])

    def has_lab_on(self, day: str) -> bool:
        return any(entry is not None and entry.type == SlotType.lab for entry in self.day_entries(day))

    def cells(self) -> Iterator[tuple[str, int, SlotEntry | None]]:
        for day_index, day in enumerate(self.days):
            for period_index, entry in enumerate(self._cells[day_index]):
                yield day, period_index + 1, entry

    def empty_cells(self) -> list[tuple[str, int]]:
        return [(day, period) for day, period, entry in self.cells() if entry is None]

    def is_full(self) -> bool:
        return not self.empty_cells()

    def copy(self) -> "Grid":
        clone = Grid(self.days, len(self.periods))
        clone._cells = [list(row) for row in self._cells]
        return clone

    def to_schedule(self) -> dict[str, dict[str, SlotEntry | None]]:
        return {
            day: {period_label(period): self._cells[day_index][period - 1] for period in self.periods}
            for day_index, day in enumerate(self.days)
        }

    @classmethod
    def from_schedule(
        cls,
        schedule: dict[str, dict[str, SlotEntry | dict | None]],
        days: Sequence[str],
        periods_per_day: int,
    ) -> "Grid":
        grid = cls(days, periods_per_day)
        for day in grid.days:
            for period in grid.periods:
                raw = (schedule.get(day) or {}).get(period_label(period))
                if raw is None:
                    continue
                entry = raw if isinstance(raw, SlotEntry) else SlotEntry.model_validate(raw)
                grid.place(day, period, entry)
        return grid


@dataclass
class FacultyLoads:
    """Per-faculty period counters for one candidate build."""

    daily: Counter = field(default_factory=Counter)
    weekly: Counter = field(default_factory=Counter)

    def day_load(self, faculty_id: str, day: str) -> int:
        return self.daily[(faculty_id, day)]

    def week_load(self, faculty_id: str) -> int:
        return self.weekly[faculty_id]

    def add(self, faculty_id: str, day: str, amount: int = 1) -> None:
        self.daily[(faculty_id, day)] += amount
        self.weekly[faculty_id] += amount

    @classmethod
    def from_grid(cls, grid: Grid) -> "FacultyLoads":
        loads = cls()
        for day, _, entry in grid.cells():
            if entry is None or entry.is_filler:
                continue
            for faculty_id in entry.faculty_ids:
                loads.add(faculty_id, day)
        return loads
