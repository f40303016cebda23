from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import random

from periodgrid.schemas.entities import ClassroomPayload, FacultyPayload, RoomType, SubjectPayload
from periodgrid.schemas.generator import FillerActivity, GenerationSettings, ResolutionNote, UnfilledDemand
from periodgrid.schemas.timetable import SlotEntry, SlotType, period_label
from periodgrid.services.constraints import ConstraintChecker
from periodgrid.services.entities import is_placeholder_name
from periodgrid.services.grid import FacultyLoads, Grid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedStaff:
    primary: FacultyPayload | None
    secondary: FacultyPayload | None = None

    @property
    def members(self) -> tuple[FacultyPayload, ...]:
        return tuple(item for item in (self.primary, self.secondary) if item is not None)


class FacultyResolver:
    """Maps each subject to its teaching staff once per candidate build.

    Resolution order is faculty id, exact name, then (when allowed) the first
    usable faculty of the subject's department. Anything other than an id hit
    is recorded in ``notes``.
    """

    def __init__(
        self,
        faculty: Sequence[FacultyPayload],
        *,
        placeholder_markers: Sequence[str] = ("year",),
        allow_department_fallback: bool = True,
    ) -> None:
        self._markers = tuple(marker.lower() for marker in placeholder_markers if marker)
        self.faculty = [item for item in faculty if not self.is_placeholder(item.name)]
        self._by_id = {item.id: item for item in self.faculty}
        self.allow_department_fallback = allow_department_fallback
        self.notes: list[ResolutionNote] = []
        self._cache: dict[str, ResolvedStaff] = {}

    def is_placeholder(self, name: str | None) -> bool:
        return is_placeholder_name(name, self._markers)

    def _by_name(self, name: str | None) -> FacultyPayload | None:
        if self.is_placeholder(name):
            return None
        return next((item for item in self.faculty if item.name == name), None)

    def _resolve_one(
        self,
        subject: SubjectPayload,
        *,
        faculty_id: str | None,
        faculty_name: str | None,
        role: str,
        department_fallback: bool,
    ) -> FacultyPayload | None:
        if faculty_id and faculty_id in self._by_id:
            return self._by_id[faculty_id]

        match = self._by_name(faculty_name)
        if match is not None:
            self.notes.append(
                ResolutionNote(subject_id=subject.id, subject_name=subject.name, role=role, method="name", faculty_id=match.id)
            )
            return match

        if department_fallback:
            match = next((item for item in self.faculty if item.department_id == subject.department_id), None)
            if match is not None:
                logger.warning(
                    "Subject %s has no matching faculty (%s); falling back to department faculty %s",
                    subject.code,
                    faculty_name or faculty_id,
                    match.name,
                )
                self.notes.append(
                    ResolutionNote(
                        subject_id=subject.id,
                        subject_name=subject.name,
                        role=role,
                        method="department",
                        faculty_id=match.id,
                    )
                )
                return match

        if faculty_id or faculty_name or role == "primary":
            self.notes.append(
                ResolutionNote(subject_id=subject.id, subject_name=subject.name, role=role, method="unresolved")
            )
        return None

    def resolve(self, subject: SubjectPayload) -> ResolvedStaff:
        cached = self._cache.get(subject.id)
        if cached is not None:
            return cached

        primary = self._resolve_one(
            subject,
            faculty_id=subject.faculty_id,
            faculty_name=subject.faculty_name,
            role="primary",
            department_fallback=self.allow_department_fallback,
        )
        secondary = None
        if subject.secondary_faculty_id or subject.secondary_faculty_name:
            secondary = self._resolve_one(
                subject,
                faculty_id=subject.secondary_faculty_id,
                faculty_name=subject.secondary_faculty_name,
                role="secondary",
                department_fallback=False,
            )
            if secondary is not None and primary is not None and secondary.id == primary.id:
                secondary = None

        staff = ResolvedStaff(primary=primary, secondary=secondary)
        self._cache[subject.id] = staff
        return staff


def pick_room(classrooms: Sequence[ClassroomPayload], *, lab: bool) -> ClassroomPayload | None:
    if not classrooms:
        return None
    if lab:
        return next((room for room in classrooms if room.is_lab), classrooms[0])
    return next(
        (room for room in classrooms if room.room_type == RoomType.lecture and not room.is_lab),
        next((room for room in classrooms if not room.is_lab), classrooms[0]),
    )


def build_entry(
    subject: SubjectPayload,
    staff: ResolvedStaff,
    room: ClassroomPayload,
    slot_type: SlotType,
) -> SlotEntry:
    # Only lab entries carry a second teacher.
    secondary = staff.secondary if slot_type == SlotType.lab else None
    return SlotEntry(
        subject_id=subject.id,
        subject_name=subject.name,
        subject_code=subject.code or "N/A",
        faculty_id=staff.primary.id if staff.primary else None,
        faculty_name=staff.primary.name if staff.primary else None,
        second_faculty_id=secondary.id if secondary else None,
        second_faculty_name=secondary.name if secondary else None,
        room_number=room.room_number,
        type=slot_type,
    )


class LabPlacer:
    def __init__(
        self,
        *,
        checker: ConstraintChecker,
        resolver: FacultyResolver,
        classrooms: Sequence[ClassroomPayload],
        settings: GenerationSettings,
        rng: random.Random,
        demands: list[UnfilledDemand],
    ) -> None:
        self.checker = checker
        self.resolver = resolver
        self.room = pick_room(classrooms, lab=True)
        self.blocks = [tuple(block) for block in settings.lab_blocks]
        self.rng = rng
        self.demands = demands

    def _unfilled(self, lab: SubjectPayload, reason: str) -> None:
        logger.info("Lab %s left unplaced: %s", lab.code, reason)
        self.demands.append(UnfilledDemand(subject_id=lab.id, subject_name=lab.name, kind="lab", reason=reason))

    def _block_fits(
        self,
        grid: Grid,
        loads: FacultyLoads,
        day: str,
        block: tuple[int, ...],
        lab: SubjectPayload,
        staff: ResolvedStaff,
    ) -> bool:
        for member in staff.members:
            if loads.week_load(member.id) + len(block) > member.max_classes_per_week:
                return False
        for period in block:
            if not grid.is_free(day, period):
                return False
            for member in staff.members:
                if not self.checker.can_place(grid, loads, day, period, lab, member, self.room):
                    return False
        return True

    def place_lab(self, grid: Grid, loads: FacultyLoads, lab: SubjectPayload) -> bool:
        staff = self.resolver.resolve(lab)
        if staff.primary is None:
            self._unfilled(lab, "no faculty resolved")
            return False
        if self.room is None:
            self._unfilled(lab, "no classroom available")
            return False

        days = list(grid.days)
        self.rng.shuffle(days)
        for day in days:
            # At most one lab per day for the section.
            if grid.has_lab_on(day):
                continue
            blocks = list(self.blocks)
            self.rng.shuffle(blocks)
            for block in blocks:
                if not self._block_fits(grid, loads, day, block, lab, staff):
                    continue
                entry = build_entry(lab, staff, self.room, SlotType.lab)
                for period in block:
                    grid.place(day, period, entry)
                for member in staff.members:
                    loads.add(member.id, day, len(block))
                logger.debug(
                    "Placed lab %s on %s %s-%s", lab.code, day, period_label(block[0]), period_label(block[-1])
                )
                return True

        self._unfilled(lab, "no day/block satisfies the constraints")
        return False


class TheoryPlacer:
    def __init__(
        self,
        *,
        checker: ConstraintChecker,
        resolver: FacultyResolver,
        classrooms: Sequence[ClassroomPayload],
        demands: list[UnfilledDemand],
    ) -> None:
        self.checker = checker
        self.resolver = resolver
        self.room = pick_room(classrooms, lab=False)
        self.demands = demands

    def place_instance(self, grid: Grid, loads: FacultyLoads, subject: SubjectPayload) -> bool:
        staff = self.resolver.resolve(subject)
        faculty = staff.primary
        reason = None
        if faculty is None:
            reason = "no faculty resolved"
        elif self.room is None:
            reason = "no classroom available"
        else:
            for day in grid.days:
                for period in grid.periods:
                    if self.checker.can_place(grid, loads, day, period, subject, faculty, self.room):
                        grid.place(day, period, build_entry(subject, staff, self.room, SlotType.theory))
                        loads.add(faculty.id, day)
                        return True
            reason = "no legal period left in the week"

        logger.info("Theory instance of %s dropped: %s", subject.code, reason)
        self.demands.append(
            UnfilledDemand(subject_id=subject.id, subject_name=subject.name, kind="theory", reason=reason)
        )
        return False


class GapFiller:
    """Brings a partial grid to full density.

    Pillar activities go in first, once each. Every remaining hole gets an
    extra theory period when one is legal, otherwise a random filler.
    """

    def __init__(
        self,
        *,
        checker: ConstraintChecker,
        resolver: FacultyResolver,
        classrooms: Sequence[ClassroomPayload],
        theory_subjects: Sequence[SubjectPayload],
        settings: GenerationSettings,
        rng: random.Random,
    ) -> None:
        self.checker = checker
        self.resolver = resolver
        self.room = pick_room(classrooms, lab=False)
        self.theory_subjects = [item for item in theory_subjects if item.is_theory and item.hours_per_week > 0]
        self.settings = settings
        self.rng = rng

    def _activity_entry(self, activity: FillerActivity) -> SlotEntry:
        return SlotEntry(
            subject_name=activity.name,
            faculty_name=activity.owner,
            room_number=self.settings.filler_room,
            type=SlotType.filler,
        )

    def place_pillars(self, grid: Grid) -> None:
        preferred = set(self.settings.pillar_preferred_periods)
        for pillar in self.settings.pillar_activities:
            empty = grid.empty_cells()
            if not empty:
                logger.info("No free slot left for pillar activity %s", pillar.name)
                return
            candidates = [cell for cell in empty if cell[1] in preferred] or empty
            day, period = self.rng.choice(candidates)
            grid.place(day, period, self._activity_entry(pillar))

    def _place_extra(self, grid: Grid, loads: FacultyLoads, day: str, period: int) -> bool:
        if self.room is None:
            return False
        for subject in self.rng.sample(self.theory_subjects, len(self.theory_subjects)):
            staff = self.resolver.resolve(subject)
            if staff.primary is None:
                continue
            if self.checker.can_place(grid, loads, day, period, subject, staff.primary, self.room):
                grid.place(day, period, build_entry(subject, staff, self.room, SlotType.theory_extra))
                loads.add(staff.primary.id, day)
                return True
        return False

    def fill_gaps(self, grid: Grid, loads: FacultyLoads) -> None:
        self.place_pillars(grid)
        extras = 0
        fillers = 0
        for day, period in grid.empty_cells():
            if self._place_extra(grid, loads, day, period):
                extras += 1
                continue
            grid.place(day, period, self._activity_entry(self.rng.choice(self.settings.filler_activities)))
            fillers += 1
        logger.debug("Gap filling added %d extra theory and %d filler periods", extras, fillers)
