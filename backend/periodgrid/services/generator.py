from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
import random
from time import perf_counter

from periodgrid.core.exceptions import InvalidRequestError
from periodgrid.schemas.entities import EntitySet
from periodgrid.schemas.generator import CandidateOut, GenerationSettings, ResolutionNote, UnfilledDemand
from periodgrid.services.constraints import ConstraintChecker
from periodgrid.services.evaluation import ScoreEvaluator, placement_score
from periodgrid.services.grid import FacultyLoads, Grid
from periodgrid.services.placement import FacultyResolver, GapFiller, LabPlacer, TheoryPlacer

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 50


@dataclass
class Candidate:
    id: str
    score: float
    grid: Grid
    conflicts: list[str] = field(default_factory=list)
    seed: int = 0
    unfilled: list[UnfilledDemand] = field(default_factory=list)
    resolution_notes: list[ResolutionNote] = field(default_factory=list)

    def to_out(self, rank: int) -> CandidateOut:
        return CandidateOut(
            id=self.id,
            rank=rank,
            score=self.score,
            seed=self.seed,
            conflicts=list(self.conflicts),
            unfilled=list(self.unfilled),
            resolution_notes=list(self.resolution_notes),
            schedule=self.grid.to_schedule(),
        )


class CandidateGenerator:
    """Monte-Carlo restarts over the greedy placers.

    Every trial owns its RNG (seeded ``base_seed + trial_index``), grid and
    load counters, so trials can run on a thread pool without locking.
    """

    def __init__(self, settings: GenerationSettings | None = None) -> None:
        self.settings = settings or GenerationSettings()
        self.checker = ConstraintChecker()

    def _base_seed(self) -> int:
        if self.settings.random_seed is not None:
            return self.settings.random_seed
        return random.SystemRandom().randrange(0, 2_000_000_000)

    def build_candidate(self, entities: EntitySet, index: int, seed: int) -> Candidate:
        settings = self.settings
        rng = random.Random(seed)

        subjects = list(entities.subjects)
        rng.shuffle(subjects)
        faculty = list(entities.faculty)
        rng.shuffle(faculty)

        resolver = FacultyResolver(
            faculty,
            placeholder_markers=settings.placeholder_faculty_markers,
            allow_department_fallback=settings.allow_department_fallback,
        )
        grid = Grid(settings.working_days, settings.periods_per_day)
        loads = FacultyLoads()
        demands: list[UnfilledDemand] = []

        lab_placer = LabPlacer(
            checker=self.checker,
            resolver=resolver,
            classrooms=entities.classrooms,
            settings=settings,
            rng=rng,
            demands=demands,
        )
        for subject in subjects:
            if subject.is_lab:
                lab_placer.place_lab(grid, loads, subject)

        instances = [subject for subject in subjects if subject.is_theory for _ in range(subject.hours_per_week)]
        rng.shuffle(instances)
        theory_placer = TheoryPlacer(
            checker=self.checker,
            resolver=resolver,
            classrooms=entities.classrooms,
            demands=demands,
        )
        for subject in instances:
            theory_placer.place_instance(grid, loads, subject)

        GapFiller(
            checker=self.checker,
            resolver=resolver,
            classrooms=entities.classrooms,
            theory_subjects=subjects,
            settings=settings,
            rng=rng,
        ).fill_gaps(grid, loads)

        evaluation = ScoreEvaluator(entities.subjects, entities.faculty, settings).evaluate(grid)
        score = float(placement_score(grid)) if settings.scoring == "placement" else evaluation.score
        return Candidate(
            id=f"candidate-{index + 1}",
            score=score,
            grid=grid,
            conflicts=list(evaluation.conflicts),
            seed=seed,
            unfilled=demands,
            resolution_notes=list(resolver.notes),
        )

    def generate_candidates(self, entities: EntitySet, count: int) -> list[Candidate]:
        if count < 1 or count > MAX_CANDIDATES:
            raise InvalidRequestError(f"Candidate count must be between 1 and {MAX_CANDIDATES}", details={"count": count})

        started = perf_counter()
        base_seed = self._base_seed()
        seeds = [base_seed + index for index in range(count)]
        workers = min(self.settings.workers, count)

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                candidates = list(
                    pool.map(lambda args: self.build_candidate(entities, *args), enumerate(seeds))
                )
        else:
            candidates = [self.build_candidate(entities, index, seed) for index, seed in enumerate(seeds)]

        candidates.sort(key=lambda item: item.score, reverse=True)
        logger.info(
            "Generated %d candidates for department=%s year=%s semester=%s section=%s in %.2fs (best score %.1f, base seed %d)",
            len(candidates),
            entities.department_id,
            entities.year,
            entities.semester,
            entities.section,
            perf_counter() - started,
            candidates[0].score,
            base_seed,
        )
        return candidates
