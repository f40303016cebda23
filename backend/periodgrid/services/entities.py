from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging

from periodgrid.core.exceptions import InvalidRequestError
from periodgrid.schemas.entities import EntitySet
from periodgrid.services.ports import EntitySource

logger = logging.getLogger(__name__)


def semester_matches(subject_semester: int | None, requested: int, year: int | None) -> bool:
    """Accept a subject semester written either relative to the year (1/2) or absolute ((year-1)*2 + 1/2)."""
    if subject_semester is None:
        return False
    if subject_semester == requested:
        return True
    if year and year > 0:
        relative = 2 if requested % 2 == 0 else 1
        absolute = (year - 1) * 2 + relative
        return subject_semester in {relative, absolute}
    return False


def is_placeholder_name(name: str | None, markers: Sequence[str] = ("year",)) -> bool:
    lowered = (name or "").strip().lower()
    return not lowered or any(marker.lower() in lowered for marker in markers)


def load_entity_set(
    source: EntitySource,
    *,
    department_id: str | None,
    year: int | None,
    semester: int | None,
    section: str = "A",
    available_faculty_ids: Iterable[str] | None = None,
    placeholder_markers: Sequence[str] = ("year",),
) -> EntitySet:
    subjects = source.list_subjects(department_id, year, None)
    if semester:
        subjects = [item for item in subjects if semester_matches(item.semester, semester, year)]

    faculty = [item for item in source.list_faculty(department_id) if not is_placeholder_name(item.name, placeholder_markers)]
    allowed = set(available_faculty_ids or ())
    if allowed:
        faculty = [item for item in faculty if item.id in allowed]

    classrooms = source.list_classrooms()

    logger.info(
        "Loaded entities for department=%s year=%s semester=%s: %d subjects, %d faculty, %d classrooms",
        department_id,
        year,
        semester,
        len(subjects),
        len(faculty),
        len(classrooms),
    )

    if not subjects:
        raise InvalidRequestError(
            f"No subjects found for Year {year}, Sem {semester}",
            details={"department_id": department_id, "year": year, "semester": semester},
        )
    if not classrooms:
        raise InvalidRequestError("No classrooms found. Please add classrooms before generating.")

    return EntitySet(
        department_id=department_id,
        year=year,
        semester=semester,
        section=section,
        subjects=tuple(subjects),
        faculty=tuple(faculty),
        classrooms=tuple(classrooms),
    )
