from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timezone
import logging
import re

from periodgrid.schemas.entities import EntitySet
from periodgrid.schemas.timetable import CANCELLED_LABEL, AuditEntry, SlotEntry, TimetableSnapshot
from periodgrid.services.generator import Candidate
from periodgrid.services.ports import TimetableStore

logger = logging.getLogger(__name__)

_NAME_NOISE = re.compile(r"dr\.|prof\.|mr\.|mrs\.|\.|\s")


def normalize_faculty_name(value: str | None) -> str:
    """Lowercase a faculty name and strip honorifics, dots and whitespace."""
    if not value:
        return ""
    return _NAME_NOISE.sub("", value.lower()).strip()


def entry_owned_by(entry: SlotEntry | None, faculty_id: str, faculty_name: str | None = None) -> bool:
    if entry is None or entry.is_filler or entry.is_cancelled:
        return False
    if entry.taught_by(faculty_id):
        return True
    target = normalize_faculty_name(faculty_name)
    return bool(target) and normalize_faculty_name(entry.faculty_name) == target


def _holds_second_seat(entry: SlotEntry, faculty_id: str | None) -> bool:
    return bool(faculty_id) and entry.second_faculty_id == faculty_id and entry.faculty_id != faculty_id


def apply_substitution(
    entry: SlotEntry,
    substitute_id: str,
    substitute_name: str,
    *,
    replacing: str | None = None,
) -> SlotEntry:
    """Put the substitute in the seat held by ``replacing`` (the main seat when not given)."""
    if _holds_second_seat(entry, replacing):
        return entry.model_copy(
            update={
                "second_faculty_id": substitute_id,
                "second_faculty_name": f"{substitute_name} (Sub)",
                "is_substitution": True,
                "original_faculty_id": entry.original_faculty_id or entry.second_faculty_id,
                "original_faculty_name": entry.original_faculty_name or entry.second_faculty_name,
            }
        )
    return entry.model_copy(
        update={
            "faculty_id": substitute_id,
            "faculty_name": f"{substitute_name} (Sub)",
            "is_substitution": True,
            "original_faculty_id": entry.original_faculty_id or entry.faculty_id,
            "original_faculty_name": entry.original_faculty_name or entry.faculty_name,
        }
    )


def cancel_slot(entry: SlotEntry) -> SlotEntry:
    return entry.model_copy(
        update={
            "faculty_id": None,
            "faculty_name": CANCELLED_LABEL,
            "second_faculty_id": None,
            "second_faculty_name": None,
            "is_cancelled": True,
            "original_faculty_id": entry.original_faculty_id or entry.faculty_id,
            "original_faculty_name": entry.original_faculty_name or entry.faculty_name,
        }
    )


def co_teacher_of(entry: SlotEntry, faculty_id: str) -> tuple[str | None, str | None] | None:
    """Return the (id, name) of the other teacher on a co-taught slot, if any."""
    if _holds_second_seat(entry, faculty_id):
        return entry.faculty_id, entry.faculty_name
    if entry.second_faculty_id and entry.second_faculty_id != faculty_id:
        return entry.second_faculty_id, entry.second_faculty_name
    return None


def release_faculty(entry: SlotEntry, faculty_id: str) -> SlotEntry:
    """Take ``faculty_id`` off the slot; a co-taught slot keeps its other teacher, anything else is cancelled."""
    remaining = co_teacher_of(entry, faculty_id)
    if remaining is None:
        return cancel_slot(entry)
    absent_name = entry.second_faculty_name if _holds_second_seat(entry, faculty_id) else entry.faculty_name
    return entry.model_copy(
        update={
            "faculty_id": remaining[0],
            "faculty_name": remaining[1],
            "second_faculty_id": None,
            "second_faculty_name": None,
            "original_faculty_id": entry.original_faculty_id or faculty_id,
            "original_faculty_name": entry.original_faculty_name or absent_name,
        }
    )


def next_version_label(labels: Iterable[str | None]) -> str:
    numbers: list[int] = []
    for label in labels:
        if not label or not label.startswith("v"):
            continue
        suffix = label[1:]
        if suffix.isdigit():
            numbers.append(int(suffix))
    next_index = (max(numbers) + 1) if numbers else 1
    return f"v{next_index}"


def build_snapshot(
    candidate: Candidate,
    entities: EntitySet,
    *,
    department_name: str | None = None,
) -> TimetableSnapshot:
    return TimetableSnapshot(
        department_id=entities.department_id,
        department_name=department_name,
        year=entities.year,
        semester=entities.semester,
        section=entities.section,
        schedule=candidate.grid.to_schedule(),
        summary={
            "candidate_id": candidate.id,
            "score": candidate.score,
            "seed": candidate.seed,
            "conflicts": len(candidate.conflicts),
            "unfilled": len(candidate.unfilled),
            "fallback_resolutions": len(candidate.resolution_notes),
        },
    )


def publish_candidate(
    store: TimetableStore,
    candidate: Candidate,
    entities: EntitySet,
    *,
    department_name: str | None = None,
) -> TimetableSnapshot:
    published = store.publish_timetable(build_snapshot(candidate, entities, department_name=department_name))
    logger.info(
        "Published %s as %s for %s (score %.1f)",
        candidate.id,
        published.version_label,
        published.class_label,
        candidate.score,
    )
    return published


def rearranged_copy(
    snapshot: TimetableSnapshot,
    schedule: dict[str, dict[str, SlotEntry | None]],
    *,
    absence_date: date,
    faculty_id: str | None,
    changes: list[str],
    recorded_at: datetime | None = None,
) -> TimetableSnapshot:
    """Derive an unsaved follow-up version carrying the changed schedule and audit entry."""
    audit = AuditEntry(
        absence_date=absence_date,
        recorded_at=recorded_at or datetime.now(timezone.utc),
        faculty_id=faculty_id,
        changes=list(changes),
    )
    return snapshot.model_copy(
        update={
            "id": None,
            "version_label": None,
            "created_at": None,
            "is_live": True,
            "schedule": schedule,
            "is_rearranged": True,
            "rearranged_for_date": absence_date,
            "original_timetable_id": snapshot.id,
            "audit_trail": [*snapshot.audit_trail, audit],
        }
    )


def copy_schedule(snapshot: TimetableSnapshot) -> dict[str, dict[str, SlotEntry | None]]:
    return {day: dict(periods) for day, periods in snapshot.schedule.items()}
