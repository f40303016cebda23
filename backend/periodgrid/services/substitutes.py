from __future__ import annotations

from datetime import date
import logging

from periodgrid.schemas.entities import FacultyPayload
from periodgrid.schemas.timetable import parse_period, period_label, weekday_name
from periodgrid.services.ports import EntitySource, RearrangementStore, TimetableStore
from periodgrid.services.timetables import normalize_faculty_name

logger = logging.getLogger(__name__)


class SubstituteFinder:
    """Lists faculty free to cover one dated period.

    Busy means teaching that weekday/period in any live timetable of the
    searched department, or already accepted as a substitute for the same
    date and period. Without a live timetable the search fails open.
    """

    def __init__(
        self,
        entities: EntitySource,
        timetables: TimetableStore,
        requests: RearrangementStore,
    ) -> None:
        self.entities = entities
        self.timetables = timetables
        self.requests = requests

    def committed_faculty(self, department_id: str | None, day: str, period: int) -> tuple[set[str], set[str]] | None:
        live = self.timetables.list_live_timetables(department_id)
        if not live:
            return None
        busy_ids: set[str] = set()
        busy_names: set[str] = set()
        for snapshot in live:
            entry = snapshot.cell(day, period)
            if entry is None or entry.is_filler or entry.is_cancelled:
                continue
            busy_ids.update(entry.faculty_ids)
            if not entry.faculty_ids and entry.faculty_name:
                busy_names.add(normalize_faculty_name(entry.faculty_name))
        return busy_ids, busy_names

    def find_available(
        self,
        department_id: str | None,
        on_date: date,
        period: int | str,
        requester_id: str | None,
    ) -> list[FacultyPayload]:
        period_no = parse_period(period)
        slot_id = period_label(period_no)
        day = weekday_name(on_date)

        accepted = {item.substitute_faculty_id for item in self.requests.list_accepted(on_date, slot_id)}
        faculty = [
            item
            for item in self.entities.list_faculty(department_id)
            if item.id != requester_id and item.id not in accepted
        ]

        committed = self.committed_faculty(department_id, day, period_no)
        if committed is None:
            logger.warning(
                "No live timetable for department %s; treating all faculty as free on %s %s",
                department_id or "*",
                on_date.isoformat(),
                slot_id,
            )
            return faculty

        busy_ids, busy_names = committed
        return [
            item
            for item in faculty
            if item.id not in busy_ids and normalize_faculty_name(item.name) not in busy_names
        ]
