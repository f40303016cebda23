from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
import logging

from periodgrid.core.config import Settings, get_settings
from periodgrid.core.exceptions import (
    InvalidRequestError,
    RequestAlreadyResolvedError,
    ResourceNotFoundError,
    SubstituteUnavailableError,
    UnauthorizedResponseError,
)
from periodgrid.schemas.entities import FacultyPayload
from periodgrid.schemas.rearrangement import (
    AbsenceResult,
    AffectedSlot,
    NotificationType,
    RearrangementContext,
    RearrangementRequestOut,
    RearrangementStatus,
    parse_decision,
)
from periodgrid.schemas.timetable import TimetableSnapshot, parse_period, period_label, weekday_name
from periodgrid.services.ports import (
    EntitySource,
    NotificationSink,
    RearrangementStore,
    TimetableStore,
    UserDirectory,
)
from periodgrid.services.substitutes import SubstituteFinder
from periodgrid.services.timetables import (
    apply_substitution,
    co_teacher_of,
    copy_schedule,
    entry_owned_by,
    rearranged_copy,
    release_faculty,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_SUBJECT = "Subject TBD"
PLACEHOLDER_CLASS = "Class"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RearrangementCoordinator:
    """Runs both substitution workflows.

    The request/response path creates a pending request that only the named
    substitute may accept or reject. Whole-day absence handling assigns
    substitutes directly and republishes every affected timetable.
    """

    def __init__(
        self,
        *,
        entities: EntitySource,
        timetables: TimetableStore,
        requests: RearrangementStore,
        notifications: NotificationSink,
        users: UserDirectory,
        settings: Settings | None = None,
        finder: SubstituteFinder | None = None,
    ) -> None:
        self.entities = entities
        self.timetables = timetables
        self.requests = requests
        self.notifications = notifications
        self.users = users
        self.settings = settings or get_settings()
        self.finder = finder or SubstituteFinder(entities, timetables, requests)

    def _get_faculty(self, faculty_id: str) -> FacultyPayload:
        faculty = self.entities.get_faculty(faculty_id)
        if faculty is None:
            raise ResourceNotFoundError("Faculty", faculty_id)
        return faculty

    def _link(self, suffix: str | None = None) -> str:
        prefix = self.settings.notification_link_prefix.rstrip("/")
        return f"{prefix}/{suffix}" if suffix else prefix

    def _oversight_ids(self, department_id: str | None) -> list[str]:
        recipients = list(self.users.list_user_ids("hod", department_id)) if department_id else []
        recipients.extend(self.users.list_user_ids("admin"))
        return list(dict.fromkeys(recipients))

    # Request / response workflow

    def _resolve_context(
        self,
        requester: FacultyPayload,
        day: str,
        period: int,
    ) -> tuple[str, str, str | None] | None:
        for snapshot in self.timetables.list_live_timetables(requester.department_id):
            entry = snapshot.cell(day, period)
            if entry_owned_by(entry, requester.id, requester.name):
                return entry.subject_name, snapshot.class_label, snapshot.id
        return None

    def create_request(
        self,
        requester_id: str,
        absence_date: date,
        period: int | str,
        substitute_id: str,
        context: RearrangementContext | None = None,
        *,
        check_availability: bool = True,
    ) -> RearrangementRequestOut:
        requester = self._get_faculty(requester_id)
        substitute = self._get_faculty(substitute_id)
        if requester.id == substitute.id:
            raise InvalidRequestError("A faculty member cannot substitute for themselves", details={"faculty_id": requester.id})

        period_no = parse_period(period)
        slot_id = period_label(period_no)
        day = weekday_name(absence_date)

        if check_availability:
            available = self.finder.find_available(substitute.department_id, absence_date, period_no, requester.id)
            if substitute.id not in {item.id for item in available}:
                raise SubstituteUnavailableError(substitute.id, absence_date.isoformat(), slot_id)

        context = context or RearrangementContext()
        subject_name = context.subject_name
        class_label = context.class_label
        source_timetable_id = context.source_timetable_id
        context_resolved = True
        if not subject_name or not class_label:
            resolved = self._resolve_context(requester, day, period_no)
            if resolved is None:
                context_resolved = False
                logger.warning(
                    "Could not resolve class context for %s on %s %s; using placeholders",
                    requester.name,
                    day,
                    slot_id,
                )
            else:
                subject_name = subject_name or resolved[0]
                class_label = class_label or resolved[1]
                source_timetable_id = source_timetable_id or resolved[2]

        request = self.requests.add_request(
            RearrangementRequestOut(
                absence_date=absence_date,
                day_of_week=day,
                slot_id=slot_id,
                period_label=slot_id,
                department_id=requester.department_id,
                requester_faculty_id=requester.id,
                requester_faculty_name=requester.name,
                substitute_faculty_id=substitute.id,
                substitute_faculty_name=substitute.name,
                subject_name=subject_name or PLACEHOLDER_SUBJECT,
                class_label=class_label or PLACEHOLDER_CLASS,
                source_timetable_id=source_timetable_id,
                context_resolved=context_resolved,
                status=RearrangementStatus.pending,
            )
        )

        self.notifications.notify(
            substitute.id,
            f"{requester.name} requested you to take {request.subject_name} for {request.class_label} "
            f"on {absence_date.isoformat()} ({day}) at {slot_id}.",
            NotificationType.request,
            self._link(request.id),
            title="New Substitution Request",
            related_id=request.id,
        )
        logger.info(
            "Rearrangement request %s created: %s -> %s on %s %s",
            request.id,
            requester.name,
            substitute.name,
            absence_date.isoformat(),
            slot_id,
        )
        return request

    def respond(
        self,
        request_id: str,
        decision: str | RearrangementStatus,
        responder_id: str,
    ) -> RearrangementStatus:
        request = self.requests.get_request(request_id)
        if request is None:
            raise ResourceNotFoundError("RearrangementRequest", request_id)
        if request.substitute_faculty_id != responder_id:
            raise UnauthorizedResponseError(request_id, responder_id)
        if request.is_terminal:
            raise RequestAlreadyResolvedError(request_id, request.status.value)

        status = parse_decision(decision)
        updated = self.requests.save_request(
            request.model_copy(update={"status": status, "responded_at": _utc_now()})
        )

        verb = "accepted" if status == RearrangementStatus.accepted else "rejected"
        self.notifications.notify(
            updated.requester_faculty_id,
            f"{updated.substitute_faculty_name} {verb} your substitution request for "
            f"{updated.subject_name} on {updated.absence_date.isoformat()} at {updated.slot_id}.",
            NotificationType.response,
            self._link(updated.id),
            title=f"Substitution Request {verb.capitalize()}",
            related_id=updated.id,
        )

        if status == RearrangementStatus.accepted:
            message = (
                f"Rearrangement confirmed: {updated.substitute_faculty_name} will take {updated.subject_name} "
                f"({updated.class_label}) for {updated.requester_faculty_name} on "
                f"{updated.absence_date.isoformat()} at {updated.slot_id}."
            )
            for recipient_id in self._oversight_ids(updated.department_id):
                self.notifications.notify(
                    recipient_id,
                    message,
                    NotificationType.info,
                    self._link(updated.id),
                    title="Substitution Confirmed",
                    related_id=updated.id,
                )
            if self.settings.patch_timetable_on_accept:
                self._patch_timetable(updated)

        logger.info("Rearrangement request %s %s by %s", request_id, verb, responder_id)
        return status

    def _current_version(self, source: TimetableSnapshot) -> TimetableSnapshot:
        if source.is_live:
            return source
        for snapshot in self.timetables.list_live_timetables(source.department_id):
            if (snapshot.year, snapshot.semester, snapshot.section) == (source.year, source.semester, source.section):
                return snapshot
        return source

    def _patch_timetable(self, request: RearrangementRequestOut) -> TimetableSnapshot | None:
        if not request.source_timetable_id:
            return None
        source = self.timetables.get_timetable(request.source_timetable_id)
        if source is None:
            logger.warning(
                "Timetable %s for request %s no longer exists; skipping patch",
                request.source_timetable_id,
                request.id,
            )
            return None

        snapshot = self._current_version(source)
        period = parse_period(request.slot_id)
        entry = snapshot.cell(request.day_of_week, period)
        if not entry_owned_by(entry, request.requester_faculty_id, request.requester_faculty_name):
            logger.warning(
                "Slot %s %s of timetable %s is no longer taught by %s; skipping patch",
                request.day_of_week,
                request.slot_id,
                snapshot.id,
                request.requester_faculty_name,
            )
            return None

        schedule = copy_schedule(snapshot)
        schedule[request.day_of_week][request.slot_id] = apply_substitution(
            entry, request.substitute_faculty_id, request.substitute_faculty_name,
            replacing=request.requester_faculty_id,
        )
        published = self.timetables.publish_timetable(
            rearranged_copy(
                snapshot,
                schedule,
                absence_date=request.absence_date,
                faculty_id=request.requester_faculty_id,
                changes=[f"{request.slot_id}: {entry.subject_name} -> {request.substitute_faculty_name}"],
            )
        )
        logger.info("Published %s with accepted substitution %s", published.version_label, request.id)
        return published

    # Whole-day workflow

    def _teaching_loads(self, day: str) -> Counter:
        loads: Counter = Counter()
        for snapshot in self.timetables.list_live_timetables(None):
            for entry in snapshot.schedule.get(day, {}).values():
                if entry is None or entry.is_filler or entry.is_cancelled:
                    continue
                loads.update(entry.faculty_ids)
        return loads

    def _pick_substitute(
        self,
        absent: FacultyPayload,
        absence_date: date,
        period: int,
        excluded: set[str],
        loads: Counter,
    ) -> FacultyPayload | None:
        pools = [absent.department_id]
        if self.settings.allow_department_fallback and absent.department_id is not None:
            pools.append(None)
        for department_id in pools:
            candidates = [
                item
                for item in self.finder.find_available(department_id, absence_date, period, absent.id)
                if item.id not in excluded
            ]
            if candidates:
                return min(candidates, key=lambda item: (loads[item.id], item.name, item.id))
        return None

    def handle_full_day_absence(self, faculty_id: str, absence_date: date) -> AbsenceResult:
        faculty = self._get_faculty(faculty_id)
        day = weekday_name(absence_date)
        result = AbsenceResult(faculty_id=faculty.id, absence_date=absence_date, day_of_week=day)
        if day == "Sunday":
            logger.info("Skipping absence handling for %s on Sunday %s", faculty.name, absence_date.isoformat())
            return result

        loads = self._teaching_loads(day)
        chosen: dict[int, set[str]] = defaultdict(set)

        for snapshot in self.timetables.list_live_timetables(faculty.department_id):
            day_cells = snapshot.schedule.get(day) or {}
            schedule = copy_schedule(snapshot)
            changes: list[str] = []
            slots: list[AffectedSlot] = []

            for slot_id in sorted(day_cells, key=parse_period):
                entry = day_cells[slot_id]
                if not entry_owned_by(entry, faculty.id, faculty.name):
                    continue
                period = parse_period(slot_id)
                substitute = self._pick_substitute(faculty, absence_date, period, chosen[period], loads)
                co_teacher = co_teacher_of(entry, faculty.id)
                if substitute is None:
                    schedule[day][slot_id] = release_faculty(entry, faculty.id)
                else:
                    schedule[day][slot_id] = apply_substitution(
                        entry, substitute.id, substitute.name, replacing=faculty.id
                    )
                    chosen[period].add(substitute.id)
                    loads[substitute.id] += 1
                affected = AffectedSlot(
                    timetable_id=snapshot.id,
                    day=day,
                    slot_id=slot_id,
                    subject_name=entry.subject_name,
                    original_faculty_id=faculty.id,
                    original_faculty_name=faculty.name,
                    substitute_faculty_id=substitute.id if substitute else None,
                    substitute_faculty_name=substitute.name if substitute else None,
                    co_teacher_name=(co_teacher[1] or co_teacher[0]) if co_teacher and substitute is None else None,
                )
                slots.append(affected)
                changes.append(affected.describe())

            if not changes:
                continue

            published = self.timetables.publish_timetable(
                rearranged_copy(
                    snapshot,
                    schedule,
                    absence_date=absence_date,
                    faculty_id=faculty.id,
                    changes=changes,
                )
            )
            result.new_timetable_ids.append(published.id)
            result.updated_slots.extend(
                item.model_copy(update={"timetable_id": published.id}) for item in slots
            )
            logger.info(
                "Rearranged %s (%s) for %s absence on %s: %d changes",
                published.class_label,
                published.version_label,
                faculty.name,
                absence_date.isoformat(),
                len(changes),
            )

        if result.updated_slots:
            self._notify_absence(faculty, result)
        return result

    def _notify_absence(self, faculty: FacultyPayload, result: AbsenceResult) -> None:
        date_text = result.absence_date.isoformat()
        summary = "; ".join(item.describe() for item in result.updated_slots)
        for recipient_id in self._oversight_ids(faculty.department_id):
            self.notifications.notify(
                recipient_id,
                f"[ALERT] Rearrangement for {date_text} ({result.day_of_week}): "
                f"{len(result.updated_slots)} changes for {faculty.name}. {summary}",
                NotificationType.alert,
                self._link(),
                title="Timetable Rearranged",
                related_id=result.new_timetable_id,
            )
        for item in result.updated_slots:
            if item.substitute_faculty_id is None:
                continue
            self.notifications.notify(
                item.substitute_faculty_id,
                f"You are assigned to take {item.subject_name} at {item.slot_id} on {date_text} "
                f"({result.day_of_week}) for {faculty.name}.",
                NotificationType.info,
                self._link(),
                title="Substitution Assigned",
                related_id=item.timetable_id,
            )

    def handle_leave(self, faculty_id: str, start_date: date, end_date: date) -> list[AbsenceResult]:
        if end_date < start_date:
            raise InvalidRequestError(
                "Leave end date cannot be before start date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        faculty = self._get_faculty(faculty_id)
        results: list[AbsenceResult] = []
        current = start_date
        while current <= end_date:
            results.append(self.handle_full_day_absence(faculty.id, current))
            current += timedelta(days=1)

        changed = sum(len(item.updated_slots) for item in results)
        self.notifications.notify(
            faculty.id,
            f"Your leave from {start_date.isoformat()} to {end_date.isoformat()} has been recorded; "
            f"{changed} periods were rearranged.",
            NotificationType.success,
            self._link(),
            title="Leave Processed",
        )
        return results
