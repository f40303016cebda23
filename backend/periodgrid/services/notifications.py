from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from periodgrid.core.exceptions import ResourceNotFoundError
from periodgrid.models.notification import Notification
from periodgrid.models.user import User, UserRole
from periodgrid.schemas.rearrangement import NotificationType

logger = logging.getLogger(__name__)

NOTIFICATION_PAGE_SIZE = 20


def create_notification(
    db: Session,
    *,
    recipient_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.info,
    link: str | None = None,
    related_id: str | None = None,
) -> Notification:
    record = Notification(
        recipient_id=recipient_id,
        title=title,
        message=message,
        notification_type=notification_type,
        link=link,
        related_id=related_id,
    )
    db.add(record)
    db.flush()
    logger.debug("Queued %s notification %r for %s", notification_type.value, title, recipient_id)
    return record


def role_user_ids(db: Session, *, role: UserRole | str, department_id: str | None = None) -> list[str]:
    role = role if isinstance(role, UserRole) else UserRole(str(role).strip().lower())
    query = select(User.id).where(User.role == role, User.is_active.is_(True))
    if department_id is not None:
        query = query.where(User.department_id == department_id)
    return list(db.execute(query.order_by(User.created_at, User.id)).scalars())


def notify_roles(
    db: Session,
    *,
    roles: list[UserRole] | set[UserRole] | tuple[UserRole, ...],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.info,
    department_id: str | None = None,
    link: str | None = None,
    exclude_user_id: str | None = None,
) -> list[Notification]:
    recipients: list[str] = []
    for role in roles:
        recipients.extend(role_user_ids(db, role=role, department_id=department_id))
    results: list[Notification] = []
    for recipient_id in dict.fromkeys(recipients):
        if exclude_user_id and recipient_id == exclude_user_id:
            continue
        results.append(
            create_notification(
                db,
                recipient_id=recipient_id,
                title=title,
                message=message,
                notification_type=notification_type,
                link=link,
            )
        )
    return results


def list_notifications(
    db: Session,
    *,
    recipient_id: str,
    unread_only: bool = False,
    limit: int = NOTIFICATION_PAGE_SIZE,
) -> list[Notification]:
    query = select(Notification).where(Notification.recipient_id == recipient_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id).limit(limit)
    return list(db.execute(query).scalars())


def mark_read(db: Session, *, notification_id: str) -> Notification:
    record = db.get(Notification, notification_id)
    if record is None:
        raise ResourceNotFoundError("Notification", notification_id)
    record.is_read = True
    db.flush()
    return record
