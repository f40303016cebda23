import pytest

from periodgrid.core.exceptions import ResourceNotFoundError
from periodgrid.models.user import UserRole
from periodgrid.schemas.rearrangement import NotificationType
from periodgrid.services.notifications import (
    create_notification,
    list_notifications,
    mark_read,
    notify_roles,
    role_user_ids,
)


def test_create_and_list_notifications(db):
    first = create_notification(db, recipient_id="f1", title="First", message="one")
    create_notification(db, recipient_id="f1", title="Second", message="two", notification_type=NotificationType.alert)
    create_notification(db, recipient_id="f2", title="Other", message="three")

    items = list_notifications(db, recipient_id="f1")

    assert {item.title for item in items} == {"First", "Second"}
    assert first.notification_type == NotificationType.info
    assert not first.is_read


def test_mark_read_filters_unread(db):
    first = create_notification(db, recipient_id="f1", title="First", message="one")
    create_notification(db, recipient_id="f1", title="Second", message="two")

    mark_read(db, notification_id=first.id)

    assert [item.title for item in list_notifications(db, recipient_id="f1", unread_only=True)] == ["Second"]
    with pytest.raises(ResourceNotFoundError):
        mark_read(db, notification_id="missing")


def test_notify_roles_scopes_by_department(db, user_factory):
    admin = user_factory("Admin One", UserRole.admin)
    hod = user_factory("Cse Hod", UserRole.hod, "dept-cse")
    ece_hod = user_factory("Ece Hod", UserRole.hod, "dept-ece")
    user_factory("Plain Faculty", UserRole.faculty, "dept-cse")

    sent = notify_roles(
        db,
        roles=[UserRole.hod],
        title="Timetable Published",
        message="v2 is live",
        department_id="dept-cse",
    )
    broadcast = notify_roles(
        db,
        roles=[UserRole.admin, UserRole.hod],
        title="Maintenance",
        message="tonight",
        exclude_user_id=ece_hod.id,
    )

    assert [item.recipient_id for item in sent] == [hod.id]
    assert {item.recipient_id for item in broadcast} == {admin.id, hod.id}


def test_role_user_ids_skips_inactive_users(db, user_factory):
    active = user_factory("Admin One", UserRole.admin)
    inactive = user_factory("Admin Two", UserRole.admin)
    inactive.is_active = False
    db.flush()

    assert role_user_ids(db, role="ADMIN") == [active.id]


def test_store_notify_defaults_title_to_type(db, store):
    store.notify("f1", "Periods moved", NotificationType.alert, "/faculty/rearrangements")

    (item,) = list_notifications(db, recipient_id="f1")
    assert item.title == "Alert"
    assert item.link == "/faculty/rearrangements"
