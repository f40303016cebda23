"""create timetables, rearrangement requests and notifications

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


rearrangement_status_enum = sa.Enum("pending", "accepted", "rejected", name="rearrangement_status")
notification_type_enum = sa.Enum("request", "response", "info", "alert", "success", name="notification_type")


def upgrade() -> None:
    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("version_label", sa.String(length=100), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("department_name", sa.String(length=200), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=False, server_default="A"),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=False),
        sa.Column("is_live", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_rearranged", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("rearranged_for_date", sa.Date(), nullable=True),
        sa.Column("original_timetable_id", sa.String(length=36), nullable=True),
        sa.Column("audit_trail", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timetables_version_label", "timetables", ["version_label"])
    op.create_index("ix_timetables_department_id", "timetables", ["department_id"])
    op.create_index("ix_timetables_is_live", "timetables", ["is_live"])

    op.create_table(
        "rearrangement_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("absence_date", sa.Date(), nullable=False),
        sa.Column("day_of_week", sa.String(length=20), nullable=False),
        sa.Column("slot_id", sa.String(length=20), nullable=False),
        sa.Column("period_label", sa.String(length=20), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("requester_faculty_id", sa.String(length=36), nullable=False),
        sa.Column("requester_faculty_name", sa.String(length=200), nullable=False),
        sa.Column("substitute_faculty_id", sa.String(length=36), nullable=False),
        sa.Column("substitute_faculty_name", sa.String(length=200), nullable=False),
        sa.Column("subject_name", sa.String(length=200), nullable=False),
        sa.Column("class_label", sa.String(length=200), nullable=False),
        sa.Column("source_timetable_id", sa.String(length=36), nullable=True),
        sa.Column("context_resolved", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("status", rearrangement_status_enum, nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rearrangement_requests_absence_date", "rearrangement_requests", ["absence_date"])
    op.create_index("ix_rearrangement_requests_slot_id", "rearrangement_requests", ["slot_id"])
    op.create_index("ix_rearrangement_requests_department_id", "rearrangement_requests", ["department_id"])
    op.create_index(
        "ix_rearrangement_requests_requester_faculty_id", "rearrangement_requests", ["requester_faculty_id"]
    )
    op.create_index(
        "ix_rearrangement_requests_substitute_faculty_id", "rearrangement_requests", ["substitute_faculty_id"]
    )
    op.create_index("ix_rearrangement_requests_status", "rearrangement_requests", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type_enum, nullable=False),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column("related_id", sa.String(length=36), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")
    for index_name in (
        "ix_rearrangement_requests_status",
        "ix_rearrangement_requests_substitute_faculty_id",
        "ix_rearrangement_requests_requester_faculty_id",
        "ix_rearrangement_requests_department_id",
        "ix_rearrangement_requests_slot_id",
        "ix_rearrangement_requests_absence_date",
    ):
        op.drop_index(index_name, table_name="rearrangement_requests")
    op.drop_table("rearrangement_requests")
    op.drop_index("ix_timetables_is_live", table_name="timetables")
    op.drop_index("ix_timetables_department_id", table_name="timetables")
    op.drop_index("ix_timetables_version_label", table_name="timetables")
    op.drop_table("timetables")
    bind = op.get_bind()
    notification_type_enum.drop(bind, checkfirst=True)
    rearrangement_status_enum.drop(bind, checkfirst=True)
