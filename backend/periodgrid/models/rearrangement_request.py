import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from periodgrid.db.base import Base
from periodgrid.schemas.rearrangement import RearrangementStatus


class RearrangementRequest(Base):
    __tablename__ = "rearrangement_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    absence_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    day_of_week: Mapped[str] = mapped_column(String(20), nullable=False)
    slot_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    period_label: Mapped[str] = mapped_column(String(20), nullable=False)
    department_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    requester_faculty_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requester_faculty_name: Mapped[str] = mapped_column(String(200), nullable=False)
    substitute_faculty_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    substitute_faculty_name: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(200), nullable=False)
    class_label: Mapped[str] = mapped_column(String(200), nullable=False)
    source_timetable_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    context_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[RearrangementStatus] = mapped_column(
        SAEnum(RearrangementStatus, name="rearrangement_status"),
        nullable=False,
        default=RearrangementStatus.pending,
        index=True,
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
