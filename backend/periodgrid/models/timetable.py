import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from periodgrid.db.base import Base


class Timetable(Base):
    """One published version of a section timetable. Rows are never edited after insert except is_live."""

    __tablename__ = "timetables"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    version_label: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    department_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    department_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section: Mapped[str] = mapped_column(String(50), nullable=False, default="A")
    schedule: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    summary: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_live: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    is_rearranged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rearranged_for_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    original_timetable_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    audit_trail: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
