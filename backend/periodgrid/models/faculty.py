import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from periodgrid.db.base import Base


class Faculty(Base):
    __tablename__ = "faculty"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    designation: Mapped[str] = mapped_column(String(200), nullable=False, default="Faculty")
    department_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    max_classes_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    max_classes_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=18)
    # {"Monday": {"3": false}}; missing keys mean available
    availability: Mapped[dict[str, dict[str, bool]]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
