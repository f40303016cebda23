import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from periodgrid.db.base import Base
from periodgrid.schemas.entities import RoomType


class Classroom(Base):
    __tablename__ = "classrooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_number: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    room_type: Mapped[RoomType] = mapped_column(
        SAEnum(RoomType, name="room_type"),
        nullable=False,
        default=RoomType.lecture,
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
