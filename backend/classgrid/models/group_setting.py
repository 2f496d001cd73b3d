import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from classgrid.db.base import Base


class GroupSettingRecord(Base):
    __tablename__ = "group_settings"
    __table_args__ = (UniqueConstraint("level", "semester", name="uq_group_settings_level_semester"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    semester: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    total_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    students_per_group: Mapped[int] = mapped_column(Integer, nullable=False)
    num_groups: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    group_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
