from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from classgrid.models.schedule_version import ScheduleStatus
from classgrid.schemas.timetable import Section


class GroupSectionsIn(BaseModel):
    student_count: int = Field(default=0, ge=0)
    # Parsed strictly by the conflict validator so malformed entries surface as InputError.
    sections: list[dict] = Field(default_factory=list, max_length=500)


class GroupSchedule(BaseModel):
    student_count: int = 0
    sections: list[Section] = Field(default_factory=list)


class ScheduleVersionCreate(BaseModel):
    level: int = Field(ge=1, le=10)
    semester: str = Field(min_length=1, max_length=50)
    label: str | None = Field(default=None, max_length=200)
    groups: dict[str, GroupSectionsIn] = Field(min_length=1)


class ScheduleSectionsReplace(BaseModel):
    groups: dict[str, GroupSectionsIn] = Field(min_length=1)


class ScheduleVersionOut(BaseModel):
    id: str
    level: int
    semester: str
    label: str
    groups: dict[str, GroupSchedule]
    total_sections: int
    conflicts: int
    capacity_warnings: int
    efficiency: float
    status: ScheduleStatus
    generated_at: datetime | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ScheduleVersionSummary(BaseModel):
    id: str
    level: int
    semester: str
    label: str
    total_sections: int
    conflicts: int
    efficiency: float
    status: ScheduleStatus
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
