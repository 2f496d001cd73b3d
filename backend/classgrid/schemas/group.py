from __future__ import annotations

import math
from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class GroupSetting(BaseModel):
    level: int
    semester: str
    total_students: int = Field(ge=0)
    students_per_group: int = Field(gt=0)
    num_groups: int = Field(ge=1)
    group_names: list[str]

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def validate_group_count(self) -> "GroupSetting":
        expected = max(1, math.ceil(self.total_students / self.students_per_group))
        if self.num_groups != expected:
            raise ValueError(f"num_groups must be {expected} for {self.total_students} students")
        if len(self.group_names) != self.num_groups:
            raise ValueError("group_names must have one name per group")
        return self


class GroupSettingOut(GroupSetting):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CalculateGroupsRequest(BaseModel):
    students_per_group: int | None = None


class GroupMembers(BaseModel):
    count: int
    students: list[str]


class GroupAssignmentOut(BaseModel):
    setting: GroupSetting
    assignments: dict[str, str]
    group_sizes: dict[str, int]
    irregular_excluded: int
