from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from classgrid.schemas.policy import SchedulePolicy, TimeWindow


class Section(BaseModel):
    """One scheduled meeting of one course."""

    model_config = ConfigDict(frozen=True)

    course_code: StrictStr = Field(min_length=1, max_length=50)
    section_label: StrictStr = Field(min_length=1, max_length=20)
    window: TimeWindow
    room: StrictStr = Field(min_length=1, max_length=100)
    student_count: StrictInt = Field(ge=0)
    capacity: StrictInt = Field(ge=0)
    instructor_id: StrictStr | None = None

    @field_validator("course_code", "section_label", "room")
    @classmethod
    def strip_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Value cannot be blank")
        return cleaned

    @property
    def over_capacity(self) -> bool:
        return self.student_count > self.capacity


class SectionRef(BaseModel):
    index: int
    course_code: str
    section_label: str
    group_name: str | None = None
    # Set only for sections already stored in another level's schedule version.
    version_id: str | None = None
    level: int | None = None


class _ViolationBase(BaseModel):
    message: str
    offending_section_refs: list[SectionRef]


class RoomConflict(_ViolationBase):
    kind: Literal["room_conflict"] = "room_conflict"
    room: str
    day: str


class GroupTimeOverlap(_ViolationBase):
    kind: Literal["group_time_overlap"] = "group_time_overlap"
    group_name: str | None = None
    day: str
    course_codes: list[str]


class BlackoutOverlap(_ViolationBase):
    kind: Literal["blackout_overlap"] = "blackout_overlap"
    blackout_window: TimeWindow


class DuplicateCourse(_ViolationBase):
    kind: Literal["duplicate_course"] = "duplicate_course"
    course_code: str


class RangePolicyViolation(_ViolationBase):
    kind: Literal["range_policy"] = "range_policy"
    reason: Literal["day_not_allowed", "outside_time_range"]


Violation = Annotated[
    RoomConflict | GroupTimeOverlap | BlackoutOverlap | DuplicateCourse | RangePolicyViolation,
    Field(discriminator="kind"),
]


class CapacityWarning(BaseModel):
    section: SectionRef
    student_count: int
    capacity: int


class ValidationReport(BaseModel):
    is_valid: bool
    violations: list[Violation]
    capacity_warnings: list[CapacityWarning]


class ValidateSectionsRequest(BaseModel):
    sections: list[dict] = Field(default_factory=list, max_length=2000)
    policy: SchedulePolicy | None = None


class ValidateGroupsRequest(BaseModel):
    groups: dict[str, list[dict]] = Field(default_factory=dict)
    policy: SchedulePolicy | None = None
