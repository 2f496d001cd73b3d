from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from classgrid.schemas.policy import TimeWindow

DEFAULT_RULES = [
    "Each section should have 20-25 students maximum",
    "No classes during blocked slots",
    "No duplicate courses in the same group schedule",
    "A room holds one section at a time",
]


class ObjectivePriorities(BaseModel):
    minimize_conflicts: bool = True
    minimize_gaps: bool = True
    balance_instructor_loads: bool = True


class RecommenderConstraints(BaseModel):
    students_per_course: dict[str, int]
    blocked_slots: list[TimeWindow] = Field(default_factory=list)
    available_rooms: list[str]
    rules: list[str] = Field(default_factory=lambda: list(DEFAULT_RULES))
    objective_priorities: ObjectivePriorities = Field(default_factory=ObjectivePriorities)


class RecommendedTimeslot(BaseModel):
    day: StrictStr
    start: StrictStr
    end: StrictStr


class Recommendation(BaseModel):
    """One entry of the recommender's output.

    ``justification`` and ``confidence_score`` are ignored along with any other
    extra keys.
    """

    model_config = ConfigDict(extra="ignore")

    course_code: StrictStr
    section_label: StrictStr
    timeslot: RecommendedTimeslot
    room: StrictStr
    allocated_student_ids: list[StrictStr]


class GenerateScheduleRequest(BaseModel):
    level: int = Field(ge=1, le=10)
    semester: str = Field(min_length=1, max_length=50)
    courses: list[str] = Field(min_length=1, max_length=200)
    available_rooms: list[str] = Field(min_length=1, max_length=500)
    section_capacity: int = Field(default=30, ge=1, le=1000)
    rules: list[str] = Field(default_factory=lambda: list(DEFAULT_RULES), max_length=50)
    objective_priorities: ObjectivePriorities = Field(default_factory=ObjectivePriorities)
    label: str | None = Field(default=None, max_length=200)

    @field_validator("courses", "available_rooms")
    @classmethod
    def dedupe_codes(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            code = item.strip()
            if code and code not in cleaned:
                cleaned.append(code)
        if not cleaned:
            raise ValueError("At least one non-blank value is required")
        return cleaned
