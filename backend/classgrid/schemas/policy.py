from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Day(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


DAY_ALIASES: dict[str, Day] = {
    **{day.value.lower(): day for day in Day},
    **{day.value[:3].lower(): day for day in Day},
}

WEEKDAYS: tuple[Day, ...] = (Day.monday, Day.tuesday, Day.wednesday, Day.thursday, Day.friday)


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def normalize_day(value: object) -> object:
    if isinstance(value, str):
        day = DAY_ALIASES.get(value.strip().lower())
        if day is None:
            raise ValueError(f"Invalid day value: {value!r}")
        return day
    return value


class TimeRange(BaseModel):
    """A half-open ``[start, end)`` interval within a single day."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_time(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            if not TIME_PATTERN.match(value):
                raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "TimeRange":
        if self.end_minutes <= self.start_minutes:
            raise ValueError("end must be after start")
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)

    def contains(self, other: TimeRange) -> bool:
        return self.start_minutes <= other.start_minutes and other.end_minutes <= self.end_minutes


class TimeWindow(TimeRange):
    day: Day

    @field_validator("day", mode="before")
    @classmethod
    def validate_day(cls, value: object) -> object:
        return normalize_day(value)

    def overlaps(self, other: TimeWindow) -> bool:
        # Half-open: touching windows (one ends exactly when the other starts) do not overlap.
        if self.day != other.day:
            return False
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def describe(self) -> str:
        return f"{self.day.value} {self.start}-{self.end}"


class SchedulePolicy(BaseModel):
    blackout_windows: list[TimeWindow] = Field(default_factory=list, max_length=100)
    allowed_days: list[Day] | None = None
    allowed_time_range: TimeRange | None = None
    unique_course_per_version: bool = True

    @field_validator("allowed_days", mode="before")
    @classmethod
    def normalize_allowed_days(cls, value: object) -> object:
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("allowed_days must be a list of days")
        days: list[object] = []
        for item in value:
            day = normalize_day(item)
            if day not in days:
                days.append(day)
        if not days:
            raise ValueError("allowed_days cannot be empty; omit it to allow every day")
        return days


MIDDAY_BREAK = TimeRange(start="12:00", end="13:00")

DEFAULT_SCHEDULE_POLICY = SchedulePolicy(
    blackout_windows=[
        TimeWindow(day=day, start=MIDDAY_BREAK.start, end=MIDDAY_BREAK.end) for day in WEEKDAYS
    ],
    unique_course_per_version=True,
)
