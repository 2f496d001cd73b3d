from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class StudentCreate(BaseModel):
    student_number: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    level: int = Field(ge=1, le=10)
    is_irregular: bool = False

    @field_validator("student_number", "full_name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Value cannot be blank")
        return cleaned


class StudentOut(BaseModel):
    id: str
    student_number: str
    full_name: str
    level: int
    is_irregular: bool
    group_name: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
