from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.models.student import Student
from classgrid.schemas.student import StudentCreate, StudentOut

router = APIRouter()


@router.get("/students", response_model=list[StudentOut])
def list_students(level: int | None = None, db: Session = Depends(get_db)) -> list[StudentOut]:
    query = select(Student).order_by(Student.level.asc(), Student.student_number.asc())
    if level is not None:
        query = query.where(Student.level == level)
    return list(db.execute(query).scalars())


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)) -> StudentOut:
    existing = db.execute(
        select(Student).where(Student.student_number == payload.student_number)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student number already exists")
    # Group membership is owned by the allocation endpoints, never set on create.
    student = Student(**payload.model_dump(), group_name=None)
    db.add(student)
    db.commit()
    db.refresh(student)
    return student
