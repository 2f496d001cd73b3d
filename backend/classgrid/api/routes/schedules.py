from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db, get_recommender
from classgrid.schemas.generator import GenerateScheduleRequest
from classgrid.schemas.schedule import (
    ScheduleSectionsReplace,
    ScheduleVersionCreate,
    ScheduleVersionOut,
    ScheduleVersionSummary,
)
from classgrid.services import schedule_versions
from classgrid.services.recommender import RecommenderClient
from classgrid.services.scheduling_policy import get_active_policy

router = APIRouter()


@router.get("/schedules", response_model=list[ScheduleVersionSummary])
def list_schedules(
    level: int | None = None,
    semester: str | None = None,
    db: Session = Depends(get_db),
) -> list[ScheduleVersionSummary]:
    return schedule_versions.list_versions(db, level, semester)


@router.get("/schedules/{version_id}", response_model=ScheduleVersionOut)
def get_schedule(version_id: str, db: Session = Depends(get_db)) -> ScheduleVersionOut:
    return schedule_versions.get_version(db, version_id)


@router.post("/schedules", response_model=ScheduleVersionOut, status_code=status.HTTP_201_CREATED)
def create_schedule(payload: ScheduleVersionCreate, db: Session = Depends(get_db)) -> ScheduleVersionOut:
    version = schedule_versions.create_manual_version(db, payload, get_active_policy(db))
    db.commit()
    db.refresh(version)
    return version


@router.post("/schedules/generate", response_model=ScheduleVersionOut, status_code=status.HTTP_201_CREATED)
def generate_schedule(
    payload: GenerateScheduleRequest,
    db: Session = Depends(get_db),
    recommender: RecommenderClient = Depends(get_recommender),
) -> ScheduleVersionOut:
    version = schedule_versions.generate_version(db, payload, get_active_policy(db), recommender)
    db.commit()
    db.refresh(version)
    return version


@router.put("/schedules/{version_id}/sections", response_model=ScheduleVersionOut)
def replace_schedule_sections(
    version_id: str,
    payload: ScheduleSectionsReplace,
    db: Session = Depends(get_db),
) -> ScheduleVersionOut:
    version = schedule_versions.replace_sections(db, version_id, payload, get_active_policy(db))
    db.commit()
    db.refresh(version)
    return version


@router.post("/schedules/{version_id}/submit", response_model=ScheduleVersionOut)
def submit_schedule(version_id: str, db: Session = Depends(get_db)) -> ScheduleVersionOut:
    version = schedule_versions.submit_version(db, version_id, get_active_policy(db))
    db.commit()
    db.refresh(version)
    return version


@router.post("/schedules/{version_id}/approve", response_model=ScheduleVersionOut)
def approve_schedule(version_id: str, db: Session = Depends(get_db)) -> ScheduleVersionOut:
    version = schedule_versions.approve_version(db, version_id)
    db.commit()
    db.refresh(version)
    return version


@router.delete("/schedules/{version_id}")
def delete_schedule(version_id: str, db: Session = Depends(get_db)) -> dict:
    schedule_versions.delete_version(db, version_id)
    db.commit()
    return {"success": True}
