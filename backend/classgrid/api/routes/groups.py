from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.schemas.group import CalculateGroupsRequest, GroupAssignmentOut, GroupMembers, GroupSettingOut
from classgrid.services.group_settings import (
    allocate_groups,
    assign_students_to_groups,
    calculate_group_setting,
    group_distribution,
    list_group_settings,
    require_group_setting,
)

router = APIRouter()


@router.get("/groups", response_model=list[GroupSettingOut])
def list_settings(semester: str | None = None, db: Session = Depends(get_db)) -> list[GroupSettingOut]:
    return list_group_settings(db, semester)


@router.get("/groups/distribution/{level}", response_model=dict[str, GroupMembers])
def get_distribution(level: int, db: Session = Depends(get_db)) -> dict[str, GroupMembers]:
    return group_distribution(db, level)


@router.get("/groups/{level}/{semester}", response_model=GroupSettingOut)
def get_setting(level: int, semester: str, db: Session = Depends(get_db)) -> GroupSettingOut:
    return require_group_setting(db, level, semester)


@router.post("/groups/{level}/{semester}/calculate", response_model=GroupSettingOut)
def calculate_setting(
    level: int,
    semester: str,
    payload: CalculateGroupsRequest | None = None,
    db: Session = Depends(get_db),
) -> GroupSettingOut:
    students_per_group = payload.students_per_group if payload is not None else None
    record = calculate_group_setting(db, level, semester, students_per_group)
    db.commit()
    db.refresh(record)
    return record


@router.post("/groups/{level}/{semester}/assign", response_model=GroupAssignmentOut)
def assign_groups(level: int, semester: str, db: Session = Depends(get_db)) -> GroupAssignmentOut:
    result = assign_students_to_groups(db, level, semester)
    db.commit()
    return result


@router.post("/groups/{level}/{semester}/allocate", response_model=GroupAssignmentOut)
def allocate(
    level: int,
    semester: str,
    payload: CalculateGroupsRequest | None = None,
    db: Session = Depends(get_db),
) -> GroupAssignmentOut:
    students_per_group = payload.students_per_group if payload is not None else None
    result = allocate_groups(db, level, semester, students_per_group)
    db.commit()
    return result
