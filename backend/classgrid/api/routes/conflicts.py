from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.schemas.timetable import ValidateGroupsRequest, ValidateSectionsRequest, ValidationReport
from classgrid.services.conflict_validation import check_groups, check_sections
from classgrid.services.scheduling_policy import get_active_policy

router = APIRouter()


@router.post("/validate", response_model=ValidationReport)
def validate_sections(payload: ValidateSectionsRequest, db: Session = Depends(get_db)) -> ValidationReport:
    policy = payload.policy or get_active_policy(db)
    return check_sections(payload.sections, policy)


@router.post("/validate-groups", response_model=ValidationReport)
def validate_group_sections(payload: ValidateGroupsRequest, db: Session = Depends(get_db)) -> ValidationReport:
    policy = payload.policy or get_active_policy(db)
    return check_groups(payload.groups, policy)
