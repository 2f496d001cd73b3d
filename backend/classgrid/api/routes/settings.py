from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.schemas.policy import SchedulePolicy
from classgrid.services.scheduling_policy import get_active_policy, save_policy

router = APIRouter()


@router.get("/settings/schedule-policy", response_model=SchedulePolicy)
def get_schedule_policy(db: Session = Depends(get_db)) -> SchedulePolicy:
    return get_active_policy(db)


@router.put("/settings/schedule-policy", response_model=SchedulePolicy)
def update_schedule_policy(payload: SchedulePolicy, db: Session = Depends(get_db)) -> SchedulePolicy:
    policy = save_policy(db, payload)
    db.commit()
    return policy
