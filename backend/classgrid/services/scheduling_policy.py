from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.models.scheduling_policy import SchedulingPolicyRecord
from classgrid.schemas.policy import DEFAULT_SCHEDULE_POLICY, SchedulePolicy

logger = logging.getLogger(__name__)


def get_policy_record(db: Session) -> SchedulingPolicyRecord | None:
    return db.execute(select(SchedulingPolicyRecord).where(SchedulingPolicyRecord.id == 1)).scalar_one_or_none()


def get_active_policy(db: Session) -> SchedulePolicy:
    record = get_policy_record(db)
    if record is None:
        return DEFAULT_SCHEDULE_POLICY
    return SchedulePolicy.model_validate(record.payload)


def save_policy(db: Session, policy: SchedulePolicy) -> SchedulePolicy:
    payload = policy.model_dump(mode="json")
    record = get_policy_record(db)
    if record is None:
        db.add(SchedulingPolicyRecord(id=1, payload=payload))
    else:
        record.payload = payload
    logger.info(
        "Scheduling policy replaced: %d blackout window(s), allowed_days=%s",
        len(policy.blackout_windows),
        payload["allowed_days"],
    )
    return policy
