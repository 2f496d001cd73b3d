"""Schedule version lifecycle: draft -> generated -> approved.

Section lists are only ever replaced in full, and every write is preceded by
a validation of the complete candidate set. A rejected candidate leaves the
stored version untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.core.exceptions import InputError, ResourceNotFoundError, ScheduleStateError, ScheduleValidationError
from classgrid.models.schedule_version import ScheduleStatus, ScheduleVersion
from classgrid.schemas.generator import GenerateScheduleRequest, RecommenderConstraints
from classgrid.schemas.group import GroupSetting
from classgrid.schemas.policy import SchedulePolicy
from classgrid.schemas.schedule import GroupSchedule, GroupSectionsIn, ScheduleSectionsReplace, ScheduleVersionCreate
from classgrid.schemas.timetable import SectionRef, ValidationReport
from classgrid.services.conflict_validation import OccupiedSection, check_groups, parse_sections
from classgrid.services.group_allocation import group_sizes
from classgrid.services.group_settings import require_group_setting
from classgrid.services.recommender import RecommenderClient, fetch_candidate_sections

logger = logging.getLogger(__name__)


def compute_efficiency(total_sections: int, expected_sections: int | None) -> float:
    if total_sections <= 0:
        return 0.0
    expected = expected_sections or total_sections
    return float(min(100, round(total_sections / expected * 100)))


def parse_groups(groups: Mapping[str, GroupSectionsIn]) -> dict[str, GroupSchedule]:
    parsed: dict[str, GroupSchedule] = {}
    for name, group in groups.items():
        group_name = name.strip()
        if not group_name:
            raise InputError("Group names cannot be blank")
        parsed[group_name] = GroupSchedule(
            student_count=group.student_count,
            sections=parse_sections(group.sections, group_name),
        )
    return parsed


def stored_groups(version: ScheduleVersion) -> dict[str, GroupSchedule]:
    return {name: GroupSchedule.model_validate(data) for name, data in (version.groups or {}).items()}


def occupied_sections(db: Session, level: int, semester: str) -> list[OccupiedSection]:
    """Sections of other levels' live versions in ``semester``; rooms are shared across levels."""
    query = (
        select(ScheduleVersion)
        .where(
            ScheduleVersion.deleted_at.is_(None),
            ScheduleVersion.level != level,
            ScheduleVersion.semester == semester,
        )
        .order_by(ScheduleVersion.level.asc(), ScheduleVersion.created_at.asc())
    )
    occupied: list[OccupiedSection] = []
    for version in db.execute(query).scalars():
        for group_name, group in stored_groups(version).items():
            for index, section in enumerate(group.sections):
                ref = SectionRef(
                    index=index,
                    course_code=section.course_code,
                    section_label=section.section_label,
                    group_name=group_name,
                    version_id=version.id,
                    level=version.level,
                )
                occupied.append(OccupiedSection(ref, section))
    return occupied


def validate_candidate(
    groups: Mapping[str, GroupSchedule],
    policy: SchedulePolicy,
    occupied: Sequence[OccupiedSection] = (),
) -> ValidationReport:
    report = check_groups({name: group.sections for name, group in groups.items()}, policy, occupied)
    if not report.is_valid:
        logger.info("Rejected candidate schedule with %d violation(s)", len(report.violations))
        raise ScheduleValidationError(report.violations)
    return report


def _write_groups(
    version: ScheduleVersion,
    groups: Mapping[str, GroupSchedule],
    report: ValidationReport,
) -> None:
    version.groups = {name: group.model_dump(mode="json") for name, group in groups.items()}
    version.total_sections = sum(len(group.sections) for group in groups.values())
    version.conflicts = len(report.violations)
    version.capacity_warnings = len(report.capacity_warnings)
    version.efficiency = compute_efficiency(version.total_sections, version.expected_sections)


def _default_label(level: int, semester: str, kind: str) -> str:
    return f"{semester} Level {level} {kind} {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M')}"


def get_version(db: Session, version_id: str) -> ScheduleVersion:
    version = db.get(ScheduleVersion, version_id)
    if version is None or version.deleted_at is not None:
        raise ResourceNotFoundError("Schedule version", version_id)
    return version


def list_versions(db: Session, level: int | None = None, semester: str | None = None) -> list[ScheduleVersion]:
    query = (
        select(ScheduleVersion)
        .where(ScheduleVersion.deleted_at.is_(None))
        .order_by(ScheduleVersion.created_at.desc(), ScheduleVersion.id.asc())
    )
    if level is not None:
        query = query.where(ScheduleVersion.level == level)
    if semester is not None:
        query = query.where(ScheduleVersion.semester == semester)
    return list(db.execute(query).scalars())


def create_manual_version(db: Session, payload: ScheduleVersionCreate, policy: SchedulePolicy) -> ScheduleVersion:
    groups = parse_groups(payload.groups)
    report = validate_candidate(groups, policy, occupied_sections(db, payload.level, payload.semester))

    version = ScheduleVersion(
        level=payload.level,
        semester=payload.semester,
        label=payload.label or _default_label(payload.level, payload.semester, "Draft"),
        status=ScheduleStatus.draft,
    )
    _write_groups(version, groups, report)
    db.add(version)
    db.flush()
    logger.info("Created draft schedule %s with %d section(s)", version.id, version.total_sections)
    return version


def generate_version(
    db: Session,
    request: GenerateScheduleRequest,
    policy: SchedulePolicy,
    client: RecommenderClient,
) -> ScheduleVersion:
    """Ask the recommender for each group's sections and commit them if they validate.

    A recommender outage yields an empty group rather than an error; the
    resulting version simply has no sections for that group.
    """
    record = require_group_setting(db, request.level, request.semester)
    setting = GroupSetting.model_validate(record)
    sizes = group_sizes(setting.total_students, setting.num_groups)

    groups: dict[str, GroupSchedule] = {}
    for group_name, student_count in zip(setting.group_names, sizes):
        constraints = RecommenderConstraints(
            students_per_course={code: student_count for code in request.courses},
            blocked_slots=policy.blackout_windows,
            available_rooms=request.available_rooms,
            rules=request.rules,
            objective_priorities=request.objective_priorities,
        )
        groups[group_name] = GroupSchedule(
            student_count=student_count,
            sections=fetch_candidate_sections(
                client,
                constraints,
                level=request.level,
                group_name=group_name,
                section_capacity=request.section_capacity,
            ),
        )

    report = validate_candidate(groups, policy, occupied_sections(db, request.level, request.semester))
    now = datetime.now(timezone.utc)
    version = ScheduleVersion(
        level=request.level,
        semester=request.semester,
        label=request.label or _default_label(request.level, request.semester, "Generated"),
        status=ScheduleStatus.generated,
        expected_sections=len(request.courses) * setting.num_groups,
        generated_at=now,
    )
    _write_groups(version, groups, report)
    db.add(version)
    db.flush()
    if version.total_sections == 0:
        logger.warning("Generated schedule %s has no sections", version.id)
    logger.info(
        "Generated schedule %s: %d section(s) across %d group(s), efficiency %.0f%%",
        version.id,
        version.total_sections,
        len(groups),
        version.efficiency,
    )
    return version


def replace_sections(
    db: Session,
    version_id: str,
    payload: ScheduleSectionsReplace,
    policy: SchedulePolicy,
) -> ScheduleVersion:
    version = get_version(db, version_id)
    groups = parse_groups(payload.groups)
    report = validate_candidate(groups, policy, occupied_sections(db, version.level, version.semester))

    _write_groups(version, groups, report)
    # Any edit invalidates a previous approval.
    version.status = ScheduleStatus.draft
    version.approved_at = None
    db.flush()
    logger.info("Replaced sections of schedule %s (%d section(s))", version.id, version.total_sections)
    return version


def submit_version(db: Session, version_id: str, policy: SchedulePolicy) -> ScheduleVersion:
    version = get_version(db, version_id)
    if version.status == ScheduleStatus.approved:
        raise ScheduleStateError("Schedule is already approved", details={"status": version.status.value})

    groups = stored_groups(version)
    report = validate_candidate(groups, policy, occupied_sections(db, version.level, version.semester))
    _write_groups(version, groups, report)
    version.status = ScheduleStatus.generated
    version.generated_at = datetime.now(timezone.utc)
    db.flush()
    return version


def approve_version(db: Session, version_id: str) -> ScheduleVersion:
    version = get_version(db, version_id)
    if version.status != ScheduleStatus.generated:
        raise ScheduleStateError(
            "Only generated schedules can be approved",
            details={"status": version.status.value},
        )
    if version.conflicts != 0:
        raise ScheduleStateError("Schedules with conflicts cannot be approved", details={"conflicts": version.conflicts})
    version.status = ScheduleStatus.approved
    version.approved_at = datetime.now(timezone.utc)
    db.flush()
    logger.info("Approved schedule %s", version.id)
    return version


def delete_version(db: Session, version_id: str) -> None:
    version = get_version(db, version_id)
    version.deleted_at = datetime.now(timezone.utc)
    db.flush()
    logger.info("Deleted schedule %s", version.id)
