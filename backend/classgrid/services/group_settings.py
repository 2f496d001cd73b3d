from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from classgrid.core.config import get_settings
from classgrid.core.exceptions import ResourceNotFoundError
from classgrid.models.group_setting import GroupSettingRecord
from classgrid.models.student import Student
from classgrid.schemas.group import GroupAssignmentOut, GroupMembers, GroupSetting
from classgrid.services.group_allocation import assign, calculate, group_sizes

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


def regular_students(db: Session, level: int) -> list[Student]:
    return list(
        db.execute(
            select(Student)
            .where(Student.level == level, Student.is_irregular.is_(False))
            .order_by(Student.student_number.asc())
        ).scalars()
    )


def get_group_setting(db: Session, level: int, semester: str) -> GroupSettingRecord | None:
    return db.execute(
        select(GroupSettingRecord).where(GroupSettingRecord.level == level, GroupSettingRecord.semester == semester)
    ).scalar_one_or_none()


def require_group_setting(db: Session, level: int, semester: str) -> GroupSettingRecord:
    record = get_group_setting(db, level, semester)
    if record is None:
        raise ResourceNotFoundError("Group settings", f"level {level} / {semester}")
    return record


def list_group_settings(db: Session, semester: str | None = None) -> list[GroupSettingRecord]:
    query = select(GroupSettingRecord).order_by(GroupSettingRecord.level.asc(), GroupSettingRecord.semester.asc())
    if semester is not None:
        query = query.where(GroupSettingRecord.semester == semester)
    return list(db.execute(query).scalars())


def calculate_group_setting(
    db: Session,
    level: int,
    semester: str,
    students_per_group: int | None = None,
) -> GroupSettingRecord:
    """Recompute the setting for ``(level, semester)`` from the current regular student count.

    The stored record is overwritten in full; nothing from the previous
    calculation is carried over.
    """
    record = get_group_setting(db, level, semester)
    if students_per_group is None:
        students_per_group = record.students_per_group if record is not None else get_settings().default_students_per_group

    total_students = len(regular_students(db, level))
    setting = calculate(total_students, students_per_group, level=level, semester=semester)

    if record is None:
        record = GroupSettingRecord(level=level, semester=semester)
        db.add(record)
    record.total_students = setting.total_students
    record.students_per_group = setting.students_per_group
    record.num_groups = setting.num_groups
    record.group_names = list(setting.group_names)
    db.flush()
    logger.info(
        "Group settings for level %s %s: %d student(s), %d per group -> %d group(s)",
        level,
        semester,
        setting.total_students,
        setting.students_per_group,
        setting.num_groups,
    )
    return record


def assign_students_to_groups(db: Session, level: int, semester: str) -> GroupAssignmentOut:
    record = require_group_setting(db, level, semester)
    setting = GroupSetting.model_validate(record)
    students = regular_students(db, level)
    mapping = assign([student.id for student in students], setting)

    # Supersede any previous assignment for the level, irregular students included.
    db.execute(update(Student).where(Student.level == level).values(group_name=None))
    for student in students:
        student.group_name = mapping[student.id]
    db.flush()

    irregular_count = len(
        db.execute(select(Student.id).where(Student.level == level, Student.is_irregular.is_(True))).all()
    )
    sizes = dict(zip(setting.group_names, group_sizes(len(students), setting.num_groups)))
    logger.info("Assigned %d student(s) of level %s to groups %s", len(mapping), level, sizes)
    return GroupAssignmentOut(
        setting=setting,
        assignments=mapping,
        group_sizes=sizes,
        irregular_excluded=irregular_count,
    )


def allocate_groups(
    db: Session,
    level: int,
    semester: str,
    students_per_group: int | None = None,
) -> GroupAssignmentOut:
    calculate_group_setting(db, level, semester, students_per_group)
    return assign_students_to_groups(db, level, semester)


def group_distribution(db: Session, level: int) -> dict[str, GroupMembers]:
    students = db.execute(
        select(Student)
        .where(Student.level == level, Student.is_irregular.is_(False))
        .order_by(Student.group_name.asc(), Student.student_number.asc())
    ).scalars()
    distribution: dict[str, GroupMembers] = {}
    for student in students:
        group = student.group_name or UNASSIGNED
        members = distribution.setdefault(group, GroupMembers(count=0, students=[]))
        members.count += 1
        members.students.append(student.full_name)
    return distribution
