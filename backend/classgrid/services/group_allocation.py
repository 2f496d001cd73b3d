from __future__ import annotations

import logging
import math
import string
from collections.abc import Sequence

from classgrid.core.exceptions import InputError
from classgrid.schemas.group import GroupSetting

logger = logging.getLogger(__name__)

LETTERS = string.ascii_uppercase


def generate_group_names(count: int) -> list[str]:
    """Group names ``A``..``Z`` followed by ``AA``, ``AB``, ... ``AZ``, ``BA``, ..."""
    names: list[str] = []
    for index in range(count):
        if index < len(LETTERS):
            names.append(LETTERS[index])
            continue
        offset = index - len(LETTERS)
        first, second = divmod(offset, len(LETTERS))
        if first >= len(LETTERS):
            raise InputError(f"Cannot name more than {len(LETTERS) * (len(LETTERS) + 1)} groups")
        names.append(LETTERS[first] + LETTERS[second])
    return names


def calculate(
    total_students: int,
    students_per_group: int,
    *,
    level: int = 0,
    semester: str = "",
) -> GroupSetting:
    if students_per_group <= 0:
        raise InputError("students_per_group must be greater than zero", details={"students_per_group": students_per_group})
    if total_students < 0:
        raise InputError("total_students cannot be negative", details={"total_students": total_students})

    num_groups = max(1, math.ceil(total_students / students_per_group))
    return GroupSetting(
        level=level,
        semester=semester,
        total_students=total_students,
        students_per_group=students_per_group,
        num_groups=num_groups,
        group_names=generate_group_names(num_groups),
    )


def group_sizes(total_students: int, num_groups: int) -> list[int]:
    """Split ``total_students`` as evenly as possible; the first groups take the remainder."""
    if num_groups <= 0:
        raise InputError("num_groups must be greater than zero")
    base, remainder = divmod(total_students, num_groups)
    return [base + 1 if index < remainder else base for index in range(num_groups)]


def assign(students: Sequence[str], setting: GroupSetting) -> dict[str, str]:
    """Map each student id to a group name, preserving input order.

    Students are dealt out in contiguous blocks: the first ``sizes[0]`` ids go to
    the first group and so on. Irregular students must be filtered out by the
    caller before calling this.
    """
    if len(students) != setting.total_students:
        raise InputError(
            "Group setting is stale; recalculate before assigning students",
            details={"students": len(students), "total_students": setting.total_students},
        )
    if len(set(students)) != len(students):
        raise InputError("Student ids must be unique")

    mapping: dict[str, str] = {}
    position = 0
    for group_name, size in zip(setting.group_names, group_sizes(len(students), setting.num_groups)):
        for student_id in students[position : position + size]:
            mapping[student_id] = group_name
        position += size
    logger.debug("Assigned %d student(s) across %d group(s)", len(mapping), setting.num_groups)
    return mapping
