"""Conflict validation for candidate section lists.

Every function here is pure: callers pass a complete snapshot of the sections
they intend to commit and receive the violations as data. The only exception
raised is ``InputError`` for sections that cannot be parsed at all, in which
case nothing is validated.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from pydantic import ValidationError

from classgrid.core.exceptions import InputError, validation_error_details
from classgrid.schemas.policy import SchedulePolicy
from classgrid.schemas.timetable import (
    BlackoutOverlap,
    CapacityWarning,
    DuplicateCourse,
    GroupTimeOverlap,
    RangePolicyViolation,
    RoomConflict,
    Section,
    SectionRef,
    ValidationReport,
    Violation,
)

logger = logging.getLogger(__name__)

SectionInput = Section | Mapping[str, Any]


class _Entry(NamedTuple):
    position: int
    ref: SectionRef
    section: Section


class OccupiedSection(NamedTuple):
    """A section stored in another schedule version that already holds its room."""

    ref: SectionRef
    section: Section


def parse_section(raw: SectionInput) -> Section:
    if isinstance(raw, Section):
        return raw
    if not isinstance(raw, Mapping):
        raise InputError("Section must be an object", details={"received": type(raw).__name__})
    try:
        return Section.model_validate(dict(raw))
    except ValidationError as exc:
        raise InputError("Malformed section", details={"errors": validation_error_details(exc)}) from exc


def parse_sections(raw_sections: Sequence[SectionInput], group_name: str | None = None) -> list[Section]:
    sections: list[Section] = []
    for index, raw in enumerate(raw_sections):
        try:
            sections.append(parse_section(raw))
        except InputError as exc:
            exc.details = {**exc.details, "index": index, "group_name": group_name}
            raise
    return sections


def _entries(groups: Mapping[str | None, Sequence[SectionInput]]) -> list[_Entry]:
    entries: list[_Entry] = []
    for group_name, raw_sections in groups.items():
        for index, section in enumerate(parse_sections(raw_sections, group_name)):
            ref = SectionRef(
                index=index,
                course_code=section.course_code,
                section_label=section.section_label,
                group_name=group_name,
            )
            entries.append(_Entry(len(entries), ref, section))
    return entries


def _describe(entries: Sequence[_Entry]) -> str:
    labels = []
    for entry in entries:
        label = f"{entry.ref.course_code} ({entry.ref.section_label})"
        scope = []
        if entry.ref.level is not None:
            scope.append(f"level {entry.ref.level}")
        if entry.ref.group_name is not None:
            scope.append(f"group {entry.ref.group_name}")
        if scope:
            label += f" [{' '.join(scope)}]"
        if entry.ref.version_id is not None:
            label += f" in schedule {entry.ref.version_id}"
        labels.append(label)
    return ", ".join(labels)


def _overlap_clusters(bucket: Sequence[_Entry]) -> list[list[_Entry]]:
    """Split one day's entries into maximal runs of transitively overlapping windows."""
    ordered = sorted(bucket, key=lambda item: (item.section.window.start_minutes, item.position))
    clusters: list[list[_Entry]] = []
    cluster = [ordered[0]]
    cluster_end = ordered[0].section.window.end_minutes
    for entry in ordered[1:]:
        window = entry.section.window
        if window.start_minutes < cluster_end:
            cluster.append(entry)
            cluster_end = max(cluster_end, window.end_minutes)
            continue
        clusters.append(cluster)
        cluster = [entry]
        cluster_end = window.end_minutes
    clusters.append(cluster)
    return [sorted(items, key=lambda item: item.position) for items in clusters if len(items) > 1]


def _by_first_position(clusters: list[list[_Entry]]) -> list[list[_Entry]]:
    return sorted(clusters, key=lambda items: items[0].position)


def _room_conflicts(entries: Sequence[_Entry]) -> list[RoomConflict]:
    buckets: dict[tuple, list[_Entry]] = defaultdict(list)
    for entry in entries:
        buckets[(entry.section.window.day, entry.section.room)].append(entry)

    clusters: list[list[_Entry]] = []
    for bucket in buckets.values():
        if len(bucket) < 2:
            continue
        # Clashes among occupied sections alone belong to the other versions.
        clusters.extend(
            cluster
            for cluster in _overlap_clusters(bucket)
            if any(item.ref.version_id is None for item in cluster)
        )

    conflicts: list[RoomConflict] = []
    for cluster in _by_first_position(clusters):
        first = cluster[0].section
        conflicts.append(
            RoomConflict(
                room=first.room,
                day=first.window.day.value,
                message=f"Room {first.room} is double-booked on {first.window.day.value}: {_describe(cluster)}",
                offending_section_refs=[item.ref for item in cluster],
            )
        )
    return conflicts


def _group_time_overlaps(entries: Sequence[_Entry]) -> list[GroupTimeOverlap]:
    buckets: dict[tuple, list[_Entry]] = defaultdict(list)
    for entry in entries:
        buckets[(entry.ref.group_name, entry.section.window.day)].append(entry)

    clusters: list[list[_Entry]] = []
    for bucket in buckets.values():
        if len(bucket) < 2:
            continue
        for cluster in _overlap_clusters(bucket):
            courses = {item.section.course_code for item in cluster}
            rooms = {item.section.room for item in cluster}
            # One course twice is a duplicate; one shared room is a room conflict.
            if len(courses) > 1 and len(rooms) > 1:
                clusters.append(cluster)

    overlaps: list[GroupTimeOverlap] = []
    for cluster in _by_first_position(clusters):
        group_name = cluster[0].ref.group_name
        day = cluster[0].section.window.day.value
        scope = f"Group {group_name}" if group_name is not None else "The schedule"
        overlaps.append(
            GroupTimeOverlap(
                group_name=group_name,
                day=day,
                course_codes=list(dict.fromkeys(item.section.course_code for item in cluster)),
                message=f"{scope} has overlapping courses on {day}: {_describe(cluster)}",
                offending_section_refs=[item.ref for item in cluster],
            )
        )
    return overlaps


def _blackout_overlaps(entries: Sequence[_Entry], policy: SchedulePolicy) -> list[BlackoutOverlap]:
    overlaps: list[BlackoutOverlap] = []
    for entry in entries:
        for blackout in policy.blackout_windows:
            if entry.section.window.overlaps(blackout):
                overlaps.append(
                    BlackoutOverlap(
                        blackout_window=blackout,
                        message=(
                            f"{_describe([entry])} at {entry.section.window.describe()} "
                            f"overlaps blocked window {blackout.describe()}"
                        ),
                        offending_section_refs=[entry.ref],
                    )
                )
                break
    return overlaps


def _duplicate_courses(entries: Sequence[_Entry], policy: SchedulePolicy) -> list[DuplicateCourse]:
    if not policy.unique_course_per_version:
        return []

    # Scoped to one group's list; the same course in two groups is not a duplicate.
    by_course: dict[tuple, list[_Entry]] = defaultdict(list)
    for entry in entries:
        by_course[(entry.ref.group_name, entry.section.course_code)].append(entry)

    duplicates: list[DuplicateCourse] = []
    for (group_name, course_code), items in by_course.items():
        if len(items) < 2:
            continue
        scope = f" in group {group_name}" if group_name is not None else ""
        labels = ", ".join(item.ref.section_label for item in items)
        duplicates.append(
            DuplicateCourse(
                course_code=course_code,
                message=f"Course {course_code} is scheduled {len(items)} times{scope} (sections {labels})",
                offending_section_refs=[item.ref for item in items],
            )
        )
    return duplicates


def _range_violations(entries: Sequence[_Entry], policy: SchedulePolicy) -> list[RangePolicyViolation]:
    if policy.allowed_days is None and policy.allowed_time_range is None:
        return []

    violations: list[RangePolicyViolation] = []
    for entry in entries:
        window = entry.section.window
        if policy.allowed_days is not None and window.day not in policy.allowed_days:
            allowed = ", ".join(day.value for day in policy.allowed_days)
            violations.append(
                RangePolicyViolation(
                    reason="day_not_allowed",
                    message=f"{_describe([entry])} is on {window.day.value}; allowed days are {allowed}",
                    offending_section_refs=[entry.ref],
                )
            )
            continue
        time_range = policy.allowed_time_range
        if time_range is not None and not time_range.contains(window):
            violations.append(
                RangePolicyViolation(
                    reason="outside_time_range",
                    message=(
                        f"{_describe([entry])} at {window.start}-{window.end} is outside "
                        f"the allowed hours {time_range.start}-{time_range.end}"
                    ),
                    offending_section_refs=[entry.ref],
                )
            )
    return violations


def _occupied_entries(occupied: Sequence[OccupiedSection], offset: int) -> list[_Entry]:
    return [_Entry(offset + index, item.ref, item.section) for index, item in enumerate(occupied)]


def _violations(
    entries: Sequence[_Entry],
    policy: SchedulePolicy,
    occupied: Sequence[OccupiedSection] = (),
) -> list[Violation]:
    violations: list[Violation] = []
    violations.extend(_room_conflicts([*entries, *_occupied_entries(occupied, len(entries))]))
    violations.extend(_group_time_overlaps(entries))
    violations.extend(_blackout_overlaps(entries, policy))
    violations.extend(_duplicate_courses(entries, policy))
    violations.extend(_range_violations(entries, policy))
    logger.debug(
        "Validated %d section(s) against %d occupied: %d violation(s)",
        len(entries),
        len(occupied),
        len(violations),
    )
    return violations


def _capacity_warnings(entries: Sequence[_Entry]) -> list[CapacityWarning]:
    return [
        CapacityWarning(section=entry.ref, student_count=entry.section.student_count, capacity=entry.section.capacity)
        for entry in entries
        if entry.section.over_capacity
    ]


def validate(sections: Sequence[SectionInput], policy: SchedulePolicy) -> list[Violation]:
    """Return every policy violation in ``sections``, in check order.

    Room conflicts come first, then overlapping courses, blackout overlaps,
    duplicate courses and range-policy breaches. An empty list means the set
    may be committed.
    """
    return _violations(_entries({None: sections}), policy)


def validate_groups(
    groups: Mapping[str, Sequence[SectionInput]],
    policy: SchedulePolicy,
    occupied: Sequence[OccupiedSection] = (),
) -> list[Violation]:
    """Validate every group of a schedule version as one candidate set.

    Rooms are shared across groups, so room conflicts are detected over the
    union of all groups plus any ``occupied`` sections held by other levels.
    Overlapping courses and duplicate courses are only checked within a group.
    """
    return _violations(_entries(groups), policy, occupied)


def check_sections(sections: Sequence[SectionInput], policy: SchedulePolicy) -> ValidationReport:
    entries = _entries({None: sections})
    violations = _violations(entries, policy)
    return ValidationReport(
        is_valid=not violations,
        violations=violations,
        capacity_warnings=_capacity_warnings(entries),
    )


def check_groups(
    groups: Mapping[str, Sequence[SectionInput]],
    policy: SchedulePolicy,
    occupied: Sequence[OccupiedSection] = (),
) -> ValidationReport:
    entries = _entries(groups)
    violations = _violations(entries, policy, occupied)
    return ValidationReport(
        is_valid=not violations,
        violations=violations,
        capacity_warnings=_capacity_warnings(entries),
    )
