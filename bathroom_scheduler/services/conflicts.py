"""
Interval conflict checker.

Pure functions shared by the optimistic pre-check and the commit-time check
in BookingService, so both call sites apply the same rule set.

Two intervals conflict when the candidate's start or end falls strictly
inside the other interval, when the candidate strictly contains it, or when
the two share the same start or the same end instant. A booking ending
exactly when another starts does not conflict.
"""
from datetime import datetime
from typing import Iterable, Optional

from bathroom_scheduler.errors import InvalidInterval, Overlap


def validate_interval(start: datetime, end: datetime) -> None:
    if start is None or end is None or start >= end:
        raise InvalidInterval()


def intervals_conflict(start: datetime, end: datetime,
                       other_start: datetime, other_end: datetime) -> bool:
    """Return True if [start, end) conflicts with [other_start, other_end)."""
    starts_inside = other_start < start < other_end
    ends_inside = other_start < end < other_end
    contains_other = start < other_start and end > other_end
    # Shared boundary instants count as conflicts even without shared time.
    same_start = start == other_start
    same_end = end == other_end
    return starts_inside or ends_inside or contains_other or same_start or same_end


def find_conflict(start: datetime, end: datetime, existing: Iterable,
                  exclude_id=None) -> Optional[object]:
    """
    Return the first entry of `existing` that conflicts with [start, end).

    Entries must expose `id`, `start_time` and `end_time`. The entry whose id
    equals `exclude_id` is skipped (used when re-validating an edit in place).
    Raises InvalidInterval before looking at `existing` if start >= end.
    """
    validate_interval(start, end)
    for entry in existing:
        if exclude_id is not None and entry.id == exclude_id:
            continue
        if intervals_conflict(start, end, entry.start_time, entry.end_time):
            return entry
    return None


def check_interval(start: datetime, end: datetime, existing: Iterable,
                   exclude_id=None) -> None:
    """Raise Overlap if [start, end) conflicts with any entry in `existing`."""
    conflict = find_conflict(start, end, existing, exclude_id=exclude_id)
    if conflict is not None:
        raise Overlap(conflicting_id=conflict.id)
