from typing import Iterable, Tuple, TypedDict

from clearstock.core.expiry_rules import ExpiryStatus, classify_expiry
from clearstock.core.thresholds import EffectiveThresholds


class StatusCounts(TypedDict):
    expired: int
    urgent: int
    warning: int
    ok: int


def empty_counts() -> StatusCounts:
    return {"expired": 0, "urgent": 0, "warning": 0, "ok": 0}


def aggregate_statuses(today, entries: Iterable[Tuple[object, EffectiveThresholds]]) -> StatusCounts:
    """Count expiry statuses over ``(expiry_date, thresholds)`` pairs.

    Every entry is assumed to be an ACTIVE batch; filtering by lifecycle
    status belongs to the caller.
    """
    counts = empty_counts()
    for expiry_date, thresholds in entries:
        status = classify_expiry(today, expiry_date, thresholds)
        counts[status.value.lower()] += 1
    return counts


def count_statuses(statuses: Iterable[ExpiryStatus]) -> StatusCounts:
    counts = empty_counts()
    for status in statuses:
        counts[ExpiryStatus(status).value.lower()] += 1
    return counts


__all__ = ["StatusCounts", "aggregate_statuses", "count_statuses", "empty_counts"]
