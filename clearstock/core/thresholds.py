import math
from collections.abc import Mapping
from typing import NamedTuple, Optional

from clearstock.core.constants import FALLBACK_ALERT_DAYS, MAX_ALERT_DAYS

_URGENT_KEYS = ("urgent_alert_days", "alert_days_before_expiry")
_WARNING_KEYS = ("warning_alert_days", "warning_days_before_expiry")


class EffectiveThresholds(NamedTuple):
    warning_days: int
    urgent_days: int


def positive_days(value) -> Optional[int]:
    """Return ``value`` as a positive int, or None when unusable.

    Booleans, non-numeric strings, fractions, zero and negatives all count as
    "not configured". Values above ``MAX_ALERT_DAYS`` are clamped to it.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = int(value)
        except ValueError:
            pass
    if isinstance(value, int):
        days = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        if not math.isfinite(number) or not number.is_integer():
            return None
        days = int(number)
    if days <= 0:
        return None
    return min(days, MAX_ALERT_DAYS)


def _category_value(category, keys):
    if category is None:
        return None
    for key in keys:
        if isinstance(category, Mapping):
            value = category.get(key)
        else:
            value = getattr(category, key, None)
        days = positive_days(value)
        if days is not None:
            return days
    return None


def resolve_thresholds(restaurant_default, category=None) -> EffectiveThresholds:
    base = positive_days(restaurant_default)
    if base is None:
        base = FALLBACK_ALERT_DAYS

    urgent = _category_value(category, _URGENT_KEYS)
    if urgent is None:
        urgent = base

    warning = _category_value(category, _WARNING_KEYS)
    if warning is None:
        warning = urgent

    return EffectiveThresholds(warning_days=warning, urgent_days=urgent)


__all__ = ["EffectiveThresholds", "positive_days", "resolve_thresholds"]
