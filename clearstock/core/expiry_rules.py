from enum import Enum

from clearstock.core.dates import normalize_date


class ExpiryStatus(str, Enum):
    EXPIRED = "EXPIRED"
    URGENT = "URGENT"
    WARNING = "WARNING"
    OK = "OK"


def days_to_expiry(today, expiry_date):
    # Calendar-day difference; time-of-day is dropped before subtracting.
    return (normalize_date(expiry_date) - normalize_date(today)).days


def classify_days(days, thresholds):
    # First match wins. Inverted bands (warning < urgent) are kept as-is,
    # which leaves WARNING unreachable for that category.
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= thresholds.urgent_days:
        return ExpiryStatus.URGENT
    if days <= thresholds.warning_days:
        return ExpiryStatus.WARNING
    return ExpiryStatus.OK


def classify_expiry(today, expiry_date, thresholds):
    return classify_days(days_to_expiry(today, expiry_date), thresholds)


def _days_label(days):
    return "1 day" if days == 1 else "{} days".format(days)


def status_badge(status, days):
    status = ExpiryStatus(status)
    if status is ExpiryStatus.EXPIRED:
        return {"label": "Expired", "variant": "destructive"}
    if status is ExpiryStatus.URGENT:
        return {"label": "Use urgently ({})".format(_days_label(days)), "variant": "destructive"}
    if status is ExpiryStatus.WARNING:
        return {"label": "Expiring soon ({})".format(_days_label(days)), "variant": "default"}
    return {"label": "OK", "variant": "secondary"}


__all__ = [
    "ExpiryStatus",
    "classify_days",
    "classify_expiry",
    "days_to_expiry",
    "status_badge",
]
