from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def normalize_date(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            try:
                return datetime.fromisoformat(value_text).date()
            except ValueError:
                return None
    return None


def local_today(timezone_mode: str = "local") -> date:
    """Calendar date "now" for the configured zone.

    ``local`` uses the host clock, ``utc`` forces UTC, anything else is
    looked up as an IANA zone name and falls back to the host clock.
    """
    mode = (timezone_mode or "local").strip()
    if mode.lower() == "local":
        return date.today()
    if mode.lower() == "utc":
        return datetime.now(timezone.utc).date()
    try:
        return datetime.now(ZoneInfo(mode)).date()
    except (ZoneInfoNotFoundError, ValueError):
        return date.today()
