from datetime import datetime, timedelta, timezone
from urllib.parse import quote


def build_webhook_url(base_url: str, path: str) -> str:
    base = base_url.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return base + path


def _calendar_stamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def build_calendar_link(base_url: str, title: str, start_utc: datetime, duration: timedelta = timedelta(hours=1)) -> str:
    """
    "Add to calendar" template link for an event starting at ``start_utc``.
    Encodes as: ?action=TEMPLATE&text=<title>&dates=<start>/<end>
    """
    dates = f"{_calendar_stamp(start_utc)}/{_calendar_stamp(start_utc + duration)}"
    return f"{base_url}?action=TEMPLATE&text={quote(title, safe='')}&dates={dates}"
