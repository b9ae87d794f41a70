import html
from datetime import datetime
from typing import List, NamedTuple, Optional

from tzbot.config import CALENDAR_URL
from tzbot.utils.links import build_calendar_link
from tzbot.utils.registry import CityList
from tzbot.utils.scanner import scan
from tzbot.utils.session_utils import CalendarSettings
from tzbot.utils.time_utils import format_local, local_calendar_date, resolve_absolute

NEXT_DAY = "(next day)"
PREVIOUS_DAY = "(previous day)"


class ReportLine(NamedTuple):
    time: str
    name: str
    marker: str
    rank: int

    def render(self) -> str:
        text = f"<code>{self.time}</code> — {html.escape(self.name)}"
        if self.marker:
            text += f" {self.marker}"
        return text


def day_marker(date: str, source_date: str) -> str:
    # ISO dates compare correctly as strings
    if date > source_date:
        return NEXT_DAY
    if date < source_date:
        return PREVIOUS_DAY
    return ""


def project(instant: datetime, source_tz: str, cities: CityList) -> List[ReportLine]:
    """One line per city for ``instant``, in chronological wall-clock order."""
    source_date = local_calendar_date(instant, source_tz)
    lines = [
        ReportLine(
            format_local(instant, c.timezone_id),
            c.name,
            day_marker(local_calendar_date(instant, c.timezone_id), source_date),
            c.rank,
        )
        for c in cities
    ]
    # "HH:MM" sorts by hour then minute
    lines.sort(key=lambda line: (line.time, line.rank))
    return lines


def build_report(
    text: str,
    cities: CityList,
    calendar: Optional[CalendarSettings] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Reply for a message such as "18p" or "9:30 e"; None when there is nothing to convert."""
    mention = scan(text, cities)
    if mention is None:
        return None
    instant = resolve_absolute(mention.city.timezone_id, mention.hours, mention.minutes, now=now)
    body = "\n".join(line.render() for line in project(instant, mention.city.timezone_id, cities))
    if calendar is not None and calendar.enabled:
        link = build_calendar_link(CALENDAR_URL, calendar.title, instant)
        body += f'\n\n<a href="{html.escape(link)}">📅 Add to calendar</a>'
    return body
