import re
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

from tzbot.utils.registry import City, CityList


class TimeMention(NamedTuple):
    hours: int
    minutes: int
    city: City


@lru_cache(maxsize=256)
def _compile(aliases: Tuple[str, ...]) -> Optional["re.Pattern[str]"]:
    if not aliases:
        return None
    # Longest first so "msk" is tried before "m".
    ordered = sorted(set(aliases), key=lambda a: (-len(a), a))
    alternation = "|".join(re.escape(a) for a in ordered)
    return re.compile(
        rf"(?<![\d.:])(\d{{1,2}})(?:[:.](\d{{2}}))?\s*({alternation})(?![^\W_])",
        re.IGNORECASE,
    )


def build_pattern(cities: CityList) -> Optional["re.Pattern[str]"]:
    return _compile(cities.alias_key)


def scan(text: str, cities: CityList) -> Optional[TimeMention]:
    """
    Find the first "HH[:MM] alias" mention in ``text``.

    Returns None when there is nothing to convert: no mention, an hour above
    23, minutes above 59, or an alias no city owns.
    """
    pattern = build_pattern(cities)
    if pattern is None or not text:
        return None
    match = pattern.search(text)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    if hours > 23 or minutes > 59:
        return None
    city = cities.find_by_alias(match.group(3))
    if city is None:
        return None
    return TimeMention(hours, minutes, city)
