import logging
import time
from typing import Any, Dict, Optional

from tzbot.config import PENDING_TTL_SECONDS
from tzbot.constants import CD_CALENDAR, CD_CITIES, CD_PENDING
from tzbot.utils.registry import CityList
from tzbot.utils.session_utils import (
    CalendarSettings,
    PendingState,
    state_from_record,
    state_to_record,
)

logger = logging.getLogger(__name__)


# -------- Watched cities --------
def load_cities(chat_data: Dict[str, Any]) -> CityList:
    records = chat_data.get(CD_CITIES)
    if not records:
        cities = CityList.default()
        chat_data[CD_CITIES] = cities.to_records()
        return cities
    return CityList.from_records(records)


def save_cities(chat_data: Dict[str, Any], cities: CityList) -> bool:
    if len(cities) == 0:
        logger.error("save_cities: refusing to store an empty city list")
        return False
    chat_data[CD_CITIES] = cities.to_records()
    return True


# -------- Calendar link settings --------
def load_calendar(chat_data: Dict[str, Any]) -> CalendarSettings:
    return CalendarSettings.from_chat_data(chat_data.get(CD_CALENDAR))


def save_calendar(chat_data: Dict[str, Any], settings: CalendarSettings) -> bool:
    if not settings.title:
        logger.error("save_calendar: refusing to store an empty title")
        return False
    chat_data[CD_CALENDAR] = settings.to_chat_data()
    return True


# -------- Pending wizard records (per chat, per user) --------
def _pending_map(chat_data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return chat_data.setdefault(CD_PENDING, {})


def _expired(record: Dict[str, Any], now: float) -> bool:
    return now - record.get("created_at", 0) > record.get("ttl", PENDING_TTL_SECONDS)


def set_pending(
    chat_data: Dict[str, Any],
    user_id: int,
    state: PendingState,
    ttl: int = PENDING_TTL_SECONDS,
    now: Optional[float] = None,
) -> None:
    now = time.time() if now is None else now
    pending = _pending_map(chat_data)
    # Drop records of users who walked away mid-dialog
    for key in [k for k, r in pending.items() if _expired(r, now)]:
        del pending[key]
    record = state_to_record(state)
    record["created_at"] = now
    record["ttl"] = ttl
    pending[str(user_id)] = record


def get_pending(chat_data: Dict[str, Any], user_id: int, now: Optional[float] = None) -> Optional[PendingState]:
    """The user's in-flight wizard step, or None if there is none or it expired."""
    record = _pending_map(chat_data).get(str(user_id))
    if not record:
        return None
    now = time.time() if now is None else now
    if _expired(record, now):
        clear_pending(chat_data, user_id)
        return None
    state = state_from_record(record)
    if state is None:
        logger.warning("get_pending: dropping unknown step %r", record.get("step"))
        clear_pending(chat_data, user_id)
    return state


def clear_pending(chat_data: Dict[str, Any], user_id: int) -> bool:
    return _pending_map(chat_data).pop(str(user_id), None) is not None
