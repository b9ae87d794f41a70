from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from tzbot.config import CALENDAR_DEFAULT_TITLE
from tzbot.constants import (
    STEP_ALIASES,
    STEP_CALENDAR_RENAME,
    STEP_CALENDAR_TITLE,
    STEP_CITY_NAME,
    STEP_DISAMBIGUATION,
    STEP_REMOVAL,
)
from tzbot.utils.geocoding import Candidate
from tzbot.utils.registry import City


@dataclass
class CalendarSettings:
    enabled: bool = True
    title: str = CALENDAR_DEFAULT_TITLE

    @staticmethod
    def from_chat_data(d: Optional[Dict[str, Any]]) -> "CalendarSettings":
        if not d:
            return CalendarSettings()
        return CalendarSettings(bool(d.get("enabled", True)), d.get("title") or CALENDAR_DEFAULT_TITLE)

    def to_chat_data(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "title": self.title}


# ---------- Pending wizard states ----------
# Each state knows its step tag and how to (de)serialize its payload.

@dataclass
class AwaitingCityName:
    step = STEP_CITY_NAME

    def payload(self) -> Dict[str, Any]:
        return {}

    @staticmethod
    def from_payload(_: Dict[str, Any]) -> "AwaitingCityName":
        return AwaitingCityName()


@dataclass
class AwaitingDisambiguationChoice:
    candidates: List[Candidate]
    step = STEP_DISAMBIGUATION

    def payload(self) -> Dict[str, Any]:
        return {"candidates": [c.to_dict() for c in self.candidates]}

    @staticmethod
    def from_payload(d: Dict[str, Any]) -> "AwaitingDisambiguationChoice":
        return AwaitingDisambiguationChoice([Candidate.from_dict(c) for c in d.get("candidates", [])])


@dataclass
class AwaitingAliasCodes:
    city_name: str
    timezone_id: str
    reserved: List[str] = field(default_factory=list)
    step = STEP_ALIASES

    def payload(self) -> Dict[str, Any]:
        return {"city_name": self.city_name, "timezone_id": self.timezone_id, "reserved": list(self.reserved)}

    @staticmethod
    def from_payload(d: Dict[str, Any]) -> "AwaitingAliasCodes":
        return AwaitingAliasCodes(d["city_name"], d["timezone_id"], list(d.get("reserved", [])))


@dataclass
class AwaitingRemovalChoice:
    snapshot: List[City]
    step = STEP_REMOVAL

    def payload(self) -> Dict[str, Any]:
        return {"snapshot": [c.to_dict() for c in self.snapshot]}

    @staticmethod
    def from_payload(d: Dict[str, Any]) -> "AwaitingRemovalChoice":
        return AwaitingRemovalChoice([City.from_dict(c) for c in d.get("snapshot", [])])


@dataclass
class AwaitingCalendarTitle:
    step = STEP_CALENDAR_TITLE

    def payload(self) -> Dict[str, Any]:
        return {}

    @staticmethod
    def from_payload(_: Dict[str, Any]) -> "AwaitingCalendarTitle":
        return AwaitingCalendarTitle()


@dataclass
class RenamingCalendarTitle:
    step = STEP_CALENDAR_RENAME

    def payload(self) -> Dict[str, Any]:
        return {}

    @staticmethod
    def from_payload(_: Dict[str, Any]) -> "RenamingCalendarTitle":
        return RenamingCalendarTitle()


PendingState = Union[
    AwaitingCityName,
    AwaitingDisambiguationChoice,
    AwaitingAliasCodes,
    AwaitingRemovalChoice,
    AwaitingCalendarTitle,
    RenamingCalendarTitle,
]

_STATES_BY_STEP = {
    cls.step: cls
    for cls in (
        AwaitingCityName,
        AwaitingDisambiguationChoice,
        AwaitingAliasCodes,
        AwaitingRemovalChoice,
        AwaitingCalendarTitle,
        RenamingCalendarTitle,
    )
}


def state_to_record(state: PendingState) -> Dict[str, Any]:
    return {"step": state.step, "data": state.payload()}


def state_from_record(record: Optional[Dict[str, Any]]) -> Optional[PendingState]:
    if not record:
        return None
    cls = _STATES_BY_STEP.get(record.get("step"))
    if cls is None:
        return None
    return cls.from_payload(record.get("data") or {})


# ---------- Inline button data ----------
# Buttons carry the id of the user whose dialog they belong to: "wiz:cancel:7".

def button_data(action: str, user_id: int) -> str:
    return f"{action}:{user_id}"


def parse_button_data(data: str) -> Tuple[str, Optional[int]]:
    """Split callback data into (action, owner id); owner is None for unbound data."""
    action, _, owner = (data or "").rpartition(":")
    try:
        return action, int(owner)
    except ValueError:
        return data or "", None
