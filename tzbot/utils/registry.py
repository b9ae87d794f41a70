from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from tzbot.constants import DEFAULT_CITIES
from tzbot.exceptions import AliasConflict, DuplicateCity, LastCityError


def normalize_alias(code: str) -> str:
    return (code or "").strip().lower()


@dataclass
class City:
    name: str
    timezone_id: str
    aliases: List[str] = field(default_factory=list)
    rank: int = 0

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "City":
        return City(
            name=d["name"],
            timezone_id=d["timezone_id"],
            aliases=[normalize_alias(a) for a in d.get("aliases", [])],
            rank=int(d.get("rank", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "timezone_id": self.timezone_id,
            "aliases": list(self.aliases),
            "rank": self.rank,
        }


class CityList:
    """
    The watched cities of one chat.

    Alias codes are compared case-insensitively and never shared between two
    cities. The list is never allowed to become empty. Ranks follow insertion
    order and are not renumbered when a city is removed.
    """

    def __init__(self, cities: Iterable[City] = ()):
        self._cities: List[City] = list(cities)

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "CityList":
        return cls(City.from_dict(r) for r in records)

    @classmethod
    def default(cls) -> "CityList":
        return cls(
            City.from_dict({**d, "rank": i})
            for i, d in enumerate(DEFAULT_CITIES, start=1)
        )

    def to_records(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._cities]

    def __iter__(self) -> Iterator[City]:
        return iter(self._cities)

    def __len__(self) -> int:
        return len(self._cities)

    @property
    def alias_key(self) -> Tuple[str, ...]:
        return tuple(sorted(self.all_alias_codes()))

    def all_alias_codes(self) -> List[str]:
        return [a for c in self._cities for a in c.aliases]

    def find_by_alias(self, code: str) -> Optional[City]:
        code = normalize_alias(code)
        for c in self._cities:
            if code in c.aliases:
                return c
        return None

    def find_by_name(self, name: str) -> Optional[City]:
        wanted = (name or "").strip().casefold()
        for c in self._cities:
            if c.name.casefold() == wanted:
                return c
        return None

    def find(self, query: str) -> Optional[City]:
        return self.find_by_alias(query) or self.find_by_name(query)

    def conflicts(self, codes: Iterable[str]) -> Dict[str, City]:
        """Map each code already owned by a city to that city."""
        taken = {}
        for code in codes:
            owner = self.find_by_alias(code)
            if owner is not None:
                taken[normalize_alias(code)] = owner
        return taken

    def next_rank(self) -> int:
        return max((c.rank for c in self._cities), default=0) + 1

    def add(self, city: City) -> City:
        if self.find_by_name(city.name) is not None:
            raise DuplicateCity(city.name)
        aliases = list(dict.fromkeys(normalize_alias(a) for a in city.aliases if normalize_alias(a)))
        taken = self.conflicts(aliases)
        if taken:
            raise AliasConflict({code: owner.name for code, owner in taken.items()})
        added = City(city.name, city.timezone_id, aliases, city.rank or self.next_rank())
        self._cities.append(added)
        return added

    def remove(self, city: City) -> None:
        self.remove_many([city])

    def remove_many(self, cities: Iterable[City]) -> List[City]:
        """Remove all given cities or none of them."""
        names = {c.name.casefold() for c in cities}
        doomed = [c for c in self._cities if c.name.casefold() in names]
        if len(self._cities) - len(doomed) < 1:
            raise LastCityError()
        self._cities = [c for c in self._cities if c not in doomed]
        return doomed
