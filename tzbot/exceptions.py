from typing import Dict


class TzBotError(Exception):
    """Base class for errors that end up as a user-visible reply."""


class AliasConflict(TzBotError):
    def __init__(self, conflicts: Dict[str, str]):
        # alias code -> name of the city that already owns it
        self.conflicts = dict(conflicts)
        listed = ", ".join(f"{code} ({name})" for code, name in self.conflicts.items())
        super().__init__(f"Alias already in use: {listed}")


class DuplicateCity(TzBotError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} is already in the list")


class LastCityError(TzBotError):
    def __init__(self):
        super().__init__("At least one city must stay in the list")


class CityNotFound(TzBotError):
    def __init__(self, query: str):
        self.query = query
        super().__init__(f"City not found: {query}")


class InvalidSelection(TzBotError):
    def __init__(self, value: str, upper: int):
        self.value = value
        self.upper = upper
        super().__init__(f"Expected a number from 1 to {upper}, got {value!r}")


class CollaboratorUnavailable(TzBotError):
    """The city lookup service or the store could not be reached."""
