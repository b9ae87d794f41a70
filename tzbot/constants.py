# Keys for chat_data / bot_data
CD_CITIES = "cities"                  # chat_data: list of city dicts
CD_CALENDAR = "calendar"              # chat_data: {"enabled": bool, "title": str}
CD_PENDING = "pending_by_user"        # chat_data: user_id (str) -> pending wizard record
BD_LOOKUP = "city_lookup"             # bot_data: optional override of the city lookup coroutine

# Pending wizard steps
STEP_CITY_NAME = "awaiting_city_name"
STEP_DISAMBIGUATION = "awaiting_disambiguation"
STEP_ALIASES = "awaiting_aliases"
STEP_REMOVAL = "awaiting_removal"
STEP_CALENDAR_TITLE = "awaiting_calendar_title"
STEP_CALENDAR_RENAME = "renaming_calendar_title"

# Inline button callback data
CB_ACCEPT_ALIASES = "wiz:accept"
CB_CANCEL = "wiz:cancel"
CB_CAL_DISABLE = "cal:disable"
CB_CAL_KEEP = "cal:keep"

# Starter set used until a chat adds or removes its own cities
DEFAULT_CITIES = [
    {"name": "Paris", "timezone_id": "Europe/Paris", "aliases": ["p", "п"]},
    {"name": "Yerevan", "timezone_id": "Asia/Yerevan", "aliases": ["e", "е"]},
    {"name": "Buenos Aires", "timezone_id": "America/Argentina/Buenos_Aires", "aliases": ["b", "б"]},
    {"name": "Moscow", "timezone_id": "Europe/Moscow", "aliases": ["m", "м"]},
]
