import os
from pathlib import Path

# Load .env early so other modules see variables on import.
# We try a few reasonable locations:
#   - <repo>/.env
#   - <repo>/.env/.env
#   - any .env discoverable via current working dir
try:
    from dotenv import load_dotenv, find_dotenv  # type: ignore
except Exception:
    load_dotenv = None
    find_dotenv = None

def _load_env_files():
    if load_dotenv is None:
        return
    found = find_dotenv(usecwd=True) if find_dotenv else ""
    if found:
        load_dotenv(found)  # does not override existing env by default

    repo_root = Path(__file__).resolve().parents[1]
    candidates = [
        repo_root / ".env",
        repo_root / ".env" / ".env",
        repo_root / ".env" / "local.env",
    ]
    for p in candidates:
        if p.is_file():
            load_dotenv(p, override=False)

_load_env_files()


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default

# ---------- Config values ----------

# Token resolution order:
# 1) BOT_TOKEN
# 2) TELEGRAM_TOKEN (legacy/alt name)
# Fallback: "PUT-YOUR-TOKEN-HERE"
TELEGRAM_TOKEN = (
    os.environ.get("BOT_TOKEN")
    or os.environ.get("TELEGRAM_TOKEN")
    or "PUT-YOUR-TOKEN-HERE"
)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Persistence filename (PicklePersistence)
PERSISTENCE_FILE = os.environ.get("STATE_FILE", "tzbot_data.pkl")

# How long an unfinished /addcity, /removecity or /calendar dialog survives
PENDING_TTL_SECONDS = _int_env("PENDING_TTL_SECONDS", 300)

# City lookup (Open-Meteo geocoding returns an IANA timezone per result)
GEOCODER_URL = os.environ.get(
    "GEOCODER_URL", "https://geocoding-api.open-meteo.com/v1/search"
)
GEOCODER_RESULTS = _int_env("GEOCODER_RESULTS", 5)
GEOCODER_TIMEOUT = _int_env("GEOCODER_TIMEOUT", 10)

# "Add to calendar" link appended to conversion replies
CALENDAR_URL = os.environ.get(
    "CALENDAR_URL", "https://calendar.google.com/calendar/render"
)
CALENDAR_DEFAULT_TITLE = os.environ.get("CALENDAR_DEFAULT_TITLE", "Call")
