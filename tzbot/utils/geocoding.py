import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from tzbot.config import GEOCODER_RESULTS, GEOCODER_TIMEOUT, GEOCODER_URL
from tzbot.exceptions import CollaboratorUnavailable
from tzbot.utils.time_utils import is_valid_tz

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    name: str
    display_name: str
    timezone_id: str

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Candidate":
        return Candidate(d["name"], d.get("display_name") or d["name"], d["timezone_id"])

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "display_name": self.display_name, "timezone_id": self.timezone_id}


def _place_label(result: Dict[str, Any]) -> str:
    parts = [result.get("name"), result.get("admin1"), result.get("country")]
    return ", ".join(p for p in dict.fromkeys(parts) if p)


def parse_results(data: Dict[str, Any]) -> List[Candidate]:
    """Candidates in service order; entries without a known timezone are skipped."""
    out = []
    for r in data.get("results") or []:
        name = (r.get("name") or "").strip()
        tz = r.get("timezone")
        if not name or not is_valid_tz(tz):
            continue
        out.append(Candidate(name, _place_label(r), tz))
    return out


async def search_cities(
    place: str,
    *,
    count: int = GEOCODER_RESULTS,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Candidate]:
    query = (place or "").strip()
    if not query:
        return []
    params = {"name": query, "count": count, "language": "en", "format": "json"}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=GEOCODER_TIMEOUT, headers={"User-Agent": "tzbot"}) as c:
                resp = await c.get(GEOCODER_URL, params=params)
        else:
            resp = await client.get(GEOCODER_URL, params=params)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise CollaboratorUnavailable(f"city lookup failed for {query!r}: {e}") from e
    candidates = parse_results(data)
    logger.info("lookup %r -> %d candidate(s)", query, len(candidates))
    return candidates
