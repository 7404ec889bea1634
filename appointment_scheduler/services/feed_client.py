import logging
from typing import Any

import httpx

from appointment_scheduler.core.config import settings
from appointment_scheduler.core.errors import FeedUnavailable

logger = logging.getLogger(__name__)


class AvailabilityFeedClient:
    """Reads a provider's weekly recurring slots from the upstream scheduling feed.

    Each slot looks like::

        {"id": "slot-1", "source": "calendly",
         "starts_at": {"day_of_week": "monday", "time": "09:00"},
         "ends_at": {"day_of_week": "monday", "time": "17:00"}}
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.feed_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.feed_timeout_seconds
        self._transport = transport

    async def fetch_slots(self, provider_id: int) -> list[dict[str, Any]]:
        if not self.base_url:
            raise FeedUnavailable("Availability feed is not configured (set FEED_BASE_URL)")
        url = f"{self.base_url}/providers/{provider_id}/slots"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.warning("Availability feed request failed: url=%s error=%s", url, e)
            raise FeedUnavailable(f"Availability feed request failed: {type(e).__name__}") from e
        if resp.status_code != 200:
            logger.warning(
                "Availability feed returned status=%s body=%s url=%s",
                resp.status_code,
                resp.text[:500],
                url,
            )
            raise FeedUnavailable(f"Availability feed returned status {resp.status_code}")
        payload = resp.json()
        # Accept both a bare list and {"slots": [...]}
        slots = payload.get("slots", []) if isinstance(payload, dict) else payload
        return list(slots)
