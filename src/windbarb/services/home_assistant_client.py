from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from windbarb.core.exceptions import UpstreamServiceError
from windbarb.models import EntityState, RawHistoryPoint

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Read-only access to the Home Assistant REST API.

    Transport, HTTP and payload failures are logged and reported as "no data"
    (``[]`` / ``None``) so a flaky host never aborts a refresh.
    """

    def __init__(self, base_url: str, token: str, timeout_seconds: float = 20.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> dict[str, str]:
        if not self.base_url:
            raise UpstreamServiceError("HA_BASE_URL environment variable is required")
        if not self.token:
            raise UpstreamServiceError("HA_TOKEN environment variable is required")
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def fetch_history(
        self,
        entity_ids: list[str],
        start_utc: datetime,
        end_utc: datetime | None = None,
    ) -> list[list[RawHistoryPoint]]:
        headers = self._headers()
        end_utc = end_utc or datetime.now(ZoneInfo("UTC"))
        endpoint = f"{self.base_url}/api/history/period/{start_utc.isoformat()}"
        params = {
            "filter_entity_id": ",".join(entity_ids),
            "end_time": end_utc.isoformat(),
        }
        logger.info(
            "Requesting history for %s (%s to %s)",
            ",".join(entity_ids),
            start_utc.isoformat(),
            end_utc.isoformat(),
        )

        payload = await self._get_json(endpoint, headers, params=params, context="history")
        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning("History payload has unexpected shape (sample=%s)", str(payload)[:240])
            return []

        history: list[list[RawHistoryPoint]] = []
        for entity_rows in payload:
            if not isinstance(entity_rows, list):
                continue
            points = self._map_history_rows(entity_rows)
            if points:
                logger.debug("History for %s: %d points", points[0].entity_id, len(points))
                history.append(points)
        return history

    async def get_entity_state(self, entity_id: str) -> EntityState | None:
        headers = self._headers()
        endpoint = f"{self.base_url}/api/states/{entity_id}"
        payload = await self._get_json(endpoint, headers, context=f"state {entity_id}", allow_not_found=True)
        if not isinstance(payload, dict):
            return None
        return EntityState(
            entity_id=str(payload.get("entity_id") or entity_id),
            state=str(payload.get("state", "")),
            attributes=payload.get("attributes") if isinstance(payload.get("attributes"), dict) else {},
            last_updated=self._to_datetime(payload.get("last_updated")),
        )

    async def _get_json(
        self,
        endpoint: str,
        headers: dict[str, str],
        *,
        params: dict[str, str] | None = None,
        context: str,
        allow_not_found: bool = False,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(endpoint, headers=headers, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if allow_not_found and status == 404:
                logger.info("Home Assistant has no %s", context)
            else:
                logger.warning("Home Assistant %s request failed with HTTP %s", context, status)
            return None
        except httpx.HTTPError as exc:
            logger.warning("Home Assistant %s request failed: %s", context, str(exc))
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("Home Assistant %s response is not valid JSON", context)
            return None

    @classmethod
    def _map_history_rows(cls, rows: list[Any]) -> list[RawHistoryPoint]:
        points: list[RawHistoryPoint] = []
        entity_id = ""
        for row in rows:
            if not isinstance(row, dict):
                continue
            entity_id = str(row.get("entity_id") or entity_id)
            last_updated = cls._to_datetime(row.get("last_updated") or row.get("last_changed"))
            if not entity_id or last_updated is None:
                continue
            points.append(
                RawHistoryPoint(
                    entity_id=entity_id,
                    state=str(row.get("state", "")),
                    last_updated=last_updated,
                    last_changed=cls._to_datetime(row.get("last_changed")),
                )
            )
        return points

    @staticmethod
    def _to_datetime(value: Any) -> datetime | None:
        if value in (None, ""):
            return None
        raw = str(value).strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=ZoneInfo("UTC"))
        return parsed.astimezone(ZoneInfo("UTC"))
