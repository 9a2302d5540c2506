"""HTTP client for the progression API."""
from typing import Any, Optional

import httpx
import structlog

from progression.client.store import ProgressionStore
from progression.schemas.achievement import (
    AchievementsCheckResponse,
    AchievementsListResponse,
    ProgressionResponse,
)

logger = structlog.get_logger(__name__)


class ProgressionAPIError(Exception):
    """Request to the progression API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProgressionClient:
    """
    Async client for the achievements endpoints.

    Usage:
        client = ProgressionClient("https://api.example.com", token)
        try:
            await client.sync(store)
        finally:
            await client.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ProgressionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self, method: str, path: str, headers: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        url = f"/api{path}"
        try:
            response = await self._get_client().request(method, url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                detail = e.response.json().get("detail", e.response.text)
            except ValueError:
                detail = e.response.text
            logger.error("API request failed", url=url, status=e.response.status_code, detail=detail)
            raise ProgressionAPIError(str(detail), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("API request failed", url=url, error=str(e))
            raise ProgressionAPIError(str(e)) from e
        return response.json()

    async def fetch_achievements(self, fresh: bool = False) -> AchievementsListResponse:
        headers = {"Cache-Control": "no-cache"} if fresh else None
        data = await self._request("GET", "/achievements", headers=headers)
        return AchievementsListResponse.model_validate(data)

    async def check_achievements(self) -> AchievementsCheckResponse:
        data = await self._request("POST", "/achievements/check")
        return AchievementsCheckResponse.model_validate(data)

    async def fetch_progression(self) -> ProgressionResponse:
        data = await self._request("GET", "/achievements/progression")
        return ProgressionResponse.model_validate(data)

    async def sync(self, store: ProgressionStore) -> AchievementsCheckResponse:
        """
        Ask the server to award pending achievements, then adopt its view.

        The check result is applied first so unlocks the client missed get
        queued for notification; the full list, fetched past the server cache, then settles everything else.
        """
        check = await self.check_achievements()
        store.reconcile_with_check(check)

        listing = await self.fetch_achievements(fresh=True)
        store.reconcile_with_list(listing)

        logger.info(
            "Progress synced",
            newly_unlocked=len(check.newly_unlocked),
            unlocked=listing.unlocked_count,
            level=check.new_level,
        )
        return check
