"""HTTP client for the endpoints the agent talks to."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from daybook.utils.exceptions import DaybookError


class ApiError(DaybookError):
    """The server could not be reached or answered with an error."""


@dataclass
class DaybookApiClient:
    """Reads the profile and saves subscriptions on behalf of the signed-in user."""

    base_url: str
    access_token: str
    api_prefix: str = "/api/v1"
    request_timeout: float = 10.0
    transport: Optional[httpx.AsyncBaseTransport] = None
    _client: Optional[httpx.AsyncClient] = field(default=None, init=False, repr=False)

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url.rstrip("/") + self.api_prefix,
                timeout=self.request_timeout,
                headers={"Authorization": f"Bearer {self.access_token}"},
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._http().request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            detail = payload.get("detail") if isinstance(payload, dict) else payload
            raise ApiError(
                f"{method} {path} returned {response.status_code}",
                details={"status_code": response.status_code, "detail": detail},
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"{method} {path} returned a non-JSON body",
                details={"status_code": response.status_code},
            ) from exc

    async def fetch_profile(self) -> Dict[str, Any]:
        return await self._request("GET", "/users/me")

    async def is_push_opted_in(self) -> bool:
        """Cheap pre-check; an unreachable or unauthenticated profile counts as opted out."""

        try:
            profile = await self.fetch_profile()
        except ApiError as exc:
            logger.debug("Profile check failed", error=exc.message)
            return False
        return isinstance(profile, dict) and profile.get("push_opt_in") is True

    async def save_subscription(
        self, endpoint: str, p256dh: str, auth: str, user_agent: str | None = None
    ) -> None:
        await self._request(
            "POST",
            "/push",
            json={"endpoint": endpoint, "p256dh": p256dh, "auth": auth, "ua": user_agent},
        )

    async def get_vapid_public_key(self) -> str:
        data = await self._request("GET", "/push/vapid-public-key")
        return data["publicKey"]
