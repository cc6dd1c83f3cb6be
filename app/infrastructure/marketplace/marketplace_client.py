from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.exceptions import MarketplaceContractError, MarketplaceUpstreamError


class MarketplaceClient:
    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        return await self._request("POST", path, json=payload)

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error(
                "Marketplace request failed",
                extra={"reason": f"{method} {path}", "error": str(e)},
            )
            raise MarketplaceUpstreamError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            try:
                error_message = resp.json().get("message")
            except Exception:
                error_message = resp.text
            self._logger.error(
                "Marketplace returned an error",
                extra={
                    "reason": f"{method} {path}",
                    "status": resp.status_code,
                    "error": error_message,
                },
            )
            raise MarketplaceUpstreamError(error_message or f"HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as e:
            raise MarketplaceContractError(f"{method} {path} returned invalid JSON") from e
