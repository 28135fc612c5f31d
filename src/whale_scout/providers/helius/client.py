"""Thin async client for the Helius REST endpoints the tracker uses.

One method call is one HTTP request. There are no retries here: the rate
limiter and circuit breaker around the analyzer decide what happens next.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from whale_scout.core.config import ProviderConfig
from whale_scout.exceptions import ProviderResponseError, UpstreamError

log = logging.getLogger(__name__)


class HeliusClient:
    """Wraps an ``httpx.AsyncClient`` pointed at the Helius API.

    Pass ``http_client`` to share a client (or inject a ``MockTransport`` in
    tests); otherwise one is created lazily and closed by ``aclose()``.
    """

    def __init__(self, config: ProviderConfig, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._shared_client = http_client
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout),
                headers={
                    "Authorization": f"Bearer {self._config.api_key}",
                    "Content-Type": "application/json",
                    "User-Agent": self._config.user_agent,
                },
            )
        return self._client

    async def aclose(self) -> None:
        if self._shared_client is not None:
            return
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> HeliusClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ── Endpoints ────────────────────────────────────────────────────

    async def get_account(self, address: str) -> dict[str, Any] | None:
        """Parsed account info (lamports etc.), ``None`` for an unknown account."""
        data = await self._request(
            "POST", "/v0/accounts", json={"accounts": [address], "encoding": "jsonParsed"}
        )
        return _first_result(data)

    async def get_token_accounts(self, address: str) -> list[dict[str, Any]]:
        data = await self._request(
            "POST",
            "/v0/accounts",
            json={"accounts": [address], "tokenAccountsOnly": True, "encoding": "jsonParsed"},
        )
        account = _first_result(data) or {}
        tokens = account.get("tokens") or []
        if not isinstance(tokens, list):
            raise ProviderResponseError("token list is not an array")
        return tokens

    async def get_swap_transactions(self, address: str, limit: int | None = None) -> list[dict[str, Any]]:
        data = await self._request(
            "GET",
            f"/v0/addresses/{address}/transactions",
            params={"limit": limit or self._config.transaction_limit, "type": "SWAP"},
        )
        if not isinstance(data, list):
            raise ProviderResponseError("transactions payload is not an array")
        return data

    async def get_token_holders(self, mint: str, limit: int | None = None) -> list[str]:
        """Owner addresses of the largest holders of ``mint``."""
        data = await self._request(
            "GET",
            f"/v0/token/{mint}/holders",
            params={"limit": limit or self._config.holder_limit},
        )
        holders = data.get("holders") if isinstance(data, dict) else None
        if not isinstance(holders, list):
            return []
        return [h["owner"] for h in holders if isinstance(h, dict) and h.get("owner")]

    # ── Transport ────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderResponseError(f"{method} {path} returned invalid JSON") from exc


def _first_result(data: Any) -> dict[str, Any] | None:
    if not isinstance(data, dict):
        raise ProviderResponseError("account payload is not an object")
    result = data.get("result")
    if not result:
        return None
    first = result[0]
    return first if isinstance(first, dict) else None
