"""SOL/USD price with a public-feed fallback chain."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from whale_scout.cache import TTLCache
from whale_scout.core.config import ProviderConfig

log = logging.getLogger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price?ids=solana&vs_currencies=usd"
BINANCE_URL = "https://api.binance.com/api/v3/ticker/price?symbol=SOLUSDT"
COINBASE_URL = "https://api.coinbase.com/v2/exchange-rates?currency=SOL"

_PRICE_KEY = "SOL_USD"


def _parse_coingecko(data: Any) -> float | None:
    return _positive(data.get("solana", {}).get("usd"))


def _parse_binance(data: Any) -> float | None:
    return _positive(data.get("price"))


def _parse_coinbase(data: Any) -> float | None:
    # currency=SOL returns how many USD one SOL buys
    return _positive(data.get("data", {}).get("rates", {}).get("USD"))


def _positive(raw: Any) -> float | None:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class SolPriceOracle:
    """Current SOL price in USD, cached for ``price_ttl_seconds``.

    Feeds are tried in order (CoinGecko, Binance, Coinbase). When all fail the
    last known price is returned, starting from ``fallback_sol_price``. Price
    lookups are not metered against the credit budget.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        self._config = config
        self._client = http_client
        self._owns_client = http_client is None
        self._cache = cache or TTLCache(max_entries=1, default_ttl_seconds=config.price_ttl_seconds)
        self._last_price = config.fallback_sol_price
        self._sources: list[tuple[str, str, Callable[[Any], float | None]]] = [
            ("coingecko", COINGECKO_URL, _parse_coingecko),
            ("binance", BINANCE_URL, _parse_binance),
            ("coinbase", COINBASE_URL, _parse_coinbase),
        ]

    @property
    def last_price(self) -> float:
        return self._last_price

    async def get_price(self) -> float:
        cached = self._cache.get(_PRICE_KEY)
        if cached is not None:
            return cached

        for name, url, parse in self._sources:
            price = await self._try_source(name, url, parse)
            if price is not None:
                log.info("SOL price updated: $%.2f (%s)", price, name)
                self._last_price = price
                self._cache.put(_PRICE_KEY, price)
                return price

        log.warning("All SOL price feeds failed, using last known $%.2f", self._last_price)
        return self._last_price

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _try_source(
        self, name: str, url: str, parse: Callable[[Any], float | None]
    ) -> float | None:
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("SOL price fetch from %s failed: %s", name, exc)
            return None
        if not isinstance(data, dict):
            return None
        return parse(data)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.price_timeout),
                headers={"User-Agent": self._config.user_agent, "Accept": "application/json"},
            )
        return self._client
