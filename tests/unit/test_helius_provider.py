"""Tests for the Helius client, analyzer, discovery source and price oracle.

All HTTP goes through ``httpx.MockTransport``; no network is touched.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from whale_scout.core.config import AnalyzerConfig, ProviderConfig
from whale_scout.exceptions import ProviderResponseError, UpstreamError
from whale_scout.providers.helius import (
    KNOWN_WHALES,
    HeliusClient,
    HeliusDiscoverySource,
    HeliusWalletAnalyzer,
)
from whale_scout.providers.helius.discovery import USDC_MINT
from whale_scout.providers.price import SolPriceOracle

_WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
_HOLDER = "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler) -> HeliusClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://helius.test")
    return HeliusClient(ProviderConfig(api_key="k", base_url="https://helius.test"), http_client=http)


def _helius_handler(
    *,
    lamports: int = 100 * 1_000_000_000,
    tokens: list | None = None,
    transactions: list | None = None,
    tx_status: int = 200,
    token_status: int = 200,
) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/v0/accounts":
            body = json.loads(request.content)
            if body.get("tokenAccountsOnly"):
                if token_status != 200:
                    return httpx.Response(token_status)
                return httpx.Response(200, json={"result": [{"tokens": tokens or []}]})
            return httpx.Response(200, json={"result": [{"lamports": lamports}]})
        if path.endswith("/transactions"):
            if tx_status != 200:
                return httpx.Response(tx_status)
            return httpx.Response(200, json=transactions or [])
        return httpx.Response(404)

    return handler


class _FixedPrice:
    def __init__(self, price: float) -> None:
        self.price = price

    async def get_price(self) -> float:
        return self.price


class TestHeliusClient:
    async def test_swap_transactions_request(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"timestamp": 1}])

        client = _client(handler)
        txs = await client.get_swap_transactions(_WALLET, limit=10)

        assert txs == [{"timestamp": 1}]
        assert seen[0].url.path == f"/v0/addresses/{_WALLET}/transactions"
        assert seen[0].url.params["type"] == "SWAP"
        assert seen[0].url.params["limit"] == "10"

    async def test_http_error_status_is_upstream_error(self):
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(UpstreamError) as exc_info:
            await client.get_account(_WALLET)
        assert exc_info.value.status_code == 503

    async def test_transport_error_is_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError):
            await _client(handler).get_account(_WALLET)

    async def test_invalid_json_is_provider_response_error(self):
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(ProviderResponseError) as exc_info:
            await client.get_account(_WALLET)
        assert exc_info.value.kind == "transient"

    async def test_unknown_account_is_none(self):
        client = _client(lambda request: httpx.Response(200, json={"result": []}))
        assert await client.get_account(_WALLET) is None

    async def test_token_holders_extracts_owners(self):
        payload = {"holders": [{"owner": _HOLDER}, {"amount": 5}, "junk"]}
        client = _client(lambda request: httpx.Response(200, json=payload))
        assert await client.get_token_holders(USDC_MINT) == [_HOLDER]

    async def test_shared_client_not_closed(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = HeliusClient(ProviderConfig(api_key="k"), http_client=http)
        await client.aclose()
        assert not http.is_closed
        await http.aclose()


class TestWalletAnalyzer:
    def _analyzer(self, handler: Handler, price: float = 150.0) -> HeliusWalletAnalyzer:
        return HeliusWalletAnalyzer(_client(handler), _FixedPrice(price), AnalyzerConfig())

    async def test_builds_whale(self):
        tokens = [
            {"mint": USDC_MINT, "amount": 20_000 * 10**6, "decimals": 6},
            {"mint": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", "amount": 1_000 * 10**6, "decimals": 6},
        ]
        txs = [{"timestamp": 1_700_000_000}] * 3 + [{"timestamp": 1_700_000_100, "transactionError": "x"}]
        analyzer = self._analyzer(_helius_handler(tokens=tokens, transactions=txs))

        wallet = await analyzer.analyze(_WALLET)

        assert wallet is not None
        assert wallet.balance.sol == 100.0
        assert wallet.balance.usdc == 20_000.0
        assert wallet.balance.total_tokens_usd == 500.0
        assert wallet.balance.total_balance_usd == 100 * 150.0 + 20_000 + 500
        assert wallet.stats.win_rate == 75.0
        assert wallet.win_rate == "75.0%"
        assert wallet.name == f"Whale {_WALLET[:8]}"
        assert wallet.category == "WHALE"
        assert wallet.tags[0] == "WHALE"

    async def test_small_wallet_is_not_a_whale(self):
        analyzer = self._analyzer(_helius_handler(lamports=1_000_000_000))
        assert await analyzer.analyze(_WALLET) is None

    async def test_low_win_rate_is_not_a_whale(self):
        txs = [{"timestamp": 1, "transactionError": "x"}] * 4
        analyzer = self._analyzer(_helius_handler(lamports=1_000 * 10**9, transactions=txs))
        assert await analyzer.analyze(_WALLET) is None

    async def test_token_failure_degrades_to_sol_only(self):
        analyzer = self._analyzer(_helius_handler(lamports=500 * 10**9, token_status=500))
        balance = await analyzer.get_balance(_WALLET)
        assert balance.usdc == 0.0
        assert balance.total_balance_usd == 500 * 150.0

    async def test_history_failure_uses_baseline(self):
        analyzer = self._analyzer(_helius_handler(tx_status=500))
        known = await analyzer.get_stats(KNOWN_WHALES[0])
        other = await analyzer.get_stats(_WALLET)
        assert known.win_rate == 70.0
        assert other.win_rate == 55.0

    async def test_account_failure_propagates(self):
        analyzer = self._analyzer(lambda request: httpx.Response(502))
        with pytest.raises(UpstreamError):
            await analyzer.analyze(_WALLET)


class TestDiscovery:
    async def test_known_whales_then_holders(self):
        payload = {"holders": [{"owner": _HOLDER}, {"owner": KNOWN_WHALES[0]}, {"owner": "bad!"}]}
        source = HeliusDiscoverySource(_client(lambda request: httpx.Response(200, json=payload)))

        found = await source.discover()

        assert found[: len(KNOWN_WHALES)] == list(KNOWN_WHALES)
        assert found[len(KNOWN_WHALES) :] == [_HOLDER]

    async def test_upstream_failure_returns_known_whales(self):
        source = HeliusDiscoverySource(_client(lambda request: httpx.Response(500)))
        assert await source.discover() == list(KNOWN_WHALES)

    async def test_capped(self):
        source = HeliusDiscoverySource(_client(lambda request: httpx.Response(500)), max_candidates=3)
        assert await source.discover() == list(KNOWN_WHALES[:3])


def _price_client(responses: dict[str, httpx.Response], calls: list[str]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        return responses.get(request.url.host, httpx.Response(500))

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSolPriceOracle:
    async def test_first_feed_wins_and_is_cached(self):
        calls: list[str] = []
        http = _price_client({"api.coingecko.com": httpx.Response(200, json={"solana": {"usd": 142.5}})}, calls)
        oracle = SolPriceOracle(ProviderConfig(), http_client=http)

        assert await oracle.get_price() == 142.5
        assert await oracle.get_price() == 142.5
        assert calls == ["api.coingecko.com"]

    async def test_falls_back_through_feeds(self):
        calls: list[str] = []
        http = _price_client(
            {"api.coinbase.com": httpx.Response(200, json={"data": {"rates": {"USD": "151.20"}}})}, calls
        )
        oracle = SolPriceOracle(ProviderConfig(), http_client=http)

        assert await oracle.get_price() == pytest.approx(151.2)
        assert calls == ["api.coingecko.com", "api.binance.com", "api.coinbase.com"]
        assert oracle.last_price == pytest.approx(151.2)

    async def test_all_feeds_down_uses_fallback(self):
        oracle = SolPriceOracle(ProviderConfig(fallback_sol_price=99.0), http_client=_price_client({}, []))
        assert await oracle.get_price() == 99.0

    async def test_binance_string_price(self):
        http = _price_client({"api.binance.com": httpx.Response(200, json={"price": "160.00000000"})}, [])
        assert await SolPriceOracle(ProviderConfig(), http_client=http).get_price() == 160.0
