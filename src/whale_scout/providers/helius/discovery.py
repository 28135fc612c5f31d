"""Candidate discovery: curated whale list plus the largest USDC holders."""

from __future__ import annotations

import logging

from whale_scout.exceptions import UpstreamError
from whale_scout.providers.helius.client import HeliusClient
from whale_scout.scoring.heuristics import is_valid_solana_address

log = logging.getLogger(__name__)

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

KNOWN_WHALES: tuple[str, ...] = (
    "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
    "EhpADckqRbCNSLqnSmeMnF8PjQiX8jg6JXxrHvQaDSyB",
    "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1",
    "GThUX1Atko4tqhN2NaiTazWSeFWMuiUiswQESGMd9BKJ",
    "FWznbcNjha2fqVPZhYWgpCNR1Xw9HfHk1pGhcaNPGj9x",
    "DRiP2Pn2K6fuMLKQmt5rZWxa91HZjbNu8UuJqrmtggc2",
    "CWE8jPTUYhdCTZYWPTe1o5DFqfdjzWKc9WKz6rSjQUdG",
    "A1CR6QCXcNZwLyT1ym5hVmcfWGCtTJCMwx5LmGKNKKkK",
    "B1gGvvpd26jt2HDbJVe9VTq4ctH6AHEZa7CFk7TRVUvA",
    "C2jDL4pcwpE2pP8DfW9TDM5F1F7VpVhKz9VpjK7PqNq8",
)


class HeliusDiscoverySource:
    """``IDiscoverySource`` over the Helius token-holder endpoint.

    Best effort: an upstream failure still yields the curated list.
    """

    def __init__(self, client: HeliusClient, *, max_candidates: int = 200, mint: str = USDC_MINT) -> None:
        self._client = client
        self._max_candidates = max_candidates
        self._mint = mint

    async def discover(self) -> list[str]:
        candidates = list(KNOWN_WHALES)
        try:
            holders = await self._client.get_token_holders(self._mint)
        except UpstreamError as exc:
            log.warning("Token holder discovery failed, using known wallets only: %s", exc)
        else:
            log.info("Discovered %d %s holders", len(holders), self._mint[:8])
            candidates.extend(holders)

        unique = [a for a in dict.fromkeys(candidates) if is_valid_solana_address(a)]
        return unique[: self._max_candidates]
