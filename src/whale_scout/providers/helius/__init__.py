"""Helius-backed analyzer and discovery source."""

from whale_scout.providers.helius.analyzer import HeliusWalletAnalyzer
from whale_scout.providers.helius.client import HeliusClient
from whale_scout.providers.helius.discovery import KNOWN_WHALES, HeliusDiscoverySource

__all__ = ["KNOWN_WHALES", "HeliusClient", "HeliusDiscoverySource", "HeliusWalletAnalyzer"]
