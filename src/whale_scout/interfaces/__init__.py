from .protocols import IDiscoverySource, IEventSink, IReadModelStore, IWalletAnalyzer

__all__ = ["IWalletAnalyzer", "IDiscoverySource", "IReadModelStore", "IEventSink"]
