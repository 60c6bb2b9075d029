from .engine import DiscoveryConfig, DiscoveryEngine, DiscoveryRun, DiscoverySummary

__all__ = ["DiscoveryConfig", "DiscoveryEngine", "DiscoveryRun", "DiscoverySummary"]
