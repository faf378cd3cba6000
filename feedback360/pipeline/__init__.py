"""Cache coordination: freshness checks, single-flight recompute, phases."""

from feedback360.pipeline.cache_coordinator import CacheCoordinator
from feedback360.pipeline.phase_tracker import PhaseTracker

__all__ = ["CacheCoordinator", "PhaseTracker"]
