from dataclasses import dataclass


@dataclass
class PerformanceMetrics:
    """Track request outcomes for the stats endpoint."""

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    forced_refreshes: int = 0
    degraded_lookups: int = 0
    failed_queries: int = 0
    total_latency_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    @property
    def avg_latency_ms(self) -> float:
        """Calculate average end-to-end latency."""
        if self.total_queries == 0:
            return 0.0
        return self.total_latency_ms / self.total_queries

    def record_hit(self, latency_ms: float) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        self.cache_hits += 1
        self.total_latency_ms += latency_ms

    def record_miss(self, latency_ms: float, forced: bool = False, degraded: bool = False) -> None:
        """Record a cache miss."""
        self.total_queries += 1
        self.cache_misses += 1
        self.total_latency_ms += latency_ms
        if forced:
            self.forced_refreshes += 1
        if degraded:
            self.degraded_lookups += 1

    def record_failure(self) -> None:
        self.failed_queries += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "forced_refreshes": self.forced_refreshes,
            "degraded_lookups": self.degraded_lookups,
            "failed_queries": self.failed_queries,
            "hit_rate": self.hit_rate,
            "avg_latency_ms": self.avg_latency_ms,
        }
