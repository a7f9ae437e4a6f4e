"""Category to time-to-live mapping."""

from dataclasses import dataclass

from answer_cache.config import Settings, settings
from answer_cache.entities import Category


@dataclass(frozen=True)
class FreshnessPolicy:
    """TTL lookup per volatility category.

    Attributes:
        fresh_ttl: Seconds a fresh answer stays reusable
        evergreen_ttl: Seconds an evergreen answer stays reusable
    """

    fresh_ttl: int
    evergreen_ttl: int

    def __post_init__(self) -> None:
        if self.fresh_ttl <= 0 or self.evergreen_ttl <= 0:
            raise ValueError("TTL values must be positive")

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "FreshnessPolicy":
        config = config or settings
        return cls(fresh_ttl=config.cache_ttl_fresh, evergreen_ttl=config.cache_ttl_default)

    def ttl_for(self, category: Category) -> int:
        """Return the TTL in seconds for ``category``."""
        if category is Category.FRESH:
            return self.fresh_ttl
        return self.evergreen_ttl
