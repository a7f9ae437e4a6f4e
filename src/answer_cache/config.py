import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "redis")  # or "memory"
    cache_index_name: str = os.getenv("CACHE_INDEX_NAME", "answer_cache")
    cache_threshold: float = float(os.getenv("CACHE_THRESHOLD", "0.7"))
    cache_ttl_default: int = int(os.getenv("CACHE_TTL_DEFAULT", "604800"))  # 7 days
    cache_ttl_fresh: int = int(os.getenv("CACHE_TTL_FRESH", "10800"))  # 3 hours
    cache_candidate_window: int = int(os.getenv("CACHE_CANDIDATE_WINDOW", "100"))
    cache_candidate_source: str = os.getenv("CACHE_CANDIDATE_SOURCE", "scan")  # or "index"
    cache_rank_k: int = int(os.getenv("CACHE_RANK_K", "3"))
    cache_native_expiry: bool = _env_bool("CACHE_NATIVE_EXPIRY", "false")

    # Embedding
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "openai")  # "ollama", "local"
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "1536"))

    # Generation
    generation_provider: str = os.getenv("GENERATION_PROVIDER", "openai")  # or "ollama"
    generation_model: str = os.getenv("GENERATION_MODEL", "gpt-4o-mini")
    generation_temperature: float = float(os.getenv("GENERATION_TEMPERATURE", "0.2"))

    # Upstream timeouts (seconds)
    embedding_timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "30"))
    generation_timeout: float = float(os.getenv("GENERATION_TIMEOUT", "60"))
    store_timeout: float = float(os.getenv("STORE_TIMEOUT", "5"))

    # Providers
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 <= self.cache_threshold <= 1:
            raise ValueError("CACHE_THRESHOLD must be a similarity between 0 and 1")

        if self.cache_ttl_default <= 0 or self.cache_ttl_fresh <= 0:
            raise ValueError("CACHE_TTL_DEFAULT and CACHE_TTL_FRESH must be positive")

        if self.cache_ttl_fresh > self.cache_ttl_default:
            raise ValueError(
                f"CACHE_TTL_FRESH ({self.cache_ttl_fresh}) must not exceed "
                f"CACHE_TTL_DEFAULT ({self.cache_ttl_default})"
            )

        if self.cache_candidate_window < 1 or self.cache_rank_k < 1:
            raise ValueError("CACHE_CANDIDATE_WINDOW and CACHE_RANK_K must be at least 1")

        if self.cache_backend not in ("redis", "memory"):
            raise ValueError(f"CACHE_BACKEND must be 'redis' or 'memory', got {self.cache_backend!r}")

        if self.cache_candidate_source not in ("scan", "index"):
            raise ValueError(
                f"CACHE_CANDIDATE_SOURCE must be 'scan' or 'index', got {self.cache_candidate_source!r}"
            )

        if self.embedding_provider not in ("openai", "ollama", "local"):
            raise ValueError(
                f"EMBEDDING_PROVIDER must be one of ['openai', 'ollama', 'local'], "
                f"got {self.embedding_provider!r}"
            )

        if self.generation_provider not in ("openai", "ollama"):
            raise ValueError(
                f"GENERATION_PROVIDER must be 'openai' or 'ollama', got {self.generation_provider!r}"
            )

        if self.embedding_dimension < 1:
            raise ValueError("EMBEDDING_DIMENSION must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(config: Settings | None = None) -> redis.Redis:
    """Create a Redis client instance."""
    config = config or settings
    return redis.from_url(
        config.redis_url,
        password=config.redis_password,
        decode_responses=False,
    )
