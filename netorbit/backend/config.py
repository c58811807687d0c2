"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    VOCAB_SIZE=2000
    WEIGHTING=tfidf
    MAX_SATELLITES_PER_PLANET=12
    RANDOM_SEED=7

Runtime tunables (the subset the API may change while the pipeline runs)
are validated through VectorizerConfig / UniverseConfig.  Anything out of
range is rejected with ConfigError at the apply boundary, so a bad update can
never silently filter out every token.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal, Mapping

from pydantic import BaseModel, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(ValueError):
    """Raised when a configuration update is rejected."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Vectorizer
    VOCAB_SIZE: int = 1000
    HASH_DIM: int = 2048
    EMIT_HZ: float = 10.0
    PCA_DIM: int = 3
    PROJ_DIM: int = 16
    K_CLUSTERS: int = 8
    BATCH: int = 32
    DECAY: float = 0.995
    WEIGHTING: Literal["count", "tfidf"] = "count"
    MIN_DF_RATIO: float = 0.0
    MAX_DF_RATIO: float = 1.0
    PCA_LEARNING_RATE: float = 0.05
    HASH_SEED: int = 1337
    RANDOM_SEED: int | None = None   # None → fresh entropy every run

    # Scheduler
    TICK_INTERVAL_MS: int = 50
    MAX_POINTS: int = 2_500
    RECORD_QUEUE_SIZE: int = 0       # 0 → unbounded until drained

    # Universe aggregator
    MAX_SATELLITES_PER_PLANET: int = 8
    WINDOW_DURATION_MS: int = 60_000
    UNIVERSE_PUSH_INTERVAL_SECONDS: float = 1.0

    # API
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("RANDOM_SEED", mode="before")
    @classmethod
    def parse_seed(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "none", "null"):
            return None
        return v


# ---------------------------------------------------------------------------
# Validated tunables
# ---------------------------------------------------------------------------

class VectorizerConfig(BaseModel):
    """
    Feature/embedding pipeline tunables with their valid ranges.

    Structural fields (hash_dim, proj_dim, pca_dim, k_clusters) size the
    lazily-built matrices and are fixed once the pipeline starts; see
    RUNTIME_FIELDS for the ones that may change afterwards.
    """

    vocab_size: int = 1000
    """Top-K tokens tracked explicitly (>= 128)."""

    hash_dim: int = 2048
    emit_hz: float = 10.0
    pca_dim: int = 3
    proj_dim: int = 16
    k_clusters: int = 8
    batch: int = 32
    decay: float = 0.995
    weighting: Literal["count", "tfidf"] = "count"
    min_df_ratio: float = 0.0
    max_df_ratio: float = 1.0
    pca_learning_rate: float = 0.05
    hash_seed: int = 1337

    RUNTIME_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"vocab_size", "weighting", "min_df_ratio", "max_df_ratio", "emit_hz", "batch"}
    )

    @field_validator("vocab_size")
    @classmethod
    def check_vocab(cls, v: int) -> int:
        if v < 128:
            raise ValueError(f"vocab_size must be >= 128 — got {v}")
        return v

    @field_validator("hash_dim")
    @classmethod
    def check_hash_dim(cls, v: int) -> int:
        if v < 16:
            raise ValueError(f"hash_dim must be >= 16 — got {v}")
        return v

    @field_validator("pca_dim", "proj_dim", "k_clusters", "batch")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1 — got {v}")
        return v

    @field_validator("emit_hz", "pca_learning_rate")
    @classmethod
    def check_rate(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"must be > 0 — got {v}")
        return v

    @field_validator("decay")
    @classmethod
    def check_decay(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"decay must be in (0, 1) — got {v}")
        return v

    @field_validator("min_df_ratio", "max_df_ratio")
    @classmethod
    def clamp_ratio(cls, v: float) -> float:
        return max(0.0, min(1.0, v))

    @model_validator(mode="after")
    def check_consistency(self) -> "VectorizerConfig":
        if self.min_df_ratio > self.max_df_ratio:
            raise ValueError(
                f"min_df_ratio ({self.min_df_ratio}) > max_df_ratio "
                f"({self.max_df_ratio}) would filter out every token"
            )
        if self.pca_dim > self.proj_dim:
            raise ValueError(
                f"pca_dim ({self.pca_dim}) cannot exceed proj_dim ({self.proj_dim})"
            )
        return self

    @classmethod
    def from_settings(cls, s: Settings) -> "VectorizerConfig":
        return cls(
            vocab_size=s.VOCAB_SIZE,
            hash_dim=s.HASH_DIM,
            emit_hz=s.EMIT_HZ,
            pca_dim=s.PCA_DIM,
            proj_dim=s.PROJ_DIM,
            k_clusters=s.K_CLUSTERS,
            batch=s.BATCH,
            decay=s.DECAY,
            weighting=s.WEIGHTING,
            min_df_ratio=s.MIN_DF_RATIO,
            max_df_ratio=s.MAX_DF_RATIO,
            pca_learning_rate=s.PCA_LEARNING_RATE,
            hash_seed=s.HASH_SEED,
        )

    def merged(self, partial: Mapping[str, Any]) -> "VectorizerConfig":
        """
        Return a new config with *partial* applied on top of this one.

        Only RUNTIME_FIELDS may be changed; unknown or structural keys and
        out-of-range values raise ConfigError and leave ``self`` untouched.
        """
        bad = set(partial) - self.RUNTIME_FIELDS
        if bad:
            raise ConfigError(f"not runtime-tunable: {sorted(bad)}")
        return _revalidate(type(self), self.model_dump(), partial)


class UniverseConfig(BaseModel):
    """Aggregator tunables."""

    max_satellites_per_planet: int = 8
    window_duration_ms: int = 60_000

    @field_validator("max_satellites_per_planet", "window_duration_ms")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1 — got {v}")
        return v

    @classmethod
    def from_settings(cls, s: Settings) -> "UniverseConfig":
        return cls(
            max_satellites_per_planet=s.MAX_SATELLITES_PER_PLANET,
            window_duration_ms=s.WINDOW_DURATION_MS,
        )

    def merged(self, partial: Mapping[str, Any]) -> "UniverseConfig":
        bad = set(partial) - set(type(self).model_fields)
        if bad:
            raise ConfigError(f"unknown universe settings: {sorted(bad)}")
        return _revalidate(type(self), self.model_dump(), partial)


def _revalidate(model: type[BaseModel], current: dict, partial: Mapping[str, Any]):
    current.update(partial)
    try:
        return model(**current)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


settings = Settings()
