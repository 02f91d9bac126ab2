"""
Configuration loader for the PeelForge segmentation service.

Environment variables are centralized here to keep the rest of the code
focused on the pixel work and to make threshold tuning explicit.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings

STRATEGIES = {"edge_flood_fill", "heuristic_scored"}


class Settings(BaseSettings):
    # Segmentation thresholds
    border_sample_width: int = Field(10, env="BORDER_SAMPLE_WIDTH")
    edge_threshold: float = Field(40.0, env="EDGE_THRESHOLD")
    color_tolerance: float = Field(35.0, env="COLOR_TOLERANCE")
    seed_band_width: int = Field(5, env="SEED_BAND_WIDTH")
    classifier_strategy: str = Field("edge_flood_fill", env="CLASSIFIER_STRATEGY")

    # Heuristic-scored classifier tunables
    heuristic_color_range: float = Field(120.0, env="HEURISTIC_COLOR_RANGE")
    heuristic_flatness_range: float = Field(24.0, env="HEURISTIC_FLATNESS_RANGE")
    heuristic_score_threshold: float = Field(0.5, env="HEURISTIC_SCORE_THRESHOLD")

    # Manual editor brush (diameter in pixels)
    default_brush_size: int = Field(20, env="DEFAULT_BRUSH_SIZE")
    min_brush_size: int = Field(5, env="MIN_BRUSH_SIZE")
    max_brush_size: int = Field(100, env="MAX_BRUSH_SIZE")

    # Cloudflare R2 / S3-compatible storage
    r2_endpoint: Optional[str] = Field(None, env="R2_ENDPOINT")
    r2_access_key_id: Optional[str] = Field(None, env="R2_ACCESS_KEY_ID")
    r2_secret_access_key: Optional[str] = Field(None, env="R2_SECRET_ACCESS_KEY")
    r2_bucket_name: Optional[str] = Field(None, env="R2_BUCKET_NAME")
    r2_public_base_url: Optional[str] = Field(None, env="R2_PUBLIC_BASE_URL")

    # API
    request_timeout_seconds: int = Field(30, env="REQUEST_TIMEOUT_SECONDS")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # Debugging
    debug: bool = Field(False, env="DEBUG")
    debug_output_dir: Path = Field(Path("/tmp/peelforge_debug"), env="DEBUG_OUTPUT_DIR")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @validator("classifier_strategy")
    def validate_strategy(cls, v: str) -> str:  # noqa: B902
        v = v.lower()
        if v not in STRATEGIES:
            raise ValueError("CLASSIFIER_STRATEGY must be one of edge_flood_fill|heuristic_scored")
        return v

    @validator("border_sample_width", "seed_band_width")
    def validate_band(cls, v: int) -> int:  # noqa: B902
        if v < 1:
            raise ValueError("band widths must be at least 1 pixel")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


@dataclass(frozen=True)
class SegmentationParams:
    """Thresholds for one segmentation run."""

    border_sample_width: int = 10
    edge_threshold: float = 40.0
    color_tolerance: float = 35.0
    seed_band_width: int = 5
    heuristic_color_range: float = 120.0
    heuristic_flatness_range: float = 24.0
    heuristic_score_threshold: float = 0.5

    def __post_init__(self) -> None:
        if self.border_sample_width < 1:
            raise ValueError(f"border_sample_width must be >= 1, got {self.border_sample_width}")
        if self.seed_band_width < 1:
            raise ValueError(f"seed_band_width must be >= 1, got {self.seed_band_width}")
        if self.color_tolerance < 0:
            raise ValueError(f"color_tolerance must be >= 0, got {self.color_tolerance}")


def params_from_settings(settings: Optional[Settings] = None) -> SegmentationParams:
    """Bundle the segmentation tunables from settings into one value."""
    settings = settings or get_settings()
    return SegmentationParams(
        border_sample_width=settings.border_sample_width,
        edge_threshold=settings.edge_threshold,
        color_tolerance=settings.color_tolerance,
        seed_band_width=settings.seed_band_width,
        heuristic_color_range=settings.heuristic_color_range,
        heuristic_flatness_range=settings.heuristic_flatness_range,
        heuristic_score_threshold=settings.heuristic_score_threshold,
    )
