"""
VisionChat Configuration
========================

This module handles configuration loading for the batch core.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. visionchat.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    VISIONCHAT_MAX_IMAGES    -> batch.max_images
    VISIONCHAT_OVERSIZE_MB   -> batch.oversize_warning_mb
    VISIONCHAT_DETAIL_LIMIT  -> aggregation.detail_detection_limit
    VISIONCHAT_LOG_LEVEL     -> logging.level
    VISIONCHAT_LOG_FORMAT    -> logging.format

Example:
    from visionchat.config import settings

    print(settings.batch.max_images)
    print(settings.aggregation.placeholder_description)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class BatchConfig(BaseModel):
    """Batch admission configuration."""

    max_images: int = Field(
        default=10,
        ge=1,
        description="Maximum number of images held in one batch",
    )
    accepted_type_prefix: str = Field(
        default="image/",
        description="Declared content type prefix a candidate must carry",
    )
    oversize_warning_mb: float = Field(
        default=25.0,
        gt=0,
        description="Images above this size are flagged (not rejected)",
    )


class DecodeConfig(BaseModel):
    """Image decode configuration."""

    read_flags: str = Field(
        default="unchanged",
        description="OpenCV read mode: 'unchanged', 'color' or 'grayscale'",
    )


class AggregationConfig(BaseModel):
    """Aggregation engine configuration."""

    placeholder_description: str = Field(
        default="Upload and analyze images to see results here.",
        description="Summary text shown before any analysis exists",
    )
    default_processing_time: str = Field(
        default="0s",
        description="Processing time figure when the analysis supplies none",
    )
    detail_detection_limit: int = Field(
        default=5,
        ge=0,
        description="Detections listed in the detail view of one image",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for VisionChat.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    batch: BatchConfig = Field(default_factory=BatchConfig)
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to visionchat.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("visionchat.yaml"),
            Path(__file__).parent.parent.parent / "visionchat.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Batch settings
    if env_max := os.environ.get("VISIONCHAT_MAX_IMAGES"):
        config_data.setdefault("batch", {})["max_images"] = int(env_max)
    if env_oversize := os.environ.get("VISIONCHAT_OVERSIZE_MB"):
        config_data.setdefault("batch", {})["oversize_warning_mb"] = float(env_oversize)

    # Aggregation settings
    if env_limit := os.environ.get("VISIONCHAT_DETAIL_LIMIT"):
        config_data.setdefault("aggregation", {})["detail_detection_limit"] = int(env_limit)

    # Logging settings
    if env_log := os.environ.get("VISIONCHAT_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("VISIONCHAT_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
