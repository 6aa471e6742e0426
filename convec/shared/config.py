"""
Configuration management for Convec.

Loads settings from convec_config.yaml and environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class ImageConfig(BaseModel):
    """Limits applied when decoding uploaded images."""

    max_image_size: int = 2400
    max_file_size: int = 50 * 1024 * 1024
    supported_formats: list[str] = Field(
        default_factory=lambda: ["png", "jpeg", "jpg", "webp"]
    )


class BackgroundConfig(BaseModel):
    """Background removal defaults and limits."""

    max_tolerance: int = 100
    default_target_color: tuple[int, int, int] = (255, 255, 255)
    max_batch_size: int = 10


class VectorizationConfig(BaseModel):
    """Default tracing options used when a request leaves them out."""

    threshold: int = 128
    turdsize: int = 5
    optcurve: bool = True
    opttolerance: float = 1.0
    scale: float = 1.0
    fill_color: str = "#000000"
    normalize_winding: bool = False


class APIConfig(BaseModel):
    """HTTP API configuration."""

    title: str = "Convec API"
    cors_enabled: bool = True
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LocalConfig(BaseModel):
    """Local development configuration."""

    api_host: str = "0.0.0.0"
    api_port: int = 3000
    debug: bool = False


class Settings(BaseSettings):
    """
    Main settings class for Convec.

    Loads configuration from convec_config.yaml and environment variables.
    """

    image: ImageConfig = Field(default_factory=ImageConfig)
    background: BackgroundConfig = Field(default_factory=BackgroundConfig)
    vectorization: VectorizationConfig = Field(default_factory=VectorizationConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    local: LocalConfig = Field(default_factory=LocalConfig)

    class Config:
        env_prefix = "CONVEC_"
        env_nested_delimiter = "__"

    def is_supported_format(self, fmt: str) -> bool:
        """Check whether an output/input format name is accepted."""
        return fmt.lower() in self.image.supported_formats


def load_config_file(config_path: Optional[Path] = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Looks for config files in order:
    1. Provided path
    2. convec_config.local.yaml (developer overrides)
    3. convec_config.yaml (default config)

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Configuration dictionary
    """
    project_root = Path(__file__).parent.parent.parent
    config_dir = project_root / "config"

    config_files = [
        config_path,
        config_dir / "convec_config.local.yaml",
        config_dir / "convec_config.yaml",
    ]

    for cfg_file in config_files:
        if cfg_file and cfg_file.exists():
            with open(cfg_file) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache()
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get application settings (cached).

    Args:
        config_path: Optional path to config file

    Returns:
        Settings instance
    """
    config_data = load_config_file(Path(config_path) if config_path else None)
    return Settings(**config_data)


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings, clearing the cache.

    Args:
        config_path: Optional path to config file

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings(config_path)
