"""
Configuration system: schemas and loaders
"""

from .schemas import (
    BUNDLED_DATA_DIR,
    DataConfig,
    LoaderConfig,
    ExportConfig,
    ViewerConfig,
)
from .loader import load_config, apply_env_overrides, apply_cli_overrides

__all__ = [
    "BUNDLED_DATA_DIR",
    "DataConfig",
    "LoaderConfig",
    "ExportConfig",
    "ViewerConfig",
    "load_config",
    "apply_env_overrides",
    "apply_cli_overrides",
]
