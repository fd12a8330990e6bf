"""
Dataset registry: process-wide, read-only scenario configuration.

Models are loaded once per variant and held until explicitly reloaded.
Registered models are immutable, so lookups need no locking; only
registration and replacement are serialized.
"""

import logging
import threading
from typing import Dict, List, Optional

from .config import ViewerConfig
from .io.tables import discover_variants, read_dataset_tables
from .schema import ScenarioModel, build_model

logger = logging.getLogger(__name__)

# Global registry: variant name -> model
_dataset_registry: Dict[str, ScenarioModel] = {}
# Variant name -> config it was loaded with (for reload)
_dataset_sources: Dict[str, ViewerConfig] = {}
_lock = threading.Lock()


def register_dataset(name: str, model: ScenarioModel, config: Optional[ViewerConfig] = None) -> ScenarioModel:
    """
    Register an already-built model under a name.

    Args:
        name: Variant name (replaces any model registered under it)
        model: Validated model
        config: Config the model was loaded with, enabling reload_dataset
    """
    with _lock:
        if name in _dataset_registry:
            logger.info(f"Dataset '{name}' is already registered. Replacing.")
        _dataset_registry[name] = model
        if config is not None:
            _dataset_sources[name] = config
        else:
            _dataset_sources.pop(name, None)
    logger.debug(f"Registered dataset: {name}")
    return model


def load_dataset(variant: str, config: Optional[ViewerConfig] = None) -> ScenarioModel:
    """
    Read, validate and register one dataset variant.

    Raises:
        FileNotFoundError: If the variant directory or a table file is missing
        SchemaValidationError: If the tables are inconsistent
    """
    config = config or ViewerConfig()
    tables = read_dataset_tables(config.data.root_path() / variant, config.data)
    model = build_model(
        tables.categories,
        tables.scenarios,
        tables.outputs,
        name=variant,
        default_metric=config.loader.default_metric,
    )
    return register_dataset(variant, model, config)


def load_all_datasets(config: Optional[ViewerConfig] = None) -> Dict[str, ScenarioModel]:
    """Load the configured variants, or every variant found under the data root"""
    config = config or ViewerConfig()
    variants = config.data.variants or discover_variants(data_config=config.data)
    if not variants:
        logger.warning(f"No dataset variants found under {config.data.root_path()}")
    return {variant: load_dataset(variant, config) for variant in variants}


def reload_dataset(name: str) -> ScenarioModel:
    """
    Reload a variant from its source tables.

    The previously registered model stays in place if reloading fails.
    """
    with _lock:
        config = _dataset_sources.get(name)
    if config is None:
        raise ValueError(f"Dataset '{name}' was not loaded from tables and cannot be reloaded")
    logger.info(f"Reloading dataset: {name}")
    return load_dataset(name, config)


def list_datasets() -> List[str]:
    """
    List all registered dataset names.

    Returns:
        Sorted list of names
    """
    return sorted(_dataset_registry.keys())


def get_dataset(name: str) -> ScenarioModel:
    """
    Get a registered model by name.

    Raises:
        ValueError: If the name is unknown
    """
    model = _dataset_registry.get(name)
    if model is None:
        available = list_datasets()
        if available:
            raise ValueError(f"Unknown dataset: '{name}'. Available datasets: {', '.join(available)}")
        raise ValueError(f"Unknown dataset: '{name}'. No datasets are loaded.")
    return model


def clear_datasets() -> None:
    """Drop every registered model"""
    with _lock:
        _dataset_registry.clear()
        _dataset_sources.clear()
