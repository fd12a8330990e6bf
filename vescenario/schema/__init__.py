"""
Scenario table schema: records, containers, loaders and validation
"""

from .errors import SchemaError, SchemaErrorKind, SchemaValidationError
from .records import (
    DEFAULT_METRIC,
    Category,
    CategoryLevel,
    InputFactor,
    InputLevel,
    InputReference,
    OutputMetric,
)
from .dataset import FactorSet, ScenarioModel
from .loaders import build_model, load_categories, load_input_factors, load_output_metrics
from .validation import validate

__all__ = [
    "SchemaError",
    "SchemaErrorKind",
    "SchemaValidationError",
    "DEFAULT_METRIC",
    "Category",
    "CategoryLevel",
    "InputFactor",
    "InputLevel",
    "InputReference",
    "OutputMetric",
    "FactorSet",
    "ScenarioModel",
    "build_model",
    "load_categories",
    "load_input_factors",
    "load_output_metrics",
    "validate",
]
