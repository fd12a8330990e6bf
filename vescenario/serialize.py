"""
Re-serialization of a loaded model into the viewer's table shape.

Rows of a loaded model come back exactly as they were read: the same keys,
the same wrapped or plain scalars, unknown keys included. The one exception
is an output whose METRIC was missing or empty; it is written with the
default metric it was loaded with. Records built in code use the viewer's
canonical shape, where the category and scenario tables wrap every scalar in
a single-element array and the output table uses plain scalars.
"""

import hashlib
import json
from typing import Any, Dict, Iterable, List

from .schema import Category, InputFactor, OutputMetric, ScenarioModel


def factors_to_raw(factors: Iterable[InputFactor]) -> List[Dict[str, Any]]:
    return [factor.to_raw(wrap=True) for factor in factors]


def categories_to_raw(categories: Iterable[Category]) -> List[Dict[str, Any]]:
    return [category.to_raw(wrap=True) for category in categories]


def outputs_to_raw(outputs: Iterable[OutputMetric]) -> List[Dict[str, Any]]:
    return [output.to_raw() for output in outputs]


def model_to_raw(model: ScenarioModel) -> Dict[str, List[Dict[str, Any]]]:
    """
    Serialize a model back into its three raw tables.

    Returns:
        Dict with "categories", "scenarios" and "outputs" table rows
    """
    return {
        "categories": categories_to_raw(model.categories),
        "scenarios": factors_to_raw(model.factors),
        "outputs": outputs_to_raw(model.outputs),
    }


def model_fingerprint(model: ScenarioModel) -> str:
    """Deterministic short hash of the model's canonical table content"""
    tables_json = json.dumps(model_to_raw(model), sort_keys=True, ensure_ascii=False, default=str)
    hash_hex = hashlib.sha256(tables_json.encode("utf-8")).hexdigest()[:12]
    return f"cfg-{hash_hex}"
