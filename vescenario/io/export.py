"""
Flat tabular exports of a loaded model.

Each table is written as CSV:
- factors.csv
- levels.csv
- categories.csv
- outputs.csv
- scenarios.csv (optional)
"""

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from ..schema import ScenarioModel
from ..scenarios import enumerate_scenarios

logger = logging.getLogger(__name__)

FACTOR_COLUMNS = ["code", "label", "description", "instructions", "level_count"]
LEVEL_COLUMNS = ["factor", "level", "label", "description"]
CATEGORY_COLUMNS = ["category", "description", "level", "factor", "factor_level"]
OUTPUT_COLUMNS = ["column", "name", "label", "description", "instructions", "metric", "unit"]


def model_to_frames(model: ScenarioModel) -> Dict[str, pd.DataFrame]:
    """
    Flatten a model into one DataFrame per table.

    Returns:
        Dict with "factors", "levels", "categories" (one row per input reference) and "outputs"
    """
    factors = [
        {
            "code": factor.code,
            "label": factor.label,
            "description": factor.description,
            "instructions": factor.instructions,
            "level_count": len(factor.levels),
        }
        for factor in model.factors
    ]
    levels = [
        {
            "factor": factor.code,
            "level": level.name,
            "label": level.label,
            "description": level.description,
        }
        for factor in model.factors
        for level in factor.levels
    ]
    categories = [
        {
            "category": category.name,
            "description": category.description,
            "level": level.name,
            "factor": ref.factor,
            "factor_level": ref.level,
        }
        for category in model.categories
        for level in category.levels
        for ref in level.inputs
    ]
    outputs = [
        {
            "column": output.column,
            "name": output.name,
            "label": output.label,
            "description": output.description,
            "instructions": output.instructions,
            "metric": output.metric,
            "unit": output.unit,
        }
        for output in model.outputs
    ]

    return {
        "factors": pd.DataFrame(factors, columns=FACTOR_COLUMNS),
        "levels": pd.DataFrame(levels, columns=LEVEL_COLUMNS),
        "categories": pd.DataFrame(categories, columns=CATEGORY_COLUMNS),
        "outputs": pd.DataFrame(outputs, columns=OUTPUT_COLUMNS),
    }


def export_model(
    model: ScenarioModel,
    out_dir,
    include_scenarios: bool = False,
    factor_prefix: str = "",
) -> List[Path]:
    """
    Write the model's tables as CSV files.

    Args:
        model: Loaded model
        out_dir: Target directory (created if missing)
        include_scenarios: Also write the enumerated scenario grid
        factor_prefix: Prefix for the grid's input factor columns

    Returns:
        Paths of the written files
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    frames = model_to_frames(model)
    if include_scenarios:
        frames["scenarios"] = enumerate_scenarios(model, factor_prefix=factor_prefix)

    written = []
    for table, frame in frames.items():
        path = out_dir / f"{table}.csv"
        frame.to_csv(path, index=False)
        written.append(path)
        logger.debug(f"Wrote {len(frame)} rows to {path}")

    logger.info(f"Exported {model.name or 'dataset'} to {out_dir}")
    return written
