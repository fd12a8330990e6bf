"""
Scenario selection: mapping category choices onto input factor levels.

A scenario is one level chosen per category. Each category level expands to
the input factor levels it references, so a full selection determines the
level of every referenced input factor.
"""

import itertools
import logging
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .schema import ScenarioModel

logger = logging.getLogger(__name__)


def resolve_selection(model: ScenarioModel, selection: Mapping[str, str]) -> Dict[str, str]:
    """
    Expand a category selection into input factor levels.

    Args:
        model: Loaded model
        selection: Category name -> category level name

    Returns:
        Input factor code -> level name, in category then reference order

    Raises:
        KeyError: Unknown category or category level
        ValueError: Two categories assign different levels to the same factor
    """
    resolved: Dict[str, str] = {}
    assigned_by: Dict[str, str] = {}

    for category_name, level_name in selection.items():
        level = model.get_category_level(category_name, level_name)
        for ref in level.inputs:
            previous = resolved.get(ref.factor)
            if previous is not None and previous != ref.level:
                raise ValueError(
                    f"Conflicting levels for input factor '{ref.factor}': "
                    f"'{previous}' from category '{assigned_by[ref.factor]}', "
                    f"'{ref.level}' from category '{category_name}'"
                )
            resolved[ref.factor] = ref.level
            assigned_by[ref.factor] = category_name

    return resolved


def enumerate_scenarios(
    model: ScenarioModel,
    categories: Optional[Sequence[str]] = None,
    factor_prefix: str = "",
) -> pd.DataFrame:
    """
    Enumerate every combination of category levels.

    Args:
        model: Loaded model
        categories: Categories to combine (default: all, in table order)
        factor_prefix: Prepended to every input factor column name

    Returns:
        DataFrame with one column per category (its chosen level) followed by
        one column per referenced input factor code. Combinations that assign
        conflicting levels to one factor are skipped.

    Raises:
        ValueError: An input factor column would share its name with a category column
    """
    names = list(categories) if categories is not None else list(model.category_names())
    if not names:
        return pd.DataFrame()
    level_names = [model.get_category(name).level_names() for name in names]

    factor_columns: List[str] = []
    for name in names:
        for level in model.category_levels(name):
            for ref in level.inputs:
                if ref.factor not in factor_columns:
                    factor_columns.append(ref.factor)

    clashes = [code for code in factor_columns if f"{factor_prefix}{code}" in names]
    if clashes:
        raise ValueError(
            f"Input factor columns {clashes} clash with category columns; "
            f"pass a factor_prefix to tell them apart"
        )

    rows = []
    skipped = 0
    for combo in itertools.product(*level_names):
        selection = dict(zip(names, combo))
        try:
            factor_levels = resolve_selection(model, selection)
        except ValueError as e:
            logger.debug(f"Skipping scenario {selection}: {e}")
            skipped += 1
            continue
        row = dict(selection)
        row.update((f"{factor_prefix}{code}", level) for code, level in factor_levels.items())
        rows.append(row)

    if skipped:
        logger.info(f"Skipped {skipped} conflicting scenario combinations")

    return pd.DataFrame(rows, columns=names + [f"{factor_prefix}{code}" for code in factor_columns])
