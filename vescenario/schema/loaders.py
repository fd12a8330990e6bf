"""
Loaders for the three viewer tables.

Each loader parses raw records (lists of dicts as read from the .js/.json
tables), checks the table invariants, and either returns immutable records or
raises SchemaValidationError carrying every problem found. No I/O is done here.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import ValidationError

from .dataset import FactorSet, ScenarioModel
from .errors import SchemaError, SchemaErrorKind, SchemaValidationError
from .records import DEFAULT_METRIC, Category, InputFactor, OutputMetric, TableRecord
from .validation import check_categories, check_factors, check_outputs

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=TableRecord)


def _record_name(item: Any) -> Optional[str]:
    if not isinstance(item, dict):
        return None
    name = item.get("NAME")
    if isinstance(name, list) and len(name) == 1:
        name = name[0]
    if isinstance(name, (str, int, float)) and str(name).strip():
        return str(name)
    return None


def _parse_records(raw: Any, record_cls: Type[R], kind: str) -> Tuple[List[R], List[SchemaError]]:
    """Parse raw table rows, turning structural problems into MalformedRecord errors"""
    if not isinstance(raw, (list, tuple)):
        return [], [SchemaError(
            kind=SchemaErrorKind.MALFORMED_RECORD,
            message=f"{kind} table must be a list of records, got {type(raw).__name__}",
        )]

    records: List[R] = []
    errors: List[SchemaError] = []
    for index, item in enumerate(raw):
        try:
            records.append(record_cls.model_validate(item))
        except ValidationError as e:
            name = _record_name(item)
            where = f"{kind} '{name}'" if name else f"{kind} #{index + 1}"
            for detail in e.errors():
                loc = ".".join(str(part) for part in detail["loc"])
                errors.append(SchemaError(
                    kind=SchemaErrorKind.MALFORMED_RECORD,
                    message=f"{loc}: {detail['msg']}" if loc else detail["msg"],
                    path=(where,),
                    key=name,
                ))
    return records, errors


def _collect_input_factors(raw: Any) -> Tuple[FactorSet, List[SchemaError]]:
    factors, errors = _parse_records(raw, InputFactor, "input factor")
    errors.extend(check_factors(factors))
    return FactorSet(tuple(factors)), errors


def _collect_categories(raw: Any, factors: FactorSet) -> Tuple[Tuple[Category, ...], List[SchemaError]]:
    categories, errors = _parse_records(raw, Category, "category")
    errors.extend(check_categories(categories, factors))
    return tuple(categories), errors


def _collect_output_metrics(
    raw: Any, default_metric: str
) -> Tuple[Tuple[OutputMetric, ...], List[SchemaError]]:
    outputs, errors = _parse_records(raw, OutputMetric, "output metric")
    resolved = []
    for output in outputs:
        if not output.metric.strip():
            logger.debug(f"Output '{output.column}' has no METRIC, using '{default_metric}'")
            output = output.model_copy(update={"metric": default_metric})
        resolved.append(output)
    errors.extend(check_outputs(resolved))
    return tuple(resolved), errors


def load_input_factors(raw: Sequence[Any]) -> FactorSet:
    """
    Load the scenario (input factor) table.

    Args:
        raw: Rows of the scenario table

    Returns:
        FactorSet indexed by code and (code, level)

    Raises:
        SchemaValidationError: Missing code/name/label, duplicate codes or level names, factors without levels
    """
    factors, errors = _collect_input_factors(raw)
    if errors:
        raise SchemaValidationError(errors)
    logger.debug(f"Loaded {len(factors)} input factors: {list(factors.codes())}")
    return factors


def load_categories(raw: Sequence[Any], factors: FactorSet) -> Tuple[Category, ...]:
    """
    Load the category table, resolving every input reference against factors.

    Raises:
        SchemaValidationError: Dangling references, duplicate names, empty levels or inputs
    """
    categories, errors = _collect_categories(raw, factors)
    if errors:
        raise SchemaValidationError(errors)
    logger.debug(f"Loaded {len(categories)} categories")
    return categories


def load_output_metrics(raw: Sequence[Any], default_metric: str = DEFAULT_METRIC) -> Tuple[OutputMetric, ...]:
    """
    Load the output metric table.

    A missing METRIC falls back to default_metric; unrecognized kinds are kept as-is.

    Raises:
        SchemaValidationError: Missing or duplicate COLUMN values
    """
    outputs, errors = _collect_output_metrics(raw, default_metric)
    if errors:
        raise SchemaValidationError(errors)
    logger.debug(f"Loaded {len(outputs)} output metrics")
    return outputs


def build_model(
    categories_raw: Sequence[Any],
    scenarios_raw: Sequence[Any],
    outputs_raw: Sequence[Any],
    name: Optional[str] = None,
    default_metric: str = DEFAULT_METRIC,
) -> ScenarioModel:
    """
    Load all three tables of a dataset variant in one pass.

    Errors from every table are aggregated into a single SchemaValidationError,
    so one call reports the full set of problems.
    """
    factors, errors = _collect_input_factors(scenarios_raw)
    categories, category_errors = _collect_categories(categories_raw, factors)
    outputs, output_errors = _collect_output_metrics(outputs_raw, default_metric)
    errors = errors + category_errors + output_errors

    if errors:
        logger.warning(f"Dataset {name or '<unnamed>'} failed validation with {len(errors)} error(s)")
        raise SchemaValidationError(errors)

    model = ScenarioModel(factors=factors, categories=categories, outputs=outputs, name=name)
    logger.info(
        f"Loaded dataset {name or '<unnamed>'}: {len(factors)} input factors, "
        f"{len(categories)} categories, {len(outputs)} output metrics"
    )
    return model
