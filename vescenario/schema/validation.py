"""
Invariant checks over loaded records.

Each check returns every violation it finds, in table order, rather than
stopping at the first one.
"""

from typing import Iterable, List, Optional, Sequence

from .dataset import FactorSet, ScenarioModel
from .errors import SchemaError, SchemaErrorKind
from .records import Category, InputFactor, OutputMetric


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _where(kind: str, name: str, index: int) -> str:
    """Identify a record by name, or by 1-based position when it has none"""
    if _blank(name):
        return f"{kind} #{index + 1}"
    return f"{kind} '{name}'"


def _missing(path, field_name: str) -> SchemaError:
    return SchemaError(
        kind=SchemaErrorKind.MISSING_FIELD,
        message=f"required field {field_name} is missing or empty",
        path=tuple(path),
    )


def _duplicates(path, what: str, names: Sequence[str]) -> List[SchemaError]:
    """One DuplicateKey per repeat of a name after its first occurrence"""
    errors = []
    seen = set()
    for name in names:
        if _blank(name):
            continue
        if name in seen:
            errors.append(SchemaError(
                kind=SchemaErrorKind.DUPLICATE_KEY,
                message=f"duplicate {what} '{name}'",
                path=tuple(path),
                key=name,
            ))
        seen.add(name)
    return errors


def check_factors(factors: Iterable[InputFactor]) -> List[SchemaError]:
    """Check codes, level presence and level uniqueness of input factors"""
    factors = list(factors)
    errors: List[SchemaError] = []

    errors.extend(_duplicates(("scenario table",), "input factor code", [f.code for f in factors]))

    for index, factor in enumerate(factors):
        where = _where("input factor", factor.code, index)
        if _blank(factor.code):
            errors.append(_missing((where,), "NAME"))
        if not factor.levels:
            errors.append(SchemaError(
                kind=SchemaErrorKind.EMPTY_COLLECTION,
                message="input factor has no LEVELS",
                path=(where,),
                key=factor.code or None,
            ))
            continue

        for level_index, level in enumerate(factor.levels):
            level_where = _where("level", level.name, level_index)
            if _blank(level.name):
                errors.append(_missing((where, level_where), "NAME"))
            if _blank(level.label):
                errors.append(_missing((where, level_where), "LABEL"))

        errors.extend(_duplicates((where,), "level name", factor.level_names()))

    return errors


def check_categories(categories: Iterable[Category], factors: FactorSet) -> List[SchemaError]:
    """Check category structure and resolve every input reference against factors"""
    categories = list(categories)
    errors: List[SchemaError] = []

    errors.extend(_duplicates(("category table",), "category name", [c.name for c in categories]))

    for index, category in enumerate(categories):
        where = _where("category", category.name, index)
        if _blank(category.name):
            errors.append(_missing((where,), "NAME"))
        if not category.levels:
            errors.append(SchemaError(
                kind=SchemaErrorKind.EMPTY_COLLECTION,
                message="category has no LEVELS",
                path=(where,),
                key=category.name or None,
            ))
            continue

        errors.extend(_duplicates((where,), "level name", category.level_names()))

        for level_index, level in enumerate(category.levels):
            level_where = _where("level", level.name, level_index)
            if _blank(level.name):
                errors.append(_missing((where, level_where), "NAME"))
            if not level.inputs:
                errors.append(SchemaError(
                    kind=SchemaErrorKind.EMPTY_COLLECTION,
                    message="category level has no INPUTS",
                    path=(where, level_where),
                    key=level.name or None,
                ))
                continue

            for ref_index, ref in enumerate(level.inputs):
                ref_where = f"input #{ref_index + 1}"
                if _blank(ref.factor):
                    errors.append(_missing((where, level_where, ref_where), "NAME"))
                    continue
                if _blank(ref.level):
                    errors.append(_missing((where, level_where, ref_where), "LEVEL"))
                    continue
                if factors.find(ref.factor) is None:
                    errors.append(SchemaError(
                        kind=SchemaErrorKind.DANGLING_REFERENCE,
                        message=f"input '{ref}' references unknown input factor '{ref.factor}'",
                        path=(where, level_where),
                        key=ref.factor,
                    ))
                elif factors.find_level(ref.factor, ref.level) is None:
                    errors.append(SchemaError(
                        kind=SchemaErrorKind.DANGLING_REFERENCE,
                        message=(
                            f"input '{ref}' references unknown level '{ref.level}' "
                            f"of input factor '{ref.factor}'"
                        ),
                        path=(where, level_where),
                        key=ref.level,
                    ))

    return errors


def check_outputs(outputs: Iterable[OutputMetric]) -> List[SchemaError]:
    """Check that output columns are present and unique"""
    outputs = list(outputs)
    errors: List[SchemaError] = []

    for index, output in enumerate(outputs):
        if _blank(output.column):
            errors.append(_missing((_where("output metric", output.name, index),), "COLUMN"))

    errors.extend(_duplicates(("output table",), "output column", [output.column for output in outputs]))

    return errors


def validate(model: ScenarioModel) -> List[SchemaError]:
    """
    Run every invariant over an already-built model.

    Returns:
        All violations found; an empty list means the model is usable
    """
    errors: List[SchemaError] = []
    errors.extend(check_factors(model.factors))
    errors.extend(check_categories(model.categories, model.factors))
    errors.extend(check_outputs(model.outputs))
    return errors
