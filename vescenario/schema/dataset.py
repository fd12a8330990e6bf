"""
Immutable containers for a loaded dataset variant.

FactorSet carries the two-level reference index (code -> factor,
(code, level) -> level) built once at load time. ScenarioModel adds the
category and output tables and exposes the read-only accessors used by
rendering and comparison layers.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from .records import Category, CategoryLevel, InputFactor, InputLevel, OutputMetric


@dataclass(frozen=True)
class FactorSet:
    """Ordered input factors with O(1) code and level lookup"""
    factors: Tuple[InputFactor, ...] = ()
    _by_code: Dict[str, InputFactor] = field(init=False, repr=False, compare=False)
    _levels: Dict[Tuple[str, str], InputLevel] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        by_code: Dict[str, InputFactor] = {}
        levels: Dict[Tuple[str, str], InputLevel] = {}
        # First occurrence wins; duplicates are reported by validation
        for factor in self.factors:
            if factor.code in by_code:
                continue
            by_code[factor.code] = factor
            for level in factor.levels:
                levels.setdefault((factor.code, level.name), level)
        object.__setattr__(self, "factors", tuple(self.factors))
        object.__setattr__(self, "_by_code", by_code)
        object.__setattr__(self, "_levels", levels)

    def __iter__(self) -> Iterator[InputFactor]:
        return iter(self.factors)

    def __len__(self) -> int:
        return len(self.factors)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def codes(self) -> Tuple[str, ...]:
        return tuple(factor.code for factor in self.factors)

    def find(self, code: str) -> Optional[InputFactor]:
        return self._by_code.get(code)

    def find_level(self, code: str, level: str) -> Optional[InputLevel]:
        return self._levels.get((code, level))


@dataclass(frozen=True)
class ScenarioModel:
    """
    Validated, cross-referenced configuration of one dataset variant.

    Lookups raise KeyError naming the missing key.
    """
    factors: FactorSet = field(default_factory=FactorSet)
    categories: Tuple[Category, ...] = ()
    outputs: Tuple[OutputMetric, ...] = ()
    name: Optional[str] = None
    _categories: Dict[str, Category] = field(init=False, repr=False, compare=False)
    _category_levels: Dict[Tuple[str, str], CategoryLevel] = field(init=False, repr=False, compare=False)
    _outputs: Dict[str, OutputMetric] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        categories: Dict[str, Category] = {}
        category_levels: Dict[Tuple[str, str], CategoryLevel] = {}
        for category in self.categories:
            categories.setdefault(category.name, category)
            for level in category.levels:
                category_levels.setdefault((category.name, level.name), level)
        outputs: Dict[str, OutputMetric] = {}
        for output in self.outputs:
            outputs.setdefault(output.column, output)

        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        object.__setattr__(self, "_categories", categories)
        object.__setattr__(self, "_category_levels", category_levels)
        object.__setattr__(self, "_outputs", outputs)

    # Input factors

    def factor_codes(self) -> Tuple[str, ...]:
        return self.factors.codes()

    def get_factor(self, code: str) -> InputFactor:
        factor = self.factors.find(code)
        if factor is None:
            raise KeyError(f"Unknown input factor: '{code}'")
        return factor

    def get_level(self, code: str, level: str) -> InputLevel:
        factor = self.get_factor(code)
        found = self.factors.find_level(code, level)
        if found is None:
            raise KeyError(f"Unknown level '{level}' for input factor '{factor.code}'")
        return found

    # Categories

    def category_names(self) -> Tuple[str, ...]:
        return tuple(category.name for category in self.categories)

    def get_category(self, name: str) -> Category:
        if name not in self._categories:
            raise KeyError(f"Unknown category: '{name}'")
        return self._categories[name]

    def category_levels(self, name: str) -> Tuple[CategoryLevel, ...]:
        return self.get_category(name).levels

    def get_category_level(self, category: str, level: str) -> CategoryLevel:
        self.get_category(category)
        if (category, level) not in self._category_levels:
            raise KeyError(f"Unknown level '{level}' for category '{category}'")
        return self._category_levels[(category, level)]

    def resolved_inputs(self, category: str, level: str) -> Tuple[Tuple[InputFactor, InputLevel], ...]:
        """Return the (factor, level) pairs a category level points to"""
        return tuple(
            (self.get_factor(ref.factor), self.get_level(ref.factor, ref.level))
            for ref in self.get_category_level(category, level).inputs
        )

    # Outputs

    def output_columns(self) -> Tuple[str, ...]:
        return tuple(output.column for output in self.outputs)

    def get_output(self, column: str) -> OutputMetric:
        if column not in self._outputs:
            raise KeyError(f"Unknown output column: '{column}'")
        return self._outputs[column]
