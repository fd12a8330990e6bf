"""
Table records using Pydantic for parsing and immutability.

Field aliases are the wire names used by the viewer tables (NAME, LABEL, ...).
The category and scenario tables wrap every scalar in a single-element array
("NAME": ["B"]) while the output table does not; both shapes are accepted.

Records loaded from a table remember which keys they were given and in which
shape, and keep unknown keys, so to_raw() gives back the row they came from.
"""

from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

DEFAULT_METRIC = "Average"


def _scalar(key: str, value: Any) -> Any:
    """Normalize ["value"] to "value" and null to an empty value"""
    if isinstance(value, list):
        if len(value) > 1:
            raise ValueError(f"{key} must hold a single value, got {len(value)}")
        value = value[0] if value else ""
    return "" if value is None else value


def _same_scalar(raw: Any, value: str) -> bool:
    unwrapped = _scalar("", raw)
    if isinstance(unwrapped, (int, float)) and not isinstance(unwrapped, bool):
        unwrapped = str(unwrapped)
    return unwrapped == value


class TableRecord(BaseModel):
    """Base for all table records"""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    # Wire keys holding nested record lists rather than scalars
    collection_keys: ClassVar[Tuple[str, ...]] = ()

    # Input key order and raw scalar values, set only for records read from a table
    _wire_keys: Optional[Tuple[str, ...]] = PrivateAttr(default=None)
    _wire_values: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def unwrap_scalars(cls, data: Any, handler) -> Any:
        if not isinstance(data, dict):
            return handler(data)

        aliases = {}
        for name, info in cls.model_fields.items():
            aliases[name] = info.alias
            aliases[info.alias] = info.alias

        normalized = {}
        wire_keys = []
        wire_values = {}
        from_wire = False
        for key, value in data.items():
            alias = aliases.get(key)
            if alias is None:
                # unknown key, kept as an extra
                normalized[key] = value
                wire_keys.append(key)
                from_wire = True
                continue
            wire_keys.append(alias)
            if key == alias:
                from_wire = True
            if alias in cls.collection_keys:
                if value is None:
                    wire_values[alias] = None
                normalized[key] = () if value is None else value
                continue
            if key == alias:
                wire_values[alias] = value
            normalized[key] = _scalar(key, value)

        record = handler(normalized)
        if from_wire:
            record._wire_keys = tuple(wire_keys)
            record._wire_values = wire_values
        return record

    def __eq__(self, other: Any) -> bool:
        # private wire shape is left out
        if not isinstance(other, TableRecord):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.__dict__ == other.__dict__
            and self.__pydantic_extra__ == other.__pydantic_extra__
        )

    def __hash__(self) -> int:
        return hash((type(self), tuple(self.__dict__.values())))

    def to_raw(self, wrap: bool = False) -> Dict[str, Any]:
        """
        Rebuild the table row for this record.

        Keys a loaded record was given come back in their original shape; a
        record built in code gives every field. Values that no longer match
        their input (e.g. a defaulted METRIC) and values set in code are
        written as ["value"] when wrap is set, as plain "value" otherwise.
        """
        if self._wire_keys is None:
            names = list(type(self).model_fields)
        else:
            names = [name for name in type(self).model_fields if name in self.model_fields_set]

        fields = {}
        for name in names:
            key = type(self).model_fields[name].alias
            value = getattr(self, name)
            if key in self.collection_keys:
                if not value and key in self._wire_values:
                    fields[key] = None
                else:
                    fields[key] = [item.to_raw(wrap) for item in value]
            elif key in self._wire_values and _same_scalar(self._wire_values[key], value):
                fields[key] = self._wire_values[key]
            else:
                fields[key] = [value] if wrap else value
        fields.update(self.model_extra or {})

        order = [key for key in (self._wire_keys or ()) if key in fields]
        order += [key for key in fields if key not in order]
        return {key: fields[key] for key in order}


class InputLevel(TableRecord):
    """One discrete setting of an input factor"""
    name: str = Field(default="", alias="NAME")
    label: str = Field(default="", alias="LABEL")
    description: str = Field(default="", alias="DESCRIPTION")


class InputFactor(TableRecord):
    """A scenario dimension (e.g. Bicycles) with its selectable levels"""
    collection_keys: ClassVar[Tuple[str, ...]] = ("LEVELS",)

    code: str = Field(default="", alias="NAME")
    label: str = Field(default="", alias="LABEL")
    description: str = Field(default="", alias="DESCRIPTION")
    instructions: str = Field(default="", alias="INSTRUCTIONS")
    levels: Tuple[InputLevel, ...] = Field(default=(), alias="LEVELS")

    def level_names(self) -> Tuple[str, ...]:
        return tuple(level.name for level in self.levels)


class InputReference(TableRecord):
    """Pointer from a category level to one level of an input factor"""
    factor: str = Field(default="", alias="NAME")
    level: str = Field(default="", alias="LEVEL")

    def __str__(self) -> str:
        return f"{self.factor}:{self.level}"


class CategoryLevel(TableRecord):
    """A combined setting of a category, expressed as input factor levels"""
    collection_keys: ClassVar[Tuple[str, ...]] = ("INPUTS",)

    name: str = Field(default="", alias="NAME")
    inputs: Tuple[InputReference, ...] = Field(default=(), alias="INPUTS")


class Category(TableRecord):
    """Grouping of factor levels presented as one scenario choice"""
    collection_keys: ClassVar[Tuple[str, ...]] = ("LEVELS",)

    name: str = Field(default="", alias="NAME")
    description: str = Field(default="", alias="DESCRIPTION")
    levels: Tuple[CategoryLevel, ...] = Field(default=(), alias="LEVELS")

    def level_names(self) -> Tuple[str, ...]:
        return tuple(level.name for level in self.levels)


class OutputMetric(TableRecord):
    """A unit-labelled result column reported for each scenario"""
    name: str = Field(default="", alias="NAME")
    label: str = Field(default="", alias="LABEL")
    description: str = Field(default="", alias="DESCRIPTION")
    instructions: str = Field(default="", alias="INSTRUCTIONS")
    metric: str = Field(default="", alias="METRIC", description="Aggregation kind; unknown kinds pass through")
    unit: str = Field(default="", alias="UNIT")
    column: str = Field(default="", alias="COLUMN")
