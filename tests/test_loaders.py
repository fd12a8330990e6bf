"""
Tests for the scenario, category and output table loaders.
"""

import pytest

from vescenario.schema import (
    DEFAULT_METRIC,
    FactorSet,
    InputReference,
    SchemaErrorKind,
    SchemaValidationError,
    build_model,
    load_categories,
    load_input_factors,
    load_output_metrics,
)


@pytest.fixture
def scenario_rows():
    """Scenario table rows in the viewer's list-wrapped shape"""
    return [
        {
            "NAME": ["B"],
            "LABEL": ["Bicycles"],
            "DESCRIPTION": ["Network improvements that encourage bicycling."],
            "INSTRUCTIONS": ["The diversion of SOV travel to bicycles."],
            "LEVELS": [
                {"NAME": ["1"], "LABEL": ["Base"], "DESCRIPTION": ["Current bicycling share"]},
                {"NAME": ["2"], "LABEL": ["Double"], "DESCRIPTION": ["Increase diversion to 20%"]},
            ],
        },
        {
            "NAME": ["D"],
            "LABEL": ["Demand Management"],
            "DESCRIPTION": ["Programs to encourage less private vehicle travel."],
            "INSTRUCTIONS": ["Ridesharing, van pooling, telecommuting."],
            "LEVELS": [
                {"NAME": ["1"], "LABEL": ["Base"], "DESCRIPTION": ["Existing level"]},
                {"NAME": ["2"], "LABEL": ["Double participation"], "DESCRIPTION": ["Double rates"]},
            ],
        },
    ]


@pytest.fixture
def category_rows():
    """Category table rows referencing the scenario fixture"""
    return [
        {
            "NAME": ["Bicycles"],
            "DESCRIPTION": ["Network improvements that encourage bicycling."],
            "LEVELS": [
                {"NAME": ["1"], "INPUTS": [{"NAME": ["B"], "LEVEL": ["1"]}]},
                {"NAME": ["2"], "INPUTS": [{"NAME": ["B"], "LEVEL": ["2"]}]},
            ],
        },
        {
            "NAME": ["Demand Management"],
            "DESCRIPTION": ["Programs to encourage less private vehicle travel."],
            "LEVELS": [
                {"NAME": ["0"], "INPUTS": [{"NAME": ["D"], "LEVEL": ["1"]}]},
                {"NAME": ["1"], "INPUTS": [{"NAME": ["D"], "LEVEL": ["2"]}]},
            ],
        },
    ]


@pytest.fixture
def output_rows():
    """Output table rows in the viewer's scalar shape"""
    return [
        {
            "NAME": "Vehicle Cost Per Capita",
            "LABEL": "Cost Per Capita",
            "DESCRIPTION": "Annual vehicle costs per capita.",
            "INSTRUCTIONS": "average annual cost for owning & operating vehicles per person.",
            "METRIC": "Average",
            "UNIT": "annual per capita",
            "COLUMN": "AveCost",
        },
        {
            "NAME": "DVMT Per Capita",
            "LABEL": "Daily Vehicle Miles Traveled",
            "DESCRIPTION": "daily miles of vehicle travel per person.",
            "INSTRUCTIONS": "average daily vehicle miles traveled per person.",
            "METRIC": "Average",
            "UNIT": "daily per capita",
            "COLUMN": "AveDvmt",
        },
    ]


def test_load_input_factors(scenario_rows):
    """Factors are unwrapped from single-element arrays and indexed"""
    factors = load_input_factors(scenario_rows)

    assert isinstance(factors, FactorSet)
    assert factors.codes() == ("B", "D")
    bicycles = factors.find("B")
    assert bicycles.label == "Bicycles"
    assert bicycles.level_names() == ("1", "2")
    assert factors.find_level("B", "2").label == "Double"
    assert factors.find_level("B", "3") is None
    assert factors.find("X") is None


def test_load_input_factors_accepts_scalars():
    """Plain scalar fields are accepted as well as wrapped ones"""
    factors = load_input_factors([
        {"NAME": "B", "LABEL": "Bicycles", "LEVELS": [{"NAME": 1, "LABEL": "Base"}]},
    ])
    assert factors.find_level("B", "1").label == "Base"


def test_duplicate_factor_codes(scenario_rows):
    """Two factors sharing a code are rejected with DuplicateKey"""
    scenario_rows.append(dict(scenario_rows[0]))

    with pytest.raises(SchemaValidationError) as exc_info:
        load_input_factors(scenario_rows)

    errors = exc_info.value.errors
    assert [e.kind for e in errors] == [SchemaErrorKind.DUPLICATE_KEY]
    assert errors[0].key == "B"


def test_factor_without_levels(scenario_rows):
    """A factor with no levels is an EmptyCollection error"""
    scenario_rows[1]["LEVELS"] = []

    with pytest.raises(SchemaValidationError) as exc_info:
        load_input_factors(scenario_rows)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.EMPTY_COLLECTION
    assert errors[0].key == "D"


def test_missing_fields_are_all_reported(scenario_rows):
    """Every missing code, level name and level label is reported in one pass"""
    scenario_rows[0]["NAME"] = [""]
    scenario_rows[1]["LEVELS"][0]["LABEL"] = []
    del scenario_rows[1]["LEVELS"][1]["NAME"]

    with pytest.raises(SchemaValidationError) as exc_info:
        load_input_factors(scenario_rows)

    errors = exc_info.value.errors
    assert len(errors) == 3
    assert all(e.kind == SchemaErrorKind.MISSING_FIELD for e in errors)
    assert "input factor #1" in str(errors[0])
    assert "input factor 'D'" in str(errors[1])
    assert "LABEL" in str(errors[1])


def test_duplicate_level_names(scenario_rows):
    """Level names must be unique within a factor"""
    scenario_rows[0]["LEVELS"][1]["NAME"] = ["1"]

    with pytest.raises(SchemaValidationError) as exc_info:
        load_input_factors(scenario_rows)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.DUPLICATE_KEY
    assert errors[0].key == "1"
    assert "input factor 'B'" in str(errors[0])


def test_malformed_records(scenario_rows):
    """Structurally wrong rows become MalformedRecord errors"""
    scenario_rows[0]["LABEL"] = ["Bicycles", "Bikes"]
    scenario_rows.append("not a record")

    with pytest.raises(SchemaValidationError) as exc_info:
        load_input_factors(scenario_rows)

    malformed = exc_info.value.of_kind(SchemaErrorKind.MALFORMED_RECORD)
    assert len(malformed) == 2
    assert malformed[0].key == "B"
    assert "input factor #3" in str(malformed[1])


def test_table_must_be_a_list():
    """A non-list table is rejected"""
    with pytest.raises(SchemaValidationError, match="must be a list of records"):
        load_input_factors({"NAME": ["B"]})


def test_category_scenario_resolves(scenario_rows, category_rows):
    """Bicycles level 1 resolves to factor B level 1"""
    factors = load_input_factors(scenario_rows)
    categories = load_categories(category_rows, factors)

    bicycles = categories[0]
    assert bicycles.name == "Bicycles"
    assert bicycles.levels[0].inputs == (InputReference(factor="B", level="1"),)
    for category in categories:
        for level in category.levels:
            for ref in level.inputs:
                assert factors.find_level(ref.factor, ref.level) is not None


def test_category_levels_are_opaque_names(scenario_rows, category_rows):
    """Category level names starting at 0 are kept as given"""
    factors = load_input_factors(scenario_rows)
    categories = load_categories(category_rows, factors)

    assert categories[1].level_names() == ("0", "1")


def test_dangling_factor_reference(scenario_rows, category_rows):
    """An unknown factor code yields exactly one DanglingReference naming it"""
    factors = load_input_factors(scenario_rows)
    category_rows[0]["LEVELS"][0]["INPUTS"] = [{"NAME": ["X"], "LEVEL": ["1"]}]

    with pytest.raises(SchemaValidationError) as exc_info:
        load_categories(category_rows, factors)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.DANGLING_REFERENCE
    assert errors[0].key == "X"
    message = str(errors[0])
    assert "category 'Bicycles'" in message
    assert "level '1'" in message
    assert "X:1" in message


def test_dangling_level_reference(scenario_rows, category_rows):
    """A known factor with an unknown level is a DanglingReference on the level"""
    factors = load_input_factors(scenario_rows)
    category_rows[1]["LEVELS"][1]["INPUTS"] = [{"NAME": ["D"], "LEVEL": ["9"]}]

    with pytest.raises(SchemaValidationError) as exc_info:
        load_categories(category_rows, factors)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.DANGLING_REFERENCE
    assert errors[0].key == "9"
    assert "input factor 'D'" in str(errors[0])


def test_category_level_without_inputs(scenario_rows, category_rows):
    """A category level with zero references is an EmptyCollection error"""
    factors = load_input_factors(scenario_rows)
    category_rows[0]["LEVELS"][1]["INPUTS"] = []

    with pytest.raises(SchemaValidationError) as exc_info:
        load_categories(category_rows, factors)

    errors = exc_info.value.errors
    assert [e.kind for e in errors] == [SchemaErrorKind.EMPTY_COLLECTION]
    assert "category 'Bicycles' / level '2'" in str(errors[0])


def test_category_without_levels(scenario_rows, category_rows):
    """A category with no levels is an EmptyCollection error"""
    factors = load_input_factors(scenario_rows)
    category_rows[1]["LEVELS"] = None

    with pytest.raises(SchemaValidationError) as exc_info:
        load_categories(category_rows, factors)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.EMPTY_COLLECTION
    assert errors[0].key == "Demand Management"


def test_duplicate_category_level_names(scenario_rows, category_rows):
    """Category level names must be unique within the category"""
    factors = load_input_factors(scenario_rows)
    category_rows[0]["LEVELS"][1]["NAME"] = ["1"]

    with pytest.raises(SchemaValidationError) as exc_info:
        load_categories(category_rows, factors)

    errors = exc_info.value.errors
    assert [e.kind for e in errors] == [SchemaErrorKind.DUPLICATE_KEY]


def test_load_output_metrics(output_rows):
    """Output rows load with their column identifiers"""
    outputs = load_output_metrics(output_rows)

    assert [o.column for o in outputs] == ["AveCost", "AveDvmt"]
    assert outputs[0].unit == "annual per capita"
    assert outputs[0].metric == "Average"


def test_output_metric_defaults(output_rows):
    """Missing METRIC falls back to Average; unknown kinds pass through"""
    del output_rows[0]["METRIC"]
    output_rows[1]["METRIC"] = "Median"

    outputs = load_output_metrics(output_rows)

    assert outputs[0].metric == DEFAULT_METRIC
    assert outputs[1].metric == "Median"


def test_output_metric_custom_default(output_rows):
    """The fallback metric kind can be configured"""
    output_rows[0]["METRIC"] = ""

    outputs = load_output_metrics(output_rows, default_metric="Total")

    assert outputs[0].metric == "Total"


def test_duplicate_output_columns(output_rows):
    """Two outputs with column AveCost fail with DuplicateKey naming it"""
    output_rows[1]["COLUMN"] = "AveCost"

    with pytest.raises(SchemaValidationError) as exc_info:
        load_output_metrics(output_rows)

    errors = exc_info.value.errors
    assert len(errors) == 1
    assert errors[0].kind == SchemaErrorKind.DUPLICATE_KEY
    assert errors[0].key == "AveCost"
    assert "AveCost" in str(exc_info.value)


def test_missing_output_column(output_rows):
    """An output without COLUMN is a MissingField error"""
    output_rows[0]["COLUMN"] = ""

    with pytest.raises(SchemaValidationError) as exc_info:
        load_output_metrics(output_rows)

    errors = exc_info.value.errors
    assert [e.kind for e in errors] == [SchemaErrorKind.MISSING_FIELD]
    assert "output metric 'Vehicle Cost Per Capita'" in str(errors[0])


def test_build_model(scenario_rows, category_rows, output_rows):
    """All three tables load into one model with working accessors"""
    model = build_model(category_rows, scenario_rows, output_rows, name="TEST")

    assert model.name == "TEST"
    assert model.get_factor("B").label == "Bicycles"
    assert model.get_level("D", "2").label == "Double participation"
    level = model.get_category_level("Bicycles", "1")
    assert level.inputs == (InputReference(factor="B", level="1"),)
    assert model.get_output("AveCost").label == "Cost Per Capita"
    assert model.output_columns() == ("AveCost", "AveDvmt")


def test_build_model_aggregates_errors(scenario_rows, category_rows, output_rows):
    """Errors from every table are reported together"""
    scenario_rows[1]["LEVELS"][0]["LABEL"] = [""]
    category_rows[0]["LEVELS"][0]["INPUTS"] = [{"NAME": ["X"], "LEVEL": ["1"]}]
    output_rows[1]["COLUMN"] = "AveCost"

    with pytest.raises(SchemaValidationError) as exc_info:
        build_model(category_rows, scenario_rows, output_rows)

    kinds = [e.kind for e in exc_info.value.errors]
    assert kinds == [
        SchemaErrorKind.MISSING_FIELD,
        SchemaErrorKind.DANGLING_REFERENCE,
        SchemaErrorKind.DUPLICATE_KEY,
    ]


def test_loading_is_idempotent(scenario_rows, category_rows, output_rows):
    """Loading the same tables twice gives equal models"""
    first = build_model(category_rows, scenario_rows, output_rows, name="TEST")
    second = build_model(category_rows, scenario_rows, output_rows, name="TEST")

    assert first == second
    assert first.factors == second.factors
    assert first.categories == second.categories
