"""
Reading and writing raw scenario tables.

The viewer ships its tables as JavaScript files assigning a JSON array to a
variable (var catconfig = [...];). JSON and YAML files holding the same array
are accepted too.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..config.schemas import BUNDLED_DATA_DIR, DataConfig

logger = logging.getLogger(__name__)

_JS_ASSIGNMENT = re.compile(r"^\s*(?:var|let|const)\s+([A-Za-z_$][\w$]*)\s*=\s*")

# Variable names used by the viewer's own table files
DEFAULT_VAR_NAMES = {
    "categories": "catconfig",
    "scenarios": "scenconfig",
    "outputs": "outputconfig",
}


@dataclass(frozen=True)
class DatasetTables:
    """Raw rows of the three tables of one dataset variant"""
    name: str
    categories: List[Dict[str, Any]]
    scenarios: List[Dict[str, Any]]
    outputs: List[Dict[str, Any]]
    # Variable name each .js table declared, keyed like DEFAULT_VAR_NAMES
    var_names: Dict[str, Optional[str]] = field(default_factory=dict)


def bundled_data_dir() -> Path:
    """Directory of the VERPAT/VERSPM tables shipped with the package"""
    return BUNDLED_DATA_DIR


def parse_js_table(text: str) -> Tuple[Optional[str], Any]:
    """
    Parse a `var name = [...];` table file.

    Returns:
        (variable name or None, parsed value)
    """
    match = _JS_ASSIGNMENT.match(text)
    var_name = None
    if match:
        var_name = match.group(1)
        text = text[match.end():]
    body = text.strip()
    if body.endswith(";"):
        body = body[:-1].rstrip()
    try:
        return var_name, json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Table body is not valid JSON: {e}") from e


def read_named_table(path) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Read one table file (.js, .json, .yaml or .yml) with its variable name.

    Returns:
        (variable name declared by a .js file, or None; rows)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the file does not hold a list
    """
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Table file not found: {table_path}")

    suffix = table_path.suffix.lower()
    if suffix not in [".js", ".json", ".yaml", ".yml"]:
        raise ValueError(f"Unsupported table file format: {suffix}. Use .js, .json, .yaml or .yml")

    text = table_path.read_text(encoding="utf-8")
    var_name = None
    try:
        if suffix == ".js":
            var_name, rows = parse_js_table(text)
        elif suffix == ".json":
            rows = json.loads(text)
        else:
            rows = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ValueError(f"Could not parse table file {table_path}: {e}") from e

    if not isinstance(rows, list):
        raise ValueError(f"Table file {table_path} must hold a list of records, got {type(rows).__name__}")

    logger.debug(f"Read {len(rows)} rows from {table_path}")
    return var_name, rows


def read_table(path) -> List[Dict[str, Any]]:
    """
    Read the rows of one table file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the file does not hold a list
    """
    _, rows = read_named_table(path)
    return rows


def write_table(path, rows: List[Dict[str, Any]], var_name: Optional[str] = None) -> Path:
    """
    Write table rows in the format implied by the file suffix.

    .js files are written as `var <var_name> = [...];` in the viewer's layout.
    """
    table_path = Path(path)
    suffix = table_path.suffix.lower()
    table_path.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".js":
        if not var_name:
            raise ValueError("var_name is required when writing a .js table")
        body = json.dumps(rows, indent=2, ensure_ascii=False)
        table_path.write_text(f"var {var_name} = {body};\n", encoding="utf-8")
    elif suffix == ".json":
        table_path.write_text(json.dumps(rows, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    elif suffix in [".yaml", ".yml"]:
        with open(table_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(rows, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    else:
        raise ValueError(f"Unsupported table file format: {suffix}. Use .js, .json, .yaml or .yml")

    return table_path


def read_dataset_tables(directory, data_config: Optional[DataConfig] = None) -> DatasetTables:
    """Read the category, scenario and output tables of one variant directory"""
    data_config = data_config or DataConfig()
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Dataset directory not found: {directory}")

    logger.info(f"Reading dataset tables from {directory}")
    file_names = {
        "categories": data_config.category_file,
        "scenarios": data_config.scenario_file,
        "outputs": data_config.output_file,
    }
    var_names = {}
    rows = {}
    for table, file_name in file_names.items():
        var_names[table], rows[table] = read_named_table(directory / file_name)
    return DatasetTables(name=directory.name, var_names=var_names, **rows)


def write_dataset_tables(
    directory,
    tables: Dict[str, List[Dict[str, Any]]],
    data_config: Optional[DataConfig] = None,
    var_names: Optional[Mapping[str, Optional[str]]] = None,
) -> List[Path]:
    """
    Write the three tables of one variant directory.

    Args:
        directory: Target variant directory (created if missing)
        tables: Dict with "categories", "scenarios" and "outputs" rows, as returned by model_to_raw
        data_config: Table file names to use
        var_names: Variable names for .js tables, e.g. DatasetTables.var_names;
            tables without one use DEFAULT_VAR_NAMES

    Returns:
        Paths of the written files
    """
    data_config = data_config or DataConfig()
    var_names = var_names or {}
    directory = Path(directory)
    file_names = {
        "categories": data_config.category_file,
        "scenarios": data_config.scenario_file,
        "outputs": data_config.output_file,
    }
    written = [
        write_table(
            directory / file_names[table],
            tables[table],
            var_name=var_names.get(table) or DEFAULT_VAR_NAMES[table],
        )
        for table in ("categories", "scenarios", "outputs")
    ]
    logger.info(f"Wrote dataset tables to {directory}")
    return written


def discover_variants(root=None, data_config: Optional[DataConfig] = None) -> List[str]:
    """
    List dataset variants under root.

    A variant is a sub-directory holding all three table files.
    """
    data_config = data_config or DataConfig()
    root = Path(root) if root is not None else data_config.root_path()
    if not root.is_dir():
        return []

    required = (data_config.category_file, data_config.scenario_file, data_config.output_file)
    return sorted(
        child.name
        for child in root.iterdir()
        if child.is_dir() and all((child / name).is_file() for name in required)
    )
