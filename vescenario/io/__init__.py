"""
Table file I/O and exports
"""

from .tables import (
    DEFAULT_VAR_NAMES,
    DatasetTables,
    bundled_data_dir,
    discover_variants,
    parse_js_table,
    read_dataset_tables,
    read_named_table,
    read_table,
    write_dataset_tables,
    write_table,
)
from .export import export_model, model_to_frames

__all__ = [
    "DEFAULT_VAR_NAMES",
    "DatasetTables",
    "bundled_data_dir",
    "discover_variants",
    "parse_js_table",
    "read_dataset_tables",
    "read_named_table",
    "read_table",
    "write_dataset_tables",
    "write_table",
    "export_model",
    "model_to_frames",
]
