"""
Configuration schemas using Pydantic for validation and type safety.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..schema.records import DEFAULT_METRIC

BUNDLED_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class DataConfig(BaseModel):
    """Location and file names of the scenario tables"""
    root: str = Field(default=str(BUNDLED_DATA_DIR), description="Directory holding one sub-directory per dataset variant")
    variants: List[str] = Field(default_factory=list, description="Variants to load (empty = every variant found under root)")
    category_file: str = Field(default="category-cfg.js", description="Category table file name")
    scenario_file: str = Field(default="scenario-cfg.js", description="Scenario (input factor) table file name")
    output_file: str = Field(default="output-cfg.js", description="Output metric table file name")

    @field_validator("category_file", "scenario_file", "output_file")
    @classmethod
    def validate_table_file(cls, v):
        """Table files must be plain names with a supported suffix"""
        if Path(v).name != v:
            raise ValueError(f"Table file must be a file name, not a path: {v}")
        if Path(v).suffix.lower() not in (".js", ".json", ".yaml", ".yml"):
            raise ValueError(f"Unsupported table file: {v}. Use .js, .json, .yaml or .yml")
        return v

    @field_validator("variants", mode="before")
    @classmethod
    def validate_variants(cls, v):
        """Accept a comma separated string as well as a list"""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    def root_path(self) -> Path:
        return Path(self.root).expanduser()


class LoaderConfig(BaseModel):
    """Table loader behaviour"""
    default_metric: str = Field(default=DEFAULT_METRIC, description="METRIC used for output rows that omit it")

    @field_validator("default_metric")
    @classmethod
    def validate_default_metric(cls, v):
        if not v.strip():
            raise ValueError("default_metric must not be empty")
        return v


class ExportConfig(BaseModel):
    """Export configuration"""
    out_dir: Optional[str] = Field(default=None, description="Directory for CSV exports (None = no export)")
    scenarios: bool = Field(default=False, description="Also export the enumerated scenario grid")
    factor_prefix: str = Field(default="", description="Prefix for input factor columns of the scenario grid")


class ViewerConfig(BaseModel):
    """Complete configuration"""
    data: DataConfig = Field(default_factory=DataConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
