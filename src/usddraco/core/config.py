"""Codec configuration: one YAML file holding export, import and USD settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from usddraco.translators.export_mesh.config import ExportConfig
from usddraco.translators.import_mesh.config import ImportConfig


class UsdLayerConfig(BaseModel):
    prim_path: str = Field("/Mesh", description="Prim path of the mesh in the output layer")
    up_axis: Literal["Y", "Z"] = Field("Y", description="USD stage up axis")
    meters_per_unit: float = Field(1.0, description="USD meters per unit")


class CodecConfig(BaseModel):
    """Top-level configuration loaded from codec.yaml."""

    model_config = ConfigDict(populate_by_name=True)

    export: ExportConfig = Field(default_factory=ExportConfig)
    import_: ImportConfig = Field(default_factory=ImportConfig, alias="import")
    usd: UsdLayerConfig = Field(default_factory=UsdLayerConfig)


def load_codec_config(config_path: Path | None) -> CodecConfig:
    """Load and validate codec.yaml. A missing path yields the defaults."""
    if config_path is None:
        return CodecConfig()
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return CodecConfig(**raw)


def load_section_config(config_path: Path, config_class: type[BaseModel]) -> BaseModel:
    """Load a YAML file holding a single translator section into its model."""
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return config_class(**raw)
