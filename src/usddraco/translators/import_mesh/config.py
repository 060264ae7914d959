"""Configuration for importing a compressed mesh into a scene mesh."""

from typing import Literal

from pydantic import BaseModel, Field


class ImportConfig(BaseModel):
    restore_vertex_interpolation: bool = Field(
        True,
        description="Import attributes that map one-to-one onto positions as vertex primvars",
    )
    deterministic_attribute_order: bool = Field(
        True,
        description="Order face-varying values by first use in the rebuilt faces instead of storage order",
    )
    subdivision_scheme: Literal["catmullClark", "loop", "bilinear", "none"] = Field(
        "catmullClark", description="Subdivision scheme for meshes whose metadata names none"
    )
