"""Configuration for exporting a scene mesh to a compressed mesh."""

from pydantic import BaseModel, Field


class ExportConfig(BaseModel):
    # Topology side channels
    preserve_polygons: bool = Field(
        True, description="Flag edges added by triangulation so n-gons can be rebuilt on import"
    )
    preserve_position_order: bool = Field(
        True, description="Store the original position order so import restores it"
    )
    preserve_holes: bool = Field(True, description="Flag hole faces so import restores holeIndices")

    # Optional attributes
    export_normals: bool = Field(True, description="Export the normals primvar when present")
    export_tex_coords: bool = Field(True, description="Export texture coordinate primvars when present")
    export_generic_primvars: bool = Field(
        True, description="Export other numeric primvars, tagged by name"
    )
