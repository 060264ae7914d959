"""Output contract for mesh import (compressed mesh -> scene mesh)."""

from pydantic import BaseModel, Field

from usddraco.core.contracts import AttributeSummary
from usddraco.geom.mesh import GeneralMesh


class ImportSummary(BaseModel):
    num_points: int = Field(0, description="Number of positions")
    num_faces: int = Field(0, description="Number of reconstructed polygons")
    num_holes: int = Field(0, description="Number of polygons flagged as holes")
    max_face_vertex_count: int = Field(0, description="Largest reconstructed polygon")
    extent: list[list[float]] = Field(default_factory=list, description="[[min xyz], [max xyz]]")
    primvars: list[AttributeSummary] = Field(default_factory=list)


def summarize_general_mesh(mesh: GeneralMesh) -> ImportSummary:
    primvars = [
        AttributeSummary(
            name=name,
            num_values=len(primvar.values),
            num_indices=0 if primvar.indices is None else len(primvar.indices),
            interpolation=primvar.interpolation.value,
        )
        for name, primvar in mesh.primvars.items()
    ]
    return ImportSummary(
        num_points=mesh.num_points,
        num_faces=mesh.num_faces,
        num_holes=len(mesh.hole_indices),
        max_face_vertex_count=int(mesh.face_vertex_counts.max()) if mesh.num_faces else 0,
        extent=[] if mesh.extent is None else mesh.extent.tolist(),
        primvars=primvars,
    )
