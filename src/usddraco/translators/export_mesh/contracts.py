"""Output contract for mesh export (scene mesh -> compressed mesh)."""

from pydantic import BaseModel, Field

from usddraco.compressed.mesh import AttributeType, CompressedMesh
from usddraco.core.contracts import AttributeSummary
from usddraco.translators.attribute_descriptor import METADATA_NAME_KEY


class ExportSummary(BaseModel):
    num_points: int = Field(0, description="Number of compressed points (3 per triangle)")
    num_faces: int = Field(0, description="Number of triangles")
    attributes: list[AttributeSummary] = Field(default_factory=list)


def summarize_compressed_mesh(mesh: CompressedMesh) -> ExportSummary:
    attributes = []
    for att_id in range(mesh.num_attributes):
        attribute = mesh.attribute(att_id)
        metadata = mesh.get_attribute_metadata(att_id) or {}
        name = metadata.get(METADATA_NAME_KEY) or AttributeType(attribute.attribute_type).name.lower()
        attributes.append(AttributeSummary(name=name, num_values=attribute.size))
    return ExportSummary(num_points=mesh.num_points, num_faces=mesh.num_faces, attributes=attributes)
