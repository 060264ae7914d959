"""Export: scene mesh (n-gons, holes, interpolated primvars) -> compressed mesh.

Polygons are fan-triangulated around their first vertex. Every triangle
corner becomes its own compressed point, and each attribute's point map
sends that point to the value the original polygon corner used. Three
integer side channels make the triangulation reversible:

- added_edges: per point, 1 if the edge leaving this corner toward the next
  corner of the triangle was introduced by triangulation
- hole_faces:  per point, 1 if the source polygon is a hole
- point_order: per point, the original position index

The subdivision scheme, creases and corners are stored as geometry metadata.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from usddraco.compressed.mesh import CompressedMesh
from usddraco.core.translator_base import BaseTranslator, TranslationError
from usddraco.geom.mesh import GeneralMesh
from usddraco.translators.attribute_descriptor import (
    NORMALS_NAME,
    RESERVED_METADATA_NAMES,
    SUBDIVISION_ARRAY_KEYS,
    SUBDIVISION_SCHEME_KEY,
    TEX_COORDS_NAME,
    AttributeDescriptor,
)
from ._attribute import ExportAttribute
from .config import ExportConfig

logger = logging.getLogger(__name__)


class ExportTranslator(BaseTranslator[GeneralMesh, CompressedMesh, ExportConfig]):
    name: ClassVar[str] = "export_mesh"
    config_type: ClassVar = ExportConfig

    def __init__(self, config: ExportConfig | None = None):
        super().__init__(config)
        self._positions = ExportAttribute(AttributeDescriptor.for_positions())
        self._tex_coords = ExportAttribute(AttributeDescriptor.for_tex_coords())
        self._normals = ExportAttribute(AttributeDescriptor.for_normals())
        self._hole_faces = ExportAttribute(AttributeDescriptor.for_hole_faces())
        self._added_edges = ExportAttribute(AttributeDescriptor.for_added_edges())
        self._pos_order = ExportAttribute(AttributeDescriptor.for_pos_order())
        self._primvars: list[ExportAttribute] = []

    def validate_inputs(self, inputs: GeneralMesh) -> bool:
        mesh = inputs
        if mesh.num_points == 0:
            logger.error("Mesh has no positions")
            return False
        if mesh.num_faces == 0:
            logger.error("Mesh has no faces")
            return False
        if np.any(mesh.face_vertex_counts < 3):
            logger.error("Mesh has faces with fewer than three vertices")
            return False
        if int(mesh.face_vertex_counts.sum()) != mesh.num_corners:
            logger.error(
                f"Face vertex counts sum to {int(mesh.face_vertex_counts.sum())}, "
                f"but there are {mesh.num_corners} face vertex indices"
            )
            return False
        if mesh.face_vertex_indices.min() < 0 or mesh.face_vertex_indices.max() >= mesh.num_points:
            logger.error("Face vertex indices out of range")
            return False
        if len(mesh.hole_indices) and (
            mesh.hole_indices.min() < 0 or mesh.hole_indices.max() >= mesh.num_faces
        ):
            logger.error("Hole indices out of range")
            return False

        # Creases and corners must still point at the right positions after import.
        if mesh.subdivision_refers_to_positions() and not self.config.preserve_position_order:
            logger.error("Creases or corners refer to positions; preserve_position_order is required")
            return False
        for name in ("crease_indices", "corner_indices"):
            refs = getattr(mesh, name)
            if len(refs) and (refs.min() < 0 or refs.max() >= mesh.num_points):
                logger.error(f"{name} out of range")
                return False
        if int(mesh.crease_lengths.sum()) != len(mesh.crease_indices):
            logger.error("Crease lengths do not add up to the number of crease indices")
            return False
        return True

    def run(self, inputs: GeneralMesh) -> CompressedMesh:
        mesh = inputs
        self._get_attributes_from_mesh(mesh)
        self._check_data(mesh)

        compressed = CompressedMesh()
        num_triangles = int((mesh.face_vertex_counts - 2).sum())
        compressed.set_num_points(3 * num_triangles)
        compressed.set_num_faces(num_triangles)

        for attribute in self._all_attributes():
            attribute.set_to_mesh(compressed)
        self._set_point_maps_to_mesh(mesh, compressed)
        _set_subdivision_metadata(mesh, compressed)

        logger.info(
            f"Exported {mesh.num_faces} polygons as {num_triangles} triangles "
            f"({compressed.num_attributes} attributes)"
        )
        return compressed

    # --- Attribute gathering ---

    def _get_attributes_from_mesh(self, mesh: GeneralMesh) -> None:
        for attribute in self._all_attributes():
            attribute.clear()
        self._primvars = []

        num_positions = mesh.num_points
        self._positions.get_from_mesh(mesh, num_positions)
        if self.config.export_tex_coords:
            self._tex_coords.get_from_mesh(mesh, num_positions)
        if self.config.export_normals:
            self._normals.get_from_mesh(mesh, num_positions)

        for name, primvar in mesh.primvars.items():
            if name in (TEX_COORDS_NAME, NORMALS_NAME):
                continue
            if name in RESERVED_METADATA_NAMES:
                logger.warning(f"Primvar '{name}' collides with a reserved attribute name; skipped")
                continue
            descriptor = self._primvar_descriptor(name, primvar)
            if descriptor is None:
                continue
            attribute = ExportAttribute(descriptor)
            attribute.get_from_mesh(mesh, num_positions)
            if attribute.num_values:
                self._primvars.append(attribute)

        # Side channels.
        if self.config.preserve_holes and mesh.subdivision_refers_to_faces():
            self._hole_faces.get_from_range(2)
        if self.config.preserve_polygons and not mesh.has_triangles_only():
            self._added_edges.get_from_range(2)
        if self.config.preserve_position_order:
            self._pos_order.get_from_range(num_positions)

    def _primvar_descriptor(self, name: str, primvar) -> AttributeDescriptor | None:
        type_name = primvar.type_name or ""
        if type_name.startswith("texCoord2"):
            if not self.config.export_tex_coords:
                return None
            return AttributeDescriptor.for_tex_coords(name)
        if not self.config.export_generic_primvars:
            return None
        descriptor = AttributeDescriptor.for_generic(name, primvar.values, primvar.type_name)
        if descriptor is None:
            logger.warning(f"Primvar '{name}' has an unsupported value layout; skipped")
        return descriptor

    def _all_attributes(self) -> list[ExportAttribute]:
        return [
            self._positions,
            self._tex_coords,
            self._normals,
            *self._primvars,
            self._hole_faces,
            self._added_edges,
            self._pos_order,
        ]

    def _check_data(self, mesh: GeneralMesh) -> None:
        if self._positions.num_values == 0:
            raise TranslationError("Mesh has no positions")
        for attribute in [self._tex_coords, self._normals, *self._primvars]:
            if attribute.num_values == 0:
                continue
            name = attribute.descriptor.name
            required = mesh.num_points if attribute.uses_position_index else mesh.num_corners
            if attribute.num_indices < required:
                raise TranslationError(
                    f"Attribute '{name}' has {attribute.num_indices} indices, expected {required}"
                )
            if attribute.max_index >= attribute.num_values:
                raise TranslationError(f"Attribute '{name}' indexes past its {attribute.num_values} values")

    # --- Triangulation ---

    def _set_point_maps_to_mesh(self, mesh: GeneralMesh, compressed: CompressedMesh) -> None:
        """Fan-triangulate every polygon, writing faces and point maps."""
        holes = set(mesh.hole_indices.tolist())
        indices = mesh.face_vertex_indices
        corner_attributes = [self._tex_coords, self._normals, *self._primvars]

        triangle = 0
        vertex_start = 0
        for face_index, vertex_count in enumerate(mesh.face_vertex_counts.tolist()):
            is_hole = 1 if face_index in holes else 0
            for t in range(vertex_count - 2):
                face = []
                for c in range(3):
                    point = 3 * triangle + c
                    corner = vertex_start + (0 if c == 0 else t + c)
                    position = int(indices[corner])
                    self._positions.set_point_map_entry(point, position)
                    self._pos_order.set_point_map_entry(point, position)
                    for attribute in corner_attributes:
                        attribute.set_point_map_entry(point, position, corner)
                    self._hole_faces.set_point_map_entry(point, is_hole)
                    self._added_edges.set_point_map_entry(point, _is_added_edge(c, t, vertex_count))
                    face.append(point)
                compressed.set_face(triangle, face)
                triangle += 1
            vertex_start += vertex_count


def _is_added_edge(corner: int, triangle: int, vertex_count: int) -> int:
    """Whether the edge leaving ``corner`` in fan triangle ``triangle`` is new.

    Fan triangle t of an n-gon is (v0, v[t+1], v[t+2]). Its edge v[t+1]->v[t+2]
    is always an original polygon edge; v0->v[t+1] is original only for the
    first triangle and v[t+2]->v0 only for the last.
    """
    if corner == 0:
        return int(triangle > 0)
    if corner == 1:
        return 0
    return int(triangle < vertex_count - 3)



def _set_subdivision_metadata(mesh: GeneralMesh, compressed: CompressedMesh) -> None:
    """Scheme, creases and corners travel as geometry metadata.

    Creases and corners refer to position ids, which stay valid because
    export validation requires preserve_position_order for them.
    """
    compressed.add_metadata_entry(SUBDIVISION_SCHEME_KEY, mesh.subdivision_scheme)
    for key in SUBDIVISION_ARRAY_KEYS:
        values = getattr(mesh, key)
        if len(values):
            compressed.add_metadata_entry(key, values)
