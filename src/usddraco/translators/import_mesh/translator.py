"""Import: compressed triangle mesh -> scene mesh with the original polygons.

Reconstruction runs in a single pass over the immutable input:

1. Positions are populated, in original order when the point_order side
   channel is present.
2. Triangles joined by added edges are merged back into polygons; each
   polygon's boundary edges are stitched into an ordered vertex loop.
3. Polygons whose seed triangle carries the hole flag go to holeIndices.
4. Remaining attributes are laid out against the rebuilt corners, as vertex
   primvars when they map one-to-one onto positions, face-varying otherwise.
5. The subdivision scheme, creases and corners come from geometry metadata.
6. The bounding extent is computed from the positions.

A boundary that does not close means the input is corrupt; the whole
translation fails instead of returning a partial mesh.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from usddraco.compressed.corner_table import CornerTable
from usddraco.compressed.mesh import (
    INVALID_ATTRIBUTE_ID,
    AttributeType,
    CompressedMesh,
)
from usddraco.core.translator_base import BaseTranslator, TranslationError
from usddraco.geom.mesh import GeneralMesh, Interpolation, compute_extent
from usddraco.translators.attribute_descriptor import (
    METADATA_NAME_KEY,
    METADATA_VALUE_TYPE_KEY,
    RESERVED_METADATA_NAMES,
    SUBDIVISION_ARRAY_KEYS,
    SUBDIVISION_SCHEME_KEY,
    AttributeDescriptor,
)
from ._attribute import ImportAttribute
from ._polygons import find_original_face_edges, first_original_position, stitch_polygon
from .config import ImportConfig

logger = logging.getLogger(__name__)


class ImportTranslator(BaseTranslator[CompressedMesh, GeneralMesh, ImportConfig]):
    name: ClassVar[str] = "import_mesh"
    config_type: ClassVar = ImportConfig

    def validate_inputs(self, inputs: CompressedMesh) -> bool:
        if inputs.get_named_attribute_id(AttributeType.POSITION) == INVALID_ATTRIBUTE_ID:
            logger.error("Compressed mesh has no position attribute")
            return False
        if inputs.num_faces == 0:
            logger.error("Compressed mesh has no faces")
            return False
        return True

    def run(self, inputs: CompressedMesh) -> GeneralMesh:
        mesh = inputs
        self._positions = ImportAttribute(AttributeDescriptor.for_positions(), mesh)
        self._tex_coords = ImportAttribute(AttributeDescriptor.for_tex_coords(), mesh)
        self._normals = ImportAttribute(AttributeDescriptor.for_normals(), mesh)
        self._hole_faces = ImportAttribute(AttributeDescriptor.for_hole_faces(), mesh)
        self._added_edges = ImportAttribute(AttributeDescriptor.for_added_edges(), mesh)
        self._pos_order = ImportAttribute(AttributeDescriptor.for_pos_order(), mesh)
        self._primvars = self._find_named_primvars(mesh)

        self._populate_positions(mesh)
        counts, indices, holes, corner_points = self._populate_indices_from_mesh(mesh)

        general = GeneralMesh(
            face_vertex_counts=counts,
            face_vertex_indices=indices,
            points=[],
            hole_indices=holes,
        )
        general.subdivision_scheme = mesh.get_metadata_entry(
            SUBDIVISION_SCHEME_KEY, self.config.subdivision_scheme
        )
        self._positions.set_to_mesh(general)
        if len(indices) and max(indices) >= general.num_points:
            raise TranslationError(
                f"Face vertex index {max(indices)} exceeds {general.num_points} positions"
            )
        self._set_subdivision_data(mesh, general)
        for attribute in [self._tex_coords, self._normals, *self._primvars]:
            interpolation = self._populate_attribute(attribute, mesh, corner_points)
            attribute.set_to_mesh(general, interpolation)
        general.extent = compute_extent(general.points)

        logger.info(
            f"Reconstructed {general.num_faces} polygons from {mesh.num_faces} triangles "
            f"({len(holes)} holes, {len(general.primvars)} primvars)"
        )
        return general

    # --- Attribute discovery ---

    @staticmethod
    def _find_named_primvars(mesh: CompressedMesh) -> list[ImportAttribute]:
        """Attributes tagged with a custom name (extra UV sets, generic primvars)."""
        primvars = []
        for att_id in range(mesh.num_attributes):
            metadata = mesh.get_attribute_metadata(att_id) or {}
            name = metadata.get(METADATA_NAME_KEY)
            if not name or name in RESERVED_METADATA_NAMES:
                continue
            descriptor = AttributeDescriptor.for_point_attribute(
                name, mesh.attribute(att_id), metadata.get(METADATA_VALUE_TYPE_KEY)
            )
            primvars.append(ImportAttribute(descriptor, mesh))
        return primvars

    def _position_of(self, point: int) -> int:
        if self._pos_order.has_point_attribute:
            return self._pos_order.get_mapped_value(point)
        return self._positions.get_mapped_index(point)

    def _populate_positions(self, mesh: CompressedMesh) -> None:
        if self._pos_order.has_point_attribute:
            self._positions.populate_values_with_order(self._pos_order, mesh.num_faces, mesh)
        else:
            self._positions.populate_values()

    # --- Topology ---

    def _populate_indices_from_mesh(
        self, mesh: CompressedMesh
    ) -> tuple[list[int], list[int], list[int], list[int]]:
        """Rebuild polygons. Returns (counts, position indices, holes, corner points)."""
        counts: list[int] = []
        indices: list[int] = []
        holes: list[int] = []
        corner_points: list[int] = []

        if self._added_edges.has_point_attribute:
            corner_table = CornerTable.from_position_attribute(mesh)
            triangle_visited = [False] * mesh.num_faces

        for fi in range(mesh.num_faces):
            face = mesh.face(fi)
            if not self._added_edges.has_point_attribute:
                # Every triangle is a polygon of its own.
                loop = [(self._position_of(point), point) for point in face]
            else:
                if triangle_visited[fi]:
                    continue
                polygon_edges = find_original_face_edges(
                    fi, mesh, corner_table, self._is_added_edge, self._position_of, triangle_visited
                )
                loop = None
                if polygon_edges is not None:
                    start = first_original_position(face, polygon_edges, self._position_of)
                    if start is not None:
                        loop = stitch_polygon(polygon_edges, start, self._position_of)
                if loop is None:
                    raise TranslationError(
                        f"Polygon seeded at triangle {fi} does not close into a boundary loop"
                    )

            if self._hole_faces.has_point_attribute and self._hole_faces.get_mapped_value(face[0]) == 1:
                holes.append(len(counts))
            counts.append(len(loop))
            for position, point in loop:
                indices.append(position)
                corner_points.append(point)
        return counts, indices, holes, corner_points

    def _is_added_edge(self, point: int) -> bool:
        return self._added_edges.get_mapped_value(point) == 1

    def _set_subdivision_data(self, mesh: CompressedMesh, general: GeneralMesh) -> None:
        """Copy creases and corners from geometry metadata."""
        entries = {key: mesh.get_metadata_entry(key) for key in SUBDIVISION_ARRAY_KEYS}
        if all(value is None for value in entries.values()):
            return
        if not self._pos_order.has_point_attribute:
            # Without the original order the position ids they hold are meaningless.
            logger.warning("Creases and corners dropped: the mesh carries no point order")
            return
        general.crease_indices = np.asarray(entries["crease_indices"] or [], dtype=np.int32)
        general.crease_lengths = np.asarray(entries["crease_lengths"] or [], dtype=np.int32)
        general.crease_sharpnesses = np.asarray(entries["crease_sharpnesses"] or [], dtype=np.float32)
        general.corner_indices = np.asarray(entries["corner_indices"] or [], dtype=np.int32)
        general.corner_sharpnesses = np.asarray(entries["corner_sharpnesses"] or [], dtype=np.float32)

        for refs in (general.crease_indices, general.corner_indices):
            if len(refs) and (refs.min() < 0 or refs.max() >= general.num_points):
                raise TranslationError(f"Crease or corner index {int(refs.max())} out of range")
        if int(general.crease_lengths.sum()) != len(general.crease_indices):
            raise TranslationError("Crease lengths do not add up to the number of crease indices")

    # --- Attribute assembly ---

    def _populate_attribute(
        self, attribute: ImportAttribute, mesh: CompressedMesh, corner_points: list[int]
    ) -> Interpolation:
        if not attribute.has_point_attribute:
            return Interpolation.FACE_VARYING

        if self.config.restore_vertex_interpolation and self._maps_onto_positions(attribute, mesh):
            attribute.populate_values_with_order(self._pos_order, mesh.num_faces, mesh)
            return Interpolation.VERTEX

        if self.config.deterministic_attribute_order:
            attribute.populate_values_by_corners(corner_points)
        else:
            attribute.populate_values()
            attribute.resize_indices(len(corner_points))
            for corner, point in enumerate(corner_points):
                attribute.set_index(corner, attribute.get_mapped_index(point))
        return Interpolation.FACE_VARYING

    def _maps_onto_positions(self, attribute: ImportAttribute, mesh: CompressedMesh) -> bool:
        """True if every position uses one value and no two positions share one."""
        if not self._pos_order.has_point_attribute:
            return False
        if attribute.point_attribute_size != self._pos_order.point_attribute_size:
            return False
        value_of: dict[int, int] = {}
        for fi in range(mesh.num_faces):
            for point in mesh.face(fi):
                avi = attribute.get_mapped_index(point)
                if value_of.setdefault(self._position_of(point), avi) != avi:
                    return False
        return len(set(value_of.values())) == len(value_of)
