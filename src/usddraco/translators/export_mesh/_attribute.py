"""Reads one attribute out of a GeneralMesh and writes it into a CompressedMesh.

Every accessor tolerates a missing attribute: the wrapper simply stays empty
and all point-map writes become no-ops.
"""

from __future__ import annotations

import logging

import numpy as np

from usddraco.compressed.mesh import CompressedMesh, PointAttribute, data_type_length
from usddraco.geom.mesh import GeneralMesh, Interpolation
from usddraco.translators.attribute_descriptor import (
    METADATA_NAME_KEY,
    METADATA_VALUE_TYPE_KEY,
    AttributeDescriptor,
)

logger = logging.getLogger(__name__)


class _VectorValueWriter:
    """Writes a row of N components per value (positions, normals, UVs)."""

    @staticmethod
    def write(attribute: PointAttribute, avi: int, values: np.ndarray, index: int) -> None:
        attribute.set_attribute_value(avi, values[index])


class _ScalarValueWriter:
    """Writes a single integer per value (side channels, scalar primvars)."""

    @staticmethod
    def write(attribute: PointAttribute, avi: int, values: np.ndarray, index: int) -> None:
        attribute.set_attribute_value(avi, [values[index]])


def _value_writer(values: np.ndarray):
    return _ScalarValueWriter if values.ndim == 1 else _VectorValueWriter


class ExportAttribute:
    def __init__(self, descriptor: AttributeDescriptor):
        self._descriptor = descriptor
        self._point_attribute: PointAttribute | None = None
        self._use_position_index = False
        self._values = np.zeros(0)
        self._indices = np.zeros(0, dtype=np.int64)

    @property
    def descriptor(self) -> AttributeDescriptor:
        return self._descriptor

    def get_from_mesh(self, mesh: GeneralMesh, num_positions: int) -> None:
        """Populate values and indices from the mesh based on the descriptor."""
        if not self._descriptor.is_primvar:
            values = mesh.get_attribute(self._descriptor.name)
            if values is not None:
                self._values = np.asarray(values)
            return

        primvar = mesh.get_primvar(self._descriptor.name)
        if primvar is None:
            return

        # Constant primvars are not attribute-encoded; they stay on the scene mesh.
        if primvar.interpolation == Interpolation.CONSTANT:
            return

        self._values = np.asarray(primvar.values)
        if primvar.is_indexed:
            self._indices = np.asarray(primvar.indices, dtype=np.int64)

        if primvar.interpolation == Interpolation.VERTEX:
            # Vertex primvars may have implicit indices.
            self._use_position_index = True
            if len(self._indices) == 0 and len(self._values) == num_positions:
                self._indices = _make_range(num_positions)
        elif primvar.interpolation == Interpolation.FACE_VARYING:
            if len(self._indices) == 0 and len(self._values) == mesh.num_corners:
                self._indices = _make_range(mesh.num_corners)
        elif primvar.interpolation == Interpolation.UNIFORM:
            # One value per face, repeated on every corner of that face.
            per_face = self._indices if len(self._indices) else _make_range(len(self._values))
            if len(per_face) == mesh.num_faces:
                self._indices = np.repeat(per_face, mesh.face_vertex_counts)
            else:
                self._indices = np.zeros(0, dtype=np.int64)

    def get_from_range(self, size: int) -> None:
        """Populate values with the ascending sequence 0, 1, 2, ... size - 1."""
        self._values = _make_range(size)

    def set_to_mesh(self, mesh: CompressedMesh) -> None:
        """Create the compressed attribute, set its values and metadata."""
        # Optional attributes like normals may not be present.
        if len(self._values) == 0:
            return

        byte_stride = self._descriptor.num_components * data_type_length(self._descriptor.data_type)
        att_id = mesh.add_attribute(
            self._descriptor.attribute_type,
            self._descriptor.num_components,
            self._descriptor.data_type,
            byte_stride=byte_stride,
            num_values=len(self._values),
        )
        self._point_attribute = mesh.attribute(att_id)

        writer = _value_writer(self._values)
        for i in range(len(self._values)):
            writer.write(self._point_attribute, i, self._values, i)

        if self._descriptor.metadata_name:
            metadata = {METADATA_NAME_KEY: self._descriptor.metadata_name}
            if self._descriptor.is_primvar:
                metadata[METADATA_VALUE_TYPE_KEY] = self._descriptor.value_type
            mesh.add_attribute_metadata(att_id, metadata)
        logger.debug(
            f"Exported '{self._descriptor.name}': {len(self._values)} values, "
            f"{len(self._indices)} indices"
        )

    def set_point_map_entry(self, point_index: int, position_index: int, corner_index: int | None = None) -> None:
        """Map a compressed point to a value index.

        With one index the entry is used as the value index directly. With a
        position index and a corner index, the index array is consulted at
        the position (vertex interpolation) or at the corner (face-varying).
        """
        if self._point_attribute is None:
            return
        if corner_index is None:
            entry_index = position_index
        else:
            index = position_index if self._use_position_index else corner_index
            entry_index = int(self._indices[index])
        self._point_attribute.set_point_map_entry(point_index, entry_index)

    def clear(self) -> None:
        self._values = np.zeros(0)
        self._indices = np.zeros(0, dtype=np.int64)
        self._use_position_index = False
        self._point_attribute = None

    @property
    def num_values(self) -> int:
        return len(self._values)

    @property
    def num_indices(self) -> int:
        return len(self._indices)

    @property
    def uses_position_index(self) -> bool:
        return self._use_position_index

    @property
    def has_point_attribute(self) -> bool:
        return self._point_attribute is not None

    @property
    def max_index(self) -> int:
        return int(self._indices.max()) if len(self._indices) else -1


def _make_range(size: int) -> np.ndarray:
    return np.arange(size, dtype=np.int64)
