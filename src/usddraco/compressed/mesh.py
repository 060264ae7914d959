"""In-memory triangulated mesh with per-point attributes.

Mirrors the query surface of a decoded Draco mesh: faces are triples of
point ids, and every attribute maps point ids to value indices through its
own point map. Values live in a flat ``(num_values, num_components)``
buffer typed by ``DataType``. Nothing here compresses anything; the model
is what the translators read from and write into.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)

INVALID_ATTRIBUTE_ID = -1

MetadataValue = Union[str, list[int], list[float]]


class DataType(IntEnum):
    INVALID = 0
    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    INT64 = 7
    UINT64 = 8
    FLOAT32 = 9
    FLOAT64 = 10
    BOOL = 11


class AttributeType(IntEnum):
    INVALID = -1
    POSITION = 0
    NORMAL = 1
    COLOR = 2
    TEX_COORD = 3
    GENERIC = 4


_NUMPY_DTYPES: dict[DataType, np.dtype] = {
    DataType.INT8: np.dtype(np.int8),
    DataType.UINT8: np.dtype(np.uint8),
    DataType.INT16: np.dtype(np.int16),
    DataType.UINT16: np.dtype(np.uint16),
    DataType.INT32: np.dtype(np.int32),
    DataType.UINT32: np.dtype(np.uint32),
    DataType.INT64: np.dtype(np.int64),
    DataType.UINT64: np.dtype(np.uint64),
    DataType.FLOAT32: np.dtype(np.float32),
    DataType.FLOAT64: np.dtype(np.float64),
    DataType.BOOL: np.dtype(np.bool_),
}


def numpy_dtype(data_type: DataType) -> np.dtype:
    """Numpy dtype used to store values of ``data_type``."""
    if data_type not in _NUMPY_DTYPES:
        raise ValueError(f"Unsupported data type: {data_type!r}")
    return _NUMPY_DTYPES[data_type]


def data_type_length(data_type: DataType) -> int:
    """Size in bytes of one component of ``data_type``."""
    return numpy_dtype(data_type).itemsize


def data_type_from_numpy(dtype: np.dtype) -> DataType:
    """Inverse of numpy_dtype(); INVALID for unsupported dtypes."""
    for data_type, candidate in _NUMPY_DTYPES.items():
        if candidate == np.dtype(dtype):
            return data_type
    return DataType.INVALID


class PointAttribute:
    """Attribute values plus an explicit point -> value index map."""

    def __init__(
        self,
        attribute_type: AttributeType,
        num_components: int,
        data_type: DataType,
        byte_stride: int = 0,
        num_values: int = 0,
        num_points: int = 0,
        unique_id: int = 0,
    ):
        self.attribute_type = attribute_type
        self.num_components = num_components
        self.data_type = data_type
        self.byte_stride = byte_stride or num_components * data_type_length(data_type)
        self.unique_id = unique_id
        self._buffer = np.zeros((num_values, num_components), dtype=numpy_dtype(data_type))
        self._point_map = np.full(num_points, -1, dtype=np.int64)

    @property
    def size(self) -> int:
        """Number of stored attribute values."""
        return len(self._buffer)

    @property
    def num_points(self) -> int:
        return len(self._point_map)

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    @property
    def point_map(self) -> np.ndarray:
        return self._point_map

    def set_num_points(self, num_points: int) -> None:
        old = self._point_map
        self._point_map = np.full(num_points, -1, dtype=np.int64)
        n = min(len(old), num_points)
        self._point_map[:n] = old[:n]

    def set_attribute_value(self, avi: int, value) -> None:
        self._buffer[avi] = np.asarray(value).reshape(self.num_components)

    def get_value(self, avi: int) -> np.ndarray:
        return self._buffer[avi].copy()

    def set_point_map_entry(self, pi: int, avi: int) -> None:
        self._point_map[pi] = avi

    def mapped_index(self, pi: int) -> int:
        return int(self._point_map[pi])

    def get_mapped_value(self, pi: int) -> np.ndarray:
        return self.get_value(self.mapped_index(pi))

    def permute_values(self, order: np.ndarray) -> None:
        """Reorder storage so that new value ``i`` is old value ``order[i]``.

        Point maps are rewritten so every point still resolves to the same
        value. Used to reproduce storage layouts a codec may choose.
        """
        order = np.asarray(order, dtype=np.int64)
        if sorted(order.tolist()) != list(range(self.size)):
            raise ValueError("order must be a permutation of the value indices")
        inverse = np.empty_like(order)
        inverse[order] = np.arange(len(order))
        self._buffer = self._buffer[order]
        mapped = self._point_map >= 0
        self._point_map[mapped] = inverse[self._point_map[mapped]]

    def deduplicate_values(self) -> int:
        """Merge identical values; returns the number of values removed.

        Surviving values are stored in sorted order, as a codec may do.
        """
        if self.size == 0:
            return 0
        unique, inverse = np.unique(self._buffer, axis=0, return_inverse=True)
        inverse = np.asarray(inverse).reshape(-1)
        removed = self.size - len(unique)
        self._buffer = unique.astype(self._buffer.dtype, copy=False)
        mapped = self._point_map >= 0
        self._point_map[mapped] = inverse[self._point_map[mapped]]
        if removed:
            logger.debug(f"Deduplicated attribute {self.unique_id}: removed {removed} values")
        return removed


class CompressedMesh:
    """Triangulated mesh: faces of point ids plus point attributes and metadata."""

    def __init__(self):
        self._num_points = 0
        self._faces = np.zeros((0, 3), dtype=np.int64)
        self._attributes: list[PointAttribute] = []
        self._metadata: dict[int, dict[str, str]] = {}
        self._mesh_metadata: dict[str, MetadataValue] = {}

    # --- Points and faces ---

    @property
    def num_points(self) -> int:
        return self._num_points

    def set_num_points(self, num_points: int) -> None:
        self._num_points = num_points
        for attribute in self._attributes:
            attribute.set_num_points(num_points)

    @property
    def num_faces(self) -> int:
        return len(self._faces)

    @property
    def faces(self) -> np.ndarray:
        return self._faces

    def set_num_faces(self, num_faces: int) -> None:
        old = self._faces
        self._faces = np.zeros((num_faces, 3), dtype=np.int64)
        n = min(len(old), num_faces)
        self._faces[:n] = old[:n]

    def set_face(self, fi: int, face) -> None:
        if fi >= self.num_faces:
            self.set_num_faces(fi + 1)
        self._faces[fi] = face

    def face(self, fi: int) -> tuple[int, int, int]:
        a, b, c = self._faces[fi]
        return int(a), int(b), int(c)

    # --- Attributes ---

    @property
    def num_attributes(self) -> int:
        return len(self._attributes)

    def add_attribute(
        self,
        attribute_type: AttributeType,
        num_components: int,
        data_type: DataType,
        byte_stride: int = 0,
        num_values: int = 0,
    ) -> int:
        """Create an attribute sized for the current points; returns its id."""
        att_id = len(self._attributes)
        self._attributes.append(
            PointAttribute(
                attribute_type,
                num_components,
                data_type,
                byte_stride=byte_stride,
                num_values=num_values,
                num_points=self._num_points,
                unique_id=att_id,
            )
        )
        return att_id

    def attribute(self, att_id: int) -> PointAttribute:
        return self._attributes[att_id]

    def get_named_attribute_id(self, attribute_type: AttributeType) -> int:
        """Id of the first attribute with the given semantic type, or -1."""
        for att_id, attribute in enumerate(self._attributes):
            if attribute.attribute_type == attribute_type:
                return att_id
        return INVALID_ATTRIBUTE_ID

    # --- Metadata ---

    def add_attribute_metadata(self, att_id: int, metadata: dict[str, str]) -> None:
        self._metadata.setdefault(att_id, {}).update(metadata)

    def get_attribute_metadata(self, att_id: int) -> dict[str, str] | None:
        return self._metadata.get(att_id)

    def get_attribute_id_by_metadata_entry(self, key: str, value: str) -> int:
        """Id of the first attribute whose metadata has ``key == value``, or -1."""
        for att_id in sorted(self._metadata):
            if self._metadata[att_id].get(key) == value:
                return att_id
        return INVALID_ATTRIBUTE_ID

    @property
    def metadata(self) -> dict[str, MetadataValue]:
        """Geometry-level entries: strings, int arrays or double arrays."""
        return self._mesh_metadata

    def add_metadata_entry(self, key: str, value: MetadataValue) -> None:
        if isinstance(value, str):
            self._mesh_metadata[key] = value
        else:
            self._mesh_metadata[key] = np.asarray(value).reshape(-1).tolist()

    def get_metadata_entry(self, key: str, default: MetadataValue | None = None) -> MetadataValue | None:
        return self._mesh_metadata.get(key, default)

    # --- Codec-like storage reorganisation ---

    def deduplicate_attribute_values(self) -> None:
        for attribute in self._attributes:
            attribute.deduplicate_values()
