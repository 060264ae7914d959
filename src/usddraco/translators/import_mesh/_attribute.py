"""Reads one attribute out of a CompressedMesh and writes it into a GeneralMesh."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from usddraco.compressed.mesh import INVALID_ATTRIBUTE_ID, CompressedMesh, PointAttribute
from usddraco.geom.mesh import GeneralMesh, Interpolation, Primvar
from usddraco.translators.attribute_descriptor import METADATA_NAME_KEY, AttributeDescriptor

logger = logging.getLogger(__name__)


class ImportAttribute:
    def __init__(self, descriptor: AttributeDescriptor, mesh: CompressedMesh):
        self._descriptor = descriptor
        self._point_attribute = self._get_from_mesh(mesh)
        self._values = np.zeros((0, *descriptor.value_shape))
        self._indices = np.zeros(0, dtype=np.int32)

    def _get_from_mesh(self, mesh: CompressedMesh) -> PointAttribute | None:
        if self._descriptor.metadata_name:
            att_id = mesh.get_attribute_id_by_metadata_entry(
                METADATA_NAME_KEY, self._descriptor.metadata_name
            )
            return None if att_id == INVALID_ATTRIBUTE_ID else mesh.attribute(att_id)

        att_id = mesh.get_named_attribute_id(self._descriptor.attribute_type)
        if att_id == INVALID_ATTRIBUTE_ID:
            return None
        if (mesh.get_attribute_metadata(att_id) or {}).get(METADATA_NAME_KEY):
            # First attribute of this type is a named one (e.g. a second UV set);
            # the unnamed one, if any, comes later.
            for other in range(att_id + 1, mesh.num_attributes):
                attribute = mesh.attribute(other)
                if attribute.attribute_type != self._descriptor.attribute_type:
                    continue
                if not (mesh.get_attribute_metadata(other) or {}).get(METADATA_NAME_KEY):
                    return attribute
            return None
        return mesh.attribute(att_id)

    @property
    def descriptor(self) -> AttributeDescriptor:
        return self._descriptor

    def _as_output(self, value: np.ndarray):
        return value[0] if self._descriptor.num_components == 1 else value

    def _allocate(self, num_values: int) -> None:
        dtype = self._point_attribute.buffer.dtype
        self._values = np.zeros((num_values, *self._descriptor.value_shape), dtype=dtype)

    def populate_values(self) -> None:
        """Copy every stored value, in storage order."""
        if self._point_attribute is None:
            return
        buffer = self._point_attribute.buffer
        self._values = buffer.reshape(len(buffer), *self._descriptor.value_shape).copy()

    def populate_values_with_order(
        self, order: ImportAttribute, num_faces: int, mesh: CompressedMesh
    ) -> None:
        """Place values into the slots named by ``order``, first visit wins.

        Faces are walked in order; for each corner the slot is the integer
        value ``order`` stores for that point. A slot is written the first
        time it is reached and skipped afterwards, so the result does not
        depend on how the values happen to be laid out in storage.
        """
        if self._point_attribute is None or not order.has_point_attribute:
            return
        num_slots = order.point_attribute_size
        self._allocate(num_slots)
        populated = np.zeros(num_slots, dtype=bool)
        for fi in range(num_faces):
            for point in mesh.face(fi):
                slot = order.get_mapped_value(point)
                if not populated[slot]:
                    self._values[slot] = self._as_output(self._point_attribute.get_mapped_value(point))
                    populated[slot] = True

    def populate_values_by_corners(self, corner_points: Sequence[int]) -> None:
        """Face-varying values and indices for the given corner sequence.

        Each distinct stored value gets the next free slot the first time a
        corner refers to it; ``indices[corner]`` is that slot.
        """
        if self._point_attribute is None:
            return
        slots: dict[int, int] = {}
        rows = []
        self._indices = np.zeros(len(corner_points), dtype=np.int32)
        for corner, point in enumerate(corner_points):
            avi = self._point_attribute.mapped_index(point)
            slot = slots.get(avi)
            if slot is None:
                slot = len(slots)
                slots[avi] = slot
                rows.append(self._point_attribute.get_value(avi))
            self._indices[corner] = slot
        self._allocate(len(rows))
        for slot, row in enumerate(rows):
            self._values[slot] = self._as_output(row)

    def get_mapped_value(self, point: int) -> int:
        """Integer value stored for ``point`` (side-channel attributes)."""
        return int(self._point_attribute.get_mapped_value(point)[0])

    def get_mapped_index(self, point: int) -> int:
        """Value index ``point`` maps to."""
        return self._point_attribute.mapped_index(point)

    def resize_indices(self, size: int) -> None:
        if self._point_attribute is None:
            return
        indices = np.zeros(size, dtype=np.int32)
        n = min(size, len(self._indices))
        indices[:n] = self._indices[:n]
        self._indices = indices

    def set_index(self, at: int, index: int) -> None:
        self._indices[at] = index

    def set_to_mesh(self, mesh: GeneralMesh, interpolation: Interpolation = Interpolation.FACE_VARYING) -> None:
        """Write values (and indices, if any) as a primvar or a plain attribute."""
        if self._point_attribute is None or len(self._values) == 0:
            return
        if self._descriptor.is_primvar:
            mesh.set_primvar(
                self._descriptor.name,
                Primvar(
                    values=self._values,
                    interpolation=interpolation,
                    indices=self._indices if len(self._indices) else None,
                    type_name=self._descriptor.value_type,
                ),
            )
        else:
            mesh.set_attribute(self._descriptor.name, self._values)
        logger.debug(
            f"Imported '{self._descriptor.name}': {len(self._values)} values, "
            f"{len(self._indices)} indices ({interpolation.value})"
        )

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def indices(self) -> np.ndarray:
        return self._indices

    @property
    def num_values(self) -> int:
        return len(self._values)

    @property
    def num_indices(self) -> int:
        return len(self._indices)

    @property
    def has_point_attribute(self) -> bool:
        return self._point_attribute is not None

    @property
    def point_attribute_size(self) -> int:
        return 0 if self._point_attribute is None else self._point_attribute.size
