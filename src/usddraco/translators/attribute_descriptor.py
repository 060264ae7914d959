"""Declarative descriptions of the attributes carried across the codec.

A descriptor pairs the scene-side identity of an attribute (name, host value
type, primvar or plain attribute) with its compressed-side identity
(semantic attribute type, data type, component count). A non-empty
``metadata_name`` tags the compressed attribute with
``{METADATA_NAME_KEY: metadata_name}`` and is looked up by that tag instead
of by semantic type, which lets several attributes share one type
(e.g. two UV sets).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from usddraco.compressed.mesh import AttributeType, DataType, data_type_from_numpy

METADATA_NAME_KEY = "name"
# Host value type of a named primvar, so roles such as color3f survive.
METADATA_VALUE_TYPE_KEY = "value_type"

HOLE_FACES_NAME = "hole_faces"
ADDED_EDGES_NAME = "added_edges"
POS_ORDER_NAME = "point_order"

RESERVED_METADATA_NAMES = frozenset({HOLE_FACES_NAME, ADDED_EDGES_NAME, POS_ORDER_NAME})

# Geometry-level metadata. Array keys match the GeneralMesh fields they hold.
SUBDIVISION_SCHEME_KEY = "subdivision_scheme"
SUBDIVISION_ARRAY_KEYS = (
    "crease_indices",
    "crease_lengths",
    "crease_sharpnesses",
    "corner_indices",
    "corner_sharpnesses",
)

TEX_COORDS_NAME = "st"
NORMALS_NAME = "normals"
POSITIONS_NAME = "points"

# (scalar kind, components) -> host value type of an array attribute.
_VALUE_TYPES: dict[tuple[str, int], str] = {
    ("f", 1): "float[]",
    ("f", 2): "float2[]",
    ("f", 3): "float3[]",
    ("f", 4): "float4[]",
    ("d", 1): "double[]",
    ("d", 2): "double2[]",
    ("d", 3): "double3[]",
    ("d", 4): "double4[]",
    ("i", 1): "int[]",
    ("i", 2): "int2[]",
    ("i", 3): "int3[]",
    ("i", 4): "int4[]",
}


@dataclass(frozen=True)
class AttributeDescriptor:
    attribute_type: AttributeType
    name: str
    value_type: str
    is_primvar: bool
    data_type: DataType
    num_components: int
    metadata_name: str = ""

    @property
    def value_shape(self) -> tuple[int, ...]:
        """Shape of one value in a scene-side array."""
        return () if self.num_components == 1 else (self.num_components,)

    # --- Fixed attributes ---

    @staticmethod
    def for_positions() -> AttributeDescriptor:
        return AttributeDescriptor(
            AttributeType.POSITION, POSITIONS_NAME, "point3f[]",
            is_primvar=False, data_type=DataType.FLOAT32, num_components=3,
        )

    @staticmethod
    def for_tex_coords(name: str = TEX_COORDS_NAME) -> AttributeDescriptor:
        """Primary UV set is found by type; any other UV set by metadata name."""
        return AttributeDescriptor(
            AttributeType.TEX_COORD, name, "texCoord2f[]",
            is_primvar=True, data_type=DataType.FLOAT32, num_components=2,
            metadata_name="" if name == TEX_COORDS_NAME else name,
        )

    @staticmethod
    def for_normals() -> AttributeDescriptor:
        return AttributeDescriptor(
            AttributeType.NORMAL, NORMALS_NAME, "normal3f[]",
            is_primvar=True, data_type=DataType.FLOAT32, num_components=3,
        )

    # --- Side channels; values are indices themselves ---

    @staticmethod
    def for_hole_faces() -> AttributeDescriptor:
        return AttributeDescriptor(
            AttributeType.GENERIC, HOLE_FACES_NAME, "int[]",
            is_primvar=False, data_type=DataType.INT32, num_components=1,
            metadata_name=HOLE_FACES_NAME,
        )

    @staticmethod
    def for_added_edges() -> AttributeDescriptor:
        return AttributeDescriptor(
            AttributeType.GENERIC, ADDED_EDGES_NAME, "int[]",
            is_primvar=False, data_type=DataType.INT32, num_components=1,
            metadata_name=ADDED_EDGES_NAME,
        )

    @staticmethod
    def for_pos_order() -> AttributeDescriptor:
        return AttributeDescriptor(
            AttributeType.GENERIC, POS_ORDER_NAME, "int[]",
            is_primvar=False, data_type=DataType.INT32, num_components=1,
            metadata_name=POS_ORDER_NAME,
        )

    # --- Arbitrary primvars ---

    @staticmethod
    def for_generic(
        name: str,
        values: np.ndarray,
        value_type: str | None = None,
        attribute_type: AttributeType = AttributeType.GENERIC,
    ) -> AttributeDescriptor | None:
        """Descriptor for a numeric primvar, tagged by its own name.

        Returns None when the value array cannot be stored per point
        (unsupported dtype, or more than four components).
        """
        values = np.asarray(values)
        num_components = 1 if values.ndim == 1 else int(values.shape[-1])
        kind = values.dtype.kind
        if kind == "f":
            kind = "d" if values.dtype.itemsize == 8 else "f"
        elif kind in "iub":
            kind = "i"
            values = values.astype(np.int32)
        else:
            return None
        inferred = _VALUE_TYPES.get((kind, num_components))
        if inferred is None:
            return None
        data_type = data_type_from_numpy(values.dtype)
        if data_type == DataType.INVALID:
            return None
        return AttributeDescriptor(
            attribute_type, name, value_type or inferred,
            is_primvar=True, data_type=data_type, num_components=num_components,
            metadata_name=name,
        )

    @staticmethod
    def for_point_attribute(name: str, attribute, value_type: str | None = None) -> AttributeDescriptor:
        """Descriptor matching an attribute found in a compressed mesh."""
        kind = "i" if attribute.data_type not in (DataType.FLOAT32, DataType.FLOAT64) else (
            "d" if attribute.data_type == DataType.FLOAT64 else "f"
        )
        inferred = _VALUE_TYPES.get((kind, attribute.num_components), "float[]")
        if value_type is None and kind == "f":
            if attribute.attribute_type == AttributeType.TEX_COORD and attribute.num_components in (2, 3):
                value_type = f"texCoord{attribute.num_components}f[]"
            elif attribute.attribute_type == AttributeType.NORMAL and attribute.num_components == 3:
                value_type = "normal3f[]"
        return AttributeDescriptor(
            attribute.attribute_type, name, value_type or inferred,
            is_primvar=True, data_type=attribute.data_type,
            num_components=attribute.num_components, metadata_name=name,
        )
