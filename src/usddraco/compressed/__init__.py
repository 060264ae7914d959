"""Triangulated per-point attribute mesh and its corner table."""

from .mesh import (
    INVALID_ATTRIBUTE_ID,
    AttributeType,
    CompressedMesh,
    DataType,
    PointAttribute,
    data_type_from_numpy,
    data_type_length,
    numpy_dtype,
)
from .corner_table import INVALID_CORNER, CornerTable

__all__ = [
    "INVALID_ATTRIBUTE_ID",
    "INVALID_CORNER",
    "AttributeType",
    "CompressedMesh",
    "CornerTable",
    "DataType",
    "PointAttribute",
    "data_type_from_numpy",
    "data_type_length",
    "numpy_dtype",
]
