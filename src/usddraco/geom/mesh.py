"""Polygonal scene mesh: n-gon faces, holes, and interpolated primvars.

Field names follow UsdGeom.Mesh so the USD adapter is a straight copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class Interpolation(str, Enum):
    CONSTANT = "constant"
    UNIFORM = "uniform"
    VERTEX = "vertex"
    FACE_VARYING = "faceVarying"


def _int_array(values=None) -> np.ndarray:
    if values is None:
        return np.zeros(0, dtype=np.int32)
    return np.asarray(values, dtype=np.int32).reshape(-1)


@dataclass
class Primvar:
    """Primvar values with optional explicit indices.

    - values:        (N,) or (N, K) array
    - indices:       None when values are implicitly indexed
    - type_name:     host value type, e.g. "texCoord2f[]"; None lets the
                     writer infer one from the array shape
    """
    values: np.ndarray
    interpolation: Interpolation = Interpolation.VERTEX
    indices: np.ndarray | None = None
    type_name: str | None = None

    def __post_init__(self):
        self.values = np.asarray(self.values)
        self.interpolation = Interpolation(self.interpolation)
        if self.indices is not None:
            self.indices = _int_array(self.indices)

    @property
    def is_indexed(self) -> bool:
        return self.indices is not None and len(self.indices) > 0


@dataclass
class GeneralMesh:
    face_vertex_counts: np.ndarray
    face_vertex_indices: np.ndarray
    points: np.ndarray
    primvars: dict[str, Primvar] = field(default_factory=dict)
    attributes: dict[str, np.ndarray] = field(default_factory=dict)
    hole_indices: np.ndarray = field(default_factory=_int_array)
    extent: np.ndarray | None = None
    subdivision_scheme: str = "catmullClark"
    crease_indices: np.ndarray = field(default_factory=_int_array)
    crease_lengths: np.ndarray = field(default_factory=_int_array)
    crease_sharpnesses: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    corner_indices: np.ndarray = field(default_factory=_int_array)
    corner_sharpnesses: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))

    def __post_init__(self):
        self.face_vertex_counts = _int_array(self.face_vertex_counts)
        self.face_vertex_indices = _int_array(self.face_vertex_indices)
        self.points = np.asarray(self.points, dtype=np.float32).reshape(-1, 3)
        self.hole_indices = _int_array(self.hole_indices)
        self.crease_indices = _int_array(self.crease_indices)
        self.crease_lengths = _int_array(self.crease_lengths)
        self.corner_indices = _int_array(self.corner_indices)

    @property
    def num_faces(self) -> int:
        return len(self.face_vertex_counts)

    @property
    def num_corners(self) -> int:
        return len(self.face_vertex_indices)

    @property
    def num_points(self) -> int:
        return len(self.points)

    def get_primvar(self, name: str) -> Primvar | None:
        return self.primvars.get(name)

    def set_primvar(self, name: str, primvar: Primvar) -> None:
        self.primvars[name] = primvar

    def get_attribute(self, name: str) -> np.ndarray | None:
        """Plain (non-primvar) attribute; "points" resolves to the positions."""
        if name == "points":
            return self.points
        return self.attributes.get(name)

    def set_attribute(self, name: str, values: np.ndarray) -> None:
        if name == "points":
            self.points = np.asarray(values, dtype=np.float32).reshape(-1, 3)
        else:
            self.attributes[name] = np.asarray(values)

    def subdivision_refers_to_positions(self) -> bool:
        return len(self.crease_indices) > 0 or len(self.corner_indices) > 0

    def subdivision_refers_to_faces(self) -> bool:
        return len(self.hole_indices) > 0

    def has_triangles_only(self) -> bool:
        return bool(np.all(self.face_vertex_counts == 3))


def compute_extent(points: np.ndarray) -> np.ndarray:
    """Axis-aligned bounds as a (2, 3) array [min, max]; zeros when empty."""
    points = np.asarray(points, dtype=np.float32).reshape(-1, 3)
    if len(points) == 0:
        return np.zeros((2, 3), dtype=np.float32)
    return np.stack([points.min(axis=0), points.max(axis=0)]).astype(np.float32)
