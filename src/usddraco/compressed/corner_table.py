"""Corner table over a triangulated mesh.

Corner ``c`` belongs to face ``c // 3``; ``next`` and ``previous`` walk the
corners of the same face; ``opposite`` jumps across the edge facing the
corner into the neighbouring triangle. ``opposite_corners`` lists every
corner facing the same edge, which is what non-manifold edges need.
"""

from __future__ import annotations

import numpy as np

from .mesh import AttributeType, CompressedMesh, INVALID_ATTRIBUTE_ID

INVALID_CORNER = -1


class CornerTable:
    def __init__(self, corner_to_vertex: np.ndarray):
        """Build from a ``(num_faces, 3)`` array of vertex ids per face corner."""
        corner_to_vertex = np.asarray(corner_to_vertex, dtype=np.int64).reshape(-1, 3)
        self._corner_to_vertex = corner_to_vertex.reshape(-1)
        self._opposite = np.full(len(self._corner_to_vertex), INVALID_CORNER, dtype=np.int64)
        self._edge_corners: dict[tuple[int, int], list[int]] = {}
        self._compute_opposite_corners()

    @classmethod
    def from_position_attribute(cls, mesh: CompressedMesh) -> CornerTable | None:
        """Connectivity keyed by position value, so split points stay adjacent."""
        att_id = mesh.get_named_attribute_id(AttributeType.POSITION)
        if att_id == INVALID_ATTRIBUTE_ID:
            return None
        positions = mesh.attribute(att_id)
        return cls(positions.point_map[mesh.faces])

    def _edge_key(self, corner: int) -> tuple[int, int]:
        """Undirected edge facing ``corner``."""
        v0 = self.vertex(self.next(corner))
        v1 = self.vertex(self.previous(corner))
        return (v0, v1) if v0 < v1 else (v1, v0)

    def _compute_opposite_corners(self) -> None:
        # Only edges shared by exactly two triangles get an opposite;
        # boundary and non-manifold edges stay invalid.
        for corner in range(self.num_corners):
            self._edge_corners.setdefault(self._edge_key(corner), []).append(corner)
        for corners in self._edge_corners.values():
            if len(corners) == 2:
                a, b = corners
                self._opposite[a] = b
                self._opposite[b] = a

    @property
    def num_corners(self) -> int:
        return len(self._corner_to_vertex)

    @property
    def num_faces(self) -> int:
        return self.num_corners // 3

    @staticmethod
    def first_corner(face: int) -> int:
        return 3 * face

    @staticmethod
    def face(corner: int) -> int:
        return corner // 3

    @staticmethod
    def next(corner: int) -> int:
        return corner - 2 if corner % 3 == 2 else corner + 1

    @staticmethod
    def previous(corner: int) -> int:
        return corner + 2 if corner % 3 == 0 else corner - 1

    def vertex(self, corner: int) -> int:
        return int(self._corner_to_vertex[corner])

    def opposite(self, corner: int) -> int:
        return int(self._opposite[corner])

    def opposite_corners(self, corner: int) -> list[int]:
        """Corners of other faces that face the same edge as ``corner``."""
        face = self.face(corner)
        return [c for c in self._edge_corners[self._edge_key(corner)] if self.face(c) != face]
