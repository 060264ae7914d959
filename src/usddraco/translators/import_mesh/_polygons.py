"""Polygon reconstruction from triangles and added-edge flags.

Triangles connected across added edges belong to one source polygon. Their
remaining (original) edges form the polygon boundary, stored as a directed
edge map keyed by the start position and stitched back into a vertex loop.
Helpers report failure by returning None; the translator decides what a
failure means.
"""

from __future__ import annotations

import logging
from typing import Callable

from usddraco.compressed.corner_table import CornerTable
from usddraco.compressed.mesh import CompressedMesh

logger = logging.getLogger(__name__)

# start position -> (start point, end point)
PolygonEdges = dict[int, tuple[int, int]]


def find_original_face_edges(
    face_index: int,
    mesh: CompressedMesh,
    corner_table: CornerTable,
    is_added_edge: Callable[[int], bool],
    position_of: Callable[[int], int],
    triangle_visited: list[bool],
) -> PolygonEdges | None:
    """Collect the boundary edges of the polygon containing ``face_index``.

    Marks every triangle of that polygon as visited. ``is_added_edge(point)``
    tells whether the edge leaving that corner was added by triangulation.
    Returns None when an added edge has no triangle on its other side that
    flags it too.
    """
    polygon_edges: PolygonEdges = {}
    triangle_visited[face_index] = True
    stack = [face_index]
    while stack:
        fi = stack.pop()
        face = mesh.face(fi)
        for c in range(3):
            point = face[c]
            if not is_added_edge(point):
                polygon_edges[position_of(point)] = (point, face[(c + 1) % 3])
                continue
            corner = corner_table.first_corner(fi) + c
            neighbor = _added_edge_neighbor(corner, mesh, corner_table, is_added_edge)
            if neighbor is None:
                logger.debug(f"Added edge leaving corner {c} of triangle {fi} has no matching neighbour")
                return None
            if not triangle_visited[neighbor]:
                triangle_visited[neighbor] = True
                stack.append(neighbor)
    return polygon_edges


def _added_edge_neighbor(
    corner: int,
    mesh: CompressedMesh,
    corner_table: CornerTable,
    is_added_edge: Callable[[int], bool],
) -> int | None:
    """Triangle across the added edge leaving ``corner``, or None.

    The neighbour must run the edge the other way and flag it as added.
    On a non-manifold edge several triangles may qualify. Fan triangles of a
    polygon are written consecutively, so the edge leaving corner 2 leads to
    the next face and the edge leaving corner 0 to the previous one; the
    candidate nearest that face wins.
    """
    expected = corner_table.face(corner) + corner % 3 - 1
    end = corner_table.vertex(corner_table.next(corner))
    candidates = []
    # Edge corner -> next faces the previous corner.
    for other in corner_table.opposite_corners(corner_table.previous(corner)):
        start = corner_table.next(other)
        if corner_table.vertex(start) != end:
            continue
        other_face = corner_table.face(start)
        if is_added_edge(mesh.face(other_face)[start - corner_table.first_corner(other_face)]):
            candidates.append(other_face)
    if not candidates:
        return None
    return min(candidates, key=lambda f: abs(f - expected))


def first_original_position(
    face: tuple[int, int, int],
    polygon_edges: PolygonEdges,
    position_of: Callable[[int], int],
) -> int | None:
    """Loop start: first corner of the seed triangle on an original edge."""
    for point in face:
        position = position_of(point)
        entry = polygon_edges.get(position)
        if entry is not None and entry[0] == point:
            return position
    return next(iter(polygon_edges), None)


def stitch_polygon(
    polygon_edges: PolygonEdges,
    start: int,
    position_of: Callable[[int], int],
) -> list[tuple[int, int]] | None:
    """Follow start -> end links into one closed loop of (position, point).

    At most ``len(polygon_edges)`` steps are taken. Returns None when the
    loop breaks, does not close, or leaves edges unused.
    """
    loop: list[tuple[int, int]] = []
    position = start
    for _ in range(len(polygon_edges)):
        entry = polygon_edges.get(position)
        if entry is None:
            logger.debug(f"Boundary loop broken at position {position}")
            return None
        start_point, end_point = entry
        loop.append((position, start_point))
        position = position_of(end_point)
        if position == start:
            break
    else:
        logger.debug(f"Boundary loop from position {start} did not close")
        return None
    if len(loop) != len(polygon_edges):
        logger.debug(f"Boundary loop used {len(loop)} of {len(polygon_edges)} edges")
        return None
    return loop
