"""Shared pytest fixtures for usddraco tests."""

import numpy as np
import pytest

from usddraco.geom.mesh import GeneralMesh, Interpolation, Primvar


@pytest.fixture
def triangle_mesh() -> GeneralMesh:
    """Two triangles sharing the diagonal of a unit square."""
    return GeneralMesh(
        face_vertex_counts=[3, 3],
        face_vertex_indices=[0, 1, 2, 0, 2, 3],
        points=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
    )


@pytest.fixture
def quad_mesh() -> GeneralMesh:
    """A single unit quad."""
    return GeneralMesh(
        face_vertex_counts=[4],
        face_vertex_indices=[0, 1, 2, 3],
        points=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
    )


@pytest.fixture
def polygon_mesh() -> GeneralMesh:
    """Quad, pentagon and triangle sharing edges; the pentagon is a hole."""
    return GeneralMesh(
        face_vertex_counts=[4, 5, 3],
        face_vertex_indices=[0, 1, 2, 3, 1, 4, 5, 6, 2, 2, 6, 7],
        points=[
            [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],
            [2, 0, 0], [3, 0.5, 0], [2.5, 1.5, 0], [2, 2, 0],
        ],
        hole_indices=[1],
    )


@pytest.fixture
def uv_polygon_mesh(polygon_mesh: GeneralMesh) -> GeneralMesh:
    """polygon_mesh with a seamed face-varying UV set (one value per corner)."""
    uvs = np.array([[i / 12.0, 1.0 - i / 12.0] for i in range(12)], dtype=np.float32)
    polygon_mesh.set_primvar(
        "st", Primvar(values=uvs, interpolation=Interpolation.FACE_VARYING, type_name="texCoord2f[]")
    )
    return polygon_mesh


@pytest.fixture
def normals_quad_mesh(quad_mesh: GeneralMesh) -> GeneralMesh:
    """quad_mesh with one vertex normal per position."""
    normals = np.array([[0, 0, 1], [0, 0.6, 0.8], [0.6, 0, 0.8], [0, 0, 1]], dtype=np.float32)
    quad_mesh.set_primvar(
        "normals", Primvar(values=normals, interpolation=Interpolation.VERTEX, type_name="normal3f[]")
    )
    return quad_mesh
