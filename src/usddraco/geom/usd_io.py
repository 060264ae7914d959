"""USD adapter: read and write GeneralMesh as UsdGeom.Mesh.

Uses pxr (usd-core). The import is deferred so the translators work without
USD installed; callers check ``has_pxr()`` first.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from .mesh import GeneralMesh, Interpolation, Primvar, compute_extent

logger = logging.getLogger(__name__)

_ARRAY_TYPES = {
    (1, "f"): "float[]",
    (2, "f"): "float2[]",
    (3, "f"): "float3[]",
    (4, "f"): "float4[]",
    (1, "d"): "double[]",
    (2, "d"): "double2[]",
    (3, "d"): "double3[]",
    (4, "d"): "double4[]",
    (1, "i"): "int[]",
    (2, "i"): "int2[]",
    (3, "i"): "int3[]",
    (4, "i"): "int4[]",
}


def has_pxr() -> bool:
    """Check if pxr (usd-core) is available."""
    try:
        from pxr import Usd  # noqa: F401
        return True
    except ImportError:
        return False


def _to_numpy(value, dtype=None) -> np.ndarray:
    if value is None:
        return np.zeros(0, dtype=dtype or np.float32)
    return np.asarray(value, dtype=dtype)


def _storage_array(values) -> np.ndarray:
    """Cast to the int32 / float32 / float64 layouts USD arrays hold."""
    values = np.asarray(values)
    if values.dtype.kind in "iub":
        return values.astype(np.int32)
    if values.dtype == np.float64:
        return values
    return values.astype(np.float32)


def _infer_type_name(values: np.ndarray) -> str:
    components = 1 if values.ndim == 1 else values.shape[-1]
    kind = "i" if values.dtype.kind in "iub" else ("d" if values.dtype == np.float64 else "f")
    return _ARRAY_TYPES.get((components, kind), "float[]")


def _find_type_name(type_name: str | None, values: np.ndarray):
    from pxr import Sdf

    found = Sdf.ValueTypeNames.Find(type_name) if type_name else None
    if not found:
        found = Sdf.ValueTypeNames.Find(_infer_type_name(values))
    return found


# ── Reading ──


def read_usd_mesh(usd_mesh) -> GeneralMesh:
    """Convert a UsdGeom.Mesh at its default time into a GeneralMesh."""
    from pxr import UsdGeom

    mesh = GeneralMesh(
        face_vertex_counts=_to_numpy(usd_mesh.GetFaceVertexCountsAttr().Get(), np.int32),
        face_vertex_indices=_to_numpy(usd_mesh.GetFaceVertexIndicesAttr().Get(), np.int32),
        points=_to_numpy(usd_mesh.GetPointsAttr().Get(), np.float32),
        hole_indices=_to_numpy(usd_mesh.GetHoleIndicesAttr().Get(), np.int32),
        crease_indices=_to_numpy(usd_mesh.GetCreaseIndicesAttr().Get(), np.int32),
        crease_lengths=_to_numpy(usd_mesh.GetCreaseLengthsAttr().Get(), np.int32),
        crease_sharpnesses=_to_numpy(usd_mesh.GetCreaseSharpnessesAttr().Get(), np.float32),
        corner_indices=_to_numpy(usd_mesh.GetCornerIndicesAttr().Get(), np.int32),
        corner_sharpnesses=_to_numpy(usd_mesh.GetCornerSharpnessesAttr().Get(), np.float32),
    )
    scheme = usd_mesh.GetSubdivisionSchemeAttr().Get()
    if scheme:
        mesh.subdivision_scheme = str(scheme)

    api = UsdGeom.PrimvarsAPI(usd_mesh.GetPrim())
    for primvar in api.GetAuthoredPrimvars():
        values = primvar.Get()
        if values is None:
            continue
        mesh.set_primvar(
            primvar.GetPrimvarName(),
            Primvar(
                values=np.asarray(values),
                interpolation=Interpolation(primvar.GetInterpolation()),
                indices=np.asarray(primvar.GetIndices()) if primvar.IsIndexed() else None,
                type_name=str(primvar.GetTypeName()),
            ),
        )

    # Normals authored as the schema attribute rather than a primvar.
    normals_attr = usd_mesh.GetNormalsAttr()
    if mesh.get_primvar("normals") is None and normals_attr.HasAuthoredValue():
        mesh.set_primvar(
            "normals",
            Primvar(
                values=np.asarray(normals_attr.Get(), dtype=np.float32),
                interpolation=Interpolation(usd_mesh.GetNormalsInterpolation()),
                type_name="normal3f[]",
            ),
        )

    logger.debug(
        f"Read {usd_mesh.GetPath()}: {mesh.num_faces} faces, {mesh.num_points} points, "
        f"{len(mesh.primvars)} primvars"
    )
    return mesh


def read_usd_file(path: Path, prim_path: str | None = None) -> GeneralMesh:
    """Open a USD file and read its first mesh (or the mesh at ``prim_path``)."""
    from pxr import Usd, UsdGeom

    stage = Usd.Stage.Open(str(path))
    if stage is None:
        raise ValueError(f"Cannot open USD file: {path}")

    if prim_path is not None:
        prim = stage.GetPrimAtPath(prim_path)
        if not prim.IsValid() or not prim.IsA(UsdGeom.Mesh):
            raise ValueError(f"No mesh at {prim_path} in {path}")
        return read_usd_mesh(UsdGeom.Mesh(prim))

    for prim in stage.Traverse():
        if prim.IsA(UsdGeom.Mesh):
            return read_usd_mesh(UsdGeom.Mesh(prim))
    raise ValueError(f"No mesh found in {path}")


# ── Writing ──


def write_usd_mesh(mesh: GeneralMesh, stage, prim_path: str = "/Mesh"):
    """Define a UsdGeom.Mesh on ``stage`` holding ``mesh``; returns the mesh schema."""
    from pxr import UsdGeom, Vt

    usd_mesh = UsdGeom.Mesh.Define(stage, prim_path)
    usd_mesh.GetPointsAttr().Set(Vt.Vec3fArray.FromNumpy(mesh.points.astype(np.float32)))
    usd_mesh.GetFaceVertexCountsAttr().Set(Vt.IntArray.FromNumpy(mesh.face_vertex_counts))
    usd_mesh.GetFaceVertexIndicesAttr().Set(Vt.IntArray.FromNumpy(mesh.face_vertex_indices))
    usd_mesh.GetSubdivisionSchemeAttr().Set(mesh.subdivision_scheme)
    if len(mesh.hole_indices):
        usd_mesh.GetHoleIndicesAttr().Set(Vt.IntArray.FromNumpy(mesh.hole_indices))
    if len(mesh.crease_indices):
        usd_mesh.GetCreaseIndicesAttr().Set(Vt.IntArray.FromNumpy(mesh.crease_indices))
        usd_mesh.GetCreaseLengthsAttr().Set(Vt.IntArray.FromNumpy(mesh.crease_lengths))
        usd_mesh.GetCreaseSharpnessesAttr().Set(
            Vt.FloatArray.FromNumpy(np.asarray(mesh.crease_sharpnesses, dtype=np.float32))
        )
    if len(mesh.corner_indices):
        usd_mesh.GetCornerIndicesAttr().Set(Vt.IntArray.FromNumpy(mesh.corner_indices))
        usd_mesh.GetCornerSharpnessesAttr().Set(
            Vt.FloatArray.FromNumpy(np.asarray(mesh.corner_sharpnesses, dtype=np.float32))
        )

    extent = mesh.extent if mesh.extent is not None else compute_extent(mesh.points)
    usd_mesh.GetExtentAttr().Set(Vt.Vec3fArray.FromNumpy(np.asarray(extent, dtype=np.float32)))

    api = UsdGeom.PrimvarsAPI(usd_mesh.GetPrim())
    for name, primvar in mesh.primvars.items():
        values = _storage_array(primvar.values)
        type_name = _find_type_name(primvar.type_name, values)
        usd_primvar = api.CreatePrimvar(name, type_name, primvar.interpolation.value)
        usd_primvar.Set(type_name.type.pythonClass.FromNumpy(values))
        if primvar.is_indexed:
            usd_primvar.SetIndices(Vt.IntArray.FromNumpy(primvar.indices))

    for name, values in mesh.attributes.items():
        values = _storage_array(values)
        type_name = _find_type_name(None, values)
        attr = usd_mesh.GetPrim().CreateAttribute(name, type_name)
        attr.Set(type_name.type.pythonClass.FromNumpy(values))
    return usd_mesh


def mesh_to_layer(
    mesh: GeneralMesh,
    prim_path: str = "/Mesh",
    *,
    up_axis: str = "Y",
    meters_per_unit: float = 1.0,
):
    """Build an anonymous Sdf.Layer holding ``mesh`` as its default prim."""
    from pxr import Usd, UsdGeom

    stage = Usd.Stage.CreateInMemory()
    UsdGeom.SetStageUpAxis(stage, UsdGeom.Tokens.z if up_axis == "Z" else UsdGeom.Tokens.y)
    UsdGeom.SetStageMetersPerUnit(stage, meters_per_unit)
    usd_mesh = write_usd_mesh(mesh, stage, prim_path)
    root_path = usd_mesh.GetPath().GetPrefixes()[0]
    stage.SetDefaultPrim(stage.GetPrimAtPath(root_path))
    return stage.GetRootLayer()


def write_usd_file(
    mesh: GeneralMesh,
    output_path: Path,
    prim_path: str = "/Mesh",
    *,
    up_axis: str = "Y",
    meters_per_unit: float = 1.0,
) -> Path:
    """Write ``mesh`` to a new USD file (.usda/.usdc by extension)."""
    layer = mesh_to_layer(mesh, prim_path, up_axis=up_axis, meters_per_unit=meters_per_unit)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    layer.Export(str(output_path))
    logger.info(f"USD exported: {output_path} ({mesh.num_faces} faces, {mesh.num_points} points)")
    return output_path
