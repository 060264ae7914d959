"""Tests for the export and import mesh translators."""

import numpy as np
import pytest

from usddraco.compressed.mesh import AttributeType, CompressedMesh
from usddraco.geom.mesh import GeneralMesh, Interpolation, Primvar
from usddraco.translators.attribute_descriptor import (
    ADDED_EDGES_NAME,
    HOLE_FACES_NAME,
    METADATA_NAME_KEY,
    POS_ORDER_NAME,
    SUBDIVISION_SCHEME_KEY,
)
from usddraco.translators.export_mesh.config import ExportConfig
from usddraco.translators.export_mesh.contracts import summarize_compressed_mesh
from usddraco.translators.export_mesh.translator import ExportTranslator
from usddraco.translators.import_mesh.config import ImportConfig
from usddraco.translators.import_mesh.contracts import summarize_general_mesh
from usddraco.translators.import_mesh.translator import ImportTranslator


def _roundtrip(
    mesh: GeneralMesh,
    export_config: ExportConfig | None = None,
    import_config: ImportConfig | None = None,
) -> GeneralMesh:
    compressed = ExportTranslator.translate(mesh, export_config)
    assert compressed is not None
    restored = ImportTranslator.translate(compressed, import_config)
    assert restored is not None
    return restored


def _side_channel(compressed: CompressedMesh, name: str):
    att_id = compressed.get_attribute_id_by_metadata_entry(METADATA_NAME_KEY, name)
    return None if att_id < 0 else compressed.attribute(att_id)


def _corner_values(mesh: GeneralMesh, name: str) -> np.ndarray:
    """Values seen by each face corner, whatever the interpolation."""
    primvar = mesh.get_primvar(name)
    values = np.asarray(primvar.values)
    if primvar.interpolation == Interpolation.VERTEX:
        per_position = values[primvar.indices] if primvar.is_indexed else values
        return per_position[mesh.face_vertex_indices]
    return values[primvar.indices] if primvar.is_indexed else values


# ── Export ──


class TestExportValidation:
    def test_too_few_vertices(self):
        mesh = GeneralMesh(face_vertex_counts=[2], face_vertex_indices=[0, 1], points=np.zeros((2, 3)))
        assert ExportTranslator.translate(mesh) is None

    def test_count_sum_mismatch(self, quad_mesh: GeneralMesh):
        quad_mesh.face_vertex_counts = np.array([5], dtype=np.int32)
        assert ExportTranslator.translate(quad_mesh) is None

    def test_index_out_of_range(self, quad_mesh: GeneralMesh):
        quad_mesh.face_vertex_indices = np.array([0, 1, 2, 9], dtype=np.int32)
        assert ExportTranslator.translate(quad_mesh) is None

    def test_hole_out_of_range(self, quad_mesh: GeneralMesh):
        quad_mesh.hole_indices = np.array([3], dtype=np.int32)
        assert ExportTranslator.translate(quad_mesh) is None

    def test_no_points(self):
        mesh = GeneralMesh(face_vertex_counts=[], face_vertex_indices=[], points=[])
        assert ExportTranslator.translate(mesh) is None

    def test_creases_need_position_order(self, quad_mesh: GeneralMesh):
        quad_mesh.crease_indices = np.array([0, 1], dtype=np.int32)
        quad_mesh.crease_lengths = np.array([2], dtype=np.int32)
        quad_mesh.crease_sharpnesses = np.array([1.0], dtype=np.float32)
        assert ExportTranslator.translate(quad_mesh, ExportConfig(preserve_position_order=False)) is None
        assert ExportTranslator.translate(quad_mesh) is not None

    def test_face_varying_value_count_mismatch(self, quad_mesh: GeneralMesh):
        quad_mesh.set_primvar(
            "st", Primvar(values=np.zeros((3, 2)), interpolation=Interpolation.FACE_VARYING)
        )
        assert ExportTranslator.translate(quad_mesh) is None


class TestExportTranslator:
    def test_fan_triangulation(self, polygon_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(polygon_mesh)
        assert compressed.num_faces == 6
        assert compressed.num_points == 18
        positions = compressed.attribute(compressed.get_named_attribute_id(AttributeType.POSITION))
        triangles = positions.point_map[compressed.faces].tolist()
        assert triangles == [[0, 1, 2], [0, 2, 3], [1, 4, 5], [1, 5, 6], [1, 6, 2], [2, 6, 7]]

    def test_side_channels(self, polygon_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(polygon_mesh)
        added = _side_channel(compressed, ADDED_EDGES_NAME)
        holes = _side_channel(compressed, HOLE_FACES_NAME)
        order = _side_channel(compressed, POS_ORDER_NAME)
        assert added.size == 2 and holes.size == 2 and order.size == 8

        flags = [int(added.get_mapped_value(p)[0]) for p in range(compressed.num_points)]
        assert flags == [0, 0, 1, 1, 0, 0, 0, 0, 1, 1, 0, 1, 1, 0, 0, 0, 0, 0]
        hole_flags = [int(holes.get_mapped_value(3 * t)[0]) for t in range(compressed.num_faces)]
        assert hole_flags == [0, 0, 1, 1, 1, 0]

    def test_triangles_without_holes_skip_side_channels(self, triangle_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(triangle_mesh)
        assert _side_channel(compressed, ADDED_EDGES_NAME) is None
        assert _side_channel(compressed, HOLE_FACES_NAME) is None
        assert _side_channel(compressed, POS_ORDER_NAME) is not None

    def test_disabled_side_channels(self, polygon_mesh: GeneralMesh):
        config = ExportConfig(preserve_polygons=False, preserve_holes=False, preserve_position_order=False)
        compressed = ExportTranslator.translate(polygon_mesh, config)
        assert compressed.num_attributes == 1

    def test_reserved_primvar_name_skipped(self, quad_mesh: GeneralMesh):
        quad_mesh.set_primvar("added_edges", Primvar(values=[5, 5, 5, 5], interpolation=Interpolation.VERTEX))
        compressed = ExportTranslator.translate(quad_mesh)
        assert _side_channel(compressed, ADDED_EDGES_NAME).size == 2

    def test_optional_attributes_disabled(self, uv_polygon_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(uv_polygon_mesh, ExportConfig(export_tex_coords=False))
        assert compressed.get_named_attribute_id(AttributeType.TEX_COORD) < 0

    def test_meta_and_summary(self, uv_polygon_mesh: GeneralMesh):
        translator = ExportTranslator()
        compressed = translator.execute(uv_polygon_mesh)
        assert translator.meta.translator_name == "export_mesh"
        assert translator.meta.params["preserve_polygons"] is True

        summary = summarize_compressed_mesh(compressed)
        assert summary.num_faces == 6
        names = [a.name for a in summary.attributes]
        assert names == ["position", "tex_coord", HOLE_FACES_NAME, ADDED_EDGES_NAME, POS_ORDER_NAME]

    def test_translator_reusable(self, polygon_mesh: GeneralMesh, triangle_mesh: GeneralMesh):
        translator = ExportTranslator()
        translator.execute(polygon_mesh)
        compressed = translator.execute(triangle_mesh)
        assert compressed.num_faces == 2
        assert _side_channel(compressed, ADDED_EDGES_NAME) is None


# ── Import ──


class TestImportTranslator:
    def test_requires_positions(self):
        assert ImportTranslator.translate(CompressedMesh()) is None

    def test_triangles_round_trip(self, triangle_mesh: GeneralMesh):
        restored = _roundtrip(triangle_mesh)
        np.testing.assert_array_equal(restored.face_vertex_counts, [3, 3])
        np.testing.assert_array_equal(restored.face_vertex_indices, [0, 1, 2, 0, 2, 3])
        np.testing.assert_array_equal(restored.points, triangle_mesh.points)
        assert len(restored.hole_indices) == 0

    def test_quad_round_trip(self, quad_mesh: GeneralMesh):
        restored = _roundtrip(quad_mesh)
        np.testing.assert_array_equal(restored.face_vertex_counts, [4])
        np.testing.assert_array_equal(restored.face_vertex_indices, [0, 1, 2, 3])

    def test_polygons_and_holes_round_trip(self, polygon_mesh: GeneralMesh):
        restored = _roundtrip(polygon_mesh)
        np.testing.assert_array_equal(restored.face_vertex_counts, [4, 5, 3])
        np.testing.assert_array_equal(restored.face_vertex_indices, polygon_mesh.face_vertex_indices)
        np.testing.assert_array_equal(restored.points, polygon_mesh.points)
        np.testing.assert_array_equal(restored.hole_indices, [1])
        np.testing.assert_allclose(restored.extent, [[0, 0, 0], [3, 2, 0]])

    def test_polygons_not_preserved(self, quad_mesh: GeneralMesh):
        restored = _roundtrip(quad_mesh, ExportConfig(preserve_polygons=False))
        np.testing.assert_array_equal(restored.face_vertex_counts, [3, 3])
        np.testing.assert_array_equal(restored.face_vertex_indices, [0, 1, 2, 0, 2, 3])

    def test_holes_not_preserved(self, polygon_mesh: GeneralMesh):
        restored = _roundtrip(polygon_mesh, ExportConfig(preserve_holes=False))
        assert len(restored.hole_indices) == 0

    def test_holes_on_triangles_without_polygons(self, polygon_mesh: GeneralMesh):
        restored = _roundtrip(polygon_mesh, ExportConfig(preserve_polygons=False))
        np.testing.assert_array_equal(restored.face_vertex_counts, [3] * 6)
        np.testing.assert_array_equal(restored.hole_indices, [2, 3, 4])

    def test_face_varying_uvs(self, uv_polygon_mesh: GeneralMesh):
        restored = _roundtrip(uv_polygon_mesh)
        st = restored.get_primvar("st")
        assert st.interpolation == Interpolation.FACE_VARYING
        assert st.type_name == "texCoord2f[]"
        np.testing.assert_allclose(st.values, uv_polygon_mesh.get_primvar("st").values)
        np.testing.assert_array_equal(st.indices, np.arange(12))

    def test_vertex_normals(self, normals_quad_mesh: GeneralMesh):
        restored = _roundtrip(normals_quad_mesh)
        normals = restored.get_primvar("normals")
        assert normals.interpolation == Interpolation.VERTEX
        assert normals.indices is None
        np.testing.assert_allclose(normals.values, normals_quad_mesh.get_primvar("normals").values)

    def test_vertex_normals_as_face_varying(self, normals_quad_mesh: GeneralMesh):
        restored = _roundtrip(normals_quad_mesh, import_config=ImportConfig(restore_vertex_interpolation=False))
        normals = restored.get_primvar("normals")
        assert normals.interpolation == Interpolation.FACE_VARYING
        np.testing.assert_allclose(
            _corner_values(restored, "normals"), _corner_values(normals_quad_mesh, "normals")
        )

    def test_missing_normals_tolerated(self, quad_mesh: GeneralMesh):
        restored = _roundtrip(quad_mesh)
        assert restored.get_primvar("normals") is None
        assert restored.get_primvar("st") is None

    def test_named_uv_set(self, uv_polygon_mesh: GeneralMesh):
        uv_polygon_mesh.set_primvar("st1", uv_polygon_mesh.primvars.pop("st"))
        restored = _roundtrip(uv_polygon_mesh)
        assert restored.get_primvar("st") is None
        st1 = restored.get_primvar("st1")
        assert st1.type_name == "texCoord2f[]"
        np.testing.assert_allclose(_corner_values(restored, "st1"), _corner_values(uv_polygon_mesh, "st1"))

    def test_uniform_primvar(self, polygon_mesh: GeneralMesh):
        polygon_mesh.set_primvar("faceId", Primvar(values=[10, 20, 30], interpolation=Interpolation.UNIFORM))
        restored = _roundtrip(polygon_mesh)
        face_id = restored.get_primvar("faceId")
        assert face_id.interpolation == Interpolation.FACE_VARYING
        assert face_id.type_name == "int[]"
        np.testing.assert_array_equal(face_id.values, [10, 20, 30])
        np.testing.assert_array_equal(face_id.indices, [0] * 4 + [1] * 5 + [2] * 3)

    def test_primvar_value_type_survives(self, uv_polygon_mesh: GeneralMesh):
        colors = np.linspace(0.0, 1.0, 36, dtype=np.float32).reshape(12, 3)
        uv_polygon_mesh.set_primvar(
            "displayColor",
            Primvar(values=colors, interpolation=Interpolation.FACE_VARYING, type_name="color3f[]"),
        )
        restored = _roundtrip(uv_polygon_mesh)
        color = restored.get_primvar("displayColor")
        assert color.type_name == "color3f[]"
        np.testing.assert_allclose(_corner_values(restored, "displayColor"), colors)

    def test_subdivision_scheme_carried(self, quad_mesh: GeneralMesh):
        quad_mesh.subdivision_scheme = "none"
        restored = _roundtrip(quad_mesh, import_config=ImportConfig(subdivision_scheme="loop"))
        assert restored.subdivision_scheme == "none"

    def test_subdivision_scheme_fallback(self, quad_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(quad_mesh)
        del compressed.metadata[SUBDIVISION_SCHEME_KEY]
        restored = ImportTranslator.translate(compressed, ImportConfig(subdivision_scheme="none"))
        assert restored.subdivision_scheme == "none"

    def test_creases_and_corners_round_trip(self, polygon_mesh: GeneralMesh):
        polygon_mesh.crease_indices = np.array([1, 2, 6], dtype=np.int32)
        polygon_mesh.crease_lengths = np.array([3], dtype=np.int32)
        polygon_mesh.crease_sharpnesses = np.array([2.5], dtype=np.float32)
        polygon_mesh.corner_indices = np.array([0, 7], dtype=np.int32)
        polygon_mesh.corner_sharpnesses = np.array([1.0, 4.0], dtype=np.float32)

        restored = _roundtrip(polygon_mesh)
        np.testing.assert_array_equal(restored.crease_indices, [1, 2, 6])
        np.testing.assert_array_equal(restored.crease_lengths, [3])
        np.testing.assert_allclose(restored.crease_sharpnesses, [2.5])
        np.testing.assert_array_equal(restored.corner_indices, [0, 7])
        np.testing.assert_allclose(restored.corner_sharpnesses, [1.0, 4.0])

    def test_quad_sharing_its_diagonal_with_a_triangle(self):
        mesh = GeneralMesh(
            face_vertex_counts=[4, 3],
            face_vertex_indices=[0, 1, 2, 3, 0, 2, 4],
            points=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [1, 1, 1]],
        )
        restored = _roundtrip(mesh)
        np.testing.assert_array_equal(restored.face_vertex_counts, [4, 3])
        np.testing.assert_array_equal(restored.face_vertex_indices, [0, 1, 2, 3, 0, 2, 4])

    def test_two_quads_sharing_a_diagonal(self):
        mesh = GeneralMesh(
            face_vertex_counts=[4, 4],
            face_vertex_indices=[0, 1, 2, 3, 0, 4, 2, 5],
            points=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [1, 0, 1], [0, 1, 1]],
        )
        restored = _roundtrip(mesh)
        np.testing.assert_array_equal(restored.face_vertex_counts, [4, 4])
        np.testing.assert_array_equal(restored.face_vertex_indices, [0, 1, 2, 3, 0, 4, 2, 5])

    def test_summary(self, uv_polygon_mesh: GeneralMesh):
        summary = summarize_general_mesh(_roundtrip(uv_polygon_mesh))
        assert summary.num_faces == 3
        assert summary.num_holes == 1
        assert summary.max_face_vertex_count == 5
        assert summary.primvars[0].name == "st"
        assert summary.primvars[0].interpolation == "faceVarying"


class TestImportDeterminism:
    def _reference(self, mesh: GeneralMesh) -> GeneralMesh:
        return _roundtrip(mesh)

    def test_independent_of_value_storage_order(self, uv_polygon_mesh: GeneralMesh):
        reference = self._reference(uv_polygon_mesh)

        compressed = ExportTranslator.translate(uv_polygon_mesh)
        positions = compressed.attribute(compressed.get_named_attribute_id(AttributeType.POSITION))
        positions.permute_values(np.arange(positions.size)[::-1])
        st = compressed.attribute(compressed.get_named_attribute_id(AttributeType.TEX_COORD))
        st.permute_values(np.roll(np.arange(st.size), 5))
        compressed.deduplicate_attribute_values()
        restored = ImportTranslator.translate(compressed)

        np.testing.assert_array_equal(restored.face_vertex_counts, reference.face_vertex_counts)
        np.testing.assert_array_equal(restored.face_vertex_indices, reference.face_vertex_indices)
        np.testing.assert_array_equal(restored.points, reference.points)
        np.testing.assert_array_equal(restored.get_primvar("st").values, reference.get_primvar("st").values)
        np.testing.assert_array_equal(restored.get_primvar("st").indices, reference.get_primvar("st").indices)

    def test_storage_order_without_position_order(self, uv_polygon_mesh: GeneralMesh):
        config = ExportConfig(preserve_position_order=False)
        compressed = ExportTranslator.translate(uv_polygon_mesh, config)
        positions = compressed.attribute(compressed.get_named_attribute_id(AttributeType.POSITION))
        positions.permute_values(np.arange(positions.size)[::-1])
        st = compressed.attribute(compressed.get_named_attribute_id(AttributeType.TEX_COORD))
        st.permute_values(np.arange(st.size)[::-1])

        restored = ImportTranslator.translate(
            compressed, ImportConfig(deterministic_attribute_order=False)
        )
        np.testing.assert_array_equal(restored.face_vertex_counts, [4, 5, 3])
        # Same geometry per corner, even though position ids changed.
        np.testing.assert_array_equal(
            restored.points[restored.face_vertex_indices],
            uv_polygon_mesh.points[uv_polygon_mesh.face_vertex_indices],
        )
        np.testing.assert_allclose(_corner_values(restored, "st"), _corner_values(uv_polygon_mesh, "st"))


class TestImportFailures:
    def test_all_edges_added(self, quad_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(quad_mesh)
        _side_channel(compressed, ADDED_EDGES_NAME).point_map[:] = 1
        assert ImportTranslator.translate(compressed) is None

    def test_open_boundary(self, polygon_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(polygon_mesh)
        added = _side_channel(compressed, ADDED_EDGES_NAME)
        # Drop the quad's first boundary edge: its loop can no longer close.
        added.set_point_map_entry(0, 1)
        assert ImportTranslator.translate(compressed) is None

    @pytest.mark.parametrize("flag_point", [2, 3])
    def test_diagonal_flagged_on_one_side_only(self, quad_mesh: GeneralMesh, flag_point: int):
        compressed = ExportTranslator.translate(quad_mesh)
        _side_channel(compressed, ADDED_EDGES_NAME).set_point_map_entry(flag_point, 0)
        assert ImportTranslator.translate(compressed) is None

    def test_crease_metadata_out_of_range(self, quad_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(quad_mesh)
        compressed.add_metadata_entry("crease_indices", [0, 9])
        compressed.add_metadata_entry("crease_lengths", [2])
        compressed.add_metadata_entry("crease_sharpnesses", [1.0])
        assert ImportTranslator.translate(compressed) is None

    def test_added_edge_without_matching_neighbour(self, quad_mesh: GeneralMesh):
        compressed = ExportTranslator.translate(quad_mesh)
        # Flag the quad's outer edge 0 -> 1: no triangle lies across it.
        _side_channel(compressed, ADDED_EDGES_NAME).set_point_map_entry(0, 1)
        assert ImportTranslator.translate(compressed) is None
