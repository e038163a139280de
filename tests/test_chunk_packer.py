import struct

import pytest

from model_import.asset_format.asset_constants import (
    SDF_CHUNK_INDEX, SERIALIZED_VERSIONS, MESH_FLAG_INDEX_32, MESH_FLAG_HAS_NORMALS,
    MESH_FLAG_HAS_UVS, MESH_FLAG_HAS_LIGHTMAP_UVS, MODEL_MAX_LODS,
)
from model_import.import_options import ImportOptions
from model_import.importer.asset_context import CreateAssetContext, CreateAssetResult
from model_import.importer.chunk_packer import (
    create_model, create_skinned_model, create_animation,
    pack_mesh, pack_model_header, unpack_model_header,
)
from model_import.scene_model import (
    MeshData, AnimationData, NodeAnimation, Keyframe, SkeletonNode, SHADOWS_STATIC,
)

from conftest import make_quad, make_cube, make_model, make_skinned_quad, make_skeleton


def _context():
    return CreateAssetContext("scene.fbx", "Model.asset")


def test_create_model_writes_header_and_lod_chunks():
    data = make_model([[make_quad("a", 0), make_quad("b", 1)], [make_quad("a", 0)]])
    context = _context()

    assert create_model(context, data) == CreateAssetResult.OK

    writer = context.writer
    assert writer.type_name == "Model"
    assert writer.serialized_version == SERIALIZED_VERSIONS["Model"]
    assert sorted(writer.chunks) == [0, 1, 2]
    header = unpack_model_header(bytes(writer.chunks[0].data))
    assert [s.name for s in header.materials] == ["Material0", "Material1"]
    assert [len(lod.meshes) for lod in header.lods] == [2, 1]
    assert [lod.screen_size for lod in header.lods] == [1.0, 0.5]


def test_model_header_round_trip(material_id):
    data = make_model([[make_quad("a", 0, size=2.0)]], slot_names=["Stone"])
    data.materials[0].material_id = material_id
    data.materials[0].shadows_mode = SHADOWS_STATIC

    header = unpack_model_header(pack_model_header(data))

    slot = header.materials[0]
    assert (slot.name, slot.shadows_mode, slot.material_id) == ("Stone", SHADOWS_STATIC, material_id)
    mesh = header.lods[0].meshes[0]
    assert mesh.bounds == ((0.0, 0.0, 0.0), (2.0, 2.0, 0.0))
    assert mesh.has_lightmap_uvs


def test_too_many_lods_rejected():
    data = make_model([[make_quad("a")]] * (MODEL_MAX_LODS + 1))
    with pytest.raises(ValueError):
        pack_model_header(data)
    assert create_model(_context(), data) == CreateAssetResult.ERROR


def test_pack_mesh_uses_16bit_indices():
    mesh = make_quad("a")
    mesh.normals = []
    raw = pack_mesh(mesh)
    vertices, triangles, flags = struct.unpack_from("<IIB", raw)
    assert (vertices, triangles) == (4, 2)
    assert flags == MESH_FLAG_HAS_UVS | MESH_FLAG_HAS_LIGHTMAP_UVS
    assert len(raw) == 9 + 4 * 12 + 4 * 8 + 4 * 8 + 6 * 2


def test_pack_mesh_switches_to_32bit_indices():
    count = 0x10000
    mesh = MeshData("big", positions=[(0.0, 0.0, 0.0)] * count, indices=[0, 1, count - 1])
    raw = pack_mesh(mesh)
    flags = struct.unpack_from("<IIB", raw)[2]
    assert flags & MESH_FLAG_INDEX_32
    assert not flags & MESH_FLAG_HAS_NORMALS
    assert struct.unpack_from("<3I", raw, len(raw) - 12) == (0, 1, count - 1)


def test_pack_mesh_rejects_bad_buffers():
    mesh = make_quad("a")
    mesh.indices = [0, 1, 7]
    with pytest.raises(ValueError):
        pack_mesh(mesh)

    mesh = make_quad("a")
    mesh.uvs = mesh.uvs[:3]
    with pytest.raises(ValueError):
        pack_mesh(mesh)


def test_mesh_pack_failure_is_error():
    mesh = make_quad("a")
    mesh.indices = [0, 1, 9]
    assert create_model(_context(), make_model([[mesh]])) == CreateAssetResult.ERROR


def test_chunk_allocation_failure():
    context = _context()
    context.allocate_chunk(1)
    result = create_model(context, make_model([[make_quad("a")]]))
    assert result == CreateAssetResult.CANNOT_ALLOCATE_CHUNK


def test_sdf_only_when_requested():
    data = make_model([[make_cube("box")]])
    context = _context()
    assert create_model(context, data, ImportOptions()) == CreateAssetResult.OK
    assert SDF_CHUNK_INDEX not in context.writer.chunks
    assert context.diagnostics.sdf_generated is None

    context = _context()
    options = ImportOptions(generate_sdf=True, sdf_resolution=0.25)
    assert create_model(context, data, options) == CreateAssetResult.OK
    assert SDF_CHUNK_INDEX in context.writer.chunks
    assert context.diagnostics.sdf_generated is True
    resolution = struct.unpack_from("<3i", bytes(context.writer.chunks[SDF_CHUNK_INDEX].data))
    assert resolution == (10, 10, 10)


def test_sdf_failure_omits_chunk():
    point = MeshData("point", positions=[(1.0, 1.0, 1.0)] * 3, indices=[0, 1, 2])
    data = make_model([[point]])
    context = _context()
    options = ImportOptions(generate_sdf=True)
    assert create_model(context, data, options) == CreateAssetResult.OK
    assert SDF_CHUNK_INDEX not in context.writer.chunks
    assert context.diagnostics.sdf_generated is False


def test_skinned_lod_chunks_start_with_version_byte():
    data = make_model([[make_skinned_quad("body")], [make_skinned_quad("body")]])
    data.skeleton = make_skeleton()
    context = _context()

    assert create_skinned_model(context, data) == CreateAssetResult.OK

    assert context.writer.type_name == "SkinnedModel"
    assert context.writer.serialized_version == SERIALIZED_VERSIONS["SkinnedModel"]
    for index in (1, 2):
        assert context.writer.chunks[index].data[0] == 1
    header = unpack_model_header(bytes(context.writer.chunks[0].data))
    assert len(header.lods) == 2


def test_scene_nodes_are_not_serialized():
    def build():
        data = make_model([[make_skinned_quad("body")]])
        data.skeleton = make_skeleton()
        return data

    plain = _context()
    assert create_skinned_model(plain, build()) == CreateAssetResult.OK
    with_nodes = _context()
    data = build()
    data.nodes = [SkeletonNode("Scene"), SkeletonNode("body", parent_index=0)]
    assert create_skinned_model(with_nodes, data) == CreateAssetResult.OK

    assert sorted(with_nodes.writer.chunks) == sorted(plain.writer.chunks)
    for index, chunk in plain.writer.chunks.items():
        assert bytes(with_nodes.writer.chunks[index].data) == bytes(chunk.data)


def test_skinned_mesh_needs_weights():
    data = make_model([[make_quad("body")]])
    data.skeleton = make_skeleton()
    assert create_skinned_model(_context(), data) == CreateAssetResult.ERROR


def _clips():
    idle = AnimationData("Idle", duration=10.0, frames_per_second=30.0, channels=[
        NodeAnimation("Root", rotation=[Keyframe(0.0, (2.0, 0.0, 0.0, 0.0))]),
    ])
    walk = AnimationData("Walk", duration=24.0, frames_per_second=24.0, channels=[
        NodeAnimation("Root", position=[Keyframe(0.0, (0.0, 0.0, 0.0)), Keyframe(24.0, (0.0, 1.0, 0.0))]),
    ])
    data = make_model([])
    data.animations = [idle, walk]
    return data


def test_create_animation_packs_selected_clip():
    pytest.importorskip("mathutils")
    data = _clips()
    context = _context()

    assert create_animation(context, data, ImportOptions(type="Animation", object_index=1)) == CreateAssetResult.OK

    assert context.writer.type_name == "Animation"
    assert sorted(context.writer.chunks) == [0]
    version, duration, fps = struct.unpack_from("<idd", bytes(context.writer.chunks[0].data))
    assert (version, duration, fps) == (100, 24.0, 24.0)


def test_create_animation_defaults_to_first_clip():
    pytest.importorskip("mathutils")
    data = _clips()
    context = _context()
    assert create_animation(context, data, ImportOptions(type="Animation")) == CreateAssetResult.OK
    duration = struct.unpack_from("<idd", bytes(context.writer.chunks[0].data))[1]
    assert duration == 10.0
    assert data.animations[0].channels[0].rotation[0].value == pytest.approx((1.0, 0.0, 0.0, 0.0))


def test_create_animation_index_out_of_range():
    data = _clips()
    result = create_animation(_context(), data, ImportOptions(type="Animation", object_index=5))
    assert result == CreateAssetResult.ERROR
