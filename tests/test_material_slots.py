import pytest

from model_import.asset_format import AssetWriter
from model_import.asset_format.asset_constants import TYPE_ANIMATION, SERIALIZED_VERSIONS
from model_import.importer.asset_context import CreateAssetContext, CreateAssetResult
from model_import.importer.chunk_packer import create_model
from model_import.importer.material_slots import (
    setup_material_slots, try_restore_materials,
    RESTORE_DONE, RESTORE_MISSING, RESTORE_UNREADABLE, RESTORE_INCOMPATIBLE,
)
from model_import.scene_model import SHADOWS_NONE

from conftest import make_quad, make_model, make_slots


def test_consolidation_keeps_referenced_slots_in_first_seen_order():
    source = make_slots("M0", "M1", "M2", "M3")
    data = make_model([[make_quad("a", 3), make_quad("b", 1)], [make_quad("a", 3)]])
    setup_material_slots(data, source)

    assert [s.name for s in data.materials] == ["M3", "M1"]
    assert [m.material_slot_index for m in data.iter_meshes()] == [0, 1, 0]
    assert [s.name for s in source] == ["M0", "M1", "M2", "M3"]


def test_consolidation_copies_slots():
    source = make_slots("M0")
    data = make_model([[make_quad("a", 0)]])
    setup_material_slots(data, source)
    data.materials[0].name = "Changed"
    assert source[0].name == "M0"


def test_consolidation_rejects_invalid_slot():
    data = make_model([[make_quad("a", 5)]], slot_names=["M0"])
    with pytest.raises(ValueError):
        setup_material_slots(data, data.materials)


def _write_model(storage, path, slots):
    data = make_model([[make_quad("a", i) for i in range(len(slots))]])
    data.materials = slots
    context = CreateAssetContext("scene.fbx", str(path))
    assert create_model(context, data) == CreateAssetResult.OK
    storage.save(context.writer, str(path))


def test_restore_copies_slots_by_position(tmp_path, storage, material_id):
    path = tmp_path / "Model.asset"
    previous = make_slots("Body", "Eyes")
    previous[0].material_id = material_id
    previous[0].shadows_mode = SHADOWS_NONE
    _write_model(storage, path, previous)

    data = make_model([[make_quad("a", 0), make_quad("b", 1), make_quad("c", 2)]],
                      slot_names=["lambert1", "lambert2", "lambert3"])
    context = CreateAssetContext("scene.fbx", str(path), storage=storage)

    assert try_restore_materials(context, data) == RESTORE_DONE
    assert [s.name for s in data.materials] == ["Body", "Eyes", "lambert3"]
    assert data.materials[0].material_id == material_id
    assert data.materials[0].shadows_mode == SHADOWS_NONE
    assert data.materials[1].material_id is None


def test_restore_missing_asset(tmp_path, storage):
    data = make_model([[make_quad("a")]], slot_names=["lambert1"])
    context = CreateAssetContext("scene.fbx", str(tmp_path / "None.asset"), storage=storage)
    assert try_restore_materials(context, data) == RESTORE_MISSING
    assert data.materials[0].name == "lambert1"


def test_restore_unreadable_asset(tmp_path, storage):
    path = tmp_path / "Broken.asset"
    path.write_bytes(b"not an asset at all, just some bytes")
    data = make_model([[make_quad("a")]], slot_names=["lambert1"])
    context = CreateAssetContext("scene.fbx", str(path), storage=storage)
    assert try_restore_materials(context, data) == RESTORE_UNREADABLE


def test_restore_ignores_other_asset_types(tmp_path, storage):
    path = tmp_path / "Clip.asset"
    writer = AssetWriter()
    writer.type_name = TYPE_ANIMATION
    writer.serialized_version = SERIALIZED_VERSIONS[TYPE_ANIMATION]
    writer.allocate_chunk(0).copy_from(b"\x00" * 8)
    storage.save(writer, str(path))

    data = make_model([[make_quad("a")]], slot_names=["lambert1"])
    context = CreateAssetContext("scene.fbx", str(path), storage=storage)
    assert try_restore_materials(context, data) == RESTORE_INCOMPATIBLE
    assert data.materials[0].name == "lambert1"
