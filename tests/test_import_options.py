import json
import logging

import pytest

from model_import.asset_format import AssetWriter
from model_import.import_options import (
    ImportOptions, try_get_import_options, resolve_import_options,
    get_preset, get_preset_items, register_preset, ImportPreset, IMPORT_PRESETS,
)
from model_import.importer.asset_context import CreateAssetContext


def _write_asset(storage, path, type_name="Model", version=25, metadata=None):
    writer = AssetWriter()
    writer.type_name = type_name
    writer.serialized_version = version
    writer.metadata = metadata if metadata is not None else b"{}"
    storage.save(writer, str(path))


def test_to_dict_skips_cached():
    options = ImportOptions(generate_sdf=True, cached=object())
    meta = options.to_dict()
    assert "cached" not in meta
    assert meta["generate_sdf"] is True
    json.dumps(meta)


def test_from_dict_ignores_unknown_keys():
    options = ImportOptions.from_dict({"type": "SkinnedModel", "ImportPath": "a.fbx", "unknown": 1})
    assert options.type == "SkinnedModel"
    assert options.restore_materials_on_reimport is True


def test_validate_rejects_bad_values():
    with pytest.raises(ValueError):
        ImportOptions(lightmap_uvs_source="Channel9").validate()
    with pytest.raises(ValueError):
        ImportOptions(sdf_resolution=0.0).validate()
    with pytest.raises(ValueError):
        ImportOptions(object_index=-2).validate()
    with pytest.raises(ValueError):
        ImportOptions(split_objects="yes").validate()
    with pytest.raises(ValueError):
        ImportOptions(object_index=True).validate()
    ImportOptions(sdf_resolution=2, scale=1).validate()
    ImportOptions(lightmap_uvs_source="Channel2").validate()


def test_restore_from_metadata(tmp_path, storage):
    path = tmp_path / "Model.asset"
    stored = ImportOptions(lightmap_uvs_source="Generate", sdf_resolution=2.0).to_dict()
    stored["ImportPath"] = "scene.fbx"
    _write_asset(storage, path, metadata=json.dumps(stored).encode("utf-8"))

    options = try_get_import_options(str(path), storage)

    assert options == ImportOptions(lightmap_uvs_source="Generate", sdf_resolution=2.0)


@pytest.mark.parametrize("type_name, version, restorable", [
    ("Model", 3, False),
    ("Model", 4, True),
    ("SkinnedModel", 1, True),
    ("SkinnedModel", 0, False),
    ("Animation", 1, True),
    ("Texture", 10, False),
])
def test_restore_version_limits(tmp_path, storage, type_name, version, restorable):
    path = tmp_path / "Asset.asset"
    _write_asset(storage, path, type_name, version)
    assert (try_get_import_options(str(path), storage) is not None) == restorable


def test_restore_rejects_bad_metadata(tmp_path, storage):
    path = tmp_path / "Model.asset"
    _write_asset(storage, path, metadata=b"{not json")
    assert try_get_import_options(str(path), storage) is None
    _write_asset(storage, path, metadata=b"[1, 2]")
    assert try_get_import_options(str(path), storage) is None
    assert try_get_import_options(str(tmp_path / "Missing.asset"), storage) is None


def test_restore_rejects_wrong_typed_metadata(tmp_path, storage, caplog):
    path = tmp_path / "Model.asset"
    meta = {"ImportPath": "scene.fbx", "object_index": "2", "sdf_resolution": "1"}
    _write_asset(storage, path, metadata=json.dumps(meta).encode("utf-8"))

    assert try_get_import_options(str(path), storage) is None

    context = CreateAssetContext("scene.fbx", str(path), storage=storage)
    with caplog.at_level(logging.WARNING):
        options = resolve_import_options(context)
    assert options == ImportOptions()
    assert "Missing model import options" in caplog.text


def test_resolve_copies_custom_options():
    custom = ImportOptions(split_objects=True)
    context = CreateAssetContext("scene.fbx", "Model.asset", custom)
    options = resolve_import_options(context)
    assert options == custom
    assert options is not custom


def test_resolve_falls_back_to_defaults(tmp_path, storage, caplog):
    context = CreateAssetContext("scene.fbx", str(tmp_path / "Model.asset"), storage=storage)
    with caplog.at_level(logging.WARNING):
        options = resolve_import_options(context)
    assert options == ImportOptions()
    assert "Missing model import options" in caplog.text


def test_presets():
    ids = [item[0] for item in get_preset_items()]
    assert "level_props" in ids
    first = get_preset("level_props")
    first.generate_sdf = False
    assert get_preset("level_props").generate_sdf is True
    assert get_preset("missing") is None


def test_register_preset(monkeypatch):
    monkeypatch.setattr("model_import.import_options.IMPORT_PRESETS", dict(IMPORT_PRESETS))
    register_preset(ImportPreset("props_no_sdf", "Props (no SDF)", ImportOptions(split_objects=True)))
    assert get_preset("props_no_sdf").split_objects
