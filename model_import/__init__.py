"""Scene to asset importer for models, skinned models and animations.

Turns a parsed in-memory scene (meshes, materials, skeleton, animation
clips) into versioned chunked asset files, optionally one per object.

Usage:
    from model_import import ModelImporter, ImportOptions

    importer = ModelImporter(parse_scene)
    report = importer.import_asset("props.fbx", "Content/Props.asset",
                                   ImportOptions(split_objects=True))
"""

__version__ = "0.3.0"

from .import_options import ImportOptions, get_preset, get_preset_items, register_preset
from .importer.asset_context import CreateAssetContext, CreateAssetResult, ImportDiagnostics
from .importer.import_model import import_model, create_model_asset
from .importer.model_importer import ModelImporter, ImportReport, SiblingResult
