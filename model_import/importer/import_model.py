"""Model, skinned model and animation asset import.

An import runs in two stages so split siblings can be written in between:

    prepare_import()   resolve options, parse the source (or reuse the data
                       shared by a split), group meshes and plan the split
    finish_import()    select the object, restore materials, pack the
                       lightmap atlas, serialize chunks and write metadata

Any sibling jobs planned by the first stage must run to completion before
the second stage starts: the primary's selection consumes the parsed data
the siblings extract from.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..asset_format.asset_constants import TYPE_MODEL, TYPE_SKINNED_MODEL, TYPE_ANIMATION
from ..import_options import (
    MODEL_TYPES, LIGHTMAP_UVS_GENERATE, ImportOptions, resolve_import_options,
)
from ..scene_model import ModelData
from .asset_context import CreateAssetResult
from .chunk_packer import create_model, create_skinned_model, create_animation
from .lightmap_pack import repack_mesh_lightmap_uvs
from .material_slots import RESTORE_SKIPPED, try_restore_materials
from .mesh_groups import MeshGroup, group_model_meshes
from .object_select import (
    GroupAlreadyTakenError, SharedModelData, select_object, extract_object,
)
from .object_split import ExtractionJob, plan_split_jobs

_log = logging.getLogger("model_import.import")

_CREATORS = {
    TYPE_MODEL: create_model,
    TYPE_SKINNED_MODEL: create_skinned_model,
    TYPE_ANIMATION: create_animation,
}


@dataclass
class PreparedImport:
    """Output of prepare_import(), input of finish_import()."""
    options: ImportOptions
    data: ModelData
    groups: List[MeshGroup] = field(default_factory=list)
    shared: Optional[SharedModelData] = None
    jobs: List[ExtractionJob] = field(default_factory=list)


def get_auto_import_folder(context, options):
    """Folder (next to the target asset) for sub-assets created by the parser."""
    folder = options.sub_asset_folder.rstrip()
    if not folder:
        folder = os.path.splitext(os.path.basename(context.input_path))[0]
    return os.path.join(os.path.dirname(context.target_asset_path), folder)


def prepare_import(context, parser):
    """First import stage.

    Args:
        context: CreateAssetContext
        parser: callable (source_path, options, output_folder) ->
            (ModelData or None, error_message)

    Returns:
        (CreateAssetResult, PreparedImport or None)
    """
    options = resolve_import_options(context)
    try:
        options.validate()
    except ValueError as e:
        _log.error("Invalid import options. %s", e)
        return CreateAssetResult.ERROR, None
    if options.type not in MODEL_TYPES:
        _log.error("Unsupported model import type %r", options.type)
        return CreateAssetResult.INVALID_TYPE_ID, None

    shared = options.cached
    if shared is not None:
        # Extraction job of a split: reuse the data parsed by the primary
        return CreateAssetResult.OK, PreparedImport(options, shared.data, shared.groups, shared)

    output_folder = get_auto_import_folder(context, options)
    data, error = parser(context.input_path, options, output_folder)
    if data is None:
        _log.error("Cannot import model file. %s", error)
        return CreateAssetResult.ERROR, None

    # The same mesh name can be used by multiple meshes with different materials
    groups = group_model_meshes(data)
    prepared = PreparedImport(options, data, groups)

    if options.split_objects:
        prepared.shared = SharedModelData(data, groups)
        prepared.options, prepared.jobs = plan_split_jobs(
            context.input_path, context.target_asset_path, options, data, prepared.shared)
        context.diagnostics.split_jobs = [job.output_path for job in prepared.jobs]

    return CreateAssetResult.OK, prepared


def _select(context, prepared):
    """Narrow the data down to the object picked by options.object_index."""
    options = prepared.options
    data = prepared.data
    if options.type not in (TYPE_MODEL, TYPE_SKINNED_MODEL):
        return data
    if not 0 <= options.object_index < len(prepared.groups):
        return data

    if options.cached is None:
        group = prepared.groups[options.object_index]
        context.diagnostics.released_meshes = select_object(data, group)
        return data
    return extract_object(options.cached, options.object_index)


def finish_import(context, prepared):
    """Second import stage: select, post-process and serialize.

    Returns:
        CreateAssetResult
    """
    options = prepared.options
    diagnostics = context.diagnostics

    try:
        data = _select(context, prepared)
        data.validate_material_slots()
    except GroupAlreadyTakenError as e:
        _log.error("Cannot select object. %s", e)
        return CreateAssetResult.ERROR
    except ValueError as e:
        _log.error("Invalid material slots. %s", e)
        return CreateAssetResult.ERROR

    if options.type in (TYPE_MODEL, TYPE_SKINNED_MODEL) and not data.has_meshes():
        _log.warning("Models has no valid meshes")
        return CreateAssetResult.ERROR

    if options.restore_materials_on_reimport and data.materials:
        diagnostics.material_restore = try_restore_materials(context, data)
    else:
        diagnostics.material_restore = RESTORE_SKIPPED

    # Per-mesh lightmap UVs of a multi-mesh model share one atlas
    if (options.type == TYPE_MODEL
            and options.lightmap_uvs_source == LIGHTMAP_UVS_GENERATE
            and data.lods and len(data.lods[0].meshes) > 1):
        try:
            diagnostics.lightmap_atlas = repack_mesh_lightmap_uvs(data)
        except ValueError as e:
            _log.error("Cannot pack lightmap UVs. %s", e)
            return CreateAssetResult.ERROR

    result = _CREATORS[options.type](context, data, options)
    if result != CreateAssetResult.OK:
        return result

    meta = {}
    context.add_meta(meta)
    meta.update(options.to_dict())
    context.set_metadata(meta)

    _log.info("Imported %s '%s'", options.type, context.target_asset_path)
    return CreateAssetResult.OK


def import_model(context, parser, run_job=None):
    """Import one asset, running split extraction jobs through `run_job`.

    Args:
        context: CreateAssetContext
        parser: scene parser callable (see prepare_import)
        run_job: callable taking an ExtractionJob; required when the
            options split the source into several assets

    Returns:
        CreateAssetResult of this asset only
    """
    result, prepared = prepare_import(context, parser)
    if result != CreateAssetResult.OK:
        return result

    if prepared.jobs:
        if run_job is None:
            raise RuntimeError(
                f"Import of '{context.input_path}' produced {len(prepared.jobs)} "
                f"split job(s) but no job runner was given")
        for job in prepared.jobs:
            run_job(job)

    return finish_import(context, prepared)


def create_model_asset(context, data):
    """Build a Model asset directly from in-memory model data.

    Screen sizes of the LODs are recalculated first.

    Args:
        context: CreateAssetContext
        data: ModelData

    Returns:
        CreateAssetResult
    """
    if not data.has_meshes():
        _log.warning("Models has no valid meshes")
        return CreateAssetResult.ERROR

    data.calculate_lod_screen_sizes()
    return create_model(context, data)
