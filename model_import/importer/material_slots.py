"""Material slot consolidation and restore-on-reimport.

setup_material_slots() rebuilds a dense slot table holding only the slots
the model's meshes actually use.

try_restore_materials() copies slot names, shadow modes and material
references from the asset being replaced, so user edits made after the
first import survive a re-import. Slots are matched by position, not by
name.
"""

import logging
from dataclasses import replace

from ..asset_format.asset_constants import TYPE_MODEL, TYPE_SKINNED_MODEL

_log = logging.getLogger("model_import.materials")

# Restore outcomes (recorded in ImportDiagnostics.material_restore)
RESTORE_DONE = "restored"
RESTORE_MISSING = "missing"
RESTORE_UNREADABLE = "unreadable"
RESTORE_INCOMPATIBLE = "incompatible"
RESTORE_SKIPPED = "skipped"


def setup_material_slots(data, materials):
    """Rebuild data.materials from the slots referenced by its meshes.

    Meshes are visited LOD by LOD in their current order; each newly seen
    source slot is appended (as a copy) and every mesh index is rewritten
    to the compacted position.

    Args:
        data: ModelData whose meshes index into `materials`
        materials: the source slot table (left unmodified)

    Raises:
        ValueError: if a mesh references a slot outside `materials`
    """
    remap = [-1] * len(materials)
    data.materials = []
    for mesh in data.iter_meshes():
        src = mesh.material_slot_index
        if not 0 <= src < len(materials):
            raise ValueError(
                f"Mesh '{mesh.name}' uses material slot {src} "
                f"but only {len(materials)} slot(s) exist")
        new_index = remap[src]
        if new_index == -1:
            new_index = remap[src] = len(data.materials)
            data.materials.append(replace(materials[src]))
        mesh.material_slot_index = new_index


def try_restore_materials(context, data):
    """Copy slot settings from the existing asset at the target path.

    Args:
        context: CreateAssetContext (target_asset_path, storage)
        data: ModelData whose materials get updated in place

    Returns:
        one of the RESTORE_* constants
    """
    storage = context.storage
    if storage is None or not storage.exists(context.target_asset_path):
        return RESTORE_MISSING

    asset = storage.load_asset(context.target_asset_path)
    if asset is None:
        return RESTORE_UNREADABLE
    if asset.type_name not in (TYPE_MODEL, TYPE_SKINNED_MODEL):
        return RESTORE_INCOMPATIBLE

    previous = asset.material_slots
    for i, dst in enumerate(data.materials):
        if i >= len(previous):
            break
        src = previous[i]
        dst.name = src.name
        dst.shadows_mode = src.shadows_mode
        dst.material_id = src.material_id

    _log.debug("Restored %d material slot(s) from %s",
               min(len(previous), len(data.materials)), context.target_asset_path)
    return RESTORE_DONE
