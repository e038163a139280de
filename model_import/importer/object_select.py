"""Select the meshes of one logical object from a parsed model.

Two modes:

    Destructive (select_object): the model was parsed for this import
    alone. LOD 0 is replaced by the group's meshes, every other LOD keeps
    only meshes with the group's name, and the material table is rebuilt.

    Transfer (extract_object): the model is shared by the split extraction
    jobs of one source file. The group's meshes (and their same-named LOD
    meshes) are moved out of the shared model into a new ModelData, so
    no later job can see them again. The shared skeleton and nodes are
    copied, never modified.
"""

import copy
import logging
from typing import List

from ..scene_model import ModelData, ModelLod
from .material_slots import setup_material_slots

_log = logging.getLogger("model_import.select")


class GroupAlreadyTakenError(RuntimeError):
    """Raised when a mesh group is extracted from shared data twice."""


class SharedModelData:
    """Parsed model and its mesh groups, shared by split extraction jobs.

    Each group can be taken once; taking moves its meshes out of the
    shared model.
    """

    def __init__(self, data, groups):
        self.data = data
        self.groups = groups
        self._taken = set()

    def is_taken(self, group_index):
        return group_index in self._taken

    def take_group(self, group_index) -> List[ModelLod]:
        """Move group `group_index` out of the shared model.

        LOD 0 contributes the group's members. Each following LOD
        contributes the meshes named like the group key; scanning stops at
        the first LOD without one.

        Returns:
            list of ModelLod owned by the caller (LOD 0 first)

        Raises:
            GroupAlreadyTakenError: if the group was taken before
            IndexError: if group_index is out of range
        """
        if group_index in self._taken:
            raise GroupAlreadyTakenError(
                f"Mesh group {group_index} was already extracted")
        group = self.groups[group_index]
        self._taken.add(group_index)

        shared_lods = self.data.lods
        members = {id(m) for m in group.meshes}
        shared_lods[0].meshes = [m for m in shared_lods[0].meshes if id(m) not in members]
        lods = [ModelLod(list(group.meshes), shared_lods[0].screen_size)]

        for lod in shared_lods[1:]:
            matched = [m for m in lod.meshes if m.name == group.key]
            if not matched:
                break  # No meshes of that name in this LOD so skip further ones
            lod.meshes = [m for m in lod.meshes if m.name != group.key]
            lods.append(ModelLod(matched, lod.screen_size))

        return lods


def select_object(data, group):
    """Keep only `group`'s meshes in `data` (destructive mode).

    Args:
        data: ModelData parsed for this import
        group: MeshGroup taken from data's LOD 0

    Returns:
        number of meshes released
    """
    lod0 = data.lods[0]
    members = {id(m) for m in group.meshes}
    released = sum(1 for m in lod0.meshes if id(m) not in members)
    lod0.meshes = list(group.meshes)

    for lod in data.lods[1:]:
        kept = [m for m in lod.meshes if m.name == group.key]
        released += len(lod.meshes) - len(kept)
        lod.meshes = kept

    setup_material_slots(data, list(data.materials))
    _log.debug("Selected object '%s': %d mesh(es), released %d",
               group.key, len(group.meshes), released)
    return released


def extract_object(shared, group_index) -> ModelData:
    """Build a new ModelData for one group of a shared model (transfer mode).

    Args:
        shared: SharedModelData of the source file
        group_index: index into shared.groups

    Returns:
        ModelData owning the group's meshes
    """
    source = shared.data
    result = ModelData(
        skeleton=source.skeleton.clone(),
        nodes=copy.deepcopy(source.nodes),
    )
    result.lods = shared.take_group(group_index)

    # Copy materials used by the meshes
    setup_material_slots(result, source.materials)
    _log.debug("Extracted object '%s' with %d LOD(s)",
               shared.groups[group_index].key, len(result.lods))
    return result
