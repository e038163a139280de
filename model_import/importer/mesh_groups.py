"""Group LOD 0 meshes into logical objects by name.

A source object that uses several materials arrives as several meshes that
share a name; grouping by name puts them back together. Groups are sorted
by key with ordinal string comparison so group indices (and the split file
names derived from them) stay stable when the parser reorders meshes.
"""

from dataclasses import dataclass, field
from typing import List

from ..scene_model import MeshData


@dataclass
class MeshGroup:
    """Meshes of one logical object, in their LOD 0 order."""
    key: str
    meshes: List[MeshData] = field(default_factory=list)

    def __len__(self):
        return len(self.meshes)

    def __iter__(self):
        return iter(self.meshes)


def group_meshes_by_name(meshes) -> List[MeshGroup]:
    """Group meshes by exact name and sort the groups by key.

    Args:
        meshes: iterable of MeshData (usually ModelData.lods[0].meshes)

    Returns:
        list of MeshGroup, ascending by key (code point order)
    """
    groups = {}
    for mesh in meshes:
        group = groups.get(mesh.name)
        if group is None:
            group = groups[mesh.name] = MeshGroup(mesh.name)
        group.meshes.append(mesh)
    return [groups[key] for key in sorted(groups)]


def group_model_meshes(data) -> List[MeshGroup]:
    """Groups of a ModelData's LOD 0, empty when the model has no LODs."""
    if not data.lods:
        return []
    return group_meshes_by_name(data.lods[0].meshes)
