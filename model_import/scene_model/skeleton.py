"""Skeleton node and bone hierarchy.

Node transforms are stored as 16 floats, row-major, translation in the last
column (the same layout mathutils.Matrix uses for row access).

SkeletonNode:
    name: node name (animation channels bind to it)
    parent_index: index of the parent node, -1 for the root
    local_transform: 16 floats relative to the parent

SkeletonBone:
    name: bone name
    parent_index: index of the parent bone, -1 for the root
    node_index: node that drives this bone
    offset_matrix: 16 floats, model space -> bone space (inverse bind pose)
"""

import copy
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

IDENTITY_MATRIX = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)


def matrix_from_tuple(values):
    """Build a mathutils.Matrix from 16 row-major floats."""
    from mathutils import Matrix
    return Matrix([values[0:4], values[4:8], values[8:12], values[12:16]])


def matrix_to_tuple(matrix):
    """Flatten a 4x4 mathutils.Matrix to 16 row-major floats."""
    return tuple(float(matrix[r][c]) for r in range(4) for c in range(4))


@dataclass
class SkeletonNode:
    """A single node in the scene / skeleton hierarchy."""
    name: str
    parent_index: int = -1
    local_transform: Tuple[float, ...] = IDENTITY_MATRIX


@dataclass
class SkeletonBone:
    """A skinning bone bound to a skeleton node."""
    name: str
    parent_index: int = -1
    node_index: int = 0
    offset_matrix: Optional[Tuple[float, ...]] = None


@dataclass
class SkeletonData:
    """Skeleton nodes and the bones that drive skinned vertices."""
    nodes: List[SkeletonNode] = field(default_factory=list)
    bones: List[SkeletonBone] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.nodes

    def find_node(self, name: str) -> int:
        """Index of the first node with the given name, -1 if absent."""
        for i, node in enumerate(self.nodes):
            if node.name == name:
                return i
        return -1

    def get_children(self, node_index: int) -> List[int]:
        """Get indices of all direct children of a node."""
        return [i for i, n in enumerate(self.nodes) if n.parent_index == node_index]

    def compute_world_matrices(self):
        """World (model space) matrix of every node as mathutils.Matrix.

        Raises:
            ValueError: if a parent index is out of range or the hierarchy
                has a cycle
        """
        world = [None] * len(self.nodes)

        def resolve(index, depth):
            if world[index] is not None:
                return world[index]
            if depth > len(self.nodes):
                raise ValueError(f"Skeleton hierarchy has a cycle at node {index}")
            node = self.nodes[index]
            local = matrix_from_tuple(node.local_transform)
            if node.parent_index == -1:
                world[index] = local
            else:
                if not 0 <= node.parent_index < len(self.nodes):
                    raise ValueError(
                        f"Node '{node.name}' has invalid parent index {node.parent_index}")
                world[index] = resolve(node.parent_index, depth + 1) @ local
            return world[index]

        for i in range(len(self.nodes)):
            resolve(i, 0)
        return world

    def compute_bone_offsets(self):
        """Fill in missing bone offset matrices from the node bind pose.

        The offset is the inverse of the bound node's world matrix. Bones
        that already carry an offset are left alone.
        """
        if not any(b.offset_matrix is None for b in self.bones):
            return
        world = self.compute_world_matrices()
        for bone in self.bones:
            if bone.offset_matrix is not None:
                continue
            if not 0 <= bone.node_index < len(world):
                raise ValueError(
                    f"Bone '{bone.name}' references missing node {bone.node_index}")
            bone.offset_matrix = matrix_to_tuple(world[bone.node_index].inverted_safe())

    def clone(self):
        return copy.deepcopy(self)
