"""In-memory model data produced by a scene parser.

A ModelData holds every level of detail of a model, the material slot
table shared by its meshes, the node/skeleton hierarchy and any animation
clips. The import pipeline mutates it in place (selection, slot
consolidation, lightmap packing) before the chunk packer serializes it.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import uuid

from .geometry import triangles_area, compute_bounds, bounding_sphere
from .skeleton import SkeletonData, SkeletonNode
from .animation import AnimationData

# Shadow casting modes for a material slot
SHADOWS_NONE = 0
SHADOWS_STATIC = 1
SHADOWS_DYNAMIC = 2
SHADOWS_ALL = 3

# Screen size falloff between consecutive LODs
LOD_SCREEN_SIZE_BASE = 0.5


@dataclass
class MaterialSlot:
    """An indexed material assignment shared by one or more meshes."""
    name: str = ""
    shadows_mode: int = SHADOWS_ALL
    material_id: Optional[uuid.UUID] = None


@dataclass
class MeshData:
    """One mesh fragment: a triangle list using a single material slot.

    Attributes:
        name: mesh name (meshes with equal names form one logical object)
        material_slot_index: index into ModelData.materials
        positions: list of (x, y, z) tuples
        indices: flat list of triangle vertex indices
        normals: list of (nx, ny, nz) tuples (optional)
        uvs: list of (u, v) tuples (optional)
        lightmap_uvs: list of (u, v) tuples, normalized to [0,1] per mesh (optional)
        colors: list of (r, g, b, a) tuples, 0-255 ints (optional)
        blend_indices: list of 4-int tuples per vertex (skinned only)
        blend_weights: list of 4-float tuples per vertex (skinned only)
        node_index: node the mesh is attached to
    """
    name: str
    material_slot_index: int = 0
    positions: List[Tuple[float, float, float]] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    normals: List[Tuple[float, float, float]] = field(default_factory=list)
    uvs: List[Tuple[float, float]] = field(default_factory=list)
    lightmap_uvs: List[Tuple[float, float]] = field(default_factory=list)
    colors: List[Tuple[int, int, int, int]] = field(default_factory=list)
    blend_indices: List[Tuple[int, int, int, int]] = field(default_factory=list)
    blend_weights: List[Tuple[float, float, float, float]] = field(default_factory=list)
    node_index: int = 0

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def calculate_triangles_area(self) -> float:
        return triangles_area(self.positions, self.indices)

    def get_bounds(self):
        return compute_bounds(self.positions)

    def get_bounding_sphere(self):
        return bounding_sphere(self.positions)


@dataclass
class ModelLod:
    """A complete mesh set at one simplification level."""
    meshes: List[MeshData] = field(default_factory=list)
    screen_size: float = 1.0


@dataclass
class ModelData:
    """Parsed scene: LODs, material slots, skeleton, nodes and animations.

    `nodes` is the parser's scene hierarchy, carried along for callers of
    the importer. It is not written to any chunk: skinned models store the
    hierarchy through `skeleton`, animations through their channels.
    """
    lods: List[ModelLod] = field(default_factory=list)
    materials: List[MaterialSlot] = field(default_factory=list)
    skeleton: SkeletonData = field(default_factory=SkeletonData)
    nodes: List[SkeletonNode] = field(default_factory=list)
    animations: List[AnimationData] = field(default_factory=list)

    @property
    def lod_count(self) -> int:
        return len(self.lods)

    def has_meshes(self) -> bool:
        """True when LOD 0 exists and holds at least one mesh."""
        return bool(self.lods) and bool(self.lods[0].meshes)

    def iter_meshes(self):
        for lod in self.lods:
            for mesh in lod.meshes:
                yield mesh

    def calculate_lod_screen_sizes(self):
        """Assign screen sizes 1, 0.5, 0.25, ... to consecutive LODs."""
        for lod_index, lod in enumerate(self.lods):
            lod.screen_size = LOD_SCREEN_SIZE_BASE ** lod_index

    def validate_material_slots(self):
        """Raise ValueError if any mesh references a missing slot."""
        for mesh in self.iter_meshes():
            if not 0 <= mesh.material_slot_index < len(self.materials):
                raise ValueError(
                    f"Mesh '{mesh.name}' uses material slot {mesh.material_slot_index} "
                    f"but the model has {len(self.materials)} slot(s)")
