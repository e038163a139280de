"""Shared builders for model import tests."""

import copy
import uuid

import pytest

from model_import.asset_format import AssetStorage
from model_import.scene_model import (
    ModelData, ModelLod, MeshData, MaterialSlot, SkeletonData, SkeletonNode, SkeletonBone,
    IDENTITY_MATRIX,
)

QUAD_INDICES = [0, 1, 2, 0, 2, 3]

# Outward facing (counter-clockwise seen from outside)
CUBE_INDICES = [
    0, 2, 1, 0, 3, 2,  # -z
    4, 5, 6, 4, 6, 7,  # +z
    0, 1, 5, 0, 5, 4,  # -y
    3, 7, 6, 3, 6, 2,  # +y
    0, 4, 7, 0, 7, 3,  # -x
    1, 2, 6, 1, 6, 5,  # +x
]


def make_quad(name, slot=0, size=1.0, z=0.0, offset=0.0):
    """Flat square of side `size` in the XY plane with per-mesh lightmap UVs."""
    x0, x1 = offset, offset + size
    return MeshData(
        name=name,
        material_slot_index=slot,
        positions=[(x0, 0.0, z), (x1, 0.0, z), (x1, size, z), (x0, size, z)],
        indices=list(QUAD_INDICES),
        normals=[(0.0, 0.0, 1.0)] * 4,
        uvs=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        lightmap_uvs=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
    )


def make_cube(name, slot=0, half=1.0):
    """Closed cube centered at the origin."""
    h = half
    positions = [
        (-h, -h, -h), (h, -h, -h), (h, h, -h), (-h, h, -h),
        (-h, -h, h), (h, -h, h), (h, h, h), (-h, h, h),
    ]
    return MeshData(name=name, material_slot_index=slot,
                    positions=positions, indices=list(CUBE_INDICES))


def make_slots(*names):
    return [MaterialSlot(name) for name in names]


def make_model(lods, slot_names=None):
    """ModelData from a list of mesh lists (one per LOD)."""
    if slot_names is None:
        count = 1 + max((m.material_slot_index for lod in lods for m in lod), default=0)
        slot_names = [f"Material{i}" for i in range(count)]
    return ModelData(
        lods=[ModelLod(list(meshes), 0.5 ** i) for i, meshes in enumerate(lods)],
        materials=make_slots(*slot_names),
    )


def make_skinned_quad(name, slot=0):
    mesh = make_quad(name, slot)
    mesh.blend_indices = [(0, 0, 0, 0)] * 4
    mesh.blend_weights = [(1.0, 0.0, 0.0, 0.0)] * 4
    return mesh


def make_skeleton():
    """Single root node and bone with an explicit offset matrix."""
    return SkeletonData(
        nodes=[SkeletonNode("Root")],
        bones=[SkeletonBone("Root", -1, 0, IDENTITY_MATRIX)],
    )


class FakeParser:
    """Scene parser stand-in returning a fresh copy of a prepared model.

    Records every call as (source_path, options, output_folder).
    """

    def __init__(self, data=None, error="Cannot open file"):
        self.data = data
        self.error = error
        self.calls = []

    def __call__(self, source_path, options, output_folder):
        self.calls.append((source_path, options, output_folder))
        if self.data is None:
            return None, self.error
        return copy.deepcopy(self.data), ""


@pytest.fixture
def storage():
    return AssetStorage()


@pytest.fixture
def material_id():
    return uuid.UUID("3f1c9a52-6d1e-4a43-9b6f-2f9d2d1c7e01")
