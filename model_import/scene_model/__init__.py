"""In-memory scene representation: meshes, LODs, materials, skeleton, animations."""

from .model_data import (
    ModelData, ModelLod, MeshData, MaterialSlot,
    SHADOWS_NONE, SHADOWS_STATIC, SHADOWS_DYNAMIC, SHADOWS_ALL,
)
from .skeleton import SkeletonData, SkeletonNode, SkeletonBone, IDENTITY_MATRIX
from .animation import AnimationData, NodeAnimation, Keyframe
