"""Serialize model, skinned model and animation data into asset chunks.

Chunk layout:

    Model          chunk 0: model header
                   chunk k+1: meshes of LOD k
                   chunk 15: signed distance field (optional)
    SkinnedModel   chunk 0: model header + skeleton
                   chunk k+1: mesh data version byte, meshes of LOD k
    Animation      chunk 0: one animation clip

Model header (little-endian):
    u32 header version
    f32 min screen size
    u32 slot count, per slot: 16s material id, u8 shadows mode, str name
    u8 LOD count, per LOD:
        f32 screen size, u16 mesh count, per mesh:
            i32 slot index, 6f bounds (min, max), 4f sphere, u8 has lightmap uvs

Skeleton (skinned header only, after the model header):
    u32 node count, per node: i32 parent, str name, 16f local transform
    u32 bone count, per bone: i32 parent, i32 node, 16f offset matrix

Mesh record:
    u32 vertex count, u32 triangle count, u8 flags
    f32[3V] positions, then by flag f32[3V] normals, f32[2V] uvs,
    f32[2V] lightmap uvs, u8[4V] colors, then u16 or u32 indices.
    Skinned meshes add u16[4V] blend indices and f32[4V] blend weights.

Strings are u16 byte length + utf-8.
"""

import struct
import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from ..asset_format.asset_constants import (
    TYPE_MODEL, TYPE_SKINNED_MODEL, TYPE_ANIMATION,
    SDF_CHUNK_INDEX, MODEL_HEADER_VERSION, ANIMATION_HEADER_VERSION,
    SKINNED_MESH_DATA_VERSION, MODEL_MAX_LODS, MAX_INDEX_16_VERTICES,
    MESH_FLAG_HAS_NORMALS, MESH_FLAG_HAS_UVS, MESH_FLAG_HAS_LIGHTMAP_UVS,
    MESH_FLAG_HAS_COLORS, MESH_FLAG_INDEX_32,
)
from ..asset_format.asset_writer import ChunkAllocationError
from ..scene_model import MaterialSlot
from .asset_context import CreateAssetResult
from .model_sdf import generate_model_sdf

_log = logging.getLogger("model_import.chunks")

_EMPTY_ID = b'\x00' * 16


# ============================================================================
# Primitive helpers
# ============================================================================

def _pack_string(value):
    raw = value.encode('utf-8')
    if len(raw) > 0xFFFF:
        raise ValueError(f"String too long to pack ({len(raw)} bytes)")
    return struct.pack("<H", len(raw)) + raw


class _Cursor:
    """Sequential little-endian reader over a bytes buffer."""

    def __init__(self, data):
        self.data = data
        self.pos = 0

    def read(self, fmt):
        size = struct.calcsize(fmt)
        if self.pos + size > len(self.data):
            raise ValueError(f"Unexpected end of chunk at offset {self.pos}")
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values

    def read_one(self, fmt):
        return self.read(fmt)[0]

    def read_string(self):
        length = self.read_one("<H")
        raw = self.read(f"<{length}s")[0]
        return raw.decode('utf-8')


def _attribute(values, count, width, name, mesh_name):
    """Validate an optional per-vertex attribute; returns a (count, width) array or None."""
    if not values:
        return None
    arr = np.asarray(values, dtype=np.float64)
    if arr.size != count * width:
        raise ValueError(
            f"Mesh '{mesh_name}' has {arr.size // width if width else 0} {name} "
            f"for {count} vertices")
    return arr.reshape(count, width)


# ============================================================================
# Headers
# ============================================================================

def pack_model_header(data):
    """Serialize the model header (chunk 0) of a Model or SkinnedModel.

    Raises:
        ValueError: if the model has too many LODs or meshes per LOD
    """
    if len(data.lods) > MODEL_MAX_LODS:
        raise ValueError(f"Model has {len(data.lods)} LODs (max {MODEL_MAX_LODS})")

    buf = bytearray()
    buf.extend(struct.pack("<If", MODEL_HEADER_VERSION, 0.0))

    buf.extend(struct.pack("<I", len(data.materials)))
    for slot in data.materials:
        buf.extend(slot.material_id.bytes if slot.material_id is not None else _EMPTY_ID)
        buf.extend(struct.pack("<B", slot.shadows_mode))
        buf.extend(_pack_string(slot.name))

    buf.extend(struct.pack("<B", len(data.lods)))
    for lod in data.lods:
        if len(lod.meshes) > 0xFFFF:
            raise ValueError(f"LOD has too many meshes ({len(lod.meshes)})")
        buf.extend(struct.pack("<fH", lod.screen_size, len(lod.meshes)))
        for mesh in lod.meshes:
            bmin, bmax = mesh.get_bounds()
            sphere = mesh.get_bounding_sphere()
            buf.extend(struct.pack("<i", mesh.material_slot_index))
            buf.extend(struct.pack("<6f", *bmin, *bmax))
            buf.extend(struct.pack("<4f", *sphere))
            buf.extend(struct.pack("<B", 1 if mesh.lightmap_uvs else 0))
    return bytes(buf)


def pack_skeleton(skeleton):
    """Serialize skeleton nodes and bones (bone offsets are filled in first)."""
    skeleton.compute_bone_offsets()
    buf = bytearray()
    buf.extend(struct.pack("<I", len(skeleton.nodes)))
    for node in skeleton.nodes:
        buf.extend(struct.pack("<i", node.parent_index))
        buf.extend(_pack_string(node.name))
        buf.extend(struct.pack("<16f", *node.local_transform))
    buf.extend(struct.pack("<I", len(skeleton.bones)))
    for bone in skeleton.bones:
        buf.extend(struct.pack("<ii", bone.parent_index, bone.node_index))
        buf.extend(struct.pack("<16f", *bone.offset_matrix))
    return bytes(buf)


def pack_skinned_model_header(data):
    return pack_model_header(data) + pack_skeleton(data.skeleton)


@dataclass
class MeshHeader:
    material_slot_index: int
    bounds: Tuple[Tuple[float, float, float], Tuple[float, float, float]]
    sphere: Tuple[float, float, float, float]
    has_lightmap_uvs: bool


@dataclass
class LodHeader:
    screen_size: float
    meshes: List[MeshHeader] = field(default_factory=list)


@dataclass
class ModelHeader:
    """Decoded model header (chunk 0)."""
    version: int
    min_screen_size: float
    materials: List[MaterialSlot] = field(default_factory=list)
    lods: List[LodHeader] = field(default_factory=list)


def unpack_model_header(chunk):
    """Decode a model header written by pack_model_header.

    Works for SkinnedModel headers too (the skeleton part is ignored).

    Raises:
        ValueError: if the chunk is truncated or has an unknown version
    """
    cur = _Cursor(chunk)
    version, min_screen_size = cur.read("<If")
    if version != MODEL_HEADER_VERSION:
        raise ValueError(f"Unsupported model header version {version}")
    header = ModelHeader(version, min_screen_size)

    for _ in range(cur.read_one("<I")):
        raw_id = cur.read("<16s")[0]
        shadows_mode = cur.read_one("<B")
        name = cur.read_string()
        material_id = None if raw_id == _EMPTY_ID else uuid.UUID(bytes=raw_id)
        header.materials.append(MaterialSlot(name, shadows_mode, material_id))

    for _ in range(cur.read_one("<B")):
        screen_size, mesh_count = cur.read("<fH")
        lod = LodHeader(screen_size)
        for _ in range(mesh_count):
            slot = cur.read_one("<i")
            box = cur.read("<6f")
            sphere = cur.read("<4f")
            has_lightmap = bool(cur.read_one("<B"))
            lod.meshes.append(MeshHeader(slot, (box[:3], box[3:]), sphere, has_lightmap))
        header.lods.append(lod)

    return header


# ============================================================================
# Meshes
# ============================================================================

def pack_mesh(mesh, skinned=False):
    """Serialize one mesh record.

    Raises:
        ValueError: if the mesh has no triangles, an index is out of range
            or an attribute count does not match the vertex count
    """
    count = mesh.vertex_count
    if count == 0 or mesh.triangle_count == 0:
        raise ValueError(f"Mesh '{mesh.name}' has no triangles")
    if len(mesh.indices) % 3:
        raise ValueError(f"Mesh '{mesh.name}' index count is not a multiple of 3")

    positions = _attribute(mesh.positions, count, 3, "positions", mesh.name)
    normals = _attribute(mesh.normals, count, 3, "normals", mesh.name)
    uvs = _attribute(mesh.uvs, count, 2, "uvs", mesh.name)
    lightmap_uvs = _attribute(mesh.lightmap_uvs, count, 2, "lightmap uvs", mesh.name)
    colors = _attribute(mesh.colors, count, 4, "colors", mesh.name)

    indices = np.asarray(mesh.indices, dtype=np.int64)
    if indices.min() < 0 or indices.max() >= count:
        raise ValueError(f"Mesh '{mesh.name}' has triangle indices out of range")

    flags = 0
    if normals is not None:
        flags |= MESH_FLAG_HAS_NORMALS
    if uvs is not None:
        flags |= MESH_FLAG_HAS_UVS
    if lightmap_uvs is not None:
        flags |= MESH_FLAG_HAS_LIGHTMAP_UVS
    if colors is not None:
        flags |= MESH_FLAG_HAS_COLORS
    use_32bit = count > MAX_INDEX_16_VERTICES
    if use_32bit:
        flags |= MESH_FLAG_INDEX_32

    buf = bytearray(struct.pack("<IIB", count, mesh.triangle_count, flags))
    buf.extend(positions.astype('<f4').tobytes())
    for attr in (normals, uvs, lightmap_uvs):
        if attr is not None:
            buf.extend(attr.astype('<f4').tobytes())
    if colors is not None:
        buf.extend(np.clip(colors, 0, 255).astype(np.uint8).tobytes())
    buf.extend(indices.astype('<u4' if use_32bit else '<u2').tobytes())

    if skinned:
        blend_indices = _attribute(mesh.blend_indices, count, 4, "blend indices", mesh.name)
        blend_weights = _attribute(mesh.blend_weights, count, 4, "blend weights", mesh.name)
        if blend_indices is None or blend_weights is None:
            raise ValueError(f"Skinned mesh '{mesh.name}' has no blend weights")
        if blend_indices.min() < 0 or blend_indices.max() > 0xFFFF:
            raise ValueError(f"Skinned mesh '{mesh.name}' has invalid bone indices")
        buf.extend(blend_indices.astype('<u2').tobytes())
        buf.extend(blend_weights.astype('<f4').tobytes())

    return bytes(buf)


# ============================================================================
# Animations
# ============================================================================

_CURVE_WIDTHS = (("position", 3), ("rotation", 4), ("scale", 3))


def pack_animation_header(data, animation_index):
    """Serialize one animation clip.

    Raises:
        ValueError: if the index is out of range or a keyframe value has
            the wrong number of components
    """
    if not 0 <= animation_index < len(data.animations):
        raise ValueError(
            f"Animation index {animation_index} out of range "
            f"({len(data.animations)} animation(s))")
    anim = data.animations[animation_index]
    anim.normalize_rotations()
    _log.debug("Packing animation '%s' (%.2fs, %d channel(s))",
               anim.name, anim.get_length(), len(anim.channels))

    buf = bytearray()
    buf.extend(struct.pack("<idd", ANIMATION_HEADER_VERSION,
                           anim.duration, anim.frames_per_second))
    buf.extend(struct.pack("<B", 1 if anim.enable_root_motion else 0))
    buf.extend(_pack_string(anim.root_node_name))
    buf.extend(struct.pack("<i", len(anim.channels)))
    for channel in anim.channels:
        buf.extend(_pack_string(channel.node_name))
        for curve_name, width in _CURVE_WIDTHS:
            keys = getattr(channel, curve_name)
            buf.extend(struct.pack("<i", len(keys)))
            for key in keys:
                if len(key.value) != width:
                    raise ValueError(
                        f"Channel '{channel.node_name}' {curve_name} key has "
                        f"{len(key.value)} components (expected {width})")
                buf.extend(struct.pack(f"<f{width}f", key.time, *key.value))
    return bytes(buf)


# ============================================================================
# Asset creation
# ============================================================================

def _pack_lods(context, data, skinned):
    for lod_index, lod in enumerate(data.lods):
        buf = bytearray()
        if skinned:
            buf.extend(struct.pack("<B", SKINNED_MESH_DATA_VERSION))
        for mesh in lod.meshes:
            try:
                buf.extend(pack_mesh(mesh, skinned))
            except ValueError as e:
                _log.warning("Cannot pack mesh. %s", e)
                return CreateAssetResult.ERROR
        context.allocate_chunk(lod_index + 1).copy_from(buf)
    return CreateAssetResult.OK


def create_model(context, data, options=None):
    """Write a Model asset: header, one chunk per LOD and the optional SDF."""
    context.set_asset_type(TYPE_MODEL)
    try:
        header = pack_model_header(data)
    except ValueError as e:
        _log.warning("Cannot pack model header. %s", e)
        return CreateAssetResult.ERROR

    try:
        context.allocate_chunk(0).copy_from(header)
        result = _pack_lods(context, data, skinned=False)
        if result != CreateAssetResult.OK:
            return result

        if options is not None and options.generate_sdf:
            sdf = generate_model_sdf(data, options.sdf_resolution, data.lod_count - 1)
            context.diagnostics.sdf_generated = sdf is not None
            if sdf is not None:
                context.allocate_chunk(SDF_CHUNK_INDEX).copy_from(sdf)
    except ChunkAllocationError as e:
        _log.error("Cannot allocate chunk. %s", e)
        return CreateAssetResult.CANNOT_ALLOCATE_CHUNK

    return CreateAssetResult.OK


def create_skinned_model(context, data, options=None):
    """Write a SkinnedModel asset: header with skeleton, one chunk per LOD."""
    context.set_asset_type(TYPE_SKINNED_MODEL)
    try:
        header = pack_skinned_model_header(data)
    except ValueError as e:
        _log.warning("Cannot pack skinned model header. %s", e)
        return CreateAssetResult.ERROR

    try:
        context.allocate_chunk(0).copy_from(header)
        return _pack_lods(context, data, skinned=True)
    except ChunkAllocationError as e:
        _log.error("Cannot allocate chunk. %s", e)
        return CreateAssetResult.CANNOT_ALLOCATE_CHUNK


def create_animation(context, data, options=None):
    """Write an Animation asset holding a single clip (object_index or 0)."""
    context.set_asset_type(TYPE_ANIMATION)
    index = options.object_index if options is not None and options.object_index != -1 else 0
    try:
        header = pack_animation_header(data, index)
    except ValueError as e:
        _log.warning("Cannot pack animation. %s", e)
        return CreateAssetResult.ERROR

    try:
        context.allocate_chunk(0).copy_from(header)
    except ChunkAllocationError as e:
        _log.error("Cannot allocate chunk. %s", e)
        return CreateAssetResult.CANNOT_ALLOCATE_CHUNK
    return CreateAssetResult.OK
