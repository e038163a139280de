"""Signed distance field generation for static models.

Samples a regular voxel grid around one LOD of a model. Each sample stores
the distance to the nearest triangle, negative inside the surface. Inside
vs. outside comes from the generalized winding number (sum of triangle
solid angles), which tolerates small holes and either winding order.

Output layout (little-endian):
    3 x int32    grid resolution (x, y, z)
    3 x float32  origin (center of voxel 0,0,0)
    float32      voxel size
    float32      max absolute distance
    float32[]    distances, x fastest, then y, then z
"""

import math
import struct
import logging
from dataclasses import dataclass

import numpy as np

from ..scene_model.geometry import triangle_corners

_log = logging.getLogger("model_import.sdf")

SDF_BASE_RESOLUTION = 32
SDF_MIN_RESOLUTION = 4
SDF_MAX_RESOLUTION = 64

# Upper bound for (samples x triangles) evaluated at once
_BATCH_BUDGET = 250_000


@dataclass
class SdfVolume:
    """Sampled distance field."""
    resolution: tuple
    origin: tuple
    voxel_size: float
    distances: np.ndarray  # shape (z, y, x)

    @property
    def max_distance(self) -> float:
        if self.distances.size == 0:
            return 0.0
        return float(np.abs(self.distances).max())

    def to_bytes(self) -> bytes:
        header = struct.pack(
            "<3i3f2f",
            *self.resolution, *self.origin, self.voxel_size, self.max_distance)
        return header + self.distances.astype('<f4').tobytes()


def _lod_triangles(lod):
    parts = [triangle_corners(m.positions, m.indices) for m in lod.meshes]
    parts = [p for p in parts if len(p[0])]
    if not parts:
        return None
    return tuple(np.concatenate([p[i] for p in parts]) for i in range(3))


def _dot(u, v):
    return np.einsum('...k,...k->...', u, v)


def _segment_distance_sq(p, a, b):
    ab = b - a
    denom = np.maximum(_dot(ab, ab), 1e-30)
    t = np.clip(_dot(p - a, ab) / denom, 0.0, 1.0)
    diff = p - (a + t[..., None] * ab)
    return _dot(diff, diff)


def _distance_and_winding(points, a, b, c):
    """Unsigned distance to the nearest triangle and winding number per point."""
    p = points[:, None, :]
    a = a[None, :, :]
    b = b[None, :, :]
    c = c[None, :, :]

    # Distance: nearest edge, or the plane when the projection lands inside
    n = np.cross(b - a, c - a)
    nn = _dot(n, n)
    dist_sq = np.minimum(np.minimum(
        _segment_distance_sq(p, a, b),
        _segment_distance_sq(p, b, c)),
        _segment_distance_sq(p, c, a))
    inside = ((_dot(np.cross(b - a, p - a), n) >= 0.0) &
              (_dot(np.cross(c - b, p - b), n) >= 0.0) &
              (_dot(np.cross(a - c, p - c), n) >= 0.0) &
              (nn > 1e-30))
    plane_sq = np.where(nn > 1e-30, _dot(p - a, n) ** 2 / np.maximum(nn, 1e-30), np.inf)
    dist_sq = np.where(inside, np.minimum(dist_sq, plane_sq), dist_sq)

    # Winding number: sum of solid angles (Van Oosterom & Strackee)
    ra, rb, rc = a - p, b - p, c - p
    la = np.linalg.norm(ra, axis=-1)
    lb = np.linalg.norm(rb, axis=-1)
    lc = np.linalg.norm(rc, axis=-1)
    numer = _dot(ra, np.cross(rb, rc))
    denom = la * lb * lc + _dot(ra, rb) * lc + _dot(rb, rc) * la + _dot(rc, ra) * lb
    omega = 2.0 * np.arctan2(numer, denom)
    winding = omega.sum(axis=1) / (4.0 * math.pi)

    return np.sqrt(dist_sq.min(axis=1)), winding


def compute_sdf(data, resolution_scale=1.0, lod_index=-1):
    """Sample the signed distance field of one LOD.

    Args:
        data: ModelData
        resolution_scale: multiplier for the base grid resolution
        lod_index: LOD to sample (negative indexes from the end)

    Returns:
        SdfVolume, or None if the LOD has no triangles or flat bounds
    """
    if not data.lods:
        return None
    tris = _lod_triangles(data.lods[lod_index])
    if tris is None:
        return None
    a, b, c = tris

    pts = np.concatenate((a, b, c))
    bmin = pts.min(axis=0)
    bmax = pts.max(axis=0)
    size = bmax - bmin
    longest = float(size.max())
    if longest <= 1e-6:
        return None

    voxels = int(round(SDF_BASE_RESOLUTION * resolution_scale))
    voxels = max(SDF_MIN_RESOLUTION, min(SDF_MAX_RESOLUTION, voxels))
    voxel_size = longest / voxels

    # One voxel of margin on every side
    res = np.maximum(np.ceil(size / voxel_size).astype(np.int64), 1) + 2
    origin = bmin - voxel_size * 0.5

    zs, ys, xs = np.meshgrid(np.arange(res[2]), np.arange(res[1]), np.arange(res[0]),
                             indexing='ij')
    grid = np.stack((xs.ravel(), ys.ravel(), zs.ravel()), axis=1).astype(np.float64)
    samples = origin + grid * voxel_size

    batch = max(1, _BATCH_BUDGET // len(a))
    distances = np.empty(len(samples), dtype=np.float64)
    for start in range(0, len(samples), batch):
        chunk = samples[start:start + batch]
        dist, winding = _distance_and_winding(chunk, a, b, c)
        distances[start:start + batch] = np.where(np.abs(winding) > 0.5, -dist, dist)

    return SdfVolume(
        resolution=tuple(int(v) for v in res),
        origin=tuple(float(v) for v in origin),
        voxel_size=float(voxel_size),
        distances=distances.reshape(int(res[2]), int(res[1]), int(res[0])),
    )


def generate_model_sdf(data, resolution_scale=1.0, lod_index=-1):
    """Packed SDF bytes for the chunk packer, or None if generation failed."""
    try:
        volume = compute_sdf(data, resolution_scale, lod_index)
    except (ValueError, IndexError) as e:
        _log.warning("Cannot generate model SDF: %s", e)
        return None
    if volume is None:
        _log.warning("Cannot generate model SDF: LOD has no usable triangles")
        return None
    _log.info("Generated SDF %dx%dx%d (voxel %.4f)",
              *volume.resolution, volume.voxel_size)
    return volume.to_bytes()
