"""Geometry helpers for mesh buffers.

Positions are sequences of (x, y, z) tuples, indices a flat triangle list.
Everything here is vectorized with numpy; callers pass plain lists.
"""

import numpy as np


def as_points(values, width=3):
    """Return values as a float64 array of shape (N, width)."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, width), dtype=np.float64)
    return arr.reshape(-1, width)


def triangle_corners(positions, indices):
    """Gather triangle corners as three (T, 3) arrays."""
    pts = as_points(positions)
    idx = np.asarray(indices, dtype=np.int64)
    tri_count = len(idx) // 3
    if tri_count == 0 or len(pts) == 0:
        empty = np.zeros((0, 3), dtype=np.float64)
        return empty, empty, empty
    idx = idx[:tri_count * 3].reshape(-1, 3)
    if idx.min() < 0 or idx.max() >= len(pts):
        raise ValueError(
            f"Triangle index out of range (0..{len(pts) - 1}): {idx.min()}..{idx.max()}")
    return pts[idx[:, 0]], pts[idx[:, 1]], pts[idx[:, 2]]


def triangles_area(positions, indices):
    """Total surface area of a triangle list."""
    a, b, c = triangle_corners(positions, indices)
    if len(a) == 0:
        return 0.0
    cross = np.cross(b - a, c - a)
    return float(0.5 * np.linalg.norm(cross, axis=1).sum())


def compute_bounds(positions):
    """Axis-aligned bounds as ((min_x, min_y, min_z), (max_x, max_y, max_z)).

    Empty input gives a zero box at the origin.
    """
    pts = as_points(positions)
    if len(pts) == 0:
        return (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return tuple(float(v) for v in lo), tuple(float(v) for v in hi)



def bounding_sphere(positions):
    """Sphere around the box center with radius reaching the farthest vertex.

    Returns:
        (center_x, center_y, center_z, radius)
    """
    pts = as_points(positions)
    if len(pts) == 0:
        return 0.0, 0.0, 0.0, 0.0
    center = (pts.min(axis=0) + pts.max(axis=0)) * 0.5
    radius = float(np.linalg.norm(pts - center, axis=1).max())
    return float(center[0]), float(center[1]), float(center[2]), radius
