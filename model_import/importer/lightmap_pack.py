"""Pack per-mesh lightmap UV charts into one shared atlas.

Each mesh arrives with lightmap UVs normalized to [0,1] for itself alone.
To give every mesh a unique region of the model's lightmap, meshes are
packed as squares whose side is the square root of their surface area
(bigger meshes get more texels), then each mesh's UVs are scaled and
offset into its square.

Packing uses a split-on-insert rectangle tree stored in a flat arena:

    - A free leaf that exactly fits the padded size is taken as is.
    - A node with children tries its left child, then its right child.
    - A free leaf that is too large is shrunk to the padded size and the
      leftover area is split into two children along the longer side.

If any mesh does not fit, the atlas is enlarged by 1.5x and packing
restarts (up to MAX_PACK_ATTEMPTS). The arena is reset, not rebuilt,
between attempts.
"""

import math
import logging
from dataclasses import dataclass

import numpy as np

_log = logging.getLogger("model_import.lightmap")

MAX_PACK_ATTEMPTS = 10
ATLAS_SIZE_MARGIN = 1.02
ATLAS_GROWTH = 1.5
CHART_PADDING = 4.0 / 256.0  # fraction of the atlas size
ZERO_AREA_TOLERANCE = 1e-6

# Pack outcomes (recorded in ImportDiagnostics.lightmap_atlas)
ATLAS_PACKED = "packed"
ATLAS_ZERO_AREA = "zero_area"
ATLAS_EXHAUSTED = "exhausted"

_NONE = -1


class RectPackArena:
    """Rectangle packing tree with nodes stored in parallel lists.

    Node i has position (x[i], y[i]), size (width[i], height[i]), a used
    flag, child links left[i]/right[i] and a parent link (-1 = none).
    """

    def __init__(self):
        self.x = []
        self.y = []
        self.width = []
        self.height = []
        self.used = []
        self.left = []
        self.right = []
        self.parent = []

    def __len__(self):
        return len(self.x)

    def reset(self, x, y, width, height):
        """Drop all nodes and start over with a single free root."""
        for arr in (self.x, self.y, self.width, self.height,
                    self.used, self.left, self.right, self.parent):
            arr.clear()
        return self._add(x, y, width, height, _NONE)

    def _add(self, x, y, width, height, parent):
        self.x.append(x)
        self.y.append(y)
        self.width.append(width)
        self.height.append(height)
        self.used.append(False)
        self.left.append(_NONE)
        self.right.append(_NONE)
        self.parent.append(parent)
        return len(self.x) - 1

    def rect(self, node):
        return self.x[node], self.y[node], self.width[node], self.height[node]

    def insert(self, width, height, padding, node=0):
        """Place a width x height rectangle (plus padding) under `node`.

        Returns:
            index of the node holding the rectangle, or None if it does
            not fit
        """
        padded_w = width + padding
        padded_h = height + padding

        # Free and exactly the right size
        if not self.used[node] and self.width[node] == padded_w and self.height[node] == padded_h:
            self.used[node] = True
            return node

        # Children hold the free area around an occupied node
        if self.left[node] != _NONE or self.right[node] != _NONE:
            for child in (self.left[node], self.right[node]):
                if child != _NONE:
                    result = self.insert(width, height, padding, child)
                    if result is not None:
                        return result
            return None

        if self.used[node] or padded_w > self.width[node] or padded_h > self.height[node]:
            return None

        x, y, w, h = self.rect(node)
        remaining_w = max(0.0, w - padded_w)
        remaining_h = max(0.0, h - padded_h)

        if remaining_h <= remaining_w:
            left = (x, y + padded_h, padded_w, remaining_h)
            right = (x + padded_w, y, remaining_w, h)
        else:
            left = (x + padded_w, y, remaining_w, padded_h)
            right = (x, y + padded_h, w, remaining_h)

        if left[2] > 0.0 and left[3] > 0.0:
            self.left[node] = self._add(*left, node)
        if right[2] > 0.0 and right[3] > 0.0:
            self.right[node] = self._add(*right, node)

        self.width[node] = padded_w
        self.height[node] = padded_h
        self.used[node] = True
        return node


@dataclass
class AtlasPackResult:
    """Outcome of a lightmap atlas packing pass."""
    status: str
    attempts: int = 0
    atlas_size: float = 0.0


def pack_squares(sizes, atlas_size, arena=None):
    """Try to pack squares of the given sides, growing the atlas on failure.

    Args:
        sizes: list of square sides, packed in order
        atlas_size: initial atlas side length
        arena: RectPackArena to reuse (optional)

    Returns:
        (slots, atlas_size, padding, attempts): slots is a list of
        (x, y, width, height) per size, or None when every attempt failed
    """
    arena = arena or RectPackArena()
    for attempt in range(1, MAX_PACK_ATTEMPTS + 1):
        padding = CHART_PADDING * atlas_size
        arena.reset(padding, padding, atlas_size - padding, atlas_size - padding)
        nodes = []
        for size in sizes:
            node = arena.insert(size, size, padding)
            if node is None:
                break
            nodes.append(node)
        if len(nodes) == len(sizes):
            return [arena.rect(n) for n in nodes], atlas_size, padding, attempt
        # Failed to insert a surface, increase atlas size and try again
        atlas_size *= ATLAS_GROWTH
    return None, atlas_size, CHART_PADDING * atlas_size, MAX_PACK_ATTEMPTS


def repack_mesh_lightmap_uvs(data) -> AtlasPackResult:
    """Move LOD 0 lightmap UVs into unique atlas regions.

    Args:
        data: ModelData (LOD 0 meshes are updated in place)

    Returns:
        AtlasPackResult
    """
    meshes = data.lods[0].meshes
    areas = [mesh.calculate_triangles_area() for mesh in meshes]
    area_sum = sum(areas)
    if area_sum <= ZERO_AREA_TOLERANCE:
        return AtlasPackResult(ATLAS_ZERO_AREA)

    sizes = [math.sqrt(a) for a in areas]
    atlas_size = math.sqrt(area_sum) * ATLAS_SIZE_MARGIN
    slots, atlas_size, padding, attempts = pack_squares(sizes, atlas_size)
    if slots is None:
        _log.warning("Failed to pack lightmap UVs of %d meshes after %d attempts",
                     len(meshes), attempts)
        return AtlasPackResult(ATLAS_EXHAUSTED, attempts, atlas_size)

    # Transform meshes lightmap UVs into the slots in the whole atlas
    inv = 1.0 / atlas_size
    for mesh, (x, y, w, h) in zip(meshes, slots):
        if not mesh.lightmap_uvs:
            continue
        offset = np.array((x * inv, y * inv))
        scale = np.array(((w - padding) * inv, (h - padding) * inv))
        uvs = np.asarray(mesh.lightmap_uvs, dtype=np.float64).reshape(-1, 2) * scale + offset
        mesh.lightmap_uvs = [(float(u), float(v)) for u, v in uvs]

    return AtlasPackResult(ATLAS_PACKED, attempts, atlas_size)
