import struct

import numpy as np

from model_import.importer.model_sdf import compute_sdf, generate_model_sdf, SDF_MAX_RESOLUTION
from model_import.scene_model import ModelData

from conftest import make_cube, make_model, CUBE_INDICES


def _sample(volume, point):
    index = np.round((np.asarray(point) - volume.origin) / volume.voxel_size).astype(int)
    return volume.distances[index[2], index[1], index[0]]


def test_cube_inside_negative_outside_positive():
    volume = compute_sdf(make_model([[make_cube("box")]]), 0.5)

    assert volume.resolution == (18, 18, 18)
    assert volume.distances.shape == (18, 18, 18)
    center = _sample(volume, (0.0, 0.0, 0.0))
    assert center < 0.0
    assert abs(center) <= 1.0 + volume.voxel_size
    assert volume.distances[0, 0, 0] > 0.0


def test_sign_ignores_winding_order():
    cube = make_cube("box")
    flipped = make_cube("box")
    flipped.indices = [i for tri in zip(CUBE_INDICES[0::3], CUBE_INDICES[2::3], CUBE_INDICES[1::3])
                       for i in tri]
    a = compute_sdf(make_model([[cube]]), 0.25)
    b = compute_sdf(make_model([[flipped]]), 0.25)
    np.testing.assert_allclose(a.distances, b.distances, atol=1e-9)


def test_uses_requested_lod():
    data = make_model([[make_cube("box", half=2.0)], [make_cube("box", half=1.0)]])
    coarse = compute_sdf(data, 0.25)
    fine = compute_sdf(data, 0.25, lod_index=0)
    assert coarse.voxel_size == 0.25
    assert fine.voxel_size == 0.5


def test_resolution_clamped():
    volume = compute_sdf(make_model([[make_cube("box")]]), 100.0)
    assert max(volume.resolution) == SDF_MAX_RESOLUTION + 2


def test_empty_model_has_no_sdf():
    assert compute_sdf(ModelData()) is None
    assert generate_model_sdf(make_model([[]])) is None


def test_packed_layout():
    raw = generate_model_sdf(make_model([[make_cube("box")]]), 0.25)
    res = struct.unpack_from("<3i", raw)
    voxel_size, max_distance = struct.unpack_from("<2f", raw, 24)
    assert res == (10, 10, 10)
    assert voxel_size == 0.25
    assert max_distance > 0.0
    assert len(raw) == 32 + 4 * 10 * 10 * 10
