import numpy as np
import pytest

from geometry import VolumeGrid, cross, dot, identity_grid


def test_dot_and_cross_of_unit_axes():
    assert dot((1, 0, 0), (0, 1, 0)) == 0.0
    assert dot((1, 2, 3), (4, 5, 6)) == 32.0
    np.testing.assert_allclose(cross((1, 0, 0), (0, 1, 0)), [0, 0, 1])


def test_dot_broadcasts_over_points():
    points = np.array([[1.0, 0, 0], [0, 2.0, 0], [0, 0, 3.0]])
    np.testing.assert_allclose(dot(points, (1, 1, 1)), [1, 2, 3])


def test_dot_rejects_non_3_vectors():
    with pytest.raises(ValueError):
        dot((1, 2), (3, 4))


def test_world_to_index_inverts_index_to_world():
    grid = VolumeGrid((10, 20, 5), (2.0, 1.5, 3.0), origin=(-10.0, 5.0, 100.0))
    idx = np.array([3.0, 7.0, 2.0])
    world = grid.index_to_world(idx)
    np.testing.assert_allclose(world, [-4.0, 15.5, 106.0])
    np.testing.assert_allclose(grid.world_to_index(world), idx)


def test_rotated_directions():
    # x axis along world -y, y axis along world +x
    grid = VolumeGrid(
        (4, 4, 4), (1.0, 1.0, 1.0),
        x_direction=(0, -1, 0), y_direction=(1, 0, 0), z_direction=(0, 0, 1),
    )
    np.testing.assert_allclose(grid.index_to_world((2, 3, 0)), [3, -2, 0])
    np.testing.assert_allclose(grid.world_to_index((3, -2, 0)), [2, 3, 0])


def test_identical_grids_map_slices_to_themselves():
    grid = identity_grid((8, 8, 12), (1.0, 1.0, 2.5), origin=(0, 0, -15))
    for k in range(grid.nz):
        assert grid.map_slice_index(grid, k) == k


def test_slice_mapping_rounds_to_nearest_plane():
    ct = identity_grid((4, 4, 100), (1.0, 1.0, 2.5), origin=(0, 0, -123.75))
    dose = identity_grid((4, 4, 50), (2.5, 2.5, 3.0), origin=(0, 0, -73.5))
    assert ct.map_slice_index(dose, 50) == 25
    assert ct.map_slice_index(dose, 0) == -17
    assert not dose.contains_slice(-17)


def test_invalid_grid_rejected():
    with pytest.raises(ValueError):
        VolumeGrid((0, 4, 4), (1.0, 1.0, 1.0))
    with pytest.raises(ValueError):
        VolumeGrid((4, 4, 4), (1.0, 0.0, 1.0))


def test_grid_vectors_are_read_only():
    grid = identity_grid((2, 2, 2))
    with pytest.raises(ValueError):
        grid.origin[0] = 5.0
