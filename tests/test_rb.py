import pytest

from nr_scheduler.errors import ConfigurationError
from nr_scheduler.link_adaptation import MCSParams
from nr_scheduler.rb import (
    RbgGeometry, bitmap_to_rb_indices, compute_tbs, nominal_rbg_size, rb_indices_to_bitmap,
)


@pytest.mark.parametrize("num_rbs, rbg_config, expected", [
    (1, 1, 2), (36, 1, 2), (37, 1, 4), (72, 1, 4), (73, 1, 8),
    (144, 1, 8), (145, 1, 16), (275, 1, 16),
    (36, 2, 4), (37, 2, 8), (73, 2, 16), (275, 2, 16),
])
def test_nominal_rbg_size(num_rbs, rbg_config, expected):
    assert nominal_rbg_size(num_rbs, rbg_config) == expected


@pytest.mark.parametrize("num_rbs, rbg_config", [(0, 1), (276, 1), (52, 3)])
def test_nominal_rbg_size_rejects_bad_input(num_rbs, rbg_config):
    with pytest.raises(ConfigurationError):
        nominal_rbg_size(num_rbs, rbg_config)


def test_geometry_last_rbg_is_shorter():
    geometry = RbgGeometry(num_rbs=51, rbg_size=4)
    assert geometry.num_rbgs == 13
    assert geometry.last_rbg_size == 3
    assert list(geometry.rbg_rbs(12)) == [48, 49, 50]

    full = RbgGeometry.for_bandwidth(52)
    assert full.rbg_size == 4
    assert full.num_rbgs == 13
    assert full.last_rbg_size == 4


def test_bitmap_to_rb_indices():
    geometry = RbgGeometry(num_rbs=10, rbg_size=4)
    assert bitmap_to_rb_indices([1, 0, 1], geometry) == [0, 1, 2, 3, 8, 9]
    assert bitmap_to_rb_indices([0, 1, 0], geometry) == [4, 5, 6, 7]
    assert bitmap_to_rb_indices([0, 0, 0], geometry) == []


def test_bitmap_size_matches_nominal_allocation():
    geometry = RbgGeometry(num_rbs=15, rbg_size=2)
    bitmap = [1, 0, 0, 1, 0, 0, 0, 1]
    # two full RBGs plus the single-RB last RBG
    assert len(bitmap_to_rb_indices(bitmap, geometry)) == 5


def test_bitmap_rejects_wrong_length_or_values():
    geometry = RbgGeometry(num_rbs=10, rbg_size=4)
    with pytest.raises(ValueError):
        bitmap_to_rb_indices([1, 0], geometry)
    with pytest.raises(ValueError):
        bitmap_to_rb_indices([1, 2, 0], geometry)


@pytest.mark.parametrize("bitmap", [
    [1, 0, 0, 0, 1, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 1, 1],
    [0, 0, 0, 0, 0, 0, 0, 1],
])
def test_bitmap_round_trip(bitmap):
    geometry = RbgGeometry(num_rbs=15, rbg_size=2)
    rbs = bitmap_to_rb_indices(bitmap, geometry)
    assert rb_indices_to_bitmap(rbs, geometry) == bitmap


def test_rb_indices_to_bitmap_rejects_out_of_range():
    geometry = RbgGeometry(num_rbs=10, rbg_size=4)
    with pytest.raises(ValueError):
        rb_indices_to_bitmap([10], geometry)


def test_compute_tbs():
    mcs = MCSParams(index=0, Qm=2, code_rate=0.5)
    # 10 RBs x 12 subcarriers x 13 data symbols x 2 bits x 0.5
    assert compute_tbs(10, mcs, 14) == 1560
    assert compute_tbs(0, mcs, 14) == 0
    # rounded down to whole bytes
    assert compute_tbs(1, MCSParams(index=0, Qm=2, code_rate=0.3), 14) == 88
