import math
import random

import pytest

from nr_scheduler.channel import (
    CQI_SINR_THRESHOLDS_DB, compute_pathloss, compute_sinr_db, cqi_report, sinr_to_cqi,
)

STATIC = {'shadow_sigma_db': 0.0, 'fast_fading': False}


@pytest.mark.parametrize("sinr_db, expected", [
    (-20.0, 0), (-6.7, 1), (-5.0, 1), (0.2, 4), (22.6, 14), (22.7, 15), (40.0, 15),
])
def test_sinr_to_cqi(sinr_db, expected):
    assert sinr_to_cqi(sinr_db) == expected


@pytest.mark.parametrize("sinr_db", [float('nan'), float('-inf'), None])
def test_sinr_to_cqi_non_finite(sinr_db):
    assert sinr_to_cqi(sinr_db) == 0


def test_thresholds_are_increasing():
    assert len(CQI_SINR_THRESHOLDS_DB) == 15
    assert all(a < b for a, b in zip(CQI_SINR_THRESHOLDS_DB, CQI_SINR_THRESHOLDS_DB[1:]))


def test_pathloss_grows_with_distance():
    # flat inside the reference distance
    assert compute_pathloss(1) == compute_pathloss(10)
    assert compute_pathloss(100) - compute_pathloss(10) == pytest.approx(35.0)
    assert compute_pathloss(500) > compute_pathloss(100)


def test_sinr_without_fading_is_flat():
    sinr = compute_sinr_db(100, 24, 30, STATIC, random.Random(1))
    assert len(sinr) == 24
    assert max(sinr) == min(sinr)
    assert all(math.isfinite(s) for s in sinr)


def test_cqi_report_near_and_far():
    near = cqi_report(20, 24, 30, STATIC, random.Random(1))
    far = cqi_report(20000, 24, 30, STATIC, random.Random(1))
    assert near == [15] * 24
    assert far == [0] * 24


def test_cqi_report_with_fading_stays_in_range():
    report = cqi_report(300, 52, 15, {'fast_fading': True}, random.Random(7))
    assert len(report) == 52
    assert all(0 <= c <= 15 for c in report)
