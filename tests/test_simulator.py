from collections import defaultdict
import logging
import random

import pytest

from nr_scheduler.config import DOWNLINK, UPLINK
from nr_scheduler.errors import ConfigurationError
from nr_scheduler.simulator import init_positions, run_scenario

# Close, static UEs: every RB reports CQI 15
GOOD_CHANNEL = {'cell_radius': 50, 'shadow_sigma_db': 0.0, 'fast_fading': False}


def scenario(**overrides):
    params = dict(GOOD_CHANNEL, seed=42, sim_slots=30)
    params.update(overrides)
    return run_scenario(params)


def test_same_seed_same_run():
    a = scenario(traffic_type='poisson', fast_fading=True, shadow_sigma_db=8.0, cell_radius=500)
    b = scenario(traffic_type='poisson', fast_fading=True, shadow_sigma_db=8.0, cell_radius=500)
    assert a.grant_logs == b.grant_logs
    assert a.buffer_log == b.buffer_log


def test_full_buffer_serves_every_ue_every_slot():
    res = scenario(traffic_type='full_buffer')
    dl = res.grants(DOWNLINK)
    ul = res.grants(UPLINK)

    assert len(dl) == 30 * 4
    assert {g['mcs'] for g in dl} == {21}
    # 24 RBs → 12 RBGs; DL stride 4 gives 3 RBGs per UE
    assert {g['num_rbgs_allocated'] for g in dl} == {3}
    # half of the UEs carry UL traffic
    assert {g['rnti'] for g in ul} == {1, 2}
    assert res.skipped == []


def test_ul_rbgs_follow_stride_divisors():
    res = scenario(traffic_type='full_buffer', ul_traffic_share=1.0)
    ul = [g for g in res.grants(UPLINK) if g['slot'] == 0]
    # strides 12, 6, 3 and 1 (clamped) from RBGs 1, 2, 3, 4
    assert [g['num_rbgs_allocated'] for g in ul] == [1, 2, 4, 9]


def test_harq_processes_cycle_per_ue_and_direction():
    res = scenario(traffic_type='poisson', num_harq=4, sim_slots=60)
    sequences = defaultdict(list)
    for g in res.grant_logs:
        sequences[(g['rnti'], g['direction'])].append(g['harq_id'])
    assert sequences
    for ids in sequences.values():
        assert ids == [i % 4 for i in range(len(ids))]


def test_served_bytes_bounded_by_tbs():
    res = scenario(traffic_type='periodic', period_slots=3)
    assert res.grant_logs
    for g in res.grant_logs:
        assert 0 < g['served_bytes'] <= g['tbs_bits'] // 8
    served = sum(g['served_bytes'] for g in res.grants(DOWNLINK))
    assert served <= res.offered_bytes[DOWNLINK]


def test_slot_offsets_match_lead_times():
    res = scenario(traffic_type='full_buffer', ul_lead_slots=2, dl_lead_slots=0)
    assert {g['slot_offset'] for g in res.grants(DOWNLINK)} == {0}
    assert {g['slot_offset'] for g in res.grants(UPLINK)} == {2}


def test_frames_advance():
    res = scenario(traffic_type='full_buffer', sim_slots=45)
    assert res.grant_logs[-1]['frame'] == 2
    assert len(res.buffer_log) == 45


def test_far_ues_are_skipped():
    res = scenario(traffic_type='full_buffer', cell_radius=200000, sim_slots=5)
    assert res.grant_logs == []
    assert res.skipped
    assert {s.direction for s in res.skipped} == {UPLINK, DOWNLINK}


@pytest.mark.parametrize("override", [
    {'n_ues': 0}, {'num_harq': 0}, {'num_rbs_dl': 300}, {'scs_mu': 9},
])
def test_invalid_parameters(override):
    with pytest.raises(ConfigurationError):
        scenario(**override)


def test_positions_inside_cell():
    pos = init_positions(20, 100, random.Random(1))
    assert sorted(pos) == list(range(1, 21))
    assert all(x * x + y * y <= 100 ** 2 + 1e-6 for x, y in pos.values())


def test_end_of_run_buffer_state_is_logged(caplog):
    with caplog.at_level(logging.INFO, logger="nr_scheduler.simulator"):
        scenario(traffic_type='full_buffer', sim_slots=3)
    assert "Buffers still hold" in caplog.text

    caplog.clear()
    with caplog.at_level(logging.INFO, logger="nr_scheduler.simulator"):
        scenario(traffic_type='periodic', sim_slots=0)
    assert "All buffers drained" in caplog.text
