import random

import pytest

from nr_scheduler.config import DOWNLINK, UPLINK
from nr_scheduler.traffic import FULL_BUFFER_BYTES, TrafficManager


def test_periodic_arrivals():
    tm = TrafficManager(2, 1, {'traffic_type': 'periodic', 'period_slots': 5,
                               'packet_size_bytes': 100}, random.Random(3))
    for slot in range(20):
        tm.generate(slot)
    # first arrival in 0..4, then every 5 slots: 4 packets in 20 slots
    assert tm.buffered_bytes(1, DOWNLINK) == 400
    assert tm.buffered_bytes(2, DOWNLINK) == 400
    assert tm.offered_bytes[DOWNLINK] == 800


def test_ul_traffic_share():
    tm = TrafficManager(5, 2, {'traffic_type': 'full_buffer', 'ul_traffic_share': 0.5}, random.Random(0))
    tm.generate(0)
    assert [tm.buffered_bytes(r, UPLINK) > 0 for r in range(1, 6)] == [True, True, True, False, False]
    assert all(tm.buffered_bytes(r, DOWNLINK) == FULL_BUFFER_BYTES for r in range(1, 6))


def test_full_buffer_is_topped_up():
    tm = TrafficManager(1, 1, {'traffic_type': 'full_buffer'}, random.Random(0))
    tm.generate(0)
    tm.drain(1, DOWNLINK, 1000)
    tm.generate(1)
    assert tm.buffered_bytes(1, DOWNLINK) == FULL_BUFFER_BYTES
    assert tm.offered_bytes[DOWNLINK] == FULL_BUFFER_BYTES + 1000


def test_drain_lowest_logical_channel_first():
    tm = TrafficManager(1, 3, {'traffic_type': 'periodic'}, random.Random(0))
    tm.buffers[1][UPLINK] = [100, 50, 200]
    assert tm.drain(1, UPLINK, 120) == 120
    assert tm.buffers[1][UPLINK] == [0, 30, 200]
    assert tm.drain(1, UPLINK, 1000) == 230
    assert not tm.has_packets()


def test_report_writes_buffer_status(make_scheduler):
    scheduler = make_scheduler(n_ues=2)
    tm = TrafficManager(2, 4, {'traffic_type': 'periodic'}, random.Random(0))
    tm.buffers[2][DOWNLINK][3] = 700
    tm.report(scheduler)
    assert scheduler.ue(2).buffer_status[DOWNLINK] == [0, 0, 0, 700]
    assert not scheduler.ue(1).has_pending_data(DOWNLINK)


def test_unknown_traffic_type():
    with pytest.raises(ValueError):
        TrafficManager(1, 1, {'traffic_type': 'bursty'})
