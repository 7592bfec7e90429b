import math
import random

from nr_scheduler.config import DIRECTIONS, DOWNLINK, UPLINK, default_params

FULL_BUFFER_BYTES = 10 ** 7

# ────────────────────────────────────────────────────────────
#     TRAFFIC MANAGER: PER-UE, PER-LOGICAL-CHANNEL BUFFERS
# ────────────────────────────────────────────────────────────


class TrafficManager:
    def __init__(self, n_ues: int, num_lcs: int, params: dict = None, rng=random):
        """
        Byte buffers of every UE, per direction and logical channel:
          - n_ues: number of UEs (RNTI 1..n_ues)
          - num_lcs: logical channels per UE
          - params: simulation parameters (traffic_type, period_slots, ...)
        Only the first ceil(ul_traffic_share * n_ues) UEs carry UL traffic.
        """
        self.params = default_params.copy()
        if params:
            self.params.update(params)
        self.traffic_type = self.params['traffic_type']
        if self.traffic_type not in ('periodic', 'poisson', 'full_buffer'):
            raise ValueError(f"Unknown traffic type {self.traffic_type!r}")
        self.rng = rng
        self.n_ues = n_ues
        self.num_lcs = num_lcs
        self.buffers = {
            rnti: {d: [0] * num_lcs for d in DIRECTIONS}
            for rnti in range(1, n_ues + 1)
        }
        n_ul = math.ceil(self.params['ul_traffic_share'] * n_ues)
        self.active = {
            UPLINK: set(range(1, n_ul + 1)),
            DOWNLINK: set(range(1, n_ues + 1)),
        }
        self.offered_bytes = {d: 0 for d in DIRECTIONS}
        # Random phase / first arrival per UE, avoids synchronous bursts
        period = self.params['period_slots']
        self.next_arrival = {
            (rnti, d): self._first_arrival(period)
            for rnti in self.buffers for d in DIRECTIONS
        }

    def _first_arrival(self, period):
        if self.traffic_type == 'periodic':
            return float(self.rng.randrange(period))
        return self.rng.expovariate(self.params['lambda_per_slot'])

    def _add_packet(self, rnti, direction):
        lcid = self.rng.randrange(self.num_lcs)
        size = self.params['packet_size_bytes']
        self.buffers[rnti][direction][lcid] += size
        self.offered_bytes[direction] += size

    def generate(self, slot_idx: int):
        """
        Adds the packets arriving up to slot_idx (absolute slot count).
        """
        for direction in DIRECTIONS:
            for rnti in sorted(self.active[direction]):
                if self.traffic_type == 'full_buffer':
                    lcs = self.buffers[rnti][direction]
                    added = FULL_BUFFER_BYTES - lcs[0]
                    lcs[0] = FULL_BUFFER_BYTES
                    self.offered_bytes[direction] += added
                    continue
                key = (rnti, direction)
                while self.next_arrival[key] <= slot_idx:
                    self._add_packet(rnti, direction)
                    if self.traffic_type == 'periodic':
                        self.next_arrival[key] += self.params['period_slots']
                    else:
                        self.next_arrival[key] += self.rng.expovariate(self.params['lambda_per_slot'])

    def drain(self, rnti: int, direction: str, num_bytes: int) -> int:
        """
        Removes up to num_bytes, lowest LCID first.
        Returns the bytes actually served.
        """
        served = 0
        lcs = self.buffers[rnti][direction]
        for lcid, pending in enumerate(lcs):
            if served >= num_bytes:
                break
            take = min(pending, num_bytes - served)
            lcs[lcid] -= take
            served += take
        return served

    def buffered_bytes(self, rnti: int, direction: str) -> int:
        return sum(self.buffers[rnti][direction])

    def report(self, scheduler):
        # Buffer status reports, written between scheduling calls
        for rnti, per_direction in self.buffers.items():
            for direction, lcs in per_direction.items():
                for lcid, pending in enumerate(lcs):
                    scheduler.update_buffer_status(rnti, direction, lcid, pending)

    def has_packets(self) -> bool:
        return any(
            self.buffered_bytes(rnti, d) > 0 for rnti in self.buffers for d in DIRECTIONS
        )
