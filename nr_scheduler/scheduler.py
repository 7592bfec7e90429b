# nr_scheduler/scheduler.py

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
import logging
import math

import numpy as np

from nr_scheduler.cell import CellConfig
from nr_scheduler.config import DIRECTIONS, DOWNLINK, MAX_CQI, UPLINK
from nr_scheduler.errors import InvalidCQIIndex
from nr_scheduler.harq_manager import HarqProcessManager
from nr_scheduler.link_adaptation import McsMapper, average_cqi, cqi_lookup_index
from nr_scheduler.rb import bitmap_to_rb_indices

logger = logging.getLogger(__name__)


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


# ────────────────────────────────────────────────────────────
#    UE CONTEXT AND GRANTS
# ────────────────────────────────────────────────────────────

class UeContext:
    """
    Per-UE state kept by the scheduler for the lifetime of the cell.
    - rnti: 1-based UE index
    - buffer_status[direction]: bytes pending per logical channel
    - cqi_report[direction]: CQI (0..15) per RB, refreshed between slots
    - harq[direction]: HarqState
    """
    def __init__(self, rnti, num_logical_channels, num_rbs, harq_manager):
        self.rnti = rnti
        self.buffer_status = {d: [0] * num_logical_channels for d in DIRECTIONS}
        self.cqi_report = {d: [0] * num_rbs[d] for d in DIRECTIONS}
        self.harq = {d: harq_manager.new_state() for d in DIRECTIONS}

    def buffered_bytes(self, direction) -> int:
        return sum(self.buffer_status[direction])

    def has_pending_data(self, direction) -> bool:
        return self.buffered_bytes(direction) > 0


@dataclass
class Grant:
    rnti:                        int
    harq_id:                     int
    rbg_allocation_bitmap:       list
    slot_offset:                 int
    mcs:                         int
    ndi:                         bool
    type:                        str = 'newTx'
    start_symbol:                int = 0
    num_symbols:                 int = 14
    rv:                          int = 0
    dmrs_length:                 int = 1
    mapping_type:                str = 'A'
    num_layers:                  int = 1
    num_cdm_groups_without_data: int = 2

    direction = None

    def to_dict(self) -> dict:
        row = asdict(self)
        row['direction'] = self.direction
        row['num_rbgs_allocated'] = int(sum(self.rbg_allocation_bitmap))
        return row


@dataclass
class UplinkGrant(Grant):
    num_antenna_ports: int = 1
    tpmi:              int = 0

    direction = UPLINK


@dataclass
class DownlinkGrant(Grant):
    feedback_slot_offset: int = 2
    # NumLayers x P x NPRG, single-port SISO
    precoding_matrix:     np.ndarray = field(default_factory=lambda: np.ones((1, 1, 1)), compare=False)

    direction = DOWNLINK

    def to_dict(self) -> dict:
        row = super().to_dict()
        row['precoding_matrix'] = self.precoding_matrix.tolist()
        return row


@dataclass
class SkippedAllocation:
    rnti:        int
    direction:   str
    slot_number: int
    reason:      str


# ────────────────────────────────────────────────────────────
#    SCHEDULER BASE
# ────────────────────────────────────────────────────────────

class Scheduler(ABC):
    """
    Slot bookkeeping and UE contexts shared by scheduling strategies.

    The MAC driver writes buffer status and CQI reports between slots,
    calls schedule_uplink/schedule_downlink once each per slot and then
    advance_slot().
    """

    def __init__(self, cell: CellConfig):
        self.cell = cell
        self.slots_per_frame = cell.slots_per_frame
        self.current_slot = 0
        self.frame_number = 0
        self.rbg_geometry = cell.rbg_geometry
        self.mcs_mapper = McsMapper()
        self.harq_manager = HarqProcessManager(cell.num_harq)
        self.ues = [
            UeContext(rnti, cell.num_logical_channels, cell.num_rbs, self.harq_manager)
            for rnti in range(1, cell.n_ues + 1)
        ]
        self.skipped = []

    @property
    def num_ues(self) -> int:
        return len(self.ues)

    def num_rbgs(self, direction) -> int:
        return self.rbg_geometry[direction].num_rbgs

    def ue(self, rnti) -> UeContext:
        if not 1 <= rnti <= self.num_ues:
            raise KeyError(f"Unknown RNTI {rnti}")
        return self.ues[rnti - 1]

    @abstractmethod
    def schedule_uplink(self, slot_number):
        """Returns the uplink grants for slot `slot_number`."""

    @abstractmethod
    def schedule_downlink(self, slot_number):
        """Returns the downlink grants for slot `slot_number`."""

    def slot_offset(self, slot_number) -> int:
        if not 0 <= slot_number < self.slots_per_frame:
            raise ValueError(f"Slot number {slot_number} outside 0..{self.slots_per_frame - 1}")
        if slot_number >= self.current_slot:
            # Slot in the current frame
            return slot_number - self.current_slot
        # Slot in the next frame
        return self.slots_per_frame - self.current_slot + slot_number

    def advance_slot(self):
        self.current_slot = (self.current_slot + 1) % self.slots_per_frame
        if self.current_slot == 0:
            self.frame_number += 1

    def bitmap_to_rb_indices(self, bitmap, direction) -> list:
        return bitmap_to_rb_indices(bitmap, self.rbg_geometry[direction])

    def update_buffer_status(self, rnti, direction, lcid, num_bytes):
        lcs = self.ue(rnti).buffer_status[direction]
        if not _is_int(lcid) or not 0 <= lcid < len(lcs):
            raise ValueError(f"Logical channel {lcid!r} outside 0..{len(lcs) - 1}")
        if not isinstance(num_bytes, (int, float, np.number)) or not math.isfinite(num_bytes) or num_bytes < 0:
            raise ValueError(f"Buffer status must be a non-negative byte count, got {num_bytes!r}")
        lcs[lcid] = num_bytes

    def update_cqi_report(self, rnti, direction, cqi):
        expected = self.cell.num_rbs[direction]
        if len(cqi) != expected:
            raise ValueError(f"CQI report has {len(cqi)} entries, {direction} carrier has {expected} RBs")
        if not all(_is_int(c) and 0 <= c <= MAX_CQI for c in cqi):
            raise ValueError(f"CQI values must be integers in 0..{MAX_CQI}")
        self.ue(rnti).cqi_report[direction] = [int(c) for c in cqi]


# ────────────────────────────────────────────────────────────
#    ROUND-ROBIN STRATEGY
# ────────────────────────────────────────────────────────────

# Halves round up, 2.5 -> 3
def _round_half_up(value) -> int:
    return int(math.floor(value + 0.5))


class RoundRobinScheduler(Scheduler):
    """
    Round-robin scheduling of new transmissions, FDD.

    Downlink: UE i gets every N-th RBG starting at RBG i (N UEs).
    Uplink: UE i gets every (NumRBGs / divisor_i)-th RBG starting at RBG i.
    Only UEs with buffered data in the direction are scheduled. Strides that
    do not tile the bandwidth make allocations of different UEs overlap.
    """

    def ul_stride(self, ue) -> int:
        num_rbgs = self.num_rbgs(UPLINK)
        stride = _round_half_up(num_rbgs / self.cell.ul_stride_divisor(ue.rnti))
        if stride == 0:
            logger.warning(
                "UE %d: UL stride %d/%s rounds to 0, using 1",
                ue.rnti, num_rbgs, self.cell.ul_stride_divisor(ue.rnti),
            )
            stride = 1
        return stride

    def dl_stride(self, ue) -> int:
        return self.num_ues

    def rbg_bitmap(self, ue, direction) -> list:
        stride = self.ul_stride(ue) if direction == UPLINK else self.dl_stride(ue)
        bitmap = [0] * self.num_rbgs(direction)
        # RNTI i starts at RBG i (1-based)
        for rbg_index in range(ue.rnti - 1, len(bitmap), stride):
            bitmap[rbg_index] = 1
        return bitmap

    def schedule_uplink(self, slot_number):
        return self._schedule(slot_number, UPLINK)

    def schedule_downlink(self, slot_number):
        return self._schedule(slot_number, DOWNLINK)

    def _schedule(self, slot_number, direction):
        slot_offset = self.slot_offset(slot_number)
        self.skipped = []
        grants = []
        occupied = [0] * self.num_rbgs(direction)

        for ue in self.ues:
            if not ue.has_pending_data(direction):
                continue
            bitmap = self.rbg_bitmap(ue, direction)
            rb_indices = self.bitmap_to_rb_indices(bitmap, direction)

            try:
                avg_cqi = average_cqi(ue.cqi_report[direction], rb_indices)
                mcs = self.mcs_mapper.select_mcs(cqi_lookup_index(avg_cqi))
            except InvalidCQIIndex as exc:
                logger.warning("Slot %d %s: UE %d not scheduled: %s",
                               slot_number, direction, ue.rnti, exc)
                self.skipped.append(SkippedAllocation(ue.rnti, direction, slot_number, str(exc)))
                continue

            harq_id, ndi = self.harq_manager.assign_new_process(ue, direction)

            if direction == UPLINK:
                grant = UplinkGrant(
                    rnti=ue.rnti, harq_id=harq_id, rbg_allocation_bitmap=bitmap,
                    slot_offset=slot_offset, mcs=mcs, ndi=ndi,
                )
            else:
                grant = DownlinkGrant(
                    rnti=ue.rnti, harq_id=harq_id, rbg_allocation_bitmap=bitmap,
                    slot_offset=slot_offset, mcs=mcs, ndi=ndi,
                    feedback_slot_offset=self.cell.feedback_slot_offset,
                )

            overlap = [i for i, bit in enumerate(bitmap) if bit and occupied[i]]
            if overlap:
                logger.debug("Slot %d %s: UE %d shares RBGs %s with earlier grants",
                             slot_number, direction, ue.rnti, overlap)
            occupied = [a | b for a, b in zip(occupied, bitmap)]

            logger.debug("Slot %d %s: UE %d RBGs=%s avg CQI=%.2f MCS=%d HARQ=%d NDI=%s",
                         slot_number, direction, ue.rnti, bitmap, avg_cqi, mcs, harq_id, ndi)
            grants.append(grant)

        return grants
