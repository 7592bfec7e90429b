from dataclasses import dataclass, field
import logging
import math
import random

# Per-RB CQI reports for each UE
from nr_scheduler.channel import compute_shadowing, cqi_report
# Cell parameters (numerology, RBs, HARQ, ...)
from nr_scheduler.cell import CellConfig
from nr_scheduler.config import DIRECTIONS, DOWNLINK, UPLINK, default_params
# Transport block size used to drain the buffers
from nr_scheduler.rb import compute_tbs
# Scheduler deciding RBGs, MCS and HARQ process per slot
from nr_scheduler.scheduler import RoundRobinScheduler
# Per-UE buffers
from nr_scheduler.traffic import TrafficManager

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────
#    SIMULATION RESULTS
# ────────────────────────────────────────────────────────────

@dataclass
class SimulationResult:
    # One record per issued grant, skipped allocations, per-slot buffer occupancy
    cell:          CellConfig
    grant_logs:    list = field(default_factory=list)
    skipped:       list = field(default_factory=list)
    buffer_log:    list = field(default_factory=list)
    offered_bytes: dict = field(default_factory=dict)
    distances:     dict = field(default_factory=dict)

    def grants(self, direction=None) -> list:
        if direction is None:
            return list(self.grant_logs)
        return [g for g in self.grant_logs if g['direction'] == direction]


# ────────────────────────────────────────────────────────────
#    UE PLACEMENT
# ────────────────────────────────────────────────────────────

def init_positions(n_ues: int, R: float, rng=random) -> dict:
    # Uniform positions over the disc of radius R, keyed by RNTI
    pos = {}
    for rnti in range(1, n_ues + 1):
        r = R * math.sqrt(rng.random())
        theta = rng.random() * 2 * math.pi
        pos[rnti] = [r * math.cos(theta), r * math.sin(theta)]
    return pos


# ────────────────────────────────────────────────────────────
#    MAIN SIMULATION LOOP
# ────────────────────────────────────────────────────────────

def run_scenario(params: dict = None) -> SimulationResult:
    # 1) Default configuration overridden by the given parameters
    cfg = default_params.copy()
    if params:
        cfg.update(params)
    rng = random.Random(cfg['seed'])

    # 2) Cell and scheduler; invalid parameters stop here
    cell = CellConfig.from_params(cfg)
    scheduler = RoundRobinScheduler(cell)
    tm = TrafficManager(cell.n_ues, cell.num_logical_channels, cfg, rng)
    spf = cell.slots_per_frame

    # 3) Static UEs: distance and shadowing fixed for the run
    pos = init_positions(cell.n_ues, cfg['cell_radius'], rng)
    ue_dist = {rnti: math.hypot(x, y) for rnti, (x, y) in pos.items()}
    shadow = {
        (rnti, d): compute_shadowing(rng, cfg['shadow_sigma_db'])
        for rnti in ue_dist for d in DIRECTIONS
    }
    result = SimulationResult(cell=cell, distances=ue_dist)
    logger.info("Scenario: %d UEs, %d slots, UL %d RBGs, DL %d RBGs, %s traffic",
                cell.n_ues, cfg['sim_slots'], cell.num_rbgs(UPLINK),
                cell.num_rbgs(DOWNLINK), tm.traffic_type)

    for slot_idx in range(cfg['sim_slots']):
        # 4.1) CQI reports and buffer status for this slot
        for rnti, d_m in ue_dist.items():
            for direction in DIRECTIONS:
                report = cqi_report(d_m, cell.num_rbs[direction], cell.frame.scs_khz,
                                    cfg, rng, shadow[(rnti, direction)])
                scheduler.update_cqi_report(rnti, direction, report)
        tm.generate(slot_idx)
        tm.report(scheduler)

        # 4.2) One scheduling call per direction
        current = scheduler.current_slot
        jobs = (
            (DOWNLINK, (current + cfg['dl_lead_slots']) % spf, scheduler.schedule_downlink),
            (UPLINK, (current + cfg['ul_lead_slots']) % spf, scheduler.schedule_uplink),
        )
        for direction, slot_number, schedule in jobs:
            grants = schedule(slot_number)
            result.skipped.extend(scheduler.skipped)

            # 4.3) Apply the grants: TBS from the allocated RBs, drain buffers
            for grant in grants:
                rbs = scheduler.bitmap_to_rb_indices(grant.rbg_allocation_bitmap, direction)
                mcs = scheduler.mcs_mapper.mcs_params(grant.mcs)
                tbs_bits = compute_tbs(len(rbs), mcs, grant.num_symbols)
                served = tm.drain(grant.rnti, direction, tbs_bits // 8)

                record = grant.to_dict()
                record.update({
                    'slot':         slot_idx,
                    'frame':        scheduler.frame_number,
                    'slot_number':  slot_number,
                    'num_rbs':      len(rbs),
                    'Qm':           mcs.Qm,
                    'code_rate':    mcs.code_rate,
                    'tbs_bits':     tbs_bits,
                    'served_bytes': served,
                    'distance_m':   round(ue_dist[grant.rnti], 2),
                })
                result.grant_logs.append(record)

        result.buffer_log.append({
            'slot': slot_idx,
            UPLINK: sum(tm.buffered_bytes(r, UPLINK) for r in ue_dist),
            DOWNLINK: sum(tm.buffered_bytes(r, DOWNLINK) for r in ue_dist),
        })
        scheduler.advance_slot()

    result.offered_bytes = dict(tm.offered_bytes)
    if tm.has_packets():
        logger.info("Buffers still hold UL %d bytes, DL %d bytes",
                    result.buffer_log[-1][UPLINK], result.buffer_log[-1][DOWNLINK])
    else:
        logger.info("All buffers drained")
    logger.info("Scenario done: %d grants, %d skipped allocations",
                len(result.grant_logs), len(result.skipped))
    return result
