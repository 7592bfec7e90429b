import math
import random

from nr_scheduler.config import MAX_CQI, default_params
from nr_scheduler.rb import n_subcarriers_per_rb

# Minimum SINR (dB) for CQI 1..15, TS 38.214 Table 5.2.2.1-3 operating points
CQI_SINR_THRESHOLDS_DB = [
    -6.7, -4.7, -2.3, 0.2, 2.4, 4.3, 5.9, 8.1,
    10.3, 11.7, 14.1, 16.3, 18.7, 21.0, 22.7,
]


def compute_pathloss(d_m, fc_ghz=3.5):
    """
    Log-distance pathloss in dB:
    free-space loss at d0 = 10 m, exponent n = 3.5 beyond it.
    """
    d0_km = 0.01
    n = 3.5
    d_km = max(d_m / 1000.0, d0_km)
    pl0 = 20 * math.log10(d0_km) + 20 * math.log10(fc_ghz * 1000.0) + 32.44
    return pl0 + 10 * n * math.log10(d_km / d0_km)


def compute_shadowing(rng=random, sigma_db=8.0):
    # Slow fading, gaussian in dB
    return rng.gauss(0.0, sigma_db)


def compute_rayleigh_fading_db(rng=random):
    # Fast fading power is exponential; offset avoids log10(0)
    return 10 * math.log10(rng.expovariate(1.0) + 1e-12)


def compute_sinr_db(d_m, num_rbs, scs_khz, params=None, rng=random, shadow_db=0.0):
    """
    SINR (dB) on each RB of the carrier:
    1) Tx power split evenly over num_rbs
    2) Pathloss + shadowing (common to all RBs) + per-RB fast fading
    3) Thermal noise over one RB
    """
    cfg = default_params.copy()
    if params:
        cfg.update(params)

    p_rb_dbm = cfg['tx_power_dbm'] - 10 * math.log10(num_rbs)
    rb_bw_hz = n_subcarriers_per_rb() * scs_khz * 1e3
    noise_floor_dbm = cfg['noise_density_dbm_hz'] + 10 * math.log10(rb_bw_hz) + cfg['noise_figure_db']
    loss_db = compute_pathloss(d_m) + shadow_db

    sinr_db = []
    for _ in range(num_rbs):
        fading_db = compute_rayleigh_fading_db(rng) if cfg['fast_fading'] else 0.0
        sinr_db.append(p_rb_dbm - loss_db + fading_db - noise_floor_dbm)
    return sinr_db


def sinr_to_cqi(sinr_db):
    """
    Highest CQI whose SINR threshold is met, 0 when none is.
    Non-finite SINR maps to CQI 0.
    """
    if not isinstance(sinr_db, (int, float)) or not math.isfinite(sinr_db):
        return 0
    cqi = 0
    for threshold in CQI_SINR_THRESHOLDS_DB:
        if sinr_db < threshold:
            break
        cqi += 1
    return min(cqi, MAX_CQI)


def cqi_report(d_m, num_rbs, scs_khz, params=None, rng=random, shadow_db=0.0):
    # One CQI per RB, as reported to the scheduler between slots
    return [sinr_to_cqi(s) for s in compute_sinr_db(d_m, num_rbs, scs_khz, params, rng, shadow_db)]
