# Link directions
UPLINK = 'UL'
DOWNLINK = 'DL'
DIRECTIONS = (UPLINK, DOWNLINK)

# Numerologies: μ → Δf in kHz
NUMEROLOGIES = {
    0: 15,
    1: 30,
    2: 60,
    3: 120,
    4: 240,
}

# 3GPP TS 38.101-1: (BW_MHz, Δf_kHz) → number of PRBs
PRB_TABLE = {
    (5,   15): 25,    (10,  15): 52,    (15,  15): 79,    (20,  15): 106,
    (10,  30): 24,    (20,  30): 51,    (40,  30): 106,   (100, 30): 273,
    (20,  60): 24,    (40,  60): 51,    (80,  60): 106,
    (10, 120): 6,
}

# 3GPP TS 38.214 Table 5.1.2.2.1-1: upper BWP size → nominal RBG size
# for (configuration 1, configuration 2)
RBG_SIZE_TABLE = [
    (36,  (2,  4)),
    (72,  (4,  8)),
    (144, (8,  16)),
    (275, (16, 16)),
]

# CQI table: row → (Qm, target code rate x 1024)
# 3GPP TS 38.214 Table 5.1.3.1-2, rows 28-31 are reserved
CQI_TABLE = [
    (2, 120),   (2, 193),   (2, 308),   (2, 449),   (2, 602),
    (4, 378),   (4, 434),   (4, 490),   (4, 553),   (4, 616),
    (4, 658),   (6, 466),   (6, 517),   (6, 567),   (6, 616),
    (6, 666),   (6, 719),   (6, 772),   (6, 822),   (6, 873),
    (8, 682.5), (8, 711),   (8, 754),   (8, 797),   (8, 841),
    (8, 885),   (8, 916.5), (8, 948),
    (2, 0),     (4, 0),     (6, 0),     (8, 0),
]
CQI_TABLE_VALID_ROWS = 28

# MCS table: MCS index → (Qm, code rate x 1024)
# 3GPP TS 38.214 Table 5.1.3.1-1
MCS_TABLE = [
    (2, 120), (2, 157), (2, 193), (2, 251), (2, 308),
    (2, 379), (2, 449), (2, 526), (2, 602), (2, 679),
    (4, 340), (4, 378), (4, 434), (4, 490), (4, 553),
    (4, 616), (4, 658), (6, 438), (6, 466), (6, 517),
    (6, 567), (6, 616), (6, 666), (6, 719), (6, 772),
    (6, 822), (6, 873), (6, 910), (6, 948),
]

# Per-UE divisor of the UL RBG count; UE i uses entry i-1
UL_STRIDE_DIVISORS = (1, 2, 4, 1000)

# Cell limits
MAX_UES = 65519
MAX_RBS = 275
MAX_HARQ = 16
MAX_CQI = 15

# Fixed grant parameters
NUM_SYMBOLS_PER_SLOT = 14
FEEDBACK_SLOT_OFFSET = 2

# Default simulation parameters
default_params = {
    'scs_mu':               1,          # μ = 1 → 30 kHz
    'bandwidth_mhz':        10,         # MHz
    'num_rbs_ul':           None,       # None → taken from PRB_TABLE
    'num_rbs_dl':           None,
    'rbg_config':           1,
    'n_ues':                4,
    'num_harq':             16,
    'num_logical_channels': 4,
    'ul_stride_divisors':   UL_STRIDE_DIVISORS,
    'feedback_slot_offset': FEEDBACK_SLOT_OFFSET,
    'sim_slots':            200,
    'ul_lead_slots':        2,          # UL grants are sent ahead of the PUSCH slot
    'dl_lead_slots':        0,
    'traffic_type':         'periodic', # 'periodic', 'poisson' or 'full_buffer'
    'period_slots':         10,
    'packet_size_bytes':    1500,
    'lambda_per_slot':      0.2,
    'ul_traffic_share':     0.5,        # fraction of UEs with UL traffic
    'cell_radius':          500,
    'tx_power_dbm':         23,
    'noise_figure_db':      7,
    'noise_density_dbm_hz': -174,
    'shadow_sigma_db':      8.0,
    'fast_fading':          True,
    'seed':                 None,
}
