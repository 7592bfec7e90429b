from dataclasses import dataclass

from nr_scheduler.config import NUMEROLOGIES, NUM_SYMBOLS_PER_SLOT
from nr_scheduler.errors import ConfigurationError

FRAME_DURATION_MS = 10.0


@dataclass
class FrameParams:
    scs_khz: int
    symbol_duration_us: float
    slot_duration_us: float
    num_symbols_per_slot: int
    slots_per_frame: int


# Frame timing for a numerology
def get_frame_params(scs_mu: int) -> FrameParams:
    if scs_mu not in NUMEROLOGIES:
        raise ConfigurationError(
            f"Numerology {scs_mu} must be one of {sorted(NUMEROLOGIES)}"
        )
    # 1) Subcarrier spacing for the numerology index
    scs_khz = NUMEROLOGIES[scs_mu]
    # 2) Symbol duration in µs (CP ignored)
    symbol_duration_us = 1e6 / (scs_khz * 1e3)
    # 3) Full slot is 14 symbols
    slot_duration_us = NUM_SYMBOLS_PER_SLOT * symbol_duration_us
    # 4) 2^μ slots per 1 ms subframe, 10 subframes per frame
    slots_per_frame = int(FRAME_DURATION_MS * (2 ** scs_mu))

    return FrameParams(
        scs_khz=scs_khz,
        symbol_duration_us=symbol_duration_us,
        slot_duration_us=slot_duration_us,
        num_symbols_per_slot=NUM_SYMBOLS_PER_SLOT,
        slots_per_frame=slots_per_frame,
    )
