from dataclasses import dataclass, field

from nr_scheduler.config import (
    DIRECTIONS, DOWNLINK, MAX_HARQ, MAX_RBS, MAX_UES, PRB_TABLE, UPLINK,
    default_params,
)
from nr_scheduler.errors import ConfigurationError
from nr_scheduler.frames import FrameParams, get_frame_params
from nr_scheduler.rb import RbgGeometry


def _check_int(name, value, low, high=None):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < low or (high is not None and value > high):
        upper = high if high is not None else 'inf'
        raise ConfigurationError(f"{name} must be in {low}..{upper}, got {value}")


def num_rbs_for_bandwidth(bandwidth_mhz, scs_khz) -> int:
    # Table value when the (BW, SCS) pair is listed, otherwise BW / (12 x SCS)
    return PRB_TABLE.get((bandwidth_mhz, scs_khz),
                         int((bandwidth_mhz * 1e6) / (scs_khz * 1e3 * 12)))


@dataclass
class CellConfig:
    n_ues:                int
    frame:                FrameParams
    num_rbs:              dict                # direction → number of RBs
    rbg_config:           int = 1
    num_harq:             int = 16
    num_logical_channels: int = 4
    ul_stride_divisors:   tuple = ()
    feedback_slot_offset: int = 2
    rbg_geometry:         dict = field(init=False)

    def __post_init__(self):
        _check_int("n_ues", self.n_ues, 1, MAX_UES)
        _check_int("num_harq", self.num_harq, 1, MAX_HARQ)
        _check_int("num_logical_channels", self.num_logical_channels, 1)
        _check_int("feedback_slot_offset", self.feedback_slot_offset, 2)
        for direction in DIRECTIONS:
            if direction not in self.num_rbs:
                raise ConfigurationError(f"Missing RB count for direction {direction}")
            _check_int(f"num_rbs[{direction}]", self.num_rbs[direction], 1, MAX_RBS)
        for i, divisor in enumerate(self.ul_stride_divisors):
            if isinstance(divisor, bool) or not isinstance(divisor, (int, float)) or divisor <= 0:
                raise ConfigurationError(
                    f"UL stride divisor for UE {i + 1} must be a positive number, got {divisor!r}"
                )
        self.ul_stride_divisors = tuple(self.ul_stride_divisors)

        # nominal_rbg_size rejects unknown RBG configurations
        self.rbg_geometry = {
            direction: RbgGeometry.for_bandwidth(self.num_rbs[direction], self.rbg_config)
            for direction in DIRECTIONS
        }
        for direction, geometry in self.rbg_geometry.items():
            if geometry.num_rbgs <= 0:
                raise ConfigurationError(f"No RBGs in the {direction} bandwidth part")

    @property
    def slots_per_frame(self) -> int:
        return self.frame.slots_per_frame

    def num_rbgs(self, direction) -> int:
        return self.rbg_geometry[direction].num_rbgs

    def ul_stride_divisor(self, rnti) -> float:
        # UEs beyond the configured list use the whole RBG count as stride
        if rnti <= len(self.ul_stride_divisors):
            return self.ul_stride_divisors[rnti - 1]
        return 1

    @classmethod
    def from_params(cls, params: dict = None) -> "CellConfig":
        """
        Builds the cell from default_params overridden by `params`.
        num_rbs_ul / num_rbs_dl left as None follow the carrier bandwidth.
        """
        cfg = default_params.copy()
        if params:
            cfg.update(params)

        frame = get_frame_params(cfg['scs_mu'])
        default_rbs = num_rbs_for_bandwidth(cfg['bandwidth_mhz'], frame.scs_khz)
        num_rbs = {
            UPLINK: cfg['num_rbs_ul'] if cfg.get('num_rbs_ul') is not None else default_rbs,
            DOWNLINK: cfg['num_rbs_dl'] if cfg.get('num_rbs_dl') is not None else default_rbs,
        }
        return cls(
            n_ues=cfg['n_ues'],
            frame=frame,
            num_rbs=num_rbs,
            rbg_config=cfg['rbg_config'],
            num_harq=cfg['num_harq'],
            num_logical_channels=cfg['num_logical_channels'],
            ul_stride_divisors=cfg['ul_stride_divisors'],
            feedback_slot_offset=cfg['feedback_slot_offset'],
        )
