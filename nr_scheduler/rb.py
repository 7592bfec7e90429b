import math
from dataclasses import dataclass

from nr_scheduler.config import MAX_RBS, RBG_SIZE_TABLE
from nr_scheduler.errors import ConfigurationError
from nr_scheduler.link_adaptation import MCSParams


# Fixed number of subcarriers in a Resource Block (RB)
def n_subcarriers_per_rb() -> int:
    return 12


def nominal_rbg_size(num_rbs: int, rbg_config: int = 1) -> int:
    """
    Nominal RBG size P for a bandwidth part of num_rbs RBs
    (TS 38.214 Table 5.1.2.2.1-1).
    """
    if rbg_config not in (1, 2):
        raise ConfigurationError(f"RBG size configuration must be 1 or 2, got {rbg_config}")
    if not 1 <= num_rbs <= MAX_RBS:
        raise ConfigurationError(f"Number of RBs must be in 1..{MAX_RBS}, got {num_rbs}")
    for upper, sizes in RBG_SIZE_TABLE:
        if num_rbs <= upper:
            return sizes[rbg_config - 1]


@dataclass(frozen=True)
class RbgGeometry:
    """
    RBG layout of one direction's bandwidth part.
    The last RBG holds the remaining RBs and may be smaller than rbg_size.
    """
    num_rbs: int
    rbg_size: int

    @property
    def num_rbgs(self) -> int:
        return math.ceil(self.num_rbs / self.rbg_size)

    @property
    def last_rbg_size(self) -> int:
        return self.num_rbs - (self.num_rbgs - 1) * self.rbg_size

    def rbg_rbs(self, rbg_index: int) -> range:
        start = rbg_index * self.rbg_size
        return range(start, min(start + self.rbg_size, self.num_rbs))

    @classmethod
    def for_bandwidth(cls, num_rbs: int, rbg_config: int = 1) -> "RbgGeometry":
        return cls(num_rbs=num_rbs, rbg_size=nominal_rbg_size(num_rbs, rbg_config))


def bitmap_to_rb_indices(bitmap, geometry: RbgGeometry) -> list:
    """
    Expands an RBG allocation bitmap into the sorted RB indices it covers.
    """
    if len(bitmap) != geometry.num_rbgs:
        raise ValueError(
            f"Bitmap has {len(bitmap)} entries, bandwidth part has {geometry.num_rbgs} RBGs"
        )
    rb_indices = []
    for rbg_index, bit in enumerate(bitmap):
        if bit not in (0, 1):
            raise ValueError(f"Bitmap entry {rbg_index} is {bit!r}, expected 0 or 1")
        if bit:
            rb_indices.extend(geometry.rbg_rbs(rbg_index))
    return rb_indices


def rb_indices_to_bitmap(rb_indices, geometry: RbgGeometry) -> list:
    # An RBG is marked as soon as one of its RBs is in the set
    bitmap = [0] * geometry.num_rbgs
    for rb in rb_indices:
        if not 0 <= rb < geometry.num_rbs:
            raise ValueError(f"RB index {rb} outside 0..{geometry.num_rbs - 1}")
        bitmap[rb // geometry.rbg_size] = 1
    return bitmap


# Transport Block Size (TBS) for a set of PRBs and a given MCS
# - n_prbs: number of allocated Resource Blocks
# - mcs: MCSParams holding Qm and code rate
# - num_symbols: physical symbols available per transmission
def compute_tbs(n_prbs: int, mcs: MCSParams, num_symbols: int) -> int:
    # 1) One DM-RS symbol carries no data
    data_symbols = max(num_symbols - 1, 0)
    # 2) Resource elements (subcarriers x symbols)
    res_elements = n_prbs * n_subcarriers_per_rb() * data_symbols
    # 3) Raw bits = REs x modulation order x code rate
    raw_bits = res_elements * mcs.Qm * mcs.code_rate
    # 4) Round down to whole bytes
    return int((raw_bits // 8) * 8)
