# nr_scheduler/link_adaptation.py

from dataclasses import dataclass
import math

import numpy as np

from nr_scheduler.config import CQI_TABLE, CQI_TABLE_VALID_ROWS, MCS_TABLE
from nr_scheduler.errors import InvalidCQIIndex


@dataclass
class MCSParams:
    index:      int       # MCS index
    Qm:         int       # bits per symbol (modulation order)
    code_rate:  float     # code rate as a fraction


class McsMapper:
    """
    Maps a CQI table row to an MCS index.

    Both tables hold (Qm, code rate x 1024) rows. For a CQI row, the MCS
    candidates are the rows with the same modulation order; the one with
    the highest code rate not above the CQI target rate is chosen, or the
    lowest-rate candidate when every candidate exceeds the target.
    """
    def __init__(self, cqi_table=CQI_TABLE, mcs_table=MCS_TABLE,
                 cqi_valid_rows=CQI_TABLE_VALID_ROWS):
        self.cqi_table = np.asarray(cqi_table, dtype=float)
        self.mcs_table = np.asarray(mcs_table, dtype=float)
        self.cqi_valid_rows = cqi_valid_rows

    def select_mcs(self, cqi_index: int) -> int:
        if isinstance(cqi_index, bool) or not isinstance(cqi_index, (int, np.integer)):
            raise InvalidCQIIndex(f"CQI index must be an integer, got {cqi_index!r}", cqi_index)
        if not 0 <= cqi_index < self.cqi_valid_rows:
            raise InvalidCQIIndex(
                f"CQI index {cqi_index} outside valid rows 0..{self.cqi_valid_rows - 1}",
                cqi_index,
            )
        modulation, code_rate = self.cqi_table[cqi_index]

        # MCS rows using the same modulation, in table order
        candidates = np.flatnonzero(self.mcs_table[:, 0] == modulation)
        if candidates.size == 0:
            raise InvalidCQIIndex(
                f"No MCS row with modulation order {int(modulation)} for CQI index {cqi_index}",
                cqi_index,
            )
        # Candidates that the channel can still carry
        supported = candidates[self.mcs_table[candidates, 1] <= code_rate]
        if supported.size == 0:
            return int(candidates[0])
        return int(supported[-1])

    def mcs_params(self, mcs_index: int) -> MCSParams:
        Qm, code_rate = self.mcs_table[mcs_index]
        return MCSParams(index=mcs_index, Qm=int(Qm), code_rate=code_rate / 1024.0)


def average_cqi(cqi_report, rb_indices) -> float:
    """
    Mean CQI over exactly the allocated RBs.
    An empty allocation has no average and raises InvalidCQIIndex.
    """
    if len(rb_indices) == 0:
        raise InvalidCQIIndex("No resource blocks allocated, CQI average is undefined")
    report = np.asarray(cqi_report, dtype=float)
    indices = np.asarray(rb_indices, dtype=int)
    if indices.min() < 0 or indices.max() >= report.size:
        raise InvalidCQIIndex(
            f"Allocated RBs {indices.min()}..{indices.max()} not covered by a "
            f"CQI report of {report.size} RBs"
        )
    avg = float(report[indices].mean())
    if not math.isfinite(avg):
        raise InvalidCQIIndex(f"CQI average over RBs {indices.tolist()} is not finite")
    return avg


# CQI values are stored 1-based, table rows are 0-based
def cqi_lookup_index(avg_cqi: float) -> int:
    return math.floor(avg_cqi) - 1
