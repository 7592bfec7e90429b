# nr_scheduler/harq_manager.py

from nr_scheduler.config import MAX_HARQ
from nr_scheduler.errors import ConfigurationError


class HarqState:
    """
    HARQ bookkeeping of one UE in one direction.
    - last_process_id: process used by the last grant, -1 before the first one
    - ndi: new-data-indicator bit per process ID
    """
    def __init__(self, num_harq):
        self.last_process_id = -1
        self.ndi = [False] * num_harq

    def __repr__(self):
        return f"HarqState(last_process_id={self.last_process_id}, ndi={self.ndi})"


class HarqProcessManager:
    """
    Cycles HARQ process IDs for new transmissions.
    Retransmissions are not modelled: every assignment carries new data,
    so the NDI of the chosen process is always toggled.
    """
    def __init__(self, num_harq):
        if isinstance(num_harq, bool) or not isinstance(num_harq, int) \
                or not 1 <= num_harq <= MAX_HARQ:
            raise ConfigurationError(f"Number of HARQ processes must be in 1..{MAX_HARQ}, got {num_harq}")
        self.num_harq = num_harq

    def new_state(self) -> HarqState:
        return HarqState(self.num_harq)

    def assign_new_process(self, ue, direction):
        """
        Moves the UE's HARQ state for `direction` to the next process.
        Returns (process_id, ndi) to stamp on the grant.
        """
        state = ue.harq[direction]
        process_id = (state.last_process_id + 1) % self.num_harq
        ndi = not state.ndi[process_id]
        state.ndi[process_id] = ndi
        state.last_process_id = process_id
        return process_id, ndi
