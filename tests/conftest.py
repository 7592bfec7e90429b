import matplotlib
matplotlib.use("Agg")

import pytest

from nr_scheduler.cell import CellConfig
from nr_scheduler.config import DIRECTIONS
from nr_scheduler.scheduler import RoundRobinScheduler


@pytest.fixture
def make_scheduler():
    """
    Builds a RoundRobinScheduler; every UE starts with a flat CQI report.
    With 16 RBs per direction the nominal RBG size is 2, i.e. 8 RBGs.
    """
    def _make(n_ues=4, num_rbs_ul=16, num_rbs_dl=16, cqi=15, **params):
        cfg = {'n_ues': n_ues, 'num_rbs_ul': num_rbs_ul, 'num_rbs_dl': num_rbs_dl}
        cfg.update(params)
        scheduler = RoundRobinScheduler(CellConfig.from_params(cfg))
        for ue in scheduler.ues:
            for direction in DIRECTIONS:
                scheduler.update_cqi_report(ue.rnti, direction, [cqi] * scheduler.cell.num_rbs[direction])
        return scheduler
    return _make


@pytest.fixture
def fill_buffers():
    def _fill(scheduler, direction, rntis, num_bytes=1000):
        for rnti in rntis:
            scheduler.update_buffer_status(rnti, direction, 0, num_bytes)
    return _fill
