import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from nr_scheduler.config import DOWNLINK, UPLINK
from nr_scheduler.simulator import SimulationResult

GRANT_COLUMNS = [
    'slot', 'frame', 'slot_number', 'direction', 'rnti', 'harq_id', 'ndi',
    'mcs', 'Qm', 'code_rate', 'num_rbgs_allocated', 'num_rbs', 'tbs_bits',
    'served_bytes', 'slot_offset', 'rbg_allocation_bitmap',
]


def build_dataframe(result: SimulationResult) -> pd.DataFrame:
    if not result.grant_logs:
        return pd.DataFrame(columns=GRANT_COLUMNS)
    return pd.DataFrame(result.grant_logs)[GRANT_COLUMNS]


def compute_statistics(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per (direction, UE): number of grants, mean MCS, mean RBs per grant,
    total bytes served.
    """
    if df.empty:
        return pd.DataFrame(columns=['grants', 'mean_mcs', 'mean_rbs', 'served_bytes'])
    stats = df.groupby(['direction', 'rnti']).agg(
        grants=('mcs', 'size'),
        mean_mcs=('mcs', 'mean'),
        mean_rbs=('num_rbs', 'mean'),
        served_bytes=('served_bytes', 'sum'),
    )
    return stats.round(2)


def buffer_dataframe(result: SimulationResult) -> pd.DataFrame:
    if not result.buffer_log:
        return pd.DataFrame(columns=[UPLINK, DOWNLINK])
    return pd.DataFrame(result.buffer_log).set_index('slot')


def rbg_allocation_matrix(df: pd.DataFrame, direction: str, slot: int, n_ues: int, num_rbgs: int) -> np.ndarray:
    # UE x RBG occupancy of one scheduling call, row i-1 is RNTI i
    matrix = np.zeros((n_ues, num_rbgs), dtype=int)
    rows = df[(df['direction'] == direction) & (df['slot'] == slot)]
    for rnti, bitmap in zip(rows['rnti'], rows['rbg_allocation_bitmap']):
        matrix[rnti - 1, :] = bitmap
    return matrix


def plot_mcs_histogram(df: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots()
    for direction, group in df.groupby('direction'):
        ax.hist(group['mcs'], bins=range(0, 30), alpha=0.6, label=direction, align='left')
    ax.set_title('MCS of Issued Grants')
    ax.set_xlabel('MCS index')
    ax.set_ylabel('Count')
    ax.legend()
    return fig


def plot_rbg_allocation(matrix: np.ndarray, title: str = 'RBG Allocation') -> plt.Figure:
    fig, ax = plt.subplots()
    ax.imshow(matrix, aspect='auto', interpolation='nearest', cmap='Greys')
    ax.set_title(title)
    ax.set_xlabel('RBG index')
    ax.set_ylabel('RNTI')
    ax.set_yticks(range(matrix.shape[0]))
    ax.set_yticklabels(range(1, matrix.shape[0] + 1))
    return fig


def plot_buffer_over_slots(buffers: pd.DataFrame) -> plt.Figure:
    fig, ax = plt.subplots()
    for direction in buffers.columns:
        ax.plot(buffers.index, buffers[direction], label=direction)
    ax.set_title('Buffered Bytes over Simulation Slots')
    ax.set_xlabel('Slot Index')
    ax.set_ylabel('Bytes')
    ax.legend()
    return fig
