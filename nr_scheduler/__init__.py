from nr_scheduler.cell import CellConfig
from nr_scheduler.config import DOWNLINK, UPLINK
from nr_scheduler.errors import ConfigurationError, InvalidCQIIndex, SchedulerError
from nr_scheduler.harq_manager import HarqProcessManager, HarqState
from nr_scheduler.link_adaptation import McsMapper
from nr_scheduler.rb import RbgGeometry, bitmap_to_rb_indices, rb_indices_to_bitmap
from nr_scheduler.scheduler import (
    DownlinkGrant, Grant, RoundRobinScheduler, Scheduler, UeContext, UplinkGrant,
)

__version__ = "0.1.0"
