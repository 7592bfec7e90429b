class SchedulerError(Exception):
    """Base class for errors raised by the scheduler."""


class ConfigurationError(SchedulerError, ValueError):
    """Cell or scheduler parameters outside their valid range."""


class InvalidCQIIndex(SchedulerError, LookupError):
    """
    A CQI value that cannot be mapped to an MCS.
    - cqi_index: the 0-based table row that was looked up, or None when
      there was nothing to average (empty RB set)
    """
    def __init__(self, message, cqi_index=None):
        super().__init__(message)
        self.cqi_index = cqi_index
