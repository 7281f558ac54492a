"""
Timeline error taxonomy.

Only DataSourceError aborts a computation from outside the engine; the
ValueError subclasses reject bad caller input before any read happens.
"""


class FleetTimelineError(Exception):
    """Base class for timeline engine errors"""


class DataSourceError(FleetTimelineError):
    """A bulk read from the data source failed"""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        message = f"Bulk read failed: {operation}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidGranularity(FleetTimelineError, ValueError):
    """Unrecognised bucketing unit"""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Invalid granularity {value!r}; expected one of: day, week, month, year"
        )


class InvalidDateRange(FleetTimelineError, ValueError):
    """Range start after range end"""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: {start} is after {end}")
