class AnalyticsError(Exception):
    """Base class for errors raised while building analytics reports."""


class EventStoreError(AnalyticsError):
    """A project's backend could not be read."""

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.table = table


class ConfigurationError(AnalyticsError):
    """A project is missing the settings needed to reach its backend."""
