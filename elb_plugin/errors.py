class PluginError(Exception):
    """Base class for errors raised by the ELB plugin."""


class ConfigurationError(PluginError):
    """Region, credentials or settings are missing or invalid."""


class DiscoveryError(PluginError):
    """The metric catalog could not be listed, so no topology exists."""


class CloudWatchError(PluginError):
    """A single CloudWatch API call failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
