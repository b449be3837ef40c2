"""Exception hierarchy for the liquidation valuation pipeline."""


class LiquidationTrackerError(Exception):
    """Base class for pipeline failures that skip a single event."""


class TokenNotFoundError(LiquidationTrackerError):
    """A token address is missing from the registry."""

    def __init__(self, addresses: list[str]) -> None:
        self.addresses = list(addresses)
        super().__init__(f"Token not found: {', '.join(self.addresses)}")


class OracleError(LiquidationTrackerError):
    """An oracle read failed at the transport or contract level."""


class PriceUnavailableError(LiquidationTrackerError):
    """No oracle or fallback price exists for a token."""


class RecordBuildError(LiquidationTrackerError):
    """A liquidation record could not be assembled from its inputs."""


class StorageError(LiquidationTrackerError):
    """A persistence failure other than a duplicate key."""


class EventParseError(LiquidationTrackerError):
    """A raw event does not have the shape its protocol adapter expects."""
