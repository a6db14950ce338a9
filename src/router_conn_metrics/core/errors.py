"""Error taxonomy for the connection-event pipeline."""

from __future__ import annotations


class RouterConnMetricsError(Exception):
    """Base class for all errors raised by this package."""


class RecordDecodeError(RouterConnMetricsError):
    """A listener frame could not be decoded into a RawMessageRecord."""


class ExtractionError(RouterConnMetricsError):
    """A monitored message matched a pattern but a field could not be converted."""


class MalformedDuration(ExtractionError):
    """The session duration of a logout message is not a usable number of seconds."""

    def __init__(self, text: str) -> None:
        super().__init__(f"could not parse {text!r} as a session duration")
        self.text = text


class EnrichmentError(RouterConnMetricsError):
    """Per-address enrichment failure."""

    def __init__(self, address: str, message: str) -> None:
        super().__init__(message)
        self.address = address


class InvalidAddress(EnrichmentError):
    """The address is not a valid IP literal."""

    def __init__(self, address: str) -> None:
        super().__init__(address, f"could not parse {address!r} as IP")


class LookupMiss(EnrichmentError):
    """The address is valid but the database has no usable record for it."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(address, f"could not look up {address}: {reason}")
        self.reason = reason


class EnrichmentUnavailable(RouterConnMetricsError):
    """The enrichment database could not be opened."""


class BackgroundTaskDied(RouterConnMetricsError):
    """A long-lived task (listener, exporter, pipeline) stopped after startup."""
