"""Connection-event extraction, enrichment and aggregation."""

from __future__ import annotations

from .aggregator import Aggregator
from .aliases import DeviceAliasResolver, parse_device_names
from .enrichment import EnrichmentLookup
from .errors import (
    BackgroundTaskDied,
    EnrichmentError,
    EnrichmentUnavailable,
    ExtractionError,
    InvalidAddress,
    LookupMiss,
    MalformedDuration,
    RecordDecodeError,
    RouterConnMetricsError,
)
from .extractor import EventExtractor
from .models import (
    IGNORED,
    ConnectionEvent,
    DurationSummary,
    Ignored,
    LabelSet,
    Login,
    Logout,
    RawMessageRecord,
)
from .pipeline import PipelineDriver

__all__ = [
    "IGNORED",
    "Aggregator",
    "BackgroundTaskDied",
    "ConnectionEvent",
    "DeviceAliasResolver",
    "DurationSummary",
    "EnrichmentError",
    "EnrichmentLookup",
    "EnrichmentUnavailable",
    "EventExtractor",
    "ExtractionError",
    "Ignored",
    "InvalidAddress",
    "LabelSet",
    "Login",
    "Logout",
    "LookupMiss",
    "MalformedDuration",
    "PipelineDriver",
    "RawMessageRecord",
    "RecordDecodeError",
    "RouterConnMetricsError",
    "parse_device_names",
]
