"""Router VPN connection-event metrics exporter."""

from __future__ import annotations

from .core import (
    Aggregator,
    DeviceAliasResolver,
    EnrichmentLookup,
    EventExtractor,
    LabelSet,
    Login,
    Logout,
    PipelineDriver,
    RawMessageRecord,
)

__version__ = "0.1.0"

__all__ = [
    "Aggregator",
    "DeviceAliasResolver",
    "EnrichmentLookup",
    "EventExtractor",
    "LabelSet",
    "Login",
    "Logout",
    "PipelineDriver",
    "RawMessageRecord",
    "__version__",
]
