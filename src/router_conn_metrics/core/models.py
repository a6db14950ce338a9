"""Core data models for connection-event extraction and aggregation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import RecordDecodeError


class RawMessageRecord(BaseModel):
    """One framed log line as handed over by the listener.

    Field aliases follow the syslog part names (``hostname``, ``app_name``, ``message``),
    so a parts mapping can be validated directly with :meth:`from_parts`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    host_identifier: str = Field(alias="hostname")
    application_tag: str = Field(alias="app_name")
    message_text: str = Field(alias="message")

    @classmethod
    def from_parts(cls, parts: Mapping[str, Any]) -> RawMessageRecord:
        """Validate presence and type of the required parts and build a record."""
        try:
            return cls.model_validate(dict(parts))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise RecordDecodeError(
                f"invalid log record (fields: {', '.join(fields) or '?'})"
            ) from e


@dataclass(frozen=True, slots=True)
class Login:
    """A session was opened from ``remote_addr``."""

    remote_addr: str


@dataclass(frozen=True, slots=True)
class Logout:
    """A session from ``remote_addr`` was closed after ``duration_seconds``."""

    duration_seconds: float
    remote_addr: str


@dataclass(frozen=True, slots=True)
class Ignored:
    """The record is not a monitored connection event."""


IGNORED = Ignored()

ConnectionEvent = Login | Logout | Ignored


@dataclass(frozen=True, slots=True)
class LabelSet:
    """Aggregation key: device display name, protocol tag, network id (ASN)."""

    device: str
    protocol: str
    network_id: str

    def as_labels(self) -> dict[str, str]:
        """Return the Prometheus label mapping for this key."""
        return {"device": self.device, "protocol": self.protocol, "asn": self.network_id}


@dataclass(frozen=True, slots=True)
class DurationSummary:
    """Read-side view of one session-duration histogram."""

    count: float
    sum: float
    buckets: tuple[tuple[float, float], ...]  # (upper bound, cumulative count), +Inf last
