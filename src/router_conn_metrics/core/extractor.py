"""Event extraction from router connection log messages.

Classifies a record as Login, Logout or Ignored and pulls the typed fields out of the
free-text message. Pure: no I/O and no shared state.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .errors import MalformedDuration
from .models import IGNORED, ConnectionEvent, Login, Logout, RawMessageRecord

DEFAULT_PROTOCOLS: frozenset[str] = frozenset({"ovpn", "sstp"})

_LOGIN_RE = re.compile(r"\S+ logged in, \S+ from (?P<addr>\S+)")
_LOGOUT_RE = re.compile(
    r"\S+ logged out, (?P<duration>\S+) \d+ \d+ \d+ \d+ from (?P<addr>\S+)"
)


def protocol_of(application_tag: str) -> str:
    """Return the significant (first comma-delimited) token of an application tag."""
    return application_tag.split(",", 1)[0].strip()


def parse_duration(text: str) -> float:
    """Parse a session duration in seconds, rejecting non-finite and negative values."""
    try:
        value = float(text)
    except ValueError as e:
        raise MalformedDuration(text) from e
    if not math.isfinite(value) or value < 0:
        raise MalformedDuration(text)
    return value


@dataclass(frozen=True, slots=True)
class EventExtractor:
    """Classify raw records for a fixed set of monitored protocols."""

    protocols: frozenset[str] = field(default=DEFAULT_PROTOCOLS)

    @classmethod
    def for_protocols(cls, protocols: Iterable[str]) -> EventExtractor:
        names = frozenset(p.strip() for p in protocols if p.strip())
        if not names:
            raise ValueError("at least one monitored protocol is required")
        return cls(protocols=names)

    def extract(self, record: RawMessageRecord) -> ConnectionEvent:
        """Return the connection event carried by ``record``.

        Raises MalformedDuration when a logout line has an unusable duration field.
        """
        if protocol_of(record.application_tag) not in self.protocols:
            return IGNORED

        text = record.message_text
        m = _LOGIN_RE.search(text)
        if m:
            return Login(remote_addr=m.group("addr"))

        m = _LOGOUT_RE.search(text)
        if m:
            return Logout(
                duration_seconds=parse_duration(m.group("duration")),
                remote_addr=m.group("addr"),
            )

        return IGNORED
