"""Syslog line parser.

Splits a single syslog message into the parts the pipeline needs
(``hostname``, ``app_name``, ``message``) plus PRI-derived metadata.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SyslogParser:
    """Parse RFC5424 and RFC3164-style lines, including MikroTik topic tags."""

    _rfc5424 = re.compile(
        r"^<(?P<pri>\d{1,3})>(?P<ver>\d{1,2})\s+"
        r"(?P<ts>\S+)\s+"
        r"(?P<host>\S+)\s+"
        r"(?P<app>\S+)\s+"
        r"(?P<proc>\S+)\s+"
        r"(?P<msgid>\S+)\s*"
        r"(?P<sd>(?:\[(?:[^\]\\]|\\.)*\])+|-)?\s*"
        r"(?P<msg>.*)$",
        re.DOTALL,
    )

    # MikroTik sends "<pri>Oct 19 12:00:00 router ovpn,info message" (no colon after the tag).
    _rfc3164 = re.compile(
        r"^<(?P<pri>\d{1,3})>"
        r"(?P<ts>[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+"
        r"(?P<host>\S+)\s+"
        r"(?P<tag>[^\s:\[]+)(?:\[(?P<pid>[^\]]*)\])?:?\s*"
        r"(?P<msg>.*)$",
        re.DOTALL,
    )

    @staticmethod
    def _meta(pri: int) -> dict[str, int]:
        return {"pri": pri, "severity": pri % 8, "facility": pri // 8}

    def parse(self, line: str) -> dict[str, Any] | None:
        """Return syslog parts for ``line``, or None when it is not syslog."""
        m = self._rfc5424.match(line)
        if m:
            app = m.group("app")
            return {
                "hostname": m.group("host"),
                "app_name": "" if app == "-" else app,
                "message": (m.group("msg") or "").strip(),
                **self._meta(int(m.group("pri"))),
            }

        m = self._rfc3164.match(line)
        if m:
            return {
                "hostname": m.group("host"),
                "app_name": m.group("tag"),
                "message": (m.group("msg") or "").strip(),
                **self._meta(int(m.group("pri"))),
            }

        return None
