"""Device display names keyed by syslog host identifier."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


def parse_device_names(spec: str) -> dict[str, str]:
    """Parse ``"10.11.12.13/router1,10.11.12.14/router2"`` into a mapping.

    Empty entries are skipped. Entries without exactly one address and one name raise ValueError.
    """
    out: dict[str, str] = {}
    for part in spec.split(","):
        item = part.strip()
        if not item:
            continue
        host, sep, name = item.partition("/")
        host, name = host.strip(), name.strip()
        if not sep or not host or not name or "/" in name:
            raise ValueError(
                f"Invalid device name pair {item!r}. Expected addr/name (e.g., 10.11.12.13/router1)"
            )
        out[host] = name
    return out


@dataclass(frozen=True, slots=True)
class DeviceAliasResolver:
    """Read-only alias table; unknown hosts resolve to themselves."""

    table: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "table", MappingProxyType(dict(self.table)))

    def resolve(self, host_identifier: str) -> str:
        return self.table.get(host_identifier, host_identifier)
