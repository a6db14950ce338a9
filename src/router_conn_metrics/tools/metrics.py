"""MCP tool implementations over the Aggregator.

Keep this layer thin: validate filters, read aggregate state, and return
JSON-serializable data structures.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from router_conn_metrics.core.aggregator import Aggregator


def _matches(labels: dict[str, str], filters: dict[str, str | None]) -> bool:
    """Return True when every non-empty filter equals the label value."""
    for key, want in filters.items():
        if want is None or want == "":
            continue
        if labels.get(key) != want.strip():
            return False
    return True


def _filters(device: str | None, protocol: str | None, asn: str | int | None) -> dict[str, str | None]:
    if isinstance(asn, int):
        asn = str(asn)
    elif asn is not None and asn.strip() and not asn.strip().isdigit():
        raise ValueError(f"asn must be an integer, got {asn!r}")
    return {"device": device, "protocol": protocol, "asn": asn}


def login_counts_impl(
    aggregator: Aggregator,
    *,
    device: str | None = None,
    protocol: str | None = None,
    asn: str | int | None = None,
) -> dict[str, Any]:
    """Implementation for the `login_counts` MCP tool."""
    filters = _filters(device, protocol, asn)
    series = [s for s in aggregator.snapshot()["logins"] if _matches(s["labels"], filters)]
    return {
        "count": len(series),
        "total": sum(s["count"] for s in series),
        "series": series,
    }


def session_durations_impl(
    aggregator: Aggregator,
    *,
    device: str | None = None,
    protocol: str | None = None,
    asn: str | int | None = None,
    include_buckets: bool = False,
) -> dict[str, Any]:
    """Implementation for the `session_durations` MCP tool."""
    filters = _filters(device, protocol, asn)
    series = []
    for s in aggregator.snapshot()["session_durations"]:
        if not _matches(s["labels"], filters):
            continue
        item = {
            "labels": s["labels"],
            "count": s["count"],
            "sum": s["sum"],
            "mean": (s["sum"] / s["count"]) if s["count"] else None,
        }
        if include_buckets:
            item["buckets"] = s["buckets"]
        series.append(item)
    return {"count": len(series), "series": series}


def overview_impl(aggregator: Aggregator) -> dict[str, Any]:
    """Logins and closed sessions per device and per protocol."""
    snap = aggregator.snapshot()
    by_device: dict[str, dict[str, float]] = defaultdict(lambda: {"logins": 0.0, "sessions": 0.0})
    by_protocol: dict[str, dict[str, float]] = defaultdict(lambda: {"logins": 0.0, "sessions": 0.0})
    networks: set[str] = set()

    for s in snap["logins"]:
        labels = s["labels"]
        by_device[labels["device"]]["logins"] += s["count"]
        by_protocol[labels["protocol"]]["logins"] += s["count"]
        networks.add(labels["asn"])
    for s in snap["session_durations"]:
        labels = s["labels"]
        by_device[labels["device"]]["sessions"] += s["count"]
        by_protocol[labels["protocol"]]["sessions"] += s["count"]
        networks.add(labels["asn"])

    return {
        "devices": dict(sorted(by_device.items())),
        "protocols": dict(sorted(by_protocol.items())),
        "distinct_networks": len(networks),
    }
