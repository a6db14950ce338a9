"""Login counters and session-duration histograms keyed by LabelSet.

All state lives in a private prometheus_client registry owned by the Aggregator instance.
prometheus_client metric children are created lazily on first use and update under
their own locks, so concurrent record/read calls never lose updates.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.utils import floatToGoString

from .models import DurationSummary, LabelSet

LABEL_NAMES = ("device", "protocol", "asn")
LOGIN_METRIC = "mikrotik_conn_logins"
DURATION_METRIC = "mikrotik_conn_session_duration_seconds"
DEFAULT_BUCKETS: tuple[float, ...] = (
    1, 10, 60, 120, 300, 600, 900, 1800, 3600, 7200,
    14400, 28800, 57600, 86400, 129600, 172800,
)


def _label_set(labels: dict[str, str]) -> LabelSet:
    return LabelSet(device=labels["device"], protocol=labels["protocol"], network_id=labels["asn"])


class Aggregator:
    """Process-lifetime aggregate state, injected into the pipeline and the exporter."""

    def __init__(
        self,
        *,
        registry: CollectorRegistry | None = None,
        buckets: Sequence[float] = DEFAULT_BUCKETS,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.buckets = tuple(float(b) for b in buckets)
        self._logins = Counter(
            LOGIN_METRIC,
            "Number of VPN session logins.",
            LABEL_NAMES,
            registry=self.registry,
        )
        self._durations = Histogram(
            DURATION_METRIC,
            "Duration of closed VPN sessions in seconds.",
            LABEL_NAMES,
            buckets=self.buckets,
            registry=self.registry,
        )

    def record_login(self, labels: LabelSet) -> None:
        self._logins.labels(**labels.as_labels()).inc()

    def record_logout(self, labels: LabelSet, duration_seconds: float) -> None:
        self._durations.labels(**labels.as_labels()).observe(duration_seconds)

    # Read side: each call collects a metric once and groups its samples by label set.

    def _login_values(self) -> dict[LabelSet, float]:
        out: dict[LabelSet, float] = {}
        for metric in self._logins.collect():
            for sample in metric.samples:
                if sample.name == f"{LOGIN_METRIC}_total":
                    out[_label_set(sample.labels)] = sample.value
        return out

    def _duration_values(self) -> dict[LabelSet, DurationSummary]:
        grouped: dict[LabelSet, dict[str, Any]] = {}
        for metric in self._durations.collect():
            for sample in metric.samples:
                labels = dict(sample.labels)
                le = labels.pop("le", None)
                entry = grouped.setdefault(
                    _label_set(labels), {"count": 0.0, "sum": 0.0, "buckets": {}}
                )
                if sample.name == f"{DURATION_METRIC}_bucket" and le is not None:
                    entry["buckets"][float(le)] = sample.value
                elif sample.name == f"{DURATION_METRIC}_count":
                    entry["count"] = sample.value
                elif sample.name == f"{DURATION_METRIC}_sum":
                    entry["sum"] = sample.value
        return {ls: self._summary(entry) for ls, entry in grouped.items()}

    def _summary(self, entry: dict[str, Any]) -> DurationSummary:
        return DurationSummary(
            count=entry["count"],
            sum=entry["sum"],
            buckets=tuple(
                (bound, entry["buckets"].get(bound, 0.0)) for bound in (*self.buckets, math.inf)
            ),
        )

    def login_count(self, labels: LabelSet) -> float:
        """Return the login counter for ``labels`` (0 if never observed)."""
        return self._login_values().get(labels, 0.0)

    def session_durations(self, labels: LabelSet) -> DurationSummary:
        """Return count, sum and cumulative bucket counts for ``labels``."""
        summary = self._duration_values().get(labels)
        if summary is None:
            return self._summary({"count": 0.0, "sum": 0.0, "buckets": {}})
        return summary

    def login_label_sets(self) -> list[LabelSet]:
        return list(self._login_values())

    def duration_label_sets(self) -> list[LabelSet]:
        return list(self._duration_values())

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """Return an eventually-consistent view of both metrics, keyed by label set."""
        logins = [
            {"labels": ls.as_labels(), "count": count}
            for ls, count in self._login_values().items()
        ]
        durations = []
        for ls, summary in self._duration_values().items():
            durations.append(
                {
                    "labels": ls.as_labels(),
                    "count": summary.count,
                    "sum": summary.sum,
                    "buckets": [
                        {"le": floatToGoString(bound), "count": count}
                        for bound, count in summary.buckets
                    ],
                }
            )
        return {"logins": logins, "session_durations": durations}
