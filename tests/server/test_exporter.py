from __future__ import annotations

import pytest
from prometheus_client.parser import text_string_to_metric_families
from starlette.testclient import TestClient

from router_conn_metrics.core.aggregator import Aggregator
from router_conn_metrics.core.models import LabelSet
from router_conn_metrics.server.exporter import build_exporter, render_metrics

LABELS = LabelSet(device="router1", protocol="ovpn", network_id="3215")


def _samples(body: bytes) -> dict[tuple[str, tuple[tuple[str, str], ...]], float]:
    out = {}
    for family in text_string_to_metric_families(body.decode("utf-8")):
        for s in family.samples:
            out[(s.name, tuple(sorted(s.labels.items())))] = s.value
    return out


def test_render_metrics_exposes_both_metrics(aggregator: Aggregator) -> None:
    aggregator.record_login(LABELS)
    aggregator.record_login(LABELS)
    aggregator.record_logout(LABELS, 3600.0)

    body, content_type = render_metrics(aggregator)
    samples = _samples(body)
    key = tuple(sorted(LABELS.as_labels().items()))

    assert content_type.startswith("text/plain")
    assert samples[("mikrotik_conn_logins_total", key)] == 2
    assert samples[("mikrotik_conn_session_duration_seconds_count", key)] == 1
    assert samples[("mikrotik_conn_session_duration_seconds_sum", key)] == 3600
    le = tuple(sorted({**LABELS.as_labels(), "le": "3600.0"}.items()))
    assert samples[("mikrotik_conn_session_duration_seconds_bucket", le)] == 1


def test_metrics_route_serves_scrape_body(aggregator: Aggregator) -> None:
    aggregator.record_login(LABELS)
    mcp = build_exporter(aggregator, host="127.0.0.1", port=0)

    client = TestClient(mcp.streamable_http_app())
    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "mikrotik_conn_logins_total{" in resp.text
    assert 'asn="3215"' in resp.text


@pytest.mark.asyncio
async def test_build_exporter_registers_metric_tools(aggregator: Aggregator) -> None:
    mcp = build_exporter(aggregator, host="127.0.0.1", port=8122)
    names = {tool.name for tool in await mcp.list_tools()}
    assert {"login_counts", "session_durations", "connection_metrics_overview"} <= names
    assert mcp.settings.port == 8122
