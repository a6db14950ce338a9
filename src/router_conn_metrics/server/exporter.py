"""HTTP exposition of aggregate state.

One FastMCP app (streamable HTTP transport) serves:
- ``GET /metrics``: Prometheus text format for scraping
- MCP tools: JSON snapshots of login counters and session-duration histograms
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.requests import Request
from starlette.responses import Response

from router_conn_metrics.core.aggregator import Aggregator
from router_conn_metrics.tools.metrics import (
    login_counts_impl,
    overview_impl,
    session_durations_impl,
)

LOGGER = logging.getLogger(__name__)


def render_metrics(aggregator: Aggregator) -> tuple[bytes, str]:
    """Return the scrape body and its content type."""
    return generate_latest(aggregator.registry), CONTENT_TYPE_LATEST


def register_metric_tools(mcp: FastMCP, aggregator: Aggregator) -> None:
    """Register read-only aggregate tools on the MCP server."""

    @mcp.tool()
    def login_counts(
        device: str | None = None,
        protocol: str | None = None,
        asn: str | None = None,
    ) -> dict[str, Any]:
        """Return login counters per (device, protocol, asn), optionally filtered.

        Parameters
        ----------
        device:
            Device display name (alias) or syslog host identifier.
        protocol:
            Monitored protocol tag, e.g. "ovpn" or "sstp".
        asn:
            Autonomous system number of the remote address.

        Returns
        -------
        dict:
            {"count": int, "total": float, "series": list[dict]}
        """
        return login_counts_impl(aggregator, device=device, protocol=protocol, asn=asn)

    @mcp.tool()
    def session_durations(
        device: str | None = None,
        protocol: str | None = None,
        asn: str | None = None,
        include_buckets: bool = False,
    ) -> dict[str, Any]:
        """Return closed-session duration summaries (count, sum, mean, optional buckets)."""
        return session_durations_impl(
            aggregator,
            device=device,
            protocol=protocol,
            asn=asn,
            include_buckets=include_buckets,
        )

    @mcp.tool()
    def connection_metrics_overview() -> dict[str, Any]:
        """Return logins and closed sessions per device and per protocol."""
        return overview_impl(aggregator)


def build_exporter(aggregator: Aggregator, *, host: str, port: int) -> FastMCP:
    """Build the HTTP app exposing ``aggregator``."""
    mcp = FastMCP("router-conn-metrics", host=host, port=port, json_response=True)

    @mcp.custom_route("/metrics", methods=["GET"])
    async def metrics(request: Request) -> Response:
        body, content_type = render_metrics(aggregator)
        return Response(body, media_type=content_type)

    register_metric_tools(mcp, aggregator)
    return mcp


async def serve_exporter(mcp: FastMCP) -> None:
    """Serve until the HTTP server stops; returning at all is unexpected for the caller."""
    LOGGER.info("metrics exporter on %s:%d", mcp.settings.host, mcp.settings.port)
    await mcp.run_streamable_http_async()
