"""Process entrypoint.

This module wires together:
- Enrichment database, device aliases, Aggregator (shared state)
- Syslog listener -> queue -> pipeline driver (single consumer)
- HTTP exporter (/metrics + MCP tools)

and supervises the long-lived tasks: if any of them ends, the process exits non-zero.

Run locally:
    python -m router_conn_metrics --geoip-file GeoLite2-ASN.mmdb
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Sequence

from router_conn_metrics.cli import Settings, parse_settings
from router_conn_metrics.core.aggregator import Aggregator
from router_conn_metrics.core.aliases import DeviceAliasResolver
from router_conn_metrics.core.enrichment import EnrichmentLookup
from router_conn_metrics.core.errors import BackgroundTaskDied, RouterConnMetricsError
from router_conn_metrics.core.extractor import EventExtractor
from router_conn_metrics.core.listener import SyslogListener
from router_conn_metrics.core.pipeline import PipelineDriver, iter_queue
from router_conn_metrics.server.exporter import build_exporter, serve_exporter

LOGGER = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    """Configure a reasonable default logging setup on stderr."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def supervise(tasks: dict[str, Awaitable[None]]) -> None:
    """Run named long-lived tasks; raise BackgroundTaskDied as soon as one of them ends."""
    running = {asyncio.ensure_future(coro): name for name, coro in tasks.items()}
    try:
        done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
        task = next(iter(done))
        name = running[task]
        exc = None if task.cancelled() else task.exception()
        if exc is not None:
            raise BackgroundTaskDied(f"{name} task failed: {exc!r}") from exc
        raise BackgroundTaskDied(f"{name} task stopped unexpectedly")
    finally:
        for task in running:
            task.cancel()
        await asyncio.gather(*running, return_exceptions=True)


async def run(settings: Settings) -> None:
    """Initialize everything (failing fast) and serve until a task dies."""
    aggregator = Aggregator()
    aliases = DeviceAliasResolver(settings.device_names)
    extractor = EventExtractor.for_protocols(settings.protocols)

    with EnrichmentLookup.open(settings.geoip_file) as enrichment:
        listener = SyslogListener(settings.syslog_listen.host, settings.syslog_listen.port)
        await listener.start()

        driver = PipelineDriver(
            extractor=extractor,
            aliases=aliases,
            enrichment=enrichment,
            aggregator=aggregator,
        )
        exporter = build_exporter(
            aggregator, host=settings.http_listen.host, port=settings.http_listen.port
        )
        try:
            await supervise(
                {
                    "syslog listener": listener.serve_forever(),
                    "metrics exporter": serve_exporter(exporter),
                    "pipeline": driver.run(iter_queue(listener.queue)),
                }
            )
        finally:
            await listener.close()


def main(argv: Sequence[str] | None = None) -> None:
    """Parse configuration and run the exporter process."""
    settings = parse_settings(argv if argv is not None else sys.argv[1:])
    _configure_logging(settings.log_level)
    LOGGER.debug("Starting with %s", settings)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    except (RouterConnMetricsError, OSError) as e:
        LOGGER.critical("Fatal: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
