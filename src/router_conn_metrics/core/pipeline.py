"""Pipeline driver: raw records -> events -> enrichment -> aggregates.

A single consumer drains the record stream in arrival order. Failures that concern one
record (bad duration, unparsable or unknown address) are logged and that record is
dropped; the stream keeps going.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass

from .aggregator import Aggregator
from .aliases import DeviceAliasResolver
from .enrichment import EnrichmentLookup
from .errors import EnrichmentError, MalformedDuration
from .extractor import EventExtractor, protocol_of
from .models import Ignored, LabelSet, Login, Logout, RawMessageRecord

LOGGER = logging.getLogger(__name__)


async def iter_queue(queue: asyncio.Queue[RawMessageRecord]) -> AsyncIterator[RawMessageRecord]:
    """Yield records from ``queue`` forever, marking each one done after it was handled."""
    while True:
        record = await queue.get()
        try:
            yield record
        finally:
            queue.task_done()


@dataclass(frozen=True, slots=True)
class PipelineDriver:
    extractor: EventExtractor
    aliases: DeviceAliasResolver
    enrichment: EnrichmentLookup
    aggregator: Aggregator

    def process(self, record: RawMessageRecord) -> None:
        """Drive one record through extraction, enrichment and aggregation."""
        device = self.aliases.resolve(record.host_identifier)

        try:
            event = self.extractor.extract(record)
        except MalformedDuration as e:
            LOGGER.error("Dropping record: %s (device=%s message=%r)", e, device, record.message_text)
            return

        if isinstance(event, Ignored):
            return

        try:
            network_id = self.enrichment.resolve_network_id(event.remote_addr)
        except EnrichmentError as e:
            LOGGER.error("Dropping record: %s (device=%s address=%r)", e, device, e.address)
            return

        labels = LabelSet(
            device=device,
            protocol=protocol_of(record.application_tag),
            network_id=str(network_id),
        )
        if isinstance(event, Login):
            self.aggregator.record_login(labels)
        elif isinstance(event, Logout):
            self.aggregator.record_logout(labels, event.duration_seconds)

    async def run(self, records: AsyncIterable[RawMessageRecord]) -> None:
        """Consume ``records`` one at a time until the source is exhausted."""
        async for record in records:
            self.process(record)
