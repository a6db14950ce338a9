from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import geoip2.errors
import pytest

from router_conn_metrics.core.aggregator import Aggregator
from router_conn_metrics.core.aliases import DeviceAliasResolver
from router_conn_metrics.core.enrichment import EnrichmentLookup
from router_conn_metrics.core.extractor import EventExtractor
from router_conn_metrics.core.models import RawMessageRecord
from router_conn_metrics.core.pipeline import PipelineDriver


class FakeAsnReader:
    """In-memory stand-in for geoip2.database.Reader.asn()."""

    def __init__(self, table: dict[str, int | None], database_type: str = "GeoLite2-ASN") -> None:
        self.table = table
        self.database_type = database_type
        self.queries: list[str] = []
        self.closed = False

    def asn(self, ip_address: Any) -> SimpleNamespace:
        key = str(ip_address)
        self.queries.append(key)
        if key not in self.table:
            raise geoip2.errors.AddressNotFoundError(f"The address {key} is not in the database.")
        return SimpleNamespace(
            autonomous_system_number=self.table[key],
            autonomous_system_organization="Example Org",
            ip_address=key,
        )

    def metadata(self) -> SimpleNamespace:
        return SimpleNamespace(database_type=self.database_type)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def asn_reader_cls() -> type[FakeAsnReader]:
    return FakeAsnReader


@pytest.fixture
def asn_reader() -> FakeAsnReader:
    return FakeAsnReader({"81.2.69.142": 3215, "203.0.113.7": 64500, "2001:db8::1": 64501})


@pytest.fixture
def enrichment(asn_reader: FakeAsnReader) -> EnrichmentLookup:
    return EnrichmentLookup(asn_reader)


@pytest.fixture
def aggregator() -> Aggregator:
    return Aggregator()


@pytest.fixture
def driver(enrichment: EnrichmentLookup, aggregator: Aggregator) -> PipelineDriver:
    return PipelineDriver(
        extractor=EventExtractor(),
        aliases=DeviceAliasResolver({"10.11.12.13": "router1"}),
        enrichment=enrichment,
        aggregator=aggregator,
    )


@pytest.fixture
def make_record() -> Callable[..., RawMessageRecord]:
    def _make(
        message: str,
        *,
        tag: str = "ovpn,info",
        host: str = "10.11.12.13",
    ) -> RawMessageRecord:
        return RawMessageRecord(host_identifier=host, application_tag=tag, message_text=message)

    return _make
