"""IP address to network id (ASN) enrichment over a MaxMind ASN database."""

from __future__ import annotations

import ipaddress
import logging
from pathlib import Path
from typing import Any, Protocol

import geoip2.database
import geoip2.errors
import maxminddb

from .errors import EnrichmentUnavailable, InvalidAddress, LookupMiss

logger = logging.getLogger(__name__)


class AsnReader(Protocol):
    """Subset of :class:`geoip2.database.Reader` used for enrichment."""

    def asn(self, ip_address: Any) -> Any: ...

    def metadata(self) -> Any: ...

    def close(self) -> None: ...


class EnrichmentLookup:
    """Resolve remote addresses to autonomous system numbers.

    The underlying reader is opened once and only read afterwards, so concurrent
    lookups need no locking.
    """

    def __init__(self, reader: AsnReader) -> None:
        self._reader = reader

    @classmethod
    def open(cls, path: str | Path) -> EnrichmentLookup:
        """Open the database at ``path``; failures are fatal for the caller."""
        try:
            reader = geoip2.database.Reader(str(path))
        except (OSError, ValueError, maxminddb.InvalidDatabaseError) as e:
            raise EnrichmentUnavailable(f"could not open ASN database {path}: {e}") from e

        database_type = reader.metadata().database_type
        if "ASN" not in database_type:
            reader.close()
            raise EnrichmentUnavailable(
                f"{path} is a {database_type} database, an ASN database is required"
            )
        logger.info("Opened %s database %s", database_type, path)
        return cls(reader)

    def resolve_network_id(self, address: str) -> int:
        """Return the ASN for ``address``.

        Raises InvalidAddress when the text is not an IP literal and LookupMiss when the
        database has no usable record for it.
        """
        try:
            ip = ipaddress.ip_address(address)
        except ValueError as e:
            raise InvalidAddress(address) from e

        try:
            record = self._reader.asn(ip)
        except geoip2.errors.AddressNotFoundError as e:
            raise LookupMiss(address, "address not found") from e
        except (geoip2.errors.GeoIP2Error, maxminddb.InvalidDatabaseError, TypeError, ValueError) as e:
            raise LookupMiss(address, str(e)) from e

        asn = record.autonomous_system_number
        if asn is None:
            raise LookupMiss(address, "record has no autonomous system number")
        return int(asn)

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> EnrichmentLookup:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
