"""Command-line / environment configuration."""

from __future__ import annotations

import argparse
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass

from router_conn_metrics.core.aliases import parse_device_names
from router_conn_metrics.core.extractor import DEFAULT_PROTOCOLS

_ADDR_RE = re.compile(r"^(?:\[(?P<v6>[^\]]+)\]|(?P<host>[^:]*)):(?P<port>\d{1,5})$")


@dataclass(frozen=True, slots=True)
class ListenAddress:
    host: str
    port: int

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


@dataclass(frozen=True, slots=True)
class Settings:
    syslog_listen: ListenAddress
    http_listen: ListenAddress
    geoip_file: str
    device_names: dict[str, str]
    protocols: frozenset[str]
    log_level: str = "INFO"


def parse_listen_address(s: str) -> ListenAddress:
    """Parse ``host:port`` (IPv6 hosts in brackets)."""
    m = _ADDR_RE.match(s.strip())
    if not m:
        raise argparse.ArgumentTypeError(
            f"listen address must look like host:port (e.g., 0.0.0.0:2514), got {s!r}"
        )
    port = int(m.group("port"))
    if port > 65535:
        raise argparse.ArgumentTypeError(f"port out of range in {s!r}")
    host = m.group("v6") or m.group("host") or "0.0.0.0"
    return ListenAddress(host=host, port=port)


def _parse_protocols(s: str) -> frozenset[str]:
    names = frozenset(p.strip().lower() for p in s.split(",") if p.strip())
    if not names:
        raise argparse.ArgumentTypeError("At least one protocol must be provided")
    return names


def _parse_device_names(s: str) -> dict[str, str]:
    try:
        return parse_device_names(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    env = os.environ
    p = argparse.ArgumentParser(
        description="Export router VPN login/logout syslog events as Prometheus metrics."
    )
    p.add_argument(
        "--syslog-listen",
        type=parse_listen_address,
        default=env.get("ROUTER_CONN_SYSLOG_LISTEN", "0.0.0.0:2514"),
        help="syslog TCP listen ip:port (default: 0.0.0.0:2514)",
    )
    p.add_argument(
        "--http-listen",
        type=parse_listen_address,
        default=env.get("ROUTER_CONN_HTTP_LISTEN", "0.0.0.0:8122"),
        help="http listen ip:port for /metrics and MCP (default: 0.0.0.0:8122)",
    )
    p.add_argument(
        "--geoip-file",
        default=env.get("ROUTER_CONN_GEOIP_FILE", "GeoLite2-ASN.mmdb"),
        help="path to the geoip ASN database",
    )
    p.add_argument(
        "--device-names",
        type=_parse_device_names,
        default=env.get("ROUTER_CONN_DEVICE_NAMES", ""),
        help="comma separated list of ipaddr/host pairs used to look up device name "
        "(e.g. '10.11.12.13/router1')",
    )
    p.add_argument(
        "--protocols",
        type=_parse_protocols,
        default=env.get("ROUTER_CONN_PROTOCOLS", ",".join(sorted(DEFAULT_PROTOCOLS))),
        help="comma separated monitored protocol tags (default: ovpn,sstp)",
    )
    p.add_argument(
        "--log-level",
        default=env.get("ROUTER_CONN_LOG_LEVEL", "INFO"),
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        type=str.upper,
    )
    return p


def parse_settings(argv: Sequence[str] | None = None) -> Settings:
    """Parse argv (and environment defaults) into Settings."""
    args = build_parser().parse_args(argv)
    return Settings(
        syslog_listen=args.syslog_listen,
        http_listen=args.http_listen,
        geoip_file=args.geoip_file,
        device_names=args.device_names,
        protocols=args.protocols,
        log_level=args.log_level,
    )
