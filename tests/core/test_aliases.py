from __future__ import annotations

import pytest

from router_conn_metrics.core.aliases import DeviceAliasResolver, parse_device_names


def test_configured_host_resolves_to_alias() -> None:
    resolver = DeviceAliasResolver(parse_device_names("10.11.12.13/router1,10.11.12.14/router2"))
    assert resolver.resolve("10.11.12.13") == "router1"
    assert resolver.resolve("10.11.12.14") == "router2"


def test_unknown_host_passes_through() -> None:
    resolver = DeviceAliasResolver({"10.11.12.13": "router1"})
    assert resolver.resolve("gw.example.net") == "gw.example.net"
    assert resolver.resolve("") == ""


def test_table_is_read_only() -> None:
    source = {"10.11.12.13": "router1"}
    resolver = DeviceAliasResolver(source)
    source["10.11.12.13"] = "changed"
    assert resolver.resolve("10.11.12.13") == "router1"
    with pytest.raises(TypeError):
        resolver.table["x"] = "y"  # type: ignore[index]


def test_parse_device_names_skips_empty_entries() -> None:
    assert parse_device_names("") == {}
    assert parse_device_names(" , 10.0.0.1/core ,") == {"10.0.0.1": "core"}


@pytest.mark.parametrize("spec", ["10.0.0.1", "10.0.0.1/", "/router", "10.0.0.1/a/b"])
def test_parse_device_names_rejects_malformed_pairs(spec: str) -> None:
    with pytest.raises(ValueError):
        parse_device_names(spec)
