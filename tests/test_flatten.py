from conftest import make_record, make_zone

from scripts.zone_inventory.flatten import (
    NOT_PROXIED,
    NS_NONE,
    PROXIED,
    TLS_UNKNOWN,
    flatten,
    ns_info,
    proxy_flag,
    tls_mode,
)


def test_proxy_flag_tri_state():
    assert proxy_flag(True) == PROXIED == "true"
    assert proxy_flag(False) == NOT_PROXIED == "false"
    assert proxy_flag(None) == NOT_PROXIED


def test_zone_sentinels_when_data_missing():
    zone = make_zone("bare.example", name_servers=(), ssl_mode=None)
    assert tls_mode(zone) == TLS_UNKNOWN == "unknown"
    assert ns_info(zone) == NS_NONE == "none provided"


def test_zone_values_when_present():
    zone = make_zone("full.example", name_servers=("a.ns", "b.ns"), ssl_mode="strict")
    assert tls_mode(zone) == "strict"
    assert ns_info(zone) == "a.ns, b.ns"


def test_flatten_one_row_per_record():
    zone = make_zone("p1.example", "active", name_servers=("a.ns",), ssl_mode="flexible")
    records = [
        make_record("www.p1.example", "A", "192.0.2.1", proxied=True),
        make_record("txt.p1.example", "TXT", "v=spf1 -all", proxied=False),
        make_record("mx.p1.example", "MX", "mail.p1.example", proxied=None),
    ]
    rows = flatten("T1", zone, records)

    assert [r.child_name for r in rows] == ["www.p1.example", "txt.p1.example", "mx.p1.example"]
    assert [r.proxy_flag for r in rows] == ["true", "false", "false"]
    first = rows[0]
    assert first.tenant_id == "T1"
    assert first.parent_key == "p1.example"
    assert first.parent_status == "active"
    assert first.child_kind == "A"
    assert first.child_value == "192.0.2.1"
    assert first.notes == ""
    assert first.tls_mode == "flexible"
    assert first.parent_ns_info == "a.ns"


def test_flatten_without_records_emits_no_placeholder():
    assert flatten("T1", make_zone("empty.example"), []) == []


def test_flatten_does_not_mutate_inputs():
    zone = make_zone("p1.example")
    records = [make_record("www.p1.example")]
    snapshot = list(records)
    flatten("T1", zone, records)
    assert records == snapshot
