from __future__ import annotations

from typing import Optional

import pytest

from scripts.zone_inventory.models import DnsRecord, Zone
from scripts.zone_inventory.pagination import Page


def make_zone(name: str, status: str = "active", **kwargs) -> Zone:
    return Zone(
        id=kwargs.pop("id", f"id-{name}"),
        name=name,
        status=status,
        name_servers=kwargs.pop("name_servers", ("ada.ns.cloudflare.com", "bob.ns.cloudflare.com")),
        ssl_mode=kwargs.pop("ssl_mode", "full"),
    )


def make_record(name: str, type: str = "A", content: str = "192.0.2.1", proxied: Optional[bool] = True) -> DnsRecord:
    return DnsRecord(id=f"rec-{name}-{type}", name=name, type=type, content=content, proxied=proxied)


class FakeApi:
    """In-memory stand-in for CloudflareClient with page-number pagination."""

    def __init__(
        self,
        zones: list[Zone],
        records: Optional[dict[str, list[DnsRecord]]] = None,
        auth_error: Optional[Exception] = None,
        zone_errors: Optional[dict[int, Exception]] = None,
        record_errors: Optional[dict[tuple[str, int], Exception]] = None,
    ) -> None:
        self.zones = zones
        self.records = records or {}
        self.auth_error = auth_error
        self.zone_errors = zone_errors or {}
        self.record_errors = record_errors or {}
        self.zone_pages: list[int] = []
        self.record_pages: list[tuple[str, int]] = []
        self.closed = False

    @staticmethod
    def _slice(items: list, page: int, per_page: int) -> Page:
        start = (page - 1) * per_page
        return Page(items[start : start + per_page], start + per_page < len(items))

    def verify_token(self) -> None:
        if self.auth_error is not None:
            raise self.auth_error

    def list_zones(self, page: int, per_page: int) -> Page:
        self.zone_pages.append(page)
        if page in self.zone_errors:
            raise self.zone_errors[page]
        return self._slice(self.zones, page, per_page)

    def list_dns_records(self, zone_id: str, page: int, per_page: int) -> Page:
        self.record_pages.append((zone_id, page))
        if (zone_id, page) in self.record_errors:
            raise self.record_errors[(zone_id, page)]
        return self._slice(self.records.get(zone_id, []), page, per_page)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def t1_api() -> FakeApi:
    """Account with one active zone holding two records and one empty pending zone."""
    p1 = make_zone("p1.example", "active")
    p2 = make_zone("p2.example", "pending")
    return FakeApi(
        zones=[p1, p2],
        records={
            p1.id: [
                make_record("www.p1.example", "A", "192.0.2.10", proxied=True),
                make_record("mail.p1.example", "MX", "mx.p1.example", proxied=None),
            ],
        },
    )
