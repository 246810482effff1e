"""Join a zone with its DNS records into flat export rows."""

from __future__ import annotations

from typing import Iterable, Optional

from scripts.zone_inventory.models import DnsRecord, FlattenedRecord, Zone

PROXIED = "true"
NOT_PROXIED = "false"
TLS_UNKNOWN = "unknown"
NS_NONE = "none provided"


def proxy_flag(proxied: Optional[bool]) -> str:
    """Map the tri-state ``proxied`` field; absent means not applicable."""
    if proxied is True:
        return PROXIED
    return NOT_PROXIED


def tls_mode(zone: Zone) -> str:
    return zone.ssl_mode or TLS_UNKNOWN


def ns_info(zone: Zone) -> str:
    if not zone.name_servers:
        return NS_NONE
    return ", ".join(zone.name_servers)


def flatten(
    tenant_id: str, zone: Zone, records: Iterable[DnsRecord]
) -> list[FlattenedRecord]:
    """One row per DNS record; a zone without records yields no rows."""
    zone_tls = tls_mode(zone)
    zone_ns = ns_info(zone)
    return [
        FlattenedRecord(
            tenant_id=tenant_id,
            parent_key=zone.name,
            parent_status=zone.status,
            child_name=record.name,
            child_kind=record.type,
            child_value=record.content,
            notes="",
            proxy_flag=proxy_flag(record.proxied),
            tls_mode=zone_tls,
            parent_ns_info=zone_ns,
        )
        for record in records
    ]
