"""Records exchanged between the API client, the aggregator and the report sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from scripts.zone_inventory.errors import ChildEnumerationWarning


@dataclass(frozen=True)
class TenantCredentials:
    tenant_id: str
    api_token: str


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    status: str
    name_servers: tuple[str, ...] = ()
    ssl_mode: Optional[str] = None  # None = not reported by the API

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Zone":
        """Build a Zone from a Cloudflare zone object.

        The SSL mode shows up either as a plain string under ``ssl`` or as a
        setting object ``{"value": ...}`` under ``ssl`` or ``ssl_setting``
        depending on the API version.
        """
        ssl_mode = None
        for key in ("ssl", "ssl_setting"):
            raw = data.get(key)
            if isinstance(raw, dict):
                raw = raw.get("value")
            if raw:
                ssl_mode = str(raw)
                break
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            status=str(data.get("status", "")),
            name_servers=tuple(data.get("name_servers") or ()),
            ssl_mode=ssl_mode,
        )


@dataclass(frozen=True)
class DnsRecord:
    id: str
    name: str
    type: str
    content: str
    proxied: Optional[bool] = None  # None = absent or not a boolean: proxying not applicable

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DnsRecord":
        proxied = data.get("proxied")
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", ""),
            content=data.get("content", ""),
            proxied=proxied if isinstance(proxied, bool) else None,
        )


@dataclass(frozen=True)
class FlattenedRecord:
    tenant_id: str
    parent_key: str
    parent_status: str
    child_name: str
    child_kind: str
    child_value: str
    notes: str
    proxy_flag: str
    tls_mode: str
    parent_ns_info: str


@dataclass(frozen=True)
class TenantSummary:
    total_parents: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)
    parents_with_children: int = 0


class SummaryAccumulator:
    """Mutable counters for one account, owned by a single thread."""

    def __init__(self) -> None:
        self.total_parents = 0
        self.status_counts: dict[str, int] = {}
        self.parents_with_children = 0

    def record_parent(self, status: str) -> None:
        self.status_counts[status] = self.status_counts.get(status, 0) + 1
        self.total_parents += 1

    def record_children_found(self) -> None:
        self.parents_with_children += 1

    def freeze(self) -> TenantSummary:
        return TenantSummary(
            total_parents=self.total_parents,
            status_counts=dict(self.status_counts),
            parents_with_children=self.parents_with_children,
        )


@dataclass(frozen=True)
class TenantResult:
    tenant_id: str
    rows: tuple[FlattenedRecord, ...]
    summary: TenantSummary
    warnings: tuple[ChildEnumerationWarning, ...] = ()


@dataclass
class RunResult:
    rows: list[FlattenedRecord] = field(default_factory=list)
    summaries: dict[str, TenantSummary] = field(default_factory=dict)
    processed_count: int = 0
    configured_count: int = 0
    failures: dict[str, Exception] = field(default_factory=dict)
