"""Per-account enumeration: zones, then DNS records per zone."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Protocol

from scripts.zone_inventory.client import CloudflareClient
from scripts.zone_inventory.config import InventorySettings
from scripts.zone_inventory.errors import (
    ApiError,
    AuthenticationError,
    ChildEnumerationWarning,
    EnumerationError,
)
from scripts.zone_inventory.flatten import flatten
from scripts.zone_inventory.models import (
    DnsRecord,
    FlattenedRecord,
    SummaryAccumulator,
    TenantResult,
    Zone,
)
from scripts.zone_inventory.pagination import Deadline, DeadlineExceeded, Page, PageCursor

logger = logging.getLogger("zone_inventory.aggregator")


class ApiClient(Protocol):
    def verify_token(self) -> None: ...

    def list_zones(self, page: int, per_page: int) -> Page: ...

    def list_dns_records(self, zone_id: str, page: int, per_page: int) -> Page: ...

    def close(self) -> None: ...


ClientFactory = Callable[[str, Deadline], ApiClient]

# (records, warning) for one zone; warning is set when record listing failed.
_ZoneRecords = tuple[list[DnsRecord], Optional[ChildEnumerationWarning]]


class TenantAggregator:
    """Build the flattened rows and the summary for one account."""

    def __init__(
        self,
        settings: Optional[InventorySettings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings or InventorySettings()
        self._client_factory = client_factory or self._default_client

    def _default_client(self, api_token: str, deadline: Deadline) -> ApiClient:
        return CloudflareClient(
            api_token,
            base_url=self.settings.api_base_url,
            timeout_seconds=self.settings.request_timeout_seconds,
            deadline=deadline,
        )

    def aggregate(self, tenant_id: str, credentials: str) -> TenantResult:
        """Enumerate one account.

        Raises AuthenticationError when the token cannot be verified and
        EnumerationError when a zone page fails or the account deadline
        expires. Failures listing one zone's DNS records are logged and
        recorded as warnings on the result.
        """
        started = time.monotonic()
        deadline = Deadline(self.settings.timeout_seconds)
        client = self._client_factory(credentials, deadline)
        try:
            try:
                client.verify_token()
            except (ApiError, DeadlineExceeded) as exc:
                raise AuthenticationError(tenant_id, exc) from exc
            result = self._enumerate(tenant_id, client)
        finally:
            client.close()

        logger.info(
            "Account '%s' done: %d zones, %d with DNS records, %d rows",
            tenant_id,
            result.summary.total_parents,
            result.summary.parents_with_children,
            len(result.rows),
            extra={
                "tenant": tenant_id,
                "zones": result.summary.total_parents,
                "rows": len(result.rows),
                "duration_s": round(time.monotonic() - started, 3),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def _enumerate(self, tenant_id: str, client: ApiClient) -> TenantResult:
        summary = SummaryAccumulator()
        rows: list[FlattenedRecord] = []
        warnings: list[ChildEnumerationWarning] = []

        zones = PageCursor(
            lambda page: client.list_zones(page, self.settings.zone_page_size)
        )
        workers = self.settings.record_workers
        pool = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for batch in zones:
                for zone in batch:
                    summary.record_parent(zone.status)

                def fetch(zone: Zone) -> _ZoneRecords:
                    return self._zone_records(tenant_id, client, zone)

                outcomes: Iterable[_ZoneRecords]
                if pool is not None:
                    outcomes = pool.map(fetch, batch)
                else:
                    outcomes = map(fetch, batch)

                # Counters and rows are only touched here, on the calling thread.
                for zone, (records, warning) in zip(batch, outcomes):
                    if warning is not None:
                        warnings.append(warning)
                        continue
                    if records:
                        summary.record_children_found()
                    rows.extend(flatten(tenant_id, zone, records))
        except Exception as exc:
            raise EnumerationError(tenant_id, zones.page, exc) from exc
        finally:
            if pool is not None:
                pool.shutdown(wait=True, cancel_futures=True)

        return TenantResult(
            tenant_id=tenant_id,
            rows=tuple(rows),
            summary=summary.freeze(),
            warnings=tuple(warnings),
        )

    def _zone_records(self, tenant_id: str, client: ApiClient, zone: Zone) -> _ZoneRecords:
        """List every DNS record of one zone; a failure leaves the zone childless."""
        records: list[DnsRecord] = []
        cursor = PageCursor(
            lambda page: client.list_dns_records(
                zone.id, page, self.settings.record_page_size
            )
        )
        try:
            for batch in cursor:
                records.extend(batch)
        except DeadlineExceeded:
            raise
        except Exception as exc:
            warning = ChildEnumerationWarning(tenant_id, zone.name, cursor.page, exc)
            logger.warning(
                "Cannot list DNS records for zone '%s' (%s) of account '%s': %s",
                zone.name,
                zone.id,
                tenant_id,
                exc,
                extra={"tenant": tenant_id, "zone": zone.name, "page": cursor.page},
            )
            return [], warning
        return records, None
