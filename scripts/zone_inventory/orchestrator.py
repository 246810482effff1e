"""Run every configured account and merge the results."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Union

from scripts.zone_inventory.aggregator import TenantAggregator
from scripts.zone_inventory.errors import NoTenantsProcessedError
from scripts.zone_inventory.models import RunResult, TenantCredentials, TenantResult

logger = logging.getLogger("zone_inventory.orchestrator")

_Outcome = Union[TenantResult, Exception]


class RunOrchestrator:
    """Isolate per-account failures; only a run where every account fails is fatal."""

    def __init__(self, aggregator: TenantAggregator, tenant_workers: int = 1) -> None:
        self.aggregator = aggregator
        self.tenant_workers = tenant_workers

    def _process(self, tenant: TenantCredentials) -> _Outcome:
        logger.info(
            "Fetching zones for account '%s'", tenant.tenant_id,
            extra={"tenant": tenant.tenant_id},
        )
        try:
            return self.aggregator.aggregate(tenant.tenant_id, tenant.api_token)
        except Exception as exc:
            return exc

    def run(self, tenants: Sequence[TenantCredentials]) -> RunResult:
        """Enumerate ``tenants`` and merge rows and summaries in configured order.

        Raises NoTenantsProcessedError when no account succeeded.
        """
        tenants = list(tenants)
        if self.tenant_workers > 1 and len(tenants) > 1:
            with ThreadPoolExecutor(max_workers=self.tenant_workers) as pool:
                outcomes = list(pool.map(self._process, tenants))
        else:
            outcomes = [self._process(t) for t in tenants]

        result = RunResult(configured_count=len(tenants))
        for tenant, outcome in zip(tenants, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(
                    "Skipping account '%s': %s", tenant.tenant_id, outcome,
                    extra={"tenant": tenant.tenant_id},
                )
                result.failures[tenant.tenant_id] = outcome
                continue
            result.rows.extend(outcome.rows)
            result.summaries[tenant.tenant_id] = outcome.summary
            result.processed_count += 1

        logger.info(
            "Processed %d of %d accounts, %d DNS records",
            result.processed_count,
            result.configured_count,
            len(result.rows),
            extra={
                "processed": result.processed_count,
                "configured": result.configured_count,
                "rows": len(result.rows),
            },
        )
        if result.processed_count == 0:
            raise NoTenantsProcessedError(result.configured_count, result.failures)
        return result
