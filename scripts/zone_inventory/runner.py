"""One complete report: enumerate, export, notify."""

from __future__ import annotations

import logging
from typing import Optional

from scripts.zone_inventory.aggregator import TenantAggregator
from scripts.zone_inventory.config import InventoryConfig
from scripts.zone_inventory.csv_writer import write_csv
from scripts.zone_inventory.errors import NotificationError
from scripts.zone_inventory.models import RunResult
from scripts.zone_inventory.notify import send_report
from scripts.zone_inventory.orchestrator import RunOrchestrator

logger = logging.getLogger("zone_inventory.runner")


def build_orchestrator(config: InventoryConfig) -> RunOrchestrator:
    aggregator = TenantAggregator(config.settings)
    return RunOrchestrator(aggregator, tenant_workers=config.settings.tenant_workers)


def run_report(config: InventoryConfig, orchestrator: Optional[RunOrchestrator] = None) -> RunResult:
    """Produce the CSV export and send the Telegram report.

    NoTenantsProcessedError propagates and nothing is written. A failed
    notification is logged; the CSV stays on disk.
    """
    orchestrator = orchestrator or build_orchestrator(config)
    result = orchestrator.run(config.tenants())

    output_path = config.settings.output_path
    write_csv(output_path, result.rows)

    if config.telegram.enabled:
        try:
            send_report(config.telegram, output_path, result.summaries)
        except NotificationError as exc:
            logger.warning("Cannot send Telegram report: %s", exc)
    else:
        logger.info("Telegram bot_token or chat_id missing, skipping notification")

    if result.failures:
        logger.warning(
            "%d of %d accounts failed: %s",
            len(result.failures),
            result.configured_count,
            ", ".join(result.failures),
            extra={"processed": result.processed_count, "configured": result.configured_count},
        )
    return result
