"""AWS Lambda handler for the daily zone report.

Deployed behind an EventBridge schedule. The config file path comes from
``ZONE_INVENTORY_CONFIG`` (default ``config.json`` in the bundle) and the CSV
is written to ``/tmp`` unless ``ZONE_INVENTORY_OUTPUT`` says otherwise.
Tokens in the bundled config are expected to be ``aws-secret://`` references.
"""

from __future__ import annotations

import json
import logging
import os

from scripts.zone_inventory.config import DEFAULT_CONFIG_PATH, load_config
from scripts.zone_inventory.errors import InventoryError, NoTenantsProcessedError
from scripts.zone_inventory.logging_config import configure_logging
from scripts.zone_inventory.runner import run_report

logger = logging.getLogger("zone_inventory.lambda")

_LAMBDA_OUTPUT = "/tmp/cloudflare_domains.csv"


def handler(event: dict, context) -> dict:
    """Lambda entry point."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
    config_path = os.environ.get("ZONE_INVENTORY_CONFIG", DEFAULT_CONFIG_PATH)
    output_path = os.environ.get("ZONE_INVENTORY_OUTPUT") or _LAMBDA_OUTPUT

    logger.info("Lambda invoked with config=%s", config_path)
    try:
        config = load_config(config_path, output_path=output_path)
        result = run_report(config)
    except NoTenantsProcessedError as exc:
        logger.error("Report failed: %s", exc)
        return {
            "statusCode": 500,
            "body": json.dumps({
                "error": str(exc),
                "failed_accounts": sorted(exc.failures),
            }),
        }
    except InventoryError as exc:
        logger.error("Report failed: %s", exc, exc_info=True)
        return {"statusCode": 500, "body": json.dumps({"error": str(exc)})}

    return {
        "statusCode": 200,
        "body": json.dumps({
            "processed": result.processed_count,
            "configured": result.configured_count,
            "rows": len(result.rows),
            "failed_accounts": sorted(result.failures),
        }),
    }
