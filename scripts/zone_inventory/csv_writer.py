"""CSV export of flattened DNS record rows."""

from __future__ import annotations

import csv
import logging
from io import StringIO
from pathlib import Path
from typing import Iterable

from scripts.zone_inventory.models import FlattenedRecord

logger = logging.getLogger("zone_inventory.csv")

# Fixed export order; also the header row.
COLUMNS = (
    "tenant_id",
    "parent_key",
    "parent_status",
    "child_name",
    "child_kind",
    "child_value",
    "notes",
    "proxy_flag",
    "tls_mode",
    "parent_ns_info",
)


def _to_row(record: FlattenedRecord) -> list[str]:
    return [getattr(record, column) for column in COLUMNS]


def build_csv(rows: Iterable[FlattenedRecord]) -> str:
    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(COLUMNS)
    for record in rows:
        writer.writerow(_to_row(record))
    return buf.getvalue()


def write_csv(path: str, rows: Iterable[FlattenedRecord]) -> int:
    """Write the export to ``path`` and return the number of data rows."""
    rows = list(rows)
    if not rows:
        logger.info("No DNS records found, CSV will only contain the header")
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(build_csv(rows))
    logger.info("Wrote CSV export", extra={"rows": len(rows)})
    return len(rows)
