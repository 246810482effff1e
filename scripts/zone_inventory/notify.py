"""Telegram delivery of the per-account summary and the CSV export."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Mapping, Optional

import requests

from scripts.zone_inventory.config import TelegramConfig
from scripts.zone_inventory.errors import NotificationError
from scripts.zone_inventory.models import TenantSummary

logger = logging.getLogger("zone_inventory.notify")

_MARKDOWN_V2_SPECIAL = set("_*[]()~`>#+-=|{}.!\\")


def escape_markdown_v2(text: str) -> str:
    """Escape every character MarkdownV2 treats as markup."""
    return "".join(f"\\{ch}" if ch in _MARKDOWN_V2_SPECIAL else ch for ch in text)


def _escape_code(text: str) -> str:
    # Inside ``` blocks only backslash and backtick are special.
    return text.replace("\\", "\\\\").replace("`", "\\`")


def build_summary_message(
    title: str,
    summaries: Mapping[str, TenantSummary],
    generated_at: Optional[datetime] = None,
) -> str:
    """Format the per-account statistics as a MarkdownV2 message."""
    generated_at = generated_at or datetime.now()
    lines: list[str] = []
    grand_total = 0
    for account, summary in summaries.items():
        grand_total += summary.total_parents
        lines.append(f"Account: {account}")
        lines.append(f"  Total zones: {summary.total_parents}")
        lines.append("  By status:")
        for status in sorted(summary.status_counts):
            lines.append(f"    - {status}: {summary.status_counts[status]}")
        lines.append(f"  Zones with DNS records: {summary.parents_with_children}")
        lines.append("")
    lines.append(f"Total zones across all accounts: {grand_total}")

    header = (
        f"*{escape_markdown_v2(title)}*\n\n"
        + escape_markdown_v2(
            f"Cloudflare zone report ({generated_at.strftime('%Y-%m-%d %H:%M:%S')})"
        )
        + "\n"
    )
    return header + "```\n" + _escape_code("\n".join(lines)) + "\n```\n"


class TelegramNotifier:
    """Minimal Bot API client: one text message, one document."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_base_url: str = "https://api.telegram.org",
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        try:
            self._chat_id = int(str(chat_id).strip())
        except ValueError as exc:
            raise NotificationError(f"invalid Telegram chat id '{chat_id}'") from exc
        self._url = f"{api_base_url.rstrip('/')}/bot{bot_token}"
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def _call(self, method: str, **kwargs) -> dict:
        try:
            resp = self._session.post(
                f"{self._url}/{method}", timeout=self._timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise NotificationError(f"Telegram {method} failed: {type(exc).__name__}") from exc
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if resp.status_code >= 400 or not data.get("ok", False):
            raise NotificationError(
                f"Telegram {method} failed (HTTP {resp.status_code}): "
                f"{data.get('description', 'no description')}"
            )
        return data

    def send_message(self, text: str) -> None:
        self._call(
            "sendMessage",
            data={"chat_id": self._chat_id, "text": text, "parse_mode": "MarkdownV2"},
        )
        logger.info("Telegram summary message sent")

    def send_document(self, path: str, filename: Optional[str] = None, caption: str = "") -> None:
        filename = filename or os.path.basename(path)
        try:
            with open(path, "rb") as f:
                self._call(
                    "sendDocument",
                    data={"chat_id": self._chat_id, "caption": caption},
                    files={"document": (filename, f, "text/csv")},
                )
        except OSError as exc:
            raise NotificationError(f"cannot open '{path}' for upload: {exc}") from exc
        logger.info("Telegram document %s sent", filename)

    def close(self) -> None:
        self._session.close()


def send_report(
    config: TelegramConfig,
    csv_path: str,
    summaries: Mapping[str, TenantSummary],
    generated_at: Optional[datetime] = None,
) -> None:
    """Send the summary message, then the CSV as an attachment."""
    notifier = TelegramNotifier(config.bot_token, config.chat_id, config.api_base_url)
    try:
        notifier.send_message(build_summary_message(config.title, summaries, generated_at))
        notifier.send_document(csv_path, caption=f"{config.title} (CSV)")
    finally:
        notifier.close()
