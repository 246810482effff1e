"""Configuration from a JSON file, with environment overrides and secret references.

File shape::

    {
      "cloudflare_accounts": [{"name": "main", "api_token": "..."}],
      "telegram_config": {"bot_token": "...", "chat_id": "123456"},
      "settings": {"output_path": "cloudflare_domains.csv", "timeout_seconds": 60}
    }

Tokens may be literals or ``aws-secret://`` / ``gcp-secret://`` references.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from dotenv import load_dotenv

from scripts.zone_inventory.client import DEFAULT_API_BASE_URL
from scripts.zone_inventory.errors import ConfigError
from scripts.zone_inventory.models import TenantCredentials
from scripts.zone_inventory.secrets import resolve_secret

DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_OUTPUT_PATH = "cloudflare_domains.csv"


@dataclass(frozen=True)
class AccountConfig:
    name: str
    api_token: str


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str = ""
    chat_id: Union[str, int] = ""  # numeric ids are accepted in the file
    api_base_url: str = "https://api.telegram.org"
    title: str = "Cloudflare domain daily report"

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


@dataclass(frozen=True)
class SchedulerConfig:
    hour: int = 8
    minute: int = 0
    timezone: str = "UTC"
    misfire_grace_time: int = 3600


@dataclass(frozen=True)
class InventorySettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_seconds: float = 60.0  # one deadline for a whole account
    request_timeout_seconds: float = 30.0
    zone_page_size: int = 50
    record_page_size: int = 100
    record_workers: int = 1  # 1 = fetch DNS records zone by zone
    tenant_workers: int = 1  # 1 = process accounts one after another
    output_path: str = DEFAULT_OUTPUT_PATH


@dataclass(frozen=True)
class InventoryConfig:
    accounts: list[AccountConfig]
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    settings: InventorySettings = field(default_factory=InventorySettings)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    def tenants(self) -> list[TenantCredentials]:
        return [TenantCredentials(a.name, a.api_token) for a in self.accounts]


def _read_json(path: str) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"config file '{path}' not found") from exc
    except (OSError, ValueError) as exc:
        raise ConfigError(f"cannot read config file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file '{path}' must contain a JSON object")
    return data


def _load_accounts(raw: Any) -> list[AccountConfig]:
    if not isinstance(raw, list):
        raise ConfigError("'cloudflare_accounts' must be a list")
    accounts: list[AccountConfig] = []
    seen: set[str] = set()
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigError(f"cloudflare_accounts[{i}] must be an object")
        name = str(entry.get("name") or "").strip()
        token = str(entry.get("api_token") or "").strip()
        if not name or not token:
            raise ConfigError(f"cloudflare_accounts[{i}] needs both 'name' and 'api_token'")
        if name in seen:
            raise ConfigError(f"duplicate account name '{name}'")
        seen.add(name)
        accounts.append(AccountConfig(name=name, api_token=resolve_secret(token)))
    return accounts


# Annotations are strings under postponed evaluation.
_FIELD_TYPES = {"int": (int,), "float": (int, float), "str": (str,)}
_TYPE_NAMES = {"int": "an integer", "float": "a number", "str": "a string"}


def _check_type(section: str, name: str, annotation: str, value: Any) -> None:
    expected = _FIELD_TYPES.get(annotation)
    if expected is None:
        return
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ConfigError(f"'{section}.{name}' must be {_TYPE_NAMES[annotation]}, got {value!r}")


def _build_dataclass(cls, raw: Any, section: str):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"'{section}' must be an object")
    known = set(cls.__dataclass_fields__)
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown keys in '{section}': {', '.join(unknown)}")
    for name, value in raw.items():
        _check_type(section, name, cls.__dataclass_fields__[name].type, value)
    try:
        return cls(**raw)
    except TypeError as exc:
        raise ConfigError(f"invalid '{section}': {exc}") from exc


def _env_overrides(settings: InventorySettings, output_path: Optional[str]) -> InventorySettings:
    values = dict(settings.__dict__)
    if os.environ.get("ZONE_INVENTORY_OUTPUT"):
        values["output_path"] = os.environ["ZONE_INVENTORY_OUTPUT"]
    if os.environ.get("ZONE_INVENTORY_TIMEOUT"):
        try:
            values["timeout_seconds"] = float(os.environ["ZONE_INVENTORY_TIMEOUT"])
        except ValueError as exc:
            raise ConfigError("ZONE_INVENTORY_TIMEOUT must be a number") from exc
    if os.environ.get("CLOUDFLARE_API_BASE_URL"):
        values["api_base_url"] = os.environ["CLOUDFLARE_API_BASE_URL"]
    if output_path:
        values["output_path"] = output_path
    return InventorySettings(**values)


def _validate(settings: InventorySettings) -> None:
    if settings.timeout_seconds <= 0:
        raise ConfigError("timeout_seconds must be positive")
    if settings.zone_page_size < 1 or settings.record_page_size < 1:
        raise ConfigError("page sizes must be at least 1")
    if settings.record_workers < 1 or settings.tenant_workers < 1:
        raise ConfigError("worker counts must be at least 1")


def _validate_schedule(schedule: SchedulerConfig) -> None:
    if not 0 <= schedule.hour <= 23 or not 0 <= schedule.minute <= 59:
        raise ConfigError("schedule hour must be 0-23 and minute 0-59")


def load_config(path: str = DEFAULT_CONFIG_PATH, output_path: Optional[str] = None) -> InventoryConfig:
    """Load the account list and report settings.

    ``.env`` is loaded first so that tokens and overrides can live there in
    local development. ``output_path`` (from the CLI) wins over everything.
    """
    load_dotenv()
    data = _read_json(path)

    accounts = _load_accounts(data.get("cloudflare_accounts", []))

    tg_raw = data.get("telegram_config") or {}
    telegram = _build_dataclass(TelegramConfig, tg_raw, "telegram_config")
    bot_token = os.environ.get("TELEGRAM_BOT_TOKEN") or telegram.bot_token
    chat_id = os.environ.get("TELEGRAM_CHAT_ID") or str(telegram.chat_id or "")
    telegram = TelegramConfig(
        bot_token=resolve_secret(bot_token) if bot_token else "",
        chat_id=chat_id.strip(),
        api_base_url=telegram.api_base_url,
        title=telegram.title,
    )

    settings = _build_dataclass(InventorySettings, data.get("settings"), "settings")
    settings = _env_overrides(settings, output_path)
    _validate(settings)

    scheduler = _build_dataclass(SchedulerConfig, data.get("schedule"), "schedule")
    _validate_schedule(scheduler)

    return InventoryConfig(
        accounts=accounts,
        telegram=telegram,
        settings=settings,
        scheduler=scheduler,
    )
