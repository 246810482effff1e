"""Exception taxonomy for the inventory run."""

from __future__ import annotations

from typing import Optional


class InventoryError(Exception):
    """Base class for all inventory errors."""


class ConfigError(InventoryError):
    """The configuration file is missing or invalid."""


class ApiError(InventoryError):
    """Transport, HTTP or API-level failure reported by the Cloudflare client."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiAuthError(ApiError):
    """The API rejected the credentials."""


class AuthenticationError(InventoryError):
    """Credential exchange failed before any page was fetched."""

    def __init__(self, tenant_id: str, cause: BaseException) -> None:
        super().__init__(f"authentication failed for account '{tenant_id}': {cause}")
        self.tenant_id = tenant_id
        self.cause = cause


class EnumerationError(InventoryError):
    """A zone page fetch failed or the account deadline expired."""

    def __init__(self, tenant_id: str, page: int, cause: BaseException) -> None:
        super().__init__(
            f"listing zones for account '{tenant_id}' failed (page {page}): {cause}"
        )
        self.tenant_id = tenant_id
        self.page = page
        self.cause = cause

    @property
    def timed_out(self) -> bool:
        return isinstance(self.cause, TimeoutError)


class ChildEnumerationWarning(InventoryError):
    """A DNS record page fetch failed for one zone.

    Recovered locally: logged, recorded on the tenant result, never raised
    out of the aggregator.
    """

    def __init__(
        self, tenant_id: str, parent_key: str, page: int, cause: BaseException
    ) -> None:
        super().__init__(
            f"listing DNS records for zone '{parent_key}' of account "
            f"'{tenant_id}' failed (page {page}): {cause}"
        )
        self.tenant_id = tenant_id
        self.parent_key = parent_key
        self.page = page
        self.cause = cause


class NoTenantsProcessedError(InventoryError):
    """Every configured account failed."""

    def __init__(self, configured: int, failures: Optional[dict[str, BaseException]] = None) -> None:
        super().__init__(
            f"no Cloudflare account could be processed ({configured} configured)"
        )
        self.configured = configured
        self.failures = dict(failures or {})


class NotificationError(InventoryError):
    """Delivering the Telegram report failed."""
