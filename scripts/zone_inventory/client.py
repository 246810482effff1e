"""Cloudflare v4 REST client: token verification, zones, DNS records."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import requests

from scripts.zone_inventory.errors import ApiAuthError, ApiError
from scripts.zone_inventory.models import DnsRecord, Zone
from scripts.zone_inventory.pagination import Deadline, DeadlineExceeded, Page

logger = logging.getLogger("zone_inventory.client")

DEFAULT_API_BASE_URL = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """One client per account. All calls share the account's deadline.

    Each thread gets its own ``requests.Session``, so record workers never
    share one. A ``session`` passed in is used as is by every thread.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 30.0,
        deadline: Optional[Deadline] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._deadline = deadline
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        self._shared = session
        if session is not None:
            session.headers.update(self._headers)
        self._local = threading.local()
        self._owned: list[requests.Session] = []
        self._lock = threading.Lock()

    def _session(self) -> requests.Session:
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self._headers)
            self._local.session = session
            with self._lock:
                self._owned.append(session)
        return session

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
        with self._lock:
            owned, self._owned = self._owned, []
        for session in owned:
            session.close()

    def _request_timeout(self) -> float:
        if self._deadline is None:
            return self._timeout
        self._deadline.check()
        return min(self._timeout, self._deadline.remaining())

    def _get(self, path: str, params: Optional[dict] = None) -> dict[str, Any]:
        """GET an API path and return the decoded envelope."""
        url = f"{self._base}{path}"
        timeout = self._request_timeout()
        try:
            resp = self._session().get(url, params=params, timeout=timeout)
        except requests.Timeout as exc:
            if self._deadline is not None and self._deadline.expired:
                raise DeadlineExceeded(
                    f"deadline of {self._deadline.seconds:g}s exceeded during GET {path}"
                ) from exc
            raise ApiError(f"GET {path} timed out after {timeout:.1f}s") from exc
        except requests.RequestException as exc:
            raise ApiError(f"GET {path} failed: {exc}") from exc

        if resp.status_code in (401, 403):
            raise ApiAuthError(
                f"GET {path} rejected with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError(
                f"GET {path} returned non-JSON body (HTTP {resp.status_code})",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise ApiError(f"GET {path} returned an unexpected body", status_code=resp.status_code)
        if resp.status_code >= 400 or not data.get("success", False):
            raise ApiError(
                f"GET {path} failed (HTTP {resp.status_code}): {_error_text(data)}",
                status_code=resp.status_code,
            )
        return data

    def verify_token(self) -> None:
        """Raise ApiAuthError unless the token is valid and active."""
        try:
            data = self._get("/user/tokens/verify")
        except ApiAuthError:
            raise
        except ApiError as exc:
            if exc.status_code is not None and exc.status_code < 500:
                raise ApiAuthError(str(exc), status_code=exc.status_code) from exc
            raise
        status = (data.get("result") or {}).get("status")
        if status != "active":
            raise ApiAuthError(f"API token status is '{status}'")

    def list_zones(self, page: int, per_page: int = 50) -> Page:
        data = self._get("/zones", params={"page": page, "per_page": per_page})
        zones = [Zone.from_api(z) for z in data.get("result") or []]
        return Page(zones, _has_more(data, page))

    def list_dns_records(self, zone_id: str, page: int, per_page: int = 100) -> Page:
        data = self._get(
            f"/zones/{zone_id}/dns_records",
            params={"page": page, "per_page": per_page},
        )
        records = [DnsRecord.from_api(r) for r in data.get("result") or []]
        return Page(records, _has_more(data, page))


def _has_more(data: dict[str, Any], page: int) -> bool:
    info = data.get("result_info") or {}
    total_pages = info.get("total_pages")
    if total_pages is None:
        return False
    return int(info.get("page", page)) < int(total_pages)


def _error_text(data: dict[str, Any]) -> str:
    errors = data.get("errors") or []
    parts = [f"{e.get('code')}: {e.get('message')}" for e in errors if isinstance(e, dict)]
    return "; ".join(parts) or "unknown error"
