import threading

import pytest
import requests

from scripts.zone_inventory.client import CloudflareClient
from scripts.zone_inventory.errors import ApiAuthError, ApiError
from scripts.zone_inventory.pagination import Deadline, DeadlineExceeded


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response()
        return response

    def close(self):
        self.closed = True


def _envelope(result, page=1, total_pages=1, success=True):
    return {
        "success": success,
        "errors": [],
        "result": result,
        "result_info": {"page": page, "per_page": 50, "total_pages": total_pages},
    }


def _client(session, **kwargs):
    return CloudflareClient("secret-token", base_url="https://cf.test/client/v4/", session=session, **kwargs)


def test_sets_bearer_auth_header():
    session = FakeSession()
    _client(session)
    assert session.headers["Authorization"] == "Bearer secret-token"


def test_list_zones_parses_page_and_has_more():
    session = FakeSession(FakeResponse(200, _envelope(
        [{"id": "z1", "name": "a.example", "status": "active", "name_servers": ["x.ns"], "ssl": "full"}],
        page=1,
        total_pages=3,
    )))
    page = _client(session).list_zones(1, per_page=50)

    assert page.has_more is True
    assert [z.name for z in page.items] == ["a.example"]
    assert page.items[0].ssl_mode == "full"
    assert session.calls[0]["url"] == "https://cf.test/client/v4/zones"
    assert session.calls[0]["params"] == {"page": 1, "per_page": 50}


def test_last_page_has_no_more():
    session = FakeSession(FakeResponse(200, _envelope([], page=3, total_pages=3)))
    assert _client(session).list_zones(3).has_more is False


def test_missing_result_info_means_single_page():
    session = FakeSession(FakeResponse(200, {"success": True, "result": [{"id": "r1", "name": "www", "type": "A", "content": "192.0.2.1"}]}))
    page = _client(session).list_dns_records("z1", 1)
    assert page.has_more is False
    assert page.items[0].proxied is None
    assert session.calls[0]["url"].endswith("/zones/z1/dns_records")
    assert session.calls[0]["params"] == {"page": 1, "per_page": 100}


def test_unauthorized_raises_auth_error():
    session = FakeSession(FakeResponse(403, {"success": False, "errors": [{"code": 9109, "message": "Unauthorized"}]}))
    with pytest.raises(ApiAuthError) as excinfo:
        _client(session).list_zones(1)
    assert excinfo.value.status_code == 403


def test_api_failure_envelope_raises_api_error_with_messages():
    session = FakeSession(FakeResponse(200, {"success": False, "errors": [{"code": 1000, "message": "bad zone"}]}))
    with pytest.raises(ApiError, match="1000: bad zone"):
        _client(session).list_dns_records("z1", 1)


def test_non_json_body_raises_api_error():
    session = FakeSession(FakeResponse(502, None))
    with pytest.raises(ApiError) as excinfo:
        _client(session).list_zones(1)
    assert excinfo.value.status_code == 502


def test_transport_error_raises_api_error():
    session = FakeSession(requests.ConnectionError("connection refused"))
    with pytest.raises(ApiError, match="connection refused"):
        _client(session).list_zones(1)


def test_verify_token_accepts_active_token():
    session = FakeSession(FakeResponse(200, {"success": True, "result": {"id": "t", "status": "active"}}))
    _client(session).verify_token()
    assert session.calls[0]["url"].endswith("/user/tokens/verify")


def test_verify_token_rejects_inactive_token():
    session = FakeSession(FakeResponse(200, {"success": True, "result": {"id": "t", "status": "disabled"}}))
    with pytest.raises(ApiAuthError, match="disabled"):
        _client(session).verify_token()


def test_verify_token_maps_client_errors_to_auth_errors():
    session = FakeSession(FakeResponse(400, {"success": False, "errors": [{"code": 6003, "message": "Invalid request headers"}]}))
    with pytest.raises(ApiAuthError):
        _client(session).verify_token()


def test_request_timeout_is_capped_by_deadline():
    session = FakeSession(FakeResponse(200, _envelope([])))
    _client(session, timeout_seconds=30, deadline=Deadline(5)).list_zones(1)
    assert 0 < session.calls[0]["timeout"] <= 5


def test_expired_deadline_fails_before_sending():
    session = FakeSession()
    with pytest.raises(DeadlineExceeded):
        _client(session, deadline=Deadline(0)).list_zones(1)
    assert session.calls == []


def test_timeout_after_deadline_is_a_deadline_error():
    deadline = Deadline(5)

    def slow():
        deadline._expires_at = 0  # the account deadline passes while waiting
        raise requests.Timeout("read timed out")

    session = FakeSession(slow)
    with pytest.raises(DeadlineExceeded):
        _client(session, deadline=deadline).list_zones(1)


def test_timeout_before_deadline_is_an_api_error():
    session = FakeSession(requests.Timeout("read timed out"))
    with pytest.raises(ApiError, match="timed out"):
        _client(session, timeout_seconds=1, deadline=Deadline(60)).list_zones(1)


def test_each_thread_gets_its_own_session(monkeypatch):
    created = []

    def new_session():
        session = FakeSession(*[FakeResponse(200, _envelope([])) for _ in range(2)])
        created.append(session)
        return session

    monkeypatch.setattr(requests, "Session", new_session)
    client = CloudflareClient("secret-token")

    client.list_zones(1)
    worker = threading.Thread(target=client.list_dns_records, args=("z1", 1))
    worker.start()
    worker.join()
    client.list_zones(2)

    assert len(created) == 2
    assert [len(s.calls) for s in created] == [2, 1]
    assert all(s.headers["Authorization"] == "Bearer secret-token" for s in created)

    client.close()
    assert all(s.closed for s in created)
