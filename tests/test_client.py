import threading
import time

import pytest
import requests

from app.client import ApiClientError, CleanupApiClient
from app.client.coalescing import coalesce_requests


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("No JSON")
        return self._body


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses, token=None):
    session = FakeSession(*responses)
    return CleanupApiClient(base_url="http://api.test/", token=token, timeout=5, session=session), session


def test_request_unwraps_data_and_sends_token():
    client, session = make_client(FakeResponse(body={"success": True, "data": {"id": "abc"}}), token="t0k")
    assert client.get_cleanup_request("abc") == {"id": "abc"}

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://api.test/api/cleanup-requests/abc")
    assert kwargs["headers"]["Authorization"] == "Bearer t0k"
    assert kwargs["timeout"] == 5


def test_login_stores_token_and_logout_clears_it():
    client, _ = make_client(FakeResponse(body={"data": {"user": {}, "token": "new-token"}}))
    client.login("kwame@example.com", "kwame-password")
    assert client.token == "new-token"
    client.logout()
    assert client.token is None


def test_error_response_raises_with_server_message():
    client, _ = make_client(FakeResponse(400, {
        "success": False, "message": "Validation failed", "errors": [{"field": "location", "message": "Too short"}],
    }))
    with pytest.raises(ApiClientError) as exc:
        client.submit_cleanup_request({})
    assert exc.value.status_code == 400
    assert exc.value.message == "Validation failed"
    assert exc.value.errors[0]["field"] == "location"


def test_error_without_json_body():
    client, _ = make_client(FakeResponse(502))
    with pytest.raises(ApiClientError) as exc:
        client.health_check()
    assert exc.value.message == "Something went wrong"


def test_transport_failure():
    client, _ = make_client(requests.ConnectionError("refused"))
    with pytest.raises(ApiClientError) as exc:
        client.get_cleanup_stats()
    assert exc.value.status_code is None


def test_update_cleanup_request_patches_details():
    client, session = make_client(FakeResponse(body={"data": {"id": "abc", "severity": "low"}}), token="admin")
    assert client.update_cleanup_request("abc", severity="low", otherDetails={"preferredTime": "08:00"})["severity"] == "low"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("PATCH", "http://api.test/api/cleanup-requests/abc")
    assert kwargs["json"] == {"severity": "low", "otherDetails": {"preferredTime": "08:00"}}


def test_list_drops_empty_filters():
    client, session = make_client(FakeResponse(body={"data": {"requests": []}}))
    client.list_cleanup_requests("main st", status="pending", severity=None)
    params = session.calls[0][2]["params"]
    assert params == {"q": "main st", "page": 1, "limit": 50, "status": "pending"}


class SlowService:
    def __init__(self):
        self.calls = 0
        self.release = threading.Event()

    @coalesce_requests
    def fetch(self, key):
        self.calls += 1
        self.release.wait(timeout=5)
        if key == "boom":
            raise RuntimeError("failed")
        return {"key": key, "call": self.calls}


def run_concurrently(target, count):
    results, errors = [], []

    def worker():
        try:
            results.append(target())
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    return threads, results, errors


def wait_for_followers(service_method):
    # followers block on the leader's future; give them time to join it
    deadline = time.monotonic() + 2
    while not service_method.in_flight and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.1)


def test_concurrent_identical_calls_share_one_execution():
    service = SlowService()
    threads, results, errors = run_concurrently(lambda: service.fetch("a"), 5)
    wait_for_followers(SlowService.fetch)
    service.release.set()
    for thread in threads:
        thread.join()

    assert errors == []
    assert service.calls == 1
    assert results == [{"key": "a", "call": 1}] * 5
    assert SlowService.fetch.in_flight == {}


def test_followers_receive_the_leaders_error():
    service = SlowService()
    threads, results, errors = run_concurrently(lambda: service.fetch("boom"), 3)
    wait_for_followers(SlowService.fetch)
    service.release.set()
    for thread in threads:
        thread.join()

    assert results == []
    assert len(errors) == 3
    assert service.calls == 1


def test_nothing_is_cached_after_completion():
    service = SlowService()
    service.release.set()
    assert service.fetch("a") == {"key": "a", "call": 1}
    assert service.fetch("a") == {"key": "a", "call": 2}


def test_different_arguments_are_not_coalesced():
    service = SlowService()
    service.release.set()
    service.fetch("a")
    service.fetch("b")
    assert service.calls == 2
