"""
Description polishing tests. The service must never block or fail the caller.
"""

import httpx

from conftest import make_receipt
from posledger.services import polish_service
from posledger.services.polish_service import HttpPolishBackend, PolishRequest


def _store_with_draft(store, description="blue widget x2"):
    draft = make_receipt("100", items=[("A1", description, 2, 115.0)])
    store.set_draft(draft)
    return draft.items[0].id


def test_polish_applies_result(store):
    item_id = _store_with_draft(store)
    outcome = polish_service.polish_item(store, item_id, lambda text: "  Blue Widget (2 units)  ")

    assert outcome.applied
    assert outcome.original == "blue widget x2"
    assert store.draft.find_item(item_id).description == "Blue Widget (2 units)"


def test_failure_falls_back_to_original(store):
    item_id = _store_with_draft(store)

    def broken(_text):
        raise httpx.ConnectTimeout("timed out")

    outcome = polish_service.polish_item(store, item_id, broken)

    assert outcome.polished == "blue widget x2"
    assert store.draft.find_item(item_id).description == "blue widget x2"


def test_empty_answer_keeps_original():
    assert polish_service.polish_text("blue widget", lambda text: "") == "blue widget"
    assert polish_service.polish_text("blue widget", lambda text: None) == "blue widget"


def test_short_text_and_missing_backend_skip_the_call():
    calls = []

    def backend(text):
        calls.append(text)
        return "polished"

    assert polish_service.polish_text("ab", backend) == "ab"
    assert polish_service.polish_text("blue widget", None) == "blue widget"
    assert calls == []


def test_stale_result_is_discarded(store):
    item_id = _store_with_draft(store)
    request = polish_service.request_polish(store, item_id)

    # Item removed while the request was in flight
    store.set_draft(store.draft.with_changes(items=()))

    assert not polish_service.apply_polish(store, request, "Polished")
    assert store.draft.items == ()


def test_unknown_item(store):
    _store_with_draft(store)
    assert polish_service.polish_item(store, "missing", lambda text: text) is None
    assert polish_service.request_polish(store, "missing") is None


def test_polish_never_touches_history(store):
    item_id = _store_with_draft(store)
    store.append_receipt(store.draft)
    polish_service.polish_item(store, item_id, lambda text: "Changed")

    assert store.receipts[0].find_item(item_id).description == "blue widget x2"


def test_http_backend(monkeypatch):
    captured = {}

    def fake_post(url, json, headers, timeout):
        captured.update(url=url, json=json, headers=headers, timeout=timeout)
        return httpx.Response(200, json={"text": "Blue Widget"}, request=httpx.Request("POST", url))

    monkeypatch.setattr(polish_service.httpx, "post", fake_post)
    backend = HttpPolishBackend("http://polish.local/v1", api_key="k", timeout=2.0)

    assert polish_service.polish_text("blue widget", backend) == "Blue Widget"
    assert captured["json"]["text"] == "blue widget"
    assert captured["headers"] == {"Authorization": "Bearer k"}
    assert captured["timeout"] == 2.0


def test_http_error_status_falls_back(monkeypatch):
    def fake_post(url, **kwargs):
        return httpx.Response(502, request=httpx.Request("POST", url))

    monkeypatch.setattr(polish_service.httpx, "post", fake_post)
    backend = HttpPolishBackend("http://polish.local/v1")
    assert polish_service.polish_text("blue widget", backend) == "blue widget"


def test_backend_from_config():
    assert polish_service.backend_from_config({"POLISH_API_URL": ""}) is None
    backend = polish_service.backend_from_config({"POLISH_API_URL": "http://x", "POLISH_TIMEOUT_SECONDS": "3"})
    assert backend.timeout == 3.0
    assert isinstance(PolishRequest(item_id="a", text="b"), PolishRequest)
