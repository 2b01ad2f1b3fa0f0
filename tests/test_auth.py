import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.main import create_app
from gateway.vendors import CLAUDE, OPENAI
from tests.conftest import SECRET


ROUTES = [(CLAUDE, "/api/claude"), (OPENAI, "/api/openai")]


@pytest.mark.parametrize("vendor,path", ROUTES)
def test_missing_header_is_401_without_upstream_call(client, upstream_mock, vendor, path):
    route = upstream_mock.post(vendor.url).mock(return_value=httpx.Response(200, json={}))

    resp = client.post(path, json={"model": "x"})

    assert resp.status_code == 401
    assert resp.json() == {"error": "X-API-Key header required"}
    assert not route.called


@pytest.mark.parametrize("vendor,path", ROUTES)
def test_wrong_key_is_401(client, upstream_mock, vendor, path):
    route = upstream_mock.post(vendor.url).mock(return_value=httpx.Response(200, json={}))

    resp = client.post(path, json={"model": "x"}, headers={"X-API-Key": "wrong"})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid API key"}
    assert not route.called


@pytest.mark.parametrize("candidate", [SECRET.upper(), SECRET + "x", SECRET[:-1], "x" + SECRET])
def test_comparison_is_exact(client, upstream_mock, candidate):
    upstream_mock.post(CLAUDE.url).mock(return_value=httpx.Response(200, json={}))

    resp = client.post("/api/claude", json={}, headers={"X-API-Key": candidate})

    assert resp.status_code == 401


def test_failed_attempt_logs_caller_address(client, caplog):
    with caplog.at_level(logging.WARNING, logger="gateway.auth"):
        client.post("/api/claude", json={}, headers={"X-API-Key": "wrong"})

    assert any("testclient" in r.getMessage() for r in caplog.records)
    assert all("wrong" not in r.getMessage() for r in caplog.records)


def test_correct_key_reaches_handler(client, upstream_mock):
    route = upstream_mock.post(CLAUDE.url).mock(return_value=httpx.Response(200, json={"ok": True}))

    resp = client.post("/api/claude", json={"model": "x"}, headers={"X-API-Key": SECRET})

    assert resp.status_code == 200
    assert route.call_count == 1


def test_gate_disabled_allows_anonymous_calls(settings, upstream_mock):
    open_settings = settings.model_copy(update={"require_api_key": False, "proxy_api_key": None})
    route = upstream_mock.post(OPENAI.url).mock(return_value=httpx.Response(200, json={"ok": True}))

    with TestClient(create_app(open_settings)) as c:
        resp = c.post("/api/openai", json={"model": "x"})

    assert resp.status_code == 200
    assert route.call_count == 1
