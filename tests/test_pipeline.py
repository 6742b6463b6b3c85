# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipebook` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from recipebook import middleware
from recipebook.errors import AuthError
from recipebook.pipeline import authenticate, trace


def test_authenticate_accepts_matching_key():
    authenticate("secret", ["secret"])
    authenticate("secret", ["other", "secret"])


@pytest.mark.parametrize("supplied", (None, [], ["wrong"], ["Secret"], ["secret "]))
def test_authenticate_rejects(supplied):
    with pytest.raises(AuthError):
        authenticate("secret", supplied)


def test_trace_logs_even_when_block_fails(caplog):
    caplog.set_level(logging.INFO, logger="recipebook.pipeline")
    with pytest.raises(RuntimeError):
        with trace("GET /boom"):
            raise RuntimeError("boom")
    [record] = [r for r in caplog.records if r.name == "recipebook.pipeline"]
    assert record.getMessage().startswith("GET /boom ")


def make_app(calls, api_key="secret"):
    app = FastAPI()

    @app.get("/ping")
    def ping():
        calls.append("ping")
        return {"ok": True}

    @app.get("/text")
    def text():
        from fastapi.responses import PlainTextResponse

        return PlainTextResponse("hello")

    middleware.install(app, api_key=api_key)
    return app


def test_auth_short_circuits_handler():
    calls = []
    client = TestClient(make_app(calls))

    assert client.get("/ping").status_code == 401
    assert client.get("/ping", headers={"X-Api-Key": "nope"}).status_code == 401
    assert calls == []

    res = client.get("/ping", headers={"X-Api-Key": "secret"})
    assert res.status_code == 200
    assert calls == ["ping"]


def test_standard_headers_force_json_content_type():
    client = TestClient(make_app([]))
    res = client.get("/text", headers={"X-Api-Key": "secret"})
    assert res.text == "hello"
    assert res.headers["content-type"] == "application/json"


def test_install_without_auth():
    calls = []
    client = TestClient(make_app(calls, api_key=None))
    assert client.get("/ping").status_code == 200
    assert calls == ["ping"]


def test_tracer_wraps_auth(caplog):
    caplog.set_level(logging.INFO, logger="recipebook.pipeline")
    client = TestClient(make_app([]))
    client.get("/ping?x=1")
    [record] = [r for r in caplog.records if r.name == "recipebook.pipeline"]
    assert record.getMessage().startswith("GET /ping?x=1 ")
