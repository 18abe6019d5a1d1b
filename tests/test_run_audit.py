"""
Tests for the environment-driven one-shot runner.
"""

import json

import pytest

from site_audit import run_audit
from site_audit.errors import PrimaryFetchError
from site_audit.models import AuditDomain, Report


class StubAnalyzer:
    fail = False

    def __init__(self, settings=None, **kwargs):
        self.settings = settings

    async def analyze(self, url, domain, credentials=None):
        if self.fail:
            raise PrimaryFetchError(url, "Timeout")
        return Report(url=url, domain=AuditDomain(domain))


@pytest.fixture
def stub(monkeypatch):
    StubAnalyzer.fail = False
    monkeypatch.setattr(run_audit, "SiteAnalyzer", StubAnalyzer)
    return StubAnalyzer


@pytest.fixture
def callbacks(monkeypatch):
    sent = []

    async def post_callback(callback_url, payload, api_key, timeout=30):
        sent.append((callback_url, payload, api_key))

    monkeypatch.setattr(run_audit, "post_callback", post_callback)
    return sent


class TestRunAudit:

    @pytest.mark.asyncio
    async def test_prints_report(self, stub, capsys):
        code = await run_audit.run({"TARGET_URL": "https://shop.test/", "AUDIT_DOMAIN": "ai"})
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["url"] == "https://shop.test/"
        assert data["domain"] == "ai"

    @pytest.mark.asyncio
    async def test_defaults_to_seo(self, stub, capsys):
        await run_audit.run({"TARGET_URL": "https://shop.test/"})
        assert json.loads(capsys.readouterr().out)["domain"] == "seo"

    @pytest.mark.asyncio
    async def test_posts_to_callback(self, stub, callbacks, capsys):
        env = {"TARGET_URL": "https://shop.test/", "CALLBACK_URL": "https://hooks.test/done", "API_KEY": "k"}
        assert await run_audit.run(env) == 0
        ((url, payload, api_key),) = callbacks
        assert url == "https://hooks.test/done"
        assert api_key == "k"
        assert payload["status"] == "completed"
        assert payload["report"]["domain"] == "seo"
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_audit_error_exits_1(self, stub, callbacks):
        stub.fail = True
        env = {"TARGET_URL": "https://shop.test/", "CALLBACK_URL": "https://hooks.test/done"}
        assert await run_audit.run(env) == 1
        ((_, payload, _),) = callbacks
        assert payload["status"] == "failed"
        assert "Timeout" in payload["error"]
