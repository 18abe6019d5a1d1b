"""
Tests for the HTTP surface: routing, CORS, status mapping.

The server runs on an ephemeral port in a background thread with a stub
analyzer, so no site is ever fetched.
"""

import socket
import threading

import httpx
import pytest

from site_audit.config import Settings
from site_audit.errors import InputError, PrimaryFetchError
from site_audit.models import AuditDomain, Category, Check, CheckStatus, Report
from site_audit.server import make_server, parse_request


class StubAnalyzer:
    def __init__(self):
        self.calls = []

    async def analyze(self, url, domain, credentials=None):
        self.calls.append((url, domain, credentials))
        if "unreachable" in url:
            raise PrimaryFetchError(url, "HTTP 503", http_status=503)
        if "crash" in url:
            raise RuntimeError("boom")
        return Report(
            url=url,
            domain=domain,
            categories={"meta": Category(name="Meta", checks=[Check(name="Page title", status=CheckStatus.SUCCESS)])},
        )


@pytest.fixture
def server():
    analyzer = StubAnalyzer()
    httpd = make_server(Settings(host="127.0.0.1", port=0), analyzer)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    host, port = httpd.server_address[:2]
    with httpx.Client(base_url=f"http://{host}:{port}", timeout=5) as client:
        yield client, analyzer
    httpd.shutdown()
    httpd.server_close()


class TestRoutes:

    def test_health(self, server):
        client, _ = server
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_analysis_returns_report(self, server):
        client, analyzer = server
        response = client.post("/analyze-i18n", json={"url": "https://shop.test/"})
        assert response.status_code == 200
        data = response.json()
        assert data["domain"] == "i18n"
        assert data["score"] == 100
        assert data["categories"]["meta"]["checks"][0]["name"] == "Page title"
        assert analyzer.calls == [("https://shop.test/", AuditDomain.I18N, None)]

    def test_credentials_are_parsed(self, server):
        client, analyzer = server
        body = {"url": "https://shop.test/", "credentials": {"store": "demo.myshopify.com", "accessToken": "t"}}
        assert client.post("/analyze-seo", json=body).status_code == 200
        credentials = analyzer.calls[0][2]
        assert credentials.store == "demo.myshopify.com"
        assert credentials.access_token == "t"

    def test_cors_headers(self, server):
        client, _ = server
        response = client.options("/analyze-seo")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_unknown_path_is_404(self, server):
        client, _ = server
        assert client.post("/analyze-speed", json={"url": "https://shop.test/"}).status_code == 404
        assert client.get("/nowhere").status_code == 404

    def test_wrong_method_is_405(self, server):
        client, _ = server
        assert client.get("/analyze-seo").status_code == 405
        assert client.put("/analyze-ai", json={}).status_code == 405


class TestErrors:

    def test_missing_url_is_400(self, server):
        client, analyzer = server
        response = client.post("/analyze-seo", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "URL required"}
        assert analyzer.calls == []

    def test_malformed_body_is_400(self, server):
        client, _ = server
        response = client.post("/analyze-ai", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_bad_content_length_is_400(self, server):
        client, analyzer = server
        host, port = client.base_url.host, client.base_url.port
        with socket.create_connection((host, port), timeout=5) as conn:
            conn.sendall(
                b"POST /analyze-seo HTTP/1.1\r\n"
                b"Host: localhost\r\n"
                b"Content-Length: lots\r\n"
                b"\r\n"
            )
            status_line = conn.makefile("rb").readline()
        assert status_line.split()[1] == b"400"
        assert analyzer.calls == []

    def test_primary_fetch_failure_is_500(self, server):
        client, _ = server
        response = client.post("/analyze-ai", json={"url": "https://unreachable.test/"})
        assert response.status_code == 500
        assert "HTTP 503" in response.json()["error"]

    def test_unexpected_failure_is_500(self, server):
        client, _ = server
        response = client.post("/analyze-seo", json={"url": "https://crash.test/"})
        assert response.status_code == 500
        assert response.json() == {"error": "Analysis failed: boom"}


class TestParseRequest:

    def test_rejects_non_object(self):
        with pytest.raises(InputError):
            parse_request(b"[1, 2]")

    def test_rejects_incomplete_credentials(self):
        with pytest.raises(InputError):
            parse_request(b'{"url": "https://shop.test/", "credentials": {"store": "x"}}')

    def test_plain_url(self):
        assert parse_request(b'{"url": "https://shop.test/"}') == ("https://shop.test/", None)
