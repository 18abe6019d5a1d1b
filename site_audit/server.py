"""
HTTP server exposing the three audits.

Endpoints:
    POST /analyze-seo    — SEO report for {"url": ..., "credentials": {...}?}
    POST /analyze-ai     — AI-readiness report for {"url": ...}
    POST /analyze-i18n   — multilingual report for {"url": ...}
    GET  /health         — Liveness check
    OPTIONS *            — CORS preflight

Each request runs its analysis to completion on the handling thread.
"""

import asyncio
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from .analyzer import SiteAnalyzer
from .config import Settings, load_settings
from .errors import AuditError, InputError
from .models import AuditDomain
from .platform import PlatformCredentials

logger = logging.getLogger("site-audit-server")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

ANALYSIS_ROUTES = {
    "/analyze-seo": AuditDomain.SEO,
    "/analyze-ai": AuditDomain.AI,
    "/analyze-i18n": AuditDomain.I18N,
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def parse_request(raw: bytes):
    """(url, credentials) from a request body, or InputError."""
    try:
        body = json.loads(raw) if raw else {}
    except ValueError:
        raise InputError("Request body must be JSON")
    if not isinstance(body, dict):
        raise InputError("Request body must be a JSON object")
    if not body.get("url"):
        raise InputError("URL required")

    credentials = None
    if body.get("credentials"):
        try:
            credentials = PlatformCredentials.model_validate(body["credentials"])
        except ValidationError as e:
            raise InputError(f"Invalid credentials: {e.error_count()} error(s)")
    return body["url"], credentials


# ─── HTTP Request Handler ─────────────────────────────────────────────

class Handler(BaseHTTPRequestHandler):
    server: "AuditServer"

    @property
    def route(self) -> str:
        return urlparse(self.path).path

    def do_OPTIONS(self):
        self._respond(200, None)

    def do_GET(self):
        if self.route == "/health":
            self._respond(200, {"status": "ok"})
        else:
            self._not_allowed_or_found()

    def do_POST(self):
        domain = ANALYSIS_ROUTES.get(self.route)
        if domain is None:
            self._respond(404, {"error": "not found"})
            return

        try:
            url, credentials = parse_request(self._read_body())
            report = asyncio.run(self.server.analyzer.analyze(url, domain, credentials))
        except InputError as e:
            self._respond(400, {"error": str(e)})
            return
        except AuditError as e:
            logger.warning(f"{domain.value} analysis failed: {e}")
            self._respond(e.status_code, {"error": f"Analysis failed: {e}"})
            return
        except Exception as e:
            logger.error(f"Unexpected failure during {domain.value} analysis: {e}", exc_info=True)
            self._respond(500, {"error": f"Analysis failed: {e}"})
            return

        self._respond(200, report.model_dump(mode="json", by_alias=True, exclude_none=True))

    def do_PUT(self):
        self._not_allowed_or_found()

    def do_DELETE(self):
        self._not_allowed_or_found()

    def do_PATCH(self):
        self._not_allowed_or_found()

    def _read_body(self) -> bytes:
        raw_length = self.headers.get("Content-Length") or "0"
        try:
            content_length = int(raw_length)
        except ValueError:
            raise InputError(f"Invalid Content-Length: {raw_length!r}")
        if content_length < 0:
            raise InputError(f"Invalid Content-Length: {raw_length!r}")
        return self.rfile.read(content_length) if content_length else b""

    def _not_allowed_or_found(self):
        if self.route in ANALYSIS_ROUTES:
            self._respond(405, {"error": "Method not allowed"})
        else:
            self._respond(404, {"error": "not found"})

    def _respond(self, code: int, data: Optional[dict]):
        body = json.dumps(data).encode() if data is not None else b""
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        for name, value in CORS_HEADERS.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        # Suppress default access logs, use our logger instead
        logger.debug(f"{self.address_string()} {format % args}")


class AuditServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, analyzer: SiteAnalyzer):
        super().__init__(address, Handler)
        self.analyzer = analyzer


def make_server(settings: Settings, analyzer: Optional[SiteAnalyzer] = None) -> AuditServer:
    return AuditServer((settings.host, settings.port), analyzer or SiteAnalyzer(settings=settings))


# ─── Main ─────────────────────────────────────────────────────────────

def main():
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    server = make_server(settings)
    logger.info(f"Site audit server listening on {settings.host}:{settings.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
