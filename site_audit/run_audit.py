"""
One-shot audit entrypoint.

Receives the job via environment variables, runs one audit, then prints
the report JSON or POSTs it to a callback.

Environment variables:
    TARGET_URL      - Page to audit
    AUDIT_DOMAIN    - seo | ai | i18n (default: seo)
    CALLBACK_URL    - Optional endpoint to POST the report to
    API_KEY         - Bearer token for the callback
"""

import asyncio
import logging
import os
import sys
from typing import Mapping, Optional

import httpx

from .analyzer import SiteAnalyzer
from .config import load_settings
from .errors import AuditError
from .models import AuditDomain

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

logger = logging.getLogger("site-audit-runner")


async def post_callback(callback_url: str, payload: dict, api_key: Optional[str], timeout: float = 30):
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    async with httpx.AsyncClient(timeout=timeout) as client:
        resp = await client.post(callback_url, json=payload, headers=headers)
        resp.raise_for_status()


async def run(env: Optional[Mapping[str, str]] = None) -> int:
    env = os.environ if env is None else env
    target_url = env.get("TARGET_URL", "")
    domain = env.get("AUDIT_DOMAIN", AuditDomain.SEO.value)
    callback_url = env.get("CALLBACK_URL")
    api_key = env.get("API_KEY")

    settings = load_settings(env)
    logger.info(f"Starting {domain} audit for {target_url}")

    try:
        report = await SiteAnalyzer(settings=settings).analyze(target_url, domain)
    except AuditError as e:
        logger.error(f"Audit failed: {e}")
        if callback_url:
            try:
                await post_callback(callback_url, {"status": "failed", "error": str(e)}, api_key)
            except httpx.HTTPError as post_error:
                logger.error(f"Failed to report error to callback URL: {post_error}")
        return 1

    logger.info(f"Audit complete. Score: {report.score}/100")

    if not callback_url:
        print(report.to_json())
        return 0

    payload = {"status": "completed", "report": report.model_dump(mode="json", by_alias=True, exclude_none=True)}
    try:
        await post_callback(callback_url, payload, api_key, timeout=120)
    except httpx.HTTPError as e:
        logger.error(f"Failed to post results to {callback_url}: {e}")
        return 1
    logger.info(f"Results posted to {callback_url}. Done.")
    return 0


def main():
    logging.basicConfig(level=os.environ.get("SITE_AUDIT_LOG_LEVEL", "INFO").upper(), format=LOG_FORMAT)
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
