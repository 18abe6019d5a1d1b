"""
SiteAnalyzer — single entry point over the three audit domains.

    analyzer = SiteAnalyzer()
    report = await analyzer.analyze("https://example.com", AuditDomain.SEO)

Holds the settings, an optional shared httpx client, the language
identifier used by the i18n domain and an optional scan-history sink.
"""

import logging
from typing import Optional, Union

import httpx

from .ai import analyze_ai
from .collaborators import ScanHistoryStore, ScanRecord
from .config import Settings
from .errors import InputError
from .i18n import analyze_i18n
from .language import LanguageIdentifier, identify_language
from .models import AuditDomain, Report
from .platform import PlatformCredentials
from .seo import analyze_seo

logger = logging.getLogger(__name__)


class SiteAnalyzer:
    """
    Audit pages for SEO, AI readiness or multilingual coverage.

    Usage — one domain:
        report = await SiteAnalyzer().analyze_seo(url)

    Usage — dispatch by name (as the HTTP server does):
        report = await SiteAnalyzer().analyze(url, "i18n")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        identify: LanguageIdentifier = identify_language,
        history: Optional[ScanHistoryStore] = None,
    ):
        self.settings = settings or Settings()
        self.client = client
        self.identify = identify
        self.history = history

    async def analyze(
        self,
        url: str,
        domain: Union[AuditDomain, str],
        credentials: Optional[PlatformCredentials] = None,
    ) -> Report:
        try:
            domain = AuditDomain(domain)
        except ValueError:
            raise InputError(f"Unknown audit domain: {domain}")

        logger.info(f"Analyzing {url} ({domain.value})")
        if domain == AuditDomain.SEO:
            report = await self.analyze_seo(url, credentials=credentials)
        elif domain == AuditDomain.AI:
            report = await self.analyze_ai(url)
        else:
            report = await self.analyze_i18n(url)

        if self.history is not None:
            self.history.append(ScanRecord.from_report(report))
        return report

    async def analyze_seo(
        self, url: str, credentials: Optional[PlatformCredentials] = None
    ) -> Report:
        return await analyze_seo(
            url, client=self.client, settings=self.settings, credentials=credentials
        )

    async def analyze_ai(self, url: str) -> Report:
        return await analyze_ai(url, client=self.client, settings=self.settings)

    async def analyze_i18n(self, url: str) -> Report:
        return await analyze_i18n(
            url, client=self.client, settings=self.settings, identify=self.identify
        )
