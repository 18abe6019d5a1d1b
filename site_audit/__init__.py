"""
site_audit — scored SEO, AI-readiness and multilingual audits of a web page.

Usage:
    from site_audit import SiteAnalyzer, AuditDomain

    analyzer = SiteAnalyzer()

    # One domain
    report = await analyzer.analyze_seo("https://example.com")

    # Dispatch by domain name
    report = await analyzer.analyze("https://example.com", AuditDomain.I18N)

    report.to_json()
"""

from .analyzer import SiteAnalyzer
from .ai import analyze_ai
from .config import Settings, load_settings
from .coverage import analyze_coverage
from .errors import AuditError, ConfigError, InputError, PrimaryFetchError
from .i18n import analyze_i18n
from .language import identify_language
from .platform import PlatformCredentials
from .robots import AiBot, BotAccess, interpret_robots
from .scoring import category_score, global_score
from .seo import analyze_seo
from .models import (
    AuditDomain,
    Category,
    Check,
    CheckStatus,
    DetailCard,
    DetailCardItem,
    Report,
)

__all__ = [
    # Main entry points
    "SiteAnalyzer",
    "analyze_seo",
    "analyze_ai",
    "analyze_i18n",
    "analyze_coverage",
    "interpret_robots",
    "identify_language",
    # Scoring
    "category_score",
    "global_score",
    # Enums
    "AuditDomain",
    "CheckStatus",
    "AiBot",
    "BotAccess",
    # Results
    "Report",
    "Category",
    "Check",
    "DetailCard",
    "DetailCardItem",
    # Configuration and errors
    "Settings",
    "load_settings",
    "PlatformCredentials",
    "AuditError",
    "InputError",
    "PrimaryFetchError",
    "ConfigError",
]
