"""
Runtime settings read from environment variables.

    SITE_AUDIT_USER_AGENT        - User-Agent sent on every request (default: SiteAudit/1.0)
    SITE_AUDIT_TIMEOUT           - Default fetch timeout in seconds (default: 15)
    SITE_AUDIT_LINK_TIMEOUT      - Link-liveness timeout in seconds (default: 3)
    SITE_AUDIT_MAX_LINKS         - Outbound links probed per page (default: 10)
    SITE_AUDIT_MAX_ALTERNATES    - Alternate-language versions probed (default: 10)
    SITE_AUDIT_SAMPLE_SIZE       - Product pages in the deep sample (default: 10)
    SITE_AUDIT_SAMPLE_LANGUAGES  - Languages in the deep sample (default: 4)
    SITE_AUDIT_REDIRECT_HOPS     - Redirect hops traced before giving up (default: 5)
    SITE_AUDIT_HOST              - Server bind address (default: 0.0.0.0)
    SITE_AUDIT_PORT              - Server port (default: 8000)
    SITE_AUDIT_LOG_LEVEL         - Logging level name (default: INFO)
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel

from .errors import ConfigError


class Settings(BaseModel):
    user_agent: str = "SiteAudit/1.0"
    timeout: float = 15.0
    link_timeout: float = 3.0
    max_links: int = 10
    max_alternates: int = 10
    sample_size: int = 10
    sample_languages: int = 4
    redirect_hops: int = 5
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def headers(self) -> dict:
        return {"User-Agent": self.user_agent}


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the process environment (or an explicit mapping)."""
    env = os.environ if env is None else env
    defaults = Settings()
    return Settings(
        user_agent=env.get("SITE_AUDIT_USER_AGENT", defaults.user_agent),
        timeout=_number(env, "SITE_AUDIT_TIMEOUT", defaults.timeout, float),
        link_timeout=_number(env, "SITE_AUDIT_LINK_TIMEOUT", defaults.link_timeout, float),
        max_links=_number(env, "SITE_AUDIT_MAX_LINKS", defaults.max_links, int),
        max_alternates=_number(env, "SITE_AUDIT_MAX_ALTERNATES", defaults.max_alternates, int),
        sample_size=_number(env, "SITE_AUDIT_SAMPLE_SIZE", defaults.sample_size, int),
        sample_languages=_number(env, "SITE_AUDIT_SAMPLE_LANGUAGES", defaults.sample_languages, int),
        redirect_hops=_number(env, "SITE_AUDIT_REDIRECT_HOPS", defaults.redirect_hops, int),
        host=env.get("SITE_AUDIT_HOST", defaults.host),
        port=_number(env, "SITE_AUDIT_PORT", defaults.port, int),
        log_level=env.get("SITE_AUDIT_LOG_LEVEL", defaults.log_level).upper(),
    )
