"""
Typed failures raised at the analysis boundary.

Auxiliary fetch problems never surface here: they are folded into
warning/error Checks. Only conditions that abort a whole invocation
(bad input, unreachable primary page, broken configuration) raise.
"""

from typing import Optional


class AuditError(Exception):
    """Base class for every error raised by site_audit."""

    status_code = 500


class InputError(AuditError):
    """Missing or malformed request input (no analysis attempted)."""

    status_code = 400


class PrimaryFetchError(AuditError):
    """The audited page itself could not be retrieved."""

    status_code = 500

    def __init__(self, url: str, reason: str, http_status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.http_status = http_status
        super().__init__(f"Could not fetch {url}: {reason}")


class ConfigError(AuditError):
    """Invalid environment configuration."""
