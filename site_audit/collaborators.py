"""
Contracts for the systems around the audit engine.

The engine never mutates a site, never stores history and never schedules
scans itself. These Protocols describe what it hands to, or expects from,
the services that do. ``Check.name`` is the stable key a remediation
service maps to its own fix catalogue.
"""

from typing import Any, Dict, List, Protocol

from pydantic import BaseModel, Field

from .models import AuditDomain, Report


class RemediationRequest(BaseModel):
    fix_id: str
    store: str
    access_token: str
    context: Dict[str, Any] = Field(default_factory=dict)


class RemediationApplier(Protocol):
    """Applies one fix to a site. Expected to be idempotent (create-if-absent)."""

    async def apply(self, request: RemediationRequest) -> Dict[str, Any]:
        ...


class ScanRecord(BaseModel):
    url: str
    domain: AuditDomain
    date: str
    timestamp: str
    score: int
    category_scores: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: Report) -> "ScanRecord":
        return cls(
            url=report.url,
            domain=report.domain,
            date=report.timestamp[:10],
            timestamp=report.timestamp,
            score=report.score,
            category_scores={key: category.score for key, category in report.categories.items()},
        )


class ScanHistoryStore(Protocol):
    """Time-ordered scan results keyed by date."""

    def append(self, record: ScanRecord) -> None:
        ...

    def history(self, url: str) -> List[ScanRecord]:
        ...


class ScanTrigger(Protocol):
    """Starts an external long-running scan and waits for it, within a bound."""

    async def trigger(self, url: str, timeout: float) -> bool:
        ...


def remediation_candidates(report: Report) -> List[str]:
    """Names of the report's non-success checks, first occurrence order."""
    names: List[str] = []
    for check in report.checks:
        if not check.passed and check.name not in names:
            names.append(check.name)
    return names
