"""
Declarative criteria evaluation.

Multi-criteria checks (semantic tags, heading structure) are described as
a table of Criterion rows and evaluated uniformly, instead of one branch
per criterion:

    HEADING_CRITERIA = [
        Criterion("unique_h1", "Unique H1", lambda f: f["h1"] == 1, message="..."),
        ...
    ]
    outcome = evaluate(HEADING_CRITERIA, facts)
    status = grade(outcome.score, success_at=5, warning_at=3)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union

from .models import CheckStatus

Facts = Mapping[str, Any]


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    predicate: Callable[[Facts], bool]
    weight: float = 1.0
    # str.format template over the facts, or a callable returning the text
    message: Union[str, Callable[[Facts], str]] = ""

    def describe(self, facts: Facts) -> str:
        if callable(self.message):
            return self.message(facts)
        return self.message.format(**facts)


@dataclass
class CriterionResult:
    criterion: Criterion
    ok: bool
    detail: str

    def line(self) -> str:
        mark = "✓" if self.ok else "✗"
        return f"{mark} {self.criterion.label} — {self.detail}"


@dataclass
class RuleOutcome:
    results: List[CriterionResult] = field(default_factory=list)

    @property
    def passed(self) -> List[CriterionResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[CriterionResult]:
        return [r for r in self.results if not r.ok]

    @property
    def score(self) -> float:
        return sum(r.criterion.weight for r in self.passed)

    @property
    def total(self) -> float:
        return sum(r.criterion.weight for r in self.results)


def evaluate(criteria: List[Criterion], facts: Facts) -> RuleOutcome:
    return RuleOutcome(
        results=[CriterionResult(c, bool(c.predicate(facts)), c.describe(facts)) for c in criteria]
    )


def grade(score: float, success_at: float, warning_at: Optional[float] = None) -> CheckStatus:
    """Map a score onto success / warning / error thresholds (inclusive)."""
    if score >= success_at:
        return CheckStatus.SUCCESS
    if warning_at is not None and score >= warning_at:
        return CheckStatus.WARNING
    return CheckStatus.ERROR
