"""
Audit result models.

A Report groups named Categories, each holding an ordered list of Checks.
Scores are derived from check statuses (see scoring.py) and are serialised
alongside the data. JSON output uses camelCase keys:

    report.model_dump(by_alias=True, exclude_none=True)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from .scoring import category_score, global_score


class CheckStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AuditDomain(str, Enum):
    SEO = "seo"
    AI = "ai"
    I18N = "i18n"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Drill-down payloads ──────────────────────────────────────────────


class DetailCardItem(_CamelModel):
    element: str
    text: str = ""
    detected_lang: str = "-"
    fix: str = ""


class DetailCard(_CamelModel):
    title: str
    path: str = ""
    lang: str = ""
    items: List[DetailCardItem] = Field(default_factory=list)


# ─── Check / Category / Report ────────────────────────────────────────


class Check(_CamelModel):
    """One verified fact. Immutable once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    status: CheckStatus
    value: str = ""
    detail: str = ""
    recommendation: Optional[str] = None
    detail_list: Optional[List[str]] = None
    detail_cards: Optional[List[DetailCard]] = None

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Advice belongs to non-success checks only.
        if data.get("status") in (CheckStatus.SUCCESS, "success"):
            data["recommendation"] = None
        for key in ("detail_list", "detailList", "detail_cards", "detailCards"):
            if key in data and not data[key]:
                data[key] = None
        return data

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.SUCCESS


class Category(_CamelModel):
    name: str
    checks: List[Check] = Field(default_factory=list)

    @computed_field
    @property
    def score(self) -> int:
        return category_score(self.checks)

    def get(self, name: str) -> Optional[Check]:
        """Return the first check with this name, if any."""
        for check in self.checks:
            if check.name == name:
                return check
        return None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Report(_CamelModel):
    url: str
    domain: AuditDomain
    timestamp: str = Field(default_factory=_utc_now)
    categories: Dict[str, Category] = Field(default_factory=dict)
    platform_store: Optional[str] = None

    @computed_field
    @property
    def score(self) -> int:
        return global_score(self.categories)

    @property
    def checks(self) -> List[Check]:
        return [check for category in self.categories.values() for check in category.checks]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
