"""
Tests for the scoring formula and the Check / Category / Report models.
"""

import json

from site_audit.models import AuditDomain, Category, Check, CheckStatus, DetailCard, Report
from site_audit.scoring import category_score, global_score, round_half_up


def _check(status: CheckStatus, name: str = "x") -> Check:
    return Check(name=name, status=status, recommendation="do something")


class TestScoring:

    def test_all_success_is_100(self):
        checks = [_check(CheckStatus.SUCCESS)] * 3
        assert category_score(checks) == 100

    def test_mixed_statuses_average(self):
        checks = [_check(CheckStatus.SUCCESS), _check(CheckStatus.WARNING), _check(CheckStatus.ERROR)]
        assert category_score(checks) == 50

    def test_rounds_half_up(self):
        # (100 + 100 + 50 + 50 + 0 + 0 + 0 + 0) / 8 = 37.5
        checks = (
            [_check(CheckStatus.SUCCESS)] * 2
            + [_check(CheckStatus.WARNING)] * 2
            + [_check(CheckStatus.ERROR)] * 4
        )
        assert category_score(checks) == 38
        assert round_half_up(2.5) == 3
        assert round_half_up(0.49) == 0

    def test_empty_category_scores_zero(self):
        assert category_score([]) == 0

    def test_global_score_is_mean_of_categories(self):
        categories = {
            "a": Category(name="A", checks=[_check(CheckStatus.SUCCESS)]),
            "b": Category(name="B", checks=[_check(CheckStatus.WARNING)]),
            "c": Category(name="C", checks=[]),
        }
        assert global_score(categories) == 50

    def test_empty_report_scores_zero(self):
        assert global_score({}) == 0


class TestCheck:

    def test_success_drops_recommendation(self):
        check = Check(name="x", status=CheckStatus.SUCCESS, recommendation="fix it")
        assert check.recommendation is None
        assert check.passed

    def test_non_success_keeps_recommendation(self):
        check = Check(name="x", status=CheckStatus.WARNING, recommendation="fix it")
        assert check.recommendation == "fix it"

    def test_empty_lists_become_absent(self):
        check = Check(name="x", status=CheckStatus.ERROR, detail_list=[], detail_cards=[])
        assert check.detail_list is None
        assert check.detail_cards is None


class TestReport:

    def test_serialises_camel_case_with_scores(self):
        card = DetailCard(title="Shirt", path="/products/shirt", lang="de")
        report = Report(
            url="https://shop.test/",
            domain=AuditDomain.I18N,
            categories={
                "couverture": Category(
                    name="Coverage",
                    checks=[Check(name="x", status=CheckStatus.ERROR, detail_cards=[card])],
                )
            },
        )
        data = json.loads(report.to_json())

        assert data["domain"] == "i18n"
        assert data["score"] == 0
        assert data["categories"]["couverture"]["score"] == 0
        check = data["categories"]["couverture"]["checks"][0]
        assert check["detailCards"][0]["path"] == "/products/shirt"
        assert "recommendation" not in check
        assert "detailList" not in check
        assert "platformStore" not in data
        assert data["timestamp"].endswith("Z")

    def test_checks_flattens_categories(self):
        report = Report(
            url="https://shop.test/",
            domain=AuditDomain.SEO,
            categories={
                "a": Category(name="A", checks=[_check(CheckStatus.SUCCESS, "one")]),
                "b": Category(name="B", checks=[_check(CheckStatus.ERROR, "two")]),
            },
        )
        assert [c.name for c in report.checks] == ["one", "two"]
