"""
Tests for metrics.py - secondary dashboard numbers
"""
import json

import pytest

from metrics import (
    average_payment_score,
    daily_registrations,
    payment_score_distribution,
    revenue_by_treatment,
    summarize,
    top_treatment,
    total_revenue,
)
from reporting import UNKNOWN_LABEL, prepare_report


@pytest.fixture
def raw():
    return {
        "persons": [
            {"fullName": "علی", "createdAt": "2024-01-02T09:00:00"},
            {"fullName": "مریم", "createdAt": "2024-01-01"},
            {"fullName": "سارا", "createdAt": "2024-01-02"},
            {"fullName": "رضا", "createdAt": "۱۴۰۲/۱۰/۱۱"},
        ],
        "payments": [
            {"type": "نقدی", "score": 9},
            {"type": "کارت", "score": "8"},
            {"type": "بیمه", "score": 4},
        ],
        "treatments": [
            {"name": "ایمپلنت", "profitability": "high", "cost": 5000000},
            {"name": "جرمگیری", "profitability": "medium", "price": "500,000"},
            {"name": "ایمپلنت", "profitability": "very-high", "cost": 4000000},
            {"name": "لمینت", "profitability": "very-high"},
        ],
    }


class TestAveragePaymentScore:

    def test_mean_over_submissions(self, raw):
        assert average_payment_score(raw) == 7.0

    def test_no_payments(self):
        assert average_payment_score({}) == 0.0
        assert average_payment_score(None) == 0.0


class TestTopTreatment:

    def test_best_tier_first_listed(self, raw):
        # ایمپلنت was upgraded to very-high and is listed before لمینت
        assert top_treatment(prepare_report(raw)) == "ایمپلنت"

    def test_empty_report(self):
        assert top_treatment(prepare_report(None)) == "-"


class TestPaymentScoreDistribution:

    def test_histogram(self, raw):
        dist = payment_score_distribution(raw)
        assert dist["labels"][0] == "1"
        assert dist["stars"][8] == "4.5 stars"  # same label as the report
        assert dist["stars"][9] == "5 stars"
        assert len(dist["data"]) == 10
        assert dist["data"][8] == 1  # score 9
        assert dist["data"][7] == 1  # score 8
        assert dist["data"][3] == 1  # score 4
        assert sum(dist["data"]) == 3

    def test_out_of_range_scores_ignored(self):
        dist = payment_score_distribution({"payments": [{"score": 0}, {"score": 12}]})
        assert sum(dist["data"]) == 0


class TestRevenue:

    def test_revenue_by_treatment_sorted(self, raw):
        rows = revenue_by_treatment(raw)
        assert rows[0] == {"name": "ایمپلنت", "revenue": 9000000}
        assert rows[1] == {"name": "جرمگیری", "revenue": 500000}
        assert rows[2] == {"name": "لمینت", "revenue": 0}

    def test_total_revenue(self, raw):
        assert total_revenue(raw) == 9500000

    def test_huge_integer_cost_counts_as_zero(self):
        raw = json.loads('{"treatments": [{"name": "ایمپلنت", "cost": ' + "9" * 400 + "}]}")
        assert revenue_by_treatment(raw) == [{"name": "ایمپلنت", "revenue": 0}]
        assert summarize(raw, prepare_report(raw))["totalRevenue"] == 0


class TestDailyRegistrations:

    def test_counts_per_day(self, raw):
        daily = daily_registrations(raw)
        assert daily["labels"] == ["2024-01-01", "2024-01-02", UNKNOWN_LABEL]
        assert daily["data"] == [1, 2, 1]


class TestSummarize:

    def test_summary_payload(self, raw):
        report = prepare_report(raw)
        summary = summarize(raw, report)
        assert summary["totalUsers"] == 4
        assert summary["totalSubmissions"] == {"payments": 3, "treatments": 4}
        assert summary["avgPaymentScore"] == 7.0
        assert summary["topTreatment"] == "ایمپلنت"
        assert summary["totalRevenue"] == 9500000

    def test_summary_of_nothing(self):
        summary = summarize(None, prepare_report(None))
        assert summary["totalUsers"] == 0
        assert summary["totalRevenue"] == 0
        assert summary["dailyRegistrations"] == {"labels": [], "data": []}
