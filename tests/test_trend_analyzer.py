"""
Unit Tests for the Trend Analyzer

Direction classification, prediction and bucketing of daily score
history.
"""

import os
import sys
from datetime import date, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.analytics_models import HealthScore, METRIC_NAMES, TrendDirection
from analytics.trend_analyzer import TrendAnalyzer, compute_trends


FIRST_DAY = date(2026, 8, 3)


def history_from_weeks(*weekly_values, days_per_week=7):
    """Daily scores where every metric equals its week's value."""
    scores = []
    day = FIRST_DAY
    for value in weekly_values:
        for _ in range(days_per_week):
            scores.append(HealthScore(
                overall=value,
                nutrition=value,
                activity=value,
                hydration=value,
                fasting=value,
                as_of=day,
            ))
            day += timedelta(days=1)
    return scores


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


class TestEmptyHistory:

    def test_one_trend_per_metric(self, analyzer):
        trends = analyzer.compute_trends([])
        assert [t.metric for t in trends] == list(METRIC_NAMES)
        for trend in trends:
            assert trend.values == []
            assert trend.direction == TrendDirection.STABLE
            assert trend.prediction is None
            assert trend.velocity == 0

    def test_single_bucket_has_no_prediction(self, analyzer):
        trends = analyzer.compute_trends(history_from_weeks(70))
        assert trends[0].values == [70]
        assert trends[0].direction == TrendDirection.STABLE
        assert trends[0].prediction is None


class TestDirection:

    def test_improving(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(50, 60), ["overall"])[0]
        assert overall.direction == TrendDirection.IMPROVING
        assert overall.velocity == pytest.approx(10)
        assert overall.prediction == pytest.approx(70)

    def test_declining(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(80, 70, 60, 50), ["overall"])[0]
        assert overall.direction == TrendDirection.DECLINING
        assert overall.prediction == pytest.approx(40)

    def test_stable_within_threshold(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(60, 62, 61, 64), ["overall"])[0]
        assert overall.direction == TrendDirection.STABLE

    def test_volatile_takes_precedence_over_slope(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(40, 90, 30, 95), ["overall"])[0]
        assert overall.direction == TrendDirection.VOLATILE

    def test_threshold_is_exclusive(self, analyzer):
        assert analyzer.classify([50, 55]) == TrendDirection.STABLE
        assert analyzer.classify([50, 55.5]) == TrendDirection.IMPROVING

    def test_odd_bucket_count_ignores_middle(self, analyzer):
        # halves are [50] and [56]; the middle bucket is not compared
        assert analyzer.classify([50, 20, 56]) == TrendDirection.VOLATILE
        assert analyzer.classify([50, 53, 56]) == TrendDirection.IMPROVING


class TestPrediction:

    def test_clamped_to_100(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(90, 100), ["overall"])[0]
        assert overall.prediction == 100

    def test_clamped_to_0(self, analyzer):
        assert analyzer.predict([10, 0]) == 0

    def test_predicted_delta(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(50, 60), ["overall"])[0]
        assert overall.predicted_delta == pytest.approx(10)


class TestBucketing:

    def test_trailing_partial_bucket_is_kept(self, analyzer):
        history = history_from_weeks(50, 60)[:10]
        overall = analyzer.compute_trends(history, ["overall"])[0]
        assert overall.bucket_count == 2
        assert overall.values == [50, 60]

    def test_bucket_dates(self, analyzer):
        overall = analyzer.compute_trends(history_from_weeks(50, 60, 70), ["overall"])[0]
        assert overall.bucket_dates == [
            FIRST_DAY,
            FIRST_DAY + timedelta(days=7),
            FIRST_DAY + timedelta(days=14),
        ]

    def test_custom_bucket_size(self):
        analyzer = TrendAnalyzer(bucket_size=1)
        trends = analyzer.compute_trends(history_from_weeks(50, 60, days_per_week=1), ["hydration"])
        assert trends[0].values == [50, 60]

    def test_metrics_are_independent(self, analyzer):
        history = [
            HealthScore(overall=50, nutrition=20, activity=80, hydration=50, fasting=50, as_of=FIRST_DAY),
            HealthScore(overall=50, nutrition=80, activity=20, hydration=50, fasting=50, as_of=FIRST_DAY),
        ]
        analyzer = TrendAnalyzer(bucket_size=1)
        trends = {t.metric: t for t in analyzer.compute_trends(history)}
        assert trends["nutrition"].direction == TrendDirection.IMPROVING
        assert trends["activity"].direction == TrendDirection.DECLINING
        assert trends["hydration"].direction == TrendDirection.STABLE


class TestErrors:

    def test_unknown_metric(self, analyzer):
        with pytest.raises(ValueError):
            analyzer.compute_trends([], ["sleep"])

    def test_invalid_bucket_size(self):
        with pytest.raises(ValueError):
            TrendAnalyzer(bucket_size=0)

    def test_module_function_uses_defaults(self):
        trends = compute_trends(history_from_weeks(50, 60))
        assert len(trends) == len(METRIC_NAMES)
