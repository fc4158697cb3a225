"""
Trend Analyzer

Buckets a history of health scores into fixed-size periods, classifies
each metric's direction and extrapolates the next bucket.

Direction rules, evaluated in order:
1. volatile  - variance of bucket-to-bucket deltas above the ceiling
2. improving - second-half mean above first-half mean by > threshold
3. declining - second-half mean below first-half mean by > threshold
4. stable    - otherwise, and always with fewer than two buckets
"""

import statistics
from typing import List, Optional, Sequence

from models.analytics_models import (
    HealthScore,
    METRIC_NAMES,
    TrendData,
    TrendDirection,
)
from analytics.health_score import clamp_score


class TrendAnalyzer:
    """Week-over-week trend computation over daily health scores."""

    BUCKET_SIZE = 7              # history entries per bucket (one week of days)
    DIRECTION_THRESHOLD = 5.0    # points between half averages
    VOLATILITY_CEILING = 225.0   # variance of deltas (15-point std dev)

    def __init__(
        self,
        bucket_size: int = BUCKET_SIZE,
        threshold: float = DIRECTION_THRESHOLD,
        volatility_ceiling: float = VOLATILITY_CEILING,
    ):
        if bucket_size < 1:
            raise ValueError("bucket_size must be at least 1")
        self.bucket_size = bucket_size
        self.threshold = threshold
        self.volatility_ceiling = volatility_ceiling

    def compute_trends(
        self,
        history: Sequence[HealthScore],
        metrics: Sequence[str] = METRIC_NAMES,
    ) -> List[TrendData]:
        """
        Compute one TrendData per requested metric.

        Args:
            history: Scores ordered oldest to newest
            metrics: Metric names (overall, nutrition, activity, hydration, fasting)

        Returns:
            TrendData list in the order of `metrics`
        """
        for name in metrics:
            if name not in METRIC_NAMES:
                raise ValueError(f"Unknown health metric: {name}")

        buckets = self._bucketize(list(history))
        bucket_dates = [b[0].as_of for b in buckets if b[0].as_of is not None]
        if len(bucket_dates) != len(buckets):
            bucket_dates = []

        trends = []
        for name in metrics:
            values = [statistics.fmean(s.metric(name) for s in bucket) for bucket in buckets]
            trends.append(TrendData(
                metric=name,
                values=values,
                direction=self.classify(values),
                velocity=self.velocity(values),
                prediction=self.predict(values),
                bucket_dates=list(bucket_dates),
            ))
        return trends

    def classify(self, values: Sequence[float]) -> TrendDirection:
        """Classify a series of bucket averages."""
        if len(values) < 2:
            return TrendDirection.STABLE

        deltas = self._deltas(values)
        if len(deltas) >= 2 and statistics.pvariance(deltas) > self.volatility_ceiling:
            return TrendDirection.VOLATILE

        half = len(values) // 2
        first = statistics.fmean(values[:half])
        second = statistics.fmean(values[-half:])
        change = second - first

        if change > self.threshold:
            return TrendDirection.IMPROVING
        elif change < -self.threshold:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    def velocity(self, values: Sequence[float]) -> float:
        """Mean bucket-to-bucket change."""
        deltas = self._deltas(values)
        return statistics.fmean(deltas) if deltas else 0.0

    def predict(self, values: Sequence[float]) -> Optional[float]:
        """Last bucket plus mean delta, clamped. None below two buckets."""
        if len(values) < 2:
            return None
        return clamp_score(values[-1] + self.velocity(values))

    def _bucketize(self, history: List[HealthScore]) -> List[List[HealthScore]]:
        return [
            history[i:i + self.bucket_size]
            for i in range(0, len(history), self.bucket_size)
        ]

    @staticmethod
    def _deltas(values: Sequence[float]) -> List[float]:
        return [b - a for a, b in zip(values, values[1:])]


_default_analyzer = TrendAnalyzer()


def compute_trends(
    history: Sequence[HealthScore],
    metrics: Sequence[str] = METRIC_NAMES,
) -> List[TrendData]:
    """Compute trends with the default bucket size and thresholds."""
    return _default_analyzer.compute_trends(history, metrics)
