"""
Analytics Data Models

Defines the derived values produced by the analytics engine:
health scores, metric trends, smart insights and the weekly report.

All of these are value objects computed fresh on every call.
The engine keeps no reference to them once returned.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


SUB_SCORE_NAMES = ("nutrition", "activity", "hydration", "fasting")
METRIC_NAMES = ("overall",) + SUB_SCORE_NAMES


@dataclass(frozen=True)
class HealthScore:
    """
    Deterministic health score, every field within 0-100.

    `as_of` is the first day of the window the score was computed for.
    """
    overall: float = 0.0
    nutrition: float = 0.0
    activity: float = 0.0
    hydration: float = 0.0
    fasting: float = 0.0
    as_of: Optional[date] = None

    def metric(self, name: str) -> float:
        """Value of a metric by name."""
        if name not in METRIC_NAMES:
            raise ValueError(f"Unknown health metric: {name}")
        return getattr(self, name)

    def sub_scores(self) -> dict:
        return {name: getattr(self, name) for name in SUB_SCORE_NAMES}

    # Grade based on score
    @property
    def grade(self) -> str:
        """Get letter grade for the overall score."""
        if self.overall >= 90:
            return "A"
        elif self.overall >= 80:
            return "B"
        elif self.overall >= 70:
            return "C"
        elif self.overall >= 60:
            return "D"
        else:
            return "F"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "overall": self.overall,
            "nutrition": self.nutrition,
            "activity": self.activity,
            "hydration": self.hydration,
            "fasting": self.fasting,
            "grade": self.grade,
            "as_of": self.as_of.isoformat() if self.as_of else None,
        }


class TrendDirection(Enum):
    """Direction of a metric over the analysed history."""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    VOLATILE = "volatile"


@dataclass(frozen=True)
class TrendData:
    """
    Trend for one metric.

    `values` are bucket averages, oldest first. `velocity` is the mean
    bucket-to-bucket change; `prediction` is None with fewer than two
    buckets of history.
    """
    metric: str
    values: List[float]
    direction: TrendDirection = TrendDirection.STABLE
    velocity: float = 0.0
    prediction: Optional[float] = None
    bucket_dates: List[date] = field(default_factory=list)

    @property
    def bucket_count(self) -> int:
        return len(self.values)

    @property
    def predicted_delta(self) -> Optional[float]:
        """Predicted change from the latest bucket."""
        if self.prediction is None or not self.values:
            return None
        return self.prediction - self.values[-1]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "metric": self.metric,
            "values": [round(v, 2) for v in self.values],
            "direction": self.direction.value,
            "velocity": round(self.velocity, 2),
            "prediction": round(self.prediction, 2) if self.prediction is not None else None,
            "bucket_dates": [d.isoformat() for d in self.bucket_dates],
        }


class InsightCategory(Enum):
    """
    Insight categories.
    Ties in the final ordering are broken in this priority order:
    WARNING > ACHIEVEMENT > OPTIMIZATION > CORRELATION > PREDICTION
    """
    WARNING = "warning"
    ACHIEVEMENT = "achievement"
    OPTIMIZATION = "optimization"
    CORRELATION = "correlation"
    PREDICTION = "prediction"


CATEGORY_PRIORITY = {
    InsightCategory.WARNING: 0,
    InsightCategory.ACHIEVEMENT: 1,
    InsightCategory.OPTIMIZATION: 2,
    InsightCategory.CORRELATION: 3,
    InsightCategory.PREDICTION: 4,
}


@dataclass(frozen=True)
class SmartInsight:
    """
    Human-readable insight from one rule.

    Impact is signed: positive for favourable movement, negative for
    warnings. Ids are regenerated on every analysis pass.
    """
    insight_id: str
    rule: str
    title: str
    description: str
    category: InsightCategory
    confidence: float  # 0-100
    impact: float      # -100 to 100
    actionable: bool = False
    recommendation: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "insight_id": self.insight_id,
            "rule": self.rule,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "confidence": round(self.confidence, 1),
            "impact": round(self.impact, 1),
            "actionable": self.actionable,
            "recommendation": self.recommendation,
        }


@dataclass
class AnalyticsReport:
    """
    Weekly analytics report for dashboard display.
    """
    computed_at: datetime
    health_score: HealthScore
    insights: List[SmartInsight]
    trends: List[TrendData]
    predictions: List[str]
    recommendations: List[str]

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "computed_at": self.computed_at.isoformat(),
            "health_score": self.health_score.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
            "trends": [t.to_dict() for t in self.trends],
            "predictions": self.predictions,
            "recommendations": self.recommendations,
        }
