# Analytics Package
from .activity_store import ActivityQuery, ActivityLogStore
from .health_score import HealthScoreCalculator, compute_health_score, clamp_score
from .trend_analyzer import TrendAnalyzer, compute_trends
from .insight_generator import InsightGenerator, generate_insights, pearson
from .analytics_service import AnalyticsService

__all__ = [
    "ActivityQuery",
    "ActivityLogStore",
    "HealthScoreCalculator",
    "compute_health_score",
    "clamp_score",
    "TrendAnalyzer",
    "compute_trends",
    "InsightGenerator",
    "generate_insights",
    "pearson",
    "AnalyticsService",
]
