# analytics models — live summary schemas
# mirrors frontend AnalyticsInsights AnalyticsSummary

from pydantic import BaseModel, Field


class HourlyBucket(BaseModel):
    """session counts for one local hour of today"""
    hour: int
    scheduled: int = 0
    completed: int = 0
    cancelled: int = 0


class ActivityItem(BaseModel):
    """a recently updated session, reduced for the activity feed"""
    time: str
    action: str
    patient: str
    therapy: str


class Trends(BaseModel):
    completion_trend: float = Field(0.0, alias="completionTrend")
    cancellation_rate: float = Field(0.0, alias="cancellationRate")
    # today's total only, not a multi-day average
    average_sessions_per_day: float = Field(0.0, alias="averageSessionsPerDay")

    model_config = {"populate_by_name": True}


class AnalyticsSummary(BaseModel):
    """recomputed-on-demand snapshot of an owner's schedule.
    the same shape is returned by /summary and pushed on /stream."""
    timestamp: str
    status_counts: dict[str, int] = Field(default_factory=dict, alias="statusCounts")
    hourly: list[HourlyBucket] = Field(default_factory=list)
    success_rate: float = Field(0.0, alias="successRate")
    total_sessions: int = Field(0, alias="totalSessions")
    recent_activity: list[ActivityItem] = Field(default_factory=list, alias="recentActivity")
    trends: Trends = Field(default_factory=Trends)

    model_config = {"populate_by_name": True, "frozen": True}
