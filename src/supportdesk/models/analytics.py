"""Analytics summary models."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class StatusCount(BaseModel):
    status: str
    count: int


class DailyCount(BaseModel):
    day: date
    count: int


class AnalyticsSummary(BaseModel):
    """Everything the agent dashboard shows, computed as of read time."""

    total: int
    by_status: List[StatusCount] = Field(default_factory=list)
    last_7_days: List[DailyCount] = Field(default_factory=list)
    avg_csat: Optional[float] = None
    avg_first_response_minutes: Optional[float] = None
