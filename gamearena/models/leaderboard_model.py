from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import Field

from gamearena.models.common import CamelModel, Money, ZERO, utcnow

class LeaderboardPeriod(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    ALL_TIME = "ALL_TIME"

# Rolling windows; ALL_TIME has none
PERIOD_WINDOWS = {
    LeaderboardPeriod.DAILY: timedelta(days=1),
    LeaderboardPeriod.WEEKLY: timedelta(days=7),
    LeaderboardPeriod.MONTHLY: timedelta(days=30),
}

class LeaderboardEntry(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    period: LeaderboardPeriod
    total_winnings: Money = ZERO
    total_games: int = 0
    win_rate: Decimal = ZERO
    rank: int = 0  # 1 is best
    updated_at: datetime = Field(default_factory=utcnow)
