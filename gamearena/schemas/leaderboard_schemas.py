from datetime import datetime
from decimal import Decimal
from typing import List

from gamearena.models.common import CamelModel, Money
from gamearena.models.leaderboard_model import LeaderboardPeriod
from gamearena.schemas.user_schemas import UserRead

class LeaderboardEntryRead(CamelModel):
    id: str
    user_id: str
    period: LeaderboardPeriod
    total_winnings: Money
    total_games: int
    win_rate: Decimal
    rank: int
    updated_at: datetime
    user: UserRead

class LeaderboardResponse(CamelModel):
    leaderboard: List[LeaderboardEntryRead]
