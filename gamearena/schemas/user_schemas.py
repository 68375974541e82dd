from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import EmailStr, Field

from gamearena.models.common import CamelModel, Money
from gamearena.schemas.tournament_schemas import TournamentRead

class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=32)
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1)
    phone_number: Optional[str] = None
    avatar: Optional[str] = None

class UserRead(CamelModel):
    """Public profile; the password hash never leaves the store."""
    id: str
    username: str
    email: str
    full_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    wallet_balance: Money
    total_winnings: Money
    total_games: int
    win_rate: Decimal
    rank: int
    is_admin: bool
    created_at: datetime

class UserResponse(CamelModel):
    user: UserRead

class UserParticipationRead(CamelModel):
    id: str
    tournament_id: str
    in_game_name: str
    in_game_id: str
    kills: int
    survival_time: int
    placement: Optional[int] = None
    points: int
    prize_won: Money
    status: str
    joined_at: datetime
    tournament: TournamentRead

class UserTournamentsResponse(CamelModel):
    tournaments: List[UserParticipationRead]
