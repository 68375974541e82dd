from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import Field

from gamearena.models.common import CamelModel, Money, ZERO, utcnow

class User(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    username: str
    email: str
    hashed_password: str = Field(exclude=True, repr=False)
    full_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    wallet_balance: Money = ZERO
    total_winnings: Money = ZERO
    total_games: int = 0
    total_wins: int = 0
    win_rate: Decimal = ZERO  # percentage, 0-100
    rank: int = 0  # global position, 0 = unranked
    is_admin: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
