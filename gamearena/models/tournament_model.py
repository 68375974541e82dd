from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional
from uuid import uuid4

from pydantic import Field, field_validator

from gamearena.models.common import CamelModel, Money, to_money, utcnow

class GameType(str, Enum):
    PUBG = "PUBG"
    FREE_FIRE = "FREE_FIRE"

class GameMode(str, Enum):
    SOLO = "SOLO"
    DUO = "DUO"
    SQUAD = "SQUAD"

class TournamentStatus(str, Enum):
    WAITING = "WAITING"
    STARTING = "STARTING"
    LIVE = "LIVE"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"

class TournamentTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"

# FINISHED is reachable from every open status because results may be recorded
# without the admin stepping through STARTING/LIVE first.
ALLOWED_TRANSITIONS = {
    TournamentStatus.WAITING: {TournamentStatus.STARTING, TournamentStatus.CANCELLED, TournamentStatus.FINISHED},
    TournamentStatus.STARTING: {TournamentStatus.LIVE, TournamentStatus.CANCELLED, TournamentStatus.FINISHED},
    TournamentStatus.LIVE: {TournamentStatus.FINISHED},
    TournamentStatus.FINISHED: set(),
    TournamentStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {TournamentStatus.FINISHED, TournamentStatus.CANCELLED}


def can_transition(current: str, new: str) -> bool:
    return TournamentStatus(new) in ALLOWED_TRANSITIONS[TournamentStatus(current)]


def validate_prize_distribution(distribution: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
    """
    Placement keys must be positive integers (as strings, e.g. {"1": 0.5}),
    each share within [0, 1] and the shares together no more than the whole pool.
    """
    if distribution is None:
        return None
    for placement, share in distribution.items():
        if not str(placement).isdigit() or int(placement) < 1:
            raise ValueError(f"Invalid placement '{placement}' in prize distribution")
        if share < 0 or share > 1:
            raise ValueError(f"Share for placement {placement} must be between 0 and 1")
    if sum(distribution.values()) > 1.0 + 1e-9:
        raise ValueError("Prize distribution shares must not sum to more than 1.0")
    return {str(int(k)): v for k, v in distribution.items()}


class Tournament(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: Optional[str] = None
    game: GameType
    game_mode: GameMode
    max_players: int = Field(gt=0)
    current_players: int = 0
    entry_fee: Money = Field(ge=0)
    prize_pool: Money = Field(ge=0)
    prize_distribution: Optional[Dict[str, float]] = None
    room_id: Optional[str] = None
    room_password: Optional[str] = None
    map_name: Optional[str] = None
    status: TournamentStatus = TournamentStatus.WAITING
    tier: TournamentTier = TournamentTier.BRONZE
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("prize_distribution")
    @classmethod
    def check_prize_distribution(cls, v):
        return validate_prize_distribution(v)

    def prize_for_placement(self, placement: int) -> Decimal:
        share = (self.prize_distribution or {}).get(str(placement), 0)
        return to_money(self.prize_pool * Decimal(str(share)))
