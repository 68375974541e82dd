from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field

from gamearena.models.common import CamelModel, Money, ZERO, utcnow

class ParticipantStatus(str, Enum):
    JOINED = "JOINED"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"
    DISQUALIFIED = "DISQUALIFIED"

class TournamentParticipant(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    user_id: str
    in_game_name: str
    in_game_id: str
    kills: int = Field(default=0, ge=0)
    survival_time: int = Field(default=0, ge=0)  # seconds
    placement: Optional[int] = None  # set at settlement
    points: int = 0
    prize_won: Money = ZERO
    status: ParticipantStatus = ParticipantStatus.JOINED
    joined_at: datetime = Field(default_factory=utcnow)
