from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, ValidationInfo, field_validator

from gamearena.models.common import CamelModel, Money
from gamearena.models.participant_model import ParticipantStatus
from gamearena.models.tournament_model import (
    GameMode,
    GameType,
    TournamentStatus,
    TournamentTier,
    validate_prize_distribution,
)

class TournamentBase(CamelModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None
    game: GameType
    game_mode: GameMode
    max_players: int = Field(gt=0)
    entry_fee: Money = Field(ge=0)
    prize_pool: Money = Field(ge=0)
    prize_distribution: Optional[Dict[str, float]] = None  # {"1": 0.5, "2": 0.3, "3": 0.2}
    room_id: Optional[str] = None
    room_password: Optional[str] = None
    map_name: Optional[str] = None
    tier: TournamentTier = TournamentTier.BRONZE
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("prize_distribution")
    @classmethod
    def check_prize_distribution(cls, v):
        return validate_prize_distribution(v)

    @field_validator("end_time")
    @classmethod
    def end_time_after_start_time(cls, v, info: ValidationInfo):
        start = info.data.get("start_time")
        if v and start and v < start:
            raise ValueError("End time must be after start time")
        return v

class TournamentCreate(TournamentBase):
    created_by: Optional[str] = None  # id of the admin creating it

class TournamentUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=100)
    description: Optional[str] = None
    game: Optional[GameType] = None
    game_mode: Optional[GameMode] = None
    max_players: Optional[int] = Field(default=None, gt=0)
    entry_fee: Optional[Money] = Field(default=None, ge=0)
    prize_pool: Optional[Money] = Field(default=None, ge=0)
    prize_distribution: Optional[Dict[str, float]] = None
    room_id: Optional[str] = None
    room_password: Optional[str] = None
    map_name: Optional[str] = None
    status: Optional[TournamentStatus] = None
    tier: Optional[TournamentTier] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("prize_distribution")
    @classmethod
    def check_prize_distribution(cls, v):
        return validate_prize_distribution(v)

class TournamentRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    game: GameType
    game_mode: GameMode
    max_players: int
    current_players: int
    entry_fee: Money
    prize_pool: Money
    prize_distribution: Optional[Dict[str, float]] = None
    # Only filled in for joined participants and admins
    room_id: Optional[str] = None
    room_password: Optional[str] = None
    map_name: Optional[str] = None
    status: TournamentStatus
    tier: TournamentTier
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class ParticipantRead(CamelModel):
    id: str
    tournament_id: str
    user_id: str
    in_game_name: str
    in_game_id: str
    kills: int
    survival_time: int
    placement: Optional[int] = None
    points: int
    prize_won: Money
    status: ParticipantStatus
    joined_at: datetime

class JoinTournamentRequest(CamelModel):
    user_id: str
    in_game_name: str = Field(min_length=1)
    in_game_id: str = Field(min_length=1)

class TournamentResponse(CamelModel):
    tournament: TournamentRead

class TournamentListResponse(CamelModel):
    tournaments: List[TournamentRead]

class TournamentDetailResponse(CamelModel):
    tournament: TournamentRead
    participants: List[ParticipantRead]

class ParticipantResponse(CamelModel):
    participant: ParticipantRead

class MessageResponse(CamelModel):
    message: str
