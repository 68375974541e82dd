from typing import Optional

from fastapi import APIRouter, Depends, Query

from gamearena.api.dependencies import get_participation_service, get_tournament_service
from gamearena.models.tournament_model import GameType
from gamearena.schemas import tournament_schemas
from gamearena.services.participation_service import ParticipationService
from gamearena.services.tournament_service import TournamentService

router = APIRouter()

def _read(tournament) -> tournament_schemas.TournamentRead:
    return tournament_schemas.TournamentRead.model_validate(tournament.model_dump())

@router.get("", response_model=tournament_schemas.TournamentListResponse, summary="List tournaments")
async def list_tournaments(
    game: Optional[GameType] = None,
    featured: bool = False,
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Newest first. `featured=true` returns up to six open (WAITING or LIVE)
    tournaments; otherwise `game` filters by PUBG or FREE_FIRE.
    """
    tournaments = service.list_tournaments(game=game, featured=featured)
    return tournament_schemas.TournamentListResponse(tournaments=[_read(t) for t in tournaments])

@router.get("/{tournament_id}", response_model=tournament_schemas.TournamentDetailResponse, summary="Tournament detail")
async def get_tournament(
    tournament_id: str,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Tournament with its participants. Room credentials are only included when
    `userId` names a participant or an admin.
    """
    tournament, participants = service.get_tournament_detail(tournament_id, viewer_id=user_id)
    return tournament_schemas.TournamentDetailResponse(
        tournament=_read(tournament),
        participants=[tournament_schemas.ParticipantRead.model_validate(p.model_dump()) for p in participants],
    )

@router.post("", response_model=tournament_schemas.TournamentResponse, summary="Create tournament (admin only)")
async def create_tournament(
    tournament_in: tournament_schemas.TournamentCreate,
    service: TournamentService = Depends(get_tournament_service),
):
    tournament = service.create_tournament(tournament_in)
    return tournament_schemas.TournamentResponse(tournament=_read(tournament))

@router.put("/{tournament_id}", response_model=tournament_schemas.TournamentResponse, summary="Update tournament (admin only)")
async def update_tournament(
    tournament_id: str,
    tournament_in: tournament_schemas.TournamentUpdate,
    admin_id: Optional[str] = Query(default=None, alias="adminId"),
    service: TournamentService = Depends(get_tournament_service),
):
    tournament = service.update_tournament(tournament_id, tournament_in, admin_id=admin_id)
    return tournament_schemas.TournamentResponse(tournament=_read(tournament))

@router.delete("/{tournament_id}", response_model=tournament_schemas.MessageResponse, summary="Delete tournament (admin only)")
async def delete_tournament(
    tournament_id: str,
    admin_id: Optional[str] = Query(default=None, alias="adminId"),
    service: TournamentService = Depends(get_tournament_service),
):
    """Only tournaments nobody has joined can be deleted."""
    service.delete_tournament(tournament_id, admin_id=admin_id)
    return tournament_schemas.MessageResponse(message="Tournament deleted successfully")

@router.post("/{tournament_id}/join", response_model=tournament_schemas.ParticipantResponse, summary="Join a tournament")
async def join_tournament(
    tournament_id: str,
    join_in: tournament_schemas.JoinTournamentRequest,
    service: ParticipationService = Depends(get_participation_service),
):
    """Charges the entry fee from the user's wallet and registers the player."""
    participant = service.join_tournament(
        tournament_id=tournament_id,
        user_id=join_in.user_id,
        in_game_name=join_in.in_game_name,
        in_game_id=join_in.in_game_id,
    )
    return tournament_schemas.ParticipantResponse(
        participant=tournament_schemas.ParticipantRead.model_validate(participant.model_dump())
    )
