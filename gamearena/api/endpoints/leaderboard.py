from fastapi import APIRouter, Depends, Query

from gamearena.api.dependencies import get_leaderboard_service
from gamearena.models.leaderboard_model import LeaderboardPeriod
from gamearena.schemas import leaderboard_schemas, user_schemas
from gamearena.services.leaderboard_service import LeaderboardService

router = APIRouter()

def leaderboard_response(board) -> leaderboard_schemas.LeaderboardResponse:
    return leaderboard_schemas.LeaderboardResponse(
        leaderboard=[
            leaderboard_schemas.LeaderboardEntryRead.model_validate({
                **entry.model_dump(),
                "user": user_schemas.UserRead.model_validate(user.model_dump()),
            })
            for entry, user in board
        ]
    )

@router.get("", response_model=leaderboard_schemas.LeaderboardResponse)
async def get_leaderboard(
    period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
    limit: int = Query(default=10, ge=1, le=100),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    return leaderboard_response(service.get_leaderboard(period, limit=limit))
