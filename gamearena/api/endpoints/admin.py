from typing import Optional

from fastapi import APIRouter, Depends, Query

from gamearena.api.dependencies import (
    get_leaderboard_service,
    get_settlement_service,
    get_tournament_service,
    get_user_service,
)
from gamearena.api.endpoints.leaderboard import leaderboard_response
from gamearena.models.leaderboard_model import LeaderboardPeriod
from gamearena.schemas import admin_schemas, leaderboard_schemas
from gamearena.services.leaderboard_service import LeaderboardService
from gamearena.services.settlement_service import SettlementService
from gamearena.services.tournament_service import TournamentService
from gamearena.services.user_service import UserService

router = APIRouter()

@router.get("/stats", response_model=admin_schemas.AdminStatsResponse)
async def get_stats(
    admin_id: Optional[str] = Query(default=None, alias="adminId"),
    service: TournamentService = Depends(get_tournament_service),
):
    stats = service.admin_stats(admin_id)
    return admin_schemas.AdminStatsResponse(stats=admin_schemas.AdminStats.model_validate(stats))

@router.put("/tournaments/{tournament_id}/update-results", response_model=admin_schemas.UpdateResultsResponse)
async def update_results(
    tournament_id: str,
    request: admin_schemas.UpdateResultsRequest,
    service: SettlementService = Depends(get_settlement_service),
):
    """
    Finishes the tournament and pays out prizes. Each result line succeeds or
    fails on its own; the report lists the outcome of every line.
    """
    report = service.settle_tournament(tournament_id, request.admin_id, request.results)
    return admin_schemas.UpdateResultsResponse(message="Results updated successfully", settlement=report)

@router.post("/leaderboard/recompute", response_model=leaderboard_schemas.LeaderboardResponse)
async def recompute_leaderboard(
    admin_id: Optional[str] = Query(default=None, alias="adminId"),
    period: Optional[LeaderboardPeriod] = None,
    limit: int = Query(default=10, ge=1, le=100),
    users: UserService = Depends(get_user_service),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    """Rebuilds one period (or all of them when none is given) and returns its top entries."""
    users.require_admin(admin_id)
    if period:
        service.recompute(period)
    else:
        service.recompute_all()
    return leaderboard_response(service.get_leaderboard(period or LeaderboardPeriod.ALL_TIME, limit=limit))
