from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from gamearena.core import security
from gamearena.core.config import Settings
from gamearena.core.errors import NotFoundError
from gamearena.models.user_model import User
from gamearena.services.leaderboard_service import LeaderboardService
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.participation_service import ParticipationService
from gamearena.services.settlement_service import SettlementService
from gamearena.services.tournament_service import TournamentService
from gamearena.services.user_service import UserService
from gamearena.services.wallet_service import WalletService

# The store and settings are created once per application in create_app()
# and handed to every request through app.state.

def get_store(request: Request) -> LedgerStore:
    return request.app.state.store

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_user_service(store: LedgerStore = Depends(get_store)) -> UserService:
    return UserService(store)

def get_tournament_service(store: LedgerStore = Depends(get_store), settings: Settings = Depends(get_settings)) -> TournamentService:
    return TournamentService(store, settings)

def get_participation_service(store: LedgerStore = Depends(get_store)) -> ParticipationService:
    return ParticipationService(store)

def get_wallet_service(store: LedgerStore = Depends(get_store), settings: Settings = Depends(get_settings)) -> WalletService:
    return WalletService(store, settings)

def get_leaderboard_service(store: LedgerStore = Depends(get_store)) -> LeaderboardService:
    return LeaderboardService(store)

def get_settlement_service(
    store: LedgerStore = Depends(get_store),
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
) -> SettlementService:
    return SettlementService(store, leaderboard)

def get_current_user(
    token: Optional[str] = Depends(security.oauth2_scheme),
    store: LedgerStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    user_id = security.decode_access_token(token, secret_key=settings.SECRET_KEY)
    if user_id is None:
        raise credentials_exception
    try:
        return store.get_user(user_id)
    except NotFoundError:
        raise credentials_exception
