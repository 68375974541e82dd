from fastapi import APIRouter, Depends

from gamearena.api.dependencies import get_current_user, get_store, get_tournament_service, get_user_service, get_wallet_service
from gamearena.models.user_model import User
from gamearena.schemas import tournament_schemas, user_schemas, wallet_schemas
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.tournament_service import ROOM_FIELDS, TournamentService
from gamearena.services.user_service import UserService
from gamearena.services.wallet_service import WalletService

router = APIRouter()

def _user_read(user: User) -> user_schemas.UserRead:
    return user_schemas.UserRead.model_validate(user.model_dump())

def _transaction_read(transaction) -> wallet_schemas.TransactionRead:
    return wallet_schemas.TransactionRead.model_validate(transaction.model_dump())

@router.get("/me", response_model=user_schemas.UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return user_schemas.UserResponse(user=_user_read(current_user))

@router.get("/{user_id}", response_model=user_schemas.UserResponse)
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return user_schemas.UserResponse(user=_user_read(service.get_user(user_id)))

@router.get("/{user_id}/tournaments", response_model=user_schemas.UserTournamentsResponse)
async def get_user_tournaments(user_id: str, service: TournamentService = Depends(get_tournament_service)):
    """Every tournament the user joined, with their participation record."""
    tournaments = []
    for participation, tournament in service.get_user_tournaments(user_id):
        tournament = tournament.model_copy(update=ROOM_FIELDS)
        tournaments.append(
            user_schemas.UserParticipationRead.model_validate({
                **participation.model_dump(),
                "tournament": tournament_schemas.TournamentRead.model_validate(tournament.model_dump()),
            })
        )
    return user_schemas.UserTournamentsResponse(tournaments=tournaments)

@router.get("/{user_id}/transactions", response_model=wallet_schemas.TransactionListResponse)
async def get_user_transactions(user_id: str, store: LedgerStore = Depends(get_store)):
    """Newest first."""
    store.get_user(user_id)
    transactions = store.list_user_transactions(user_id)
    return wallet_schemas.TransactionListResponse(transactions=[_transaction_read(t) for t in transactions])

@router.post("/{user_id}/deposit", response_model=wallet_schemas.TransactionResponse)
async def deposit(
    user_id: str,
    operation: wallet_schemas.WalletOperationRequest,
    service: WalletService = Depends(get_wallet_service),
):
    transaction = service.deposit(
        user_id,
        operation.amount,
        payment_gateway=operation.payment_gateway,
        transaction_ref=operation.transaction_ref,
    )
    return wallet_schemas.TransactionResponse(
        transaction=_transaction_read(transaction),
        message="Deposit successful",
    )

@router.post("/{user_id}/withdraw", response_model=wallet_schemas.TransactionResponse)
async def withdraw(
    user_id: str,
    operation: wallet_schemas.WalletOperationRequest,
    service: WalletService = Depends(get_wallet_service),
):
    transaction = service.withdraw(
        user_id,
        operation.amount,
        payment_gateway=operation.payment_gateway,
        transaction_ref=operation.transaction_ref,
    )
    return wallet_schemas.TransactionResponse(
        transaction=_transaction_read(transaction),
        message="Withdrawal successful",
    )
