import logging

from gamearena.core.errors import InsufficientFundsError, InvalidStateError, TournamentFullError
from gamearena.models.common import ZERO
from gamearena.models.participant_model import TournamentParticipant
from gamearena.models.tournament_model import TournamentStatus
from gamearena.models.transaction_model import TransactionStatus, TransactionType
from gamearena.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

class ParticipationService:
    def __init__(self, store: LedgerStore):
        self.store = store

    def join_tournament(self, tournament_id: str, user_id: str, in_game_name: str, in_game_id: str) -> TournamentParticipant:
        """
        Buys a user into a tournament.

        Capacity check, participant insert and player-count increment happen
        under the tournament lock; the balance check, debit and ENTRY_FEE record
        under the user lock. Everything after the checks runs in one unit of
        work, so a failure leaves neither a participant nor a debit behind.
        """
        with self.store.tournament_lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            if tournament.status != TournamentStatus.WAITING:
                raise InvalidStateError(f"Tournament is {tournament.status} and no longer accepts players")
            if tournament.current_players >= tournament.max_players:
                logger.info("Join rejected, tournament %s is full", tournament_id)
                raise TournamentFullError("Tournament is full")

            with self.store.user_lock(user_id):
                user = self.store.get_user(user_id)
                if user.wallet_balance < tournament.entry_fee:
                    logger.info(
                        "Join rejected, user %s has %s but entry fee is %s",
                        user_id, user.wallet_balance, tournament.entry_fee,
                    )
                    raise InsufficientFundsError("Insufficient wallet balance")

                with self.store.unit_of_work() as uow:
                    participant = self.store.add_participant(
                        tournament_id, user_id, in_game_name, in_game_id, uow=uow
                    )
                    if tournament.entry_fee > ZERO:
                        transaction = self.store.record_transaction(
                            user_id=user_id,
                            type=TransactionType.ENTRY_FEE,
                            amount=tournament.entry_fee,
                            tournament_id=tournament_id,
                            description=f"Entry fee for {tournament.name}",
                            uow=uow,
                        )
                        self.store.adjust_balance(user_id, -tournament.entry_fee, uow=uow)
                        self.store.update_transaction_status(transaction.id, TransactionStatus.COMPLETED, uow=uow)

        logger.info("User %s joined tournament %s (fee %s)", user_id, tournament_id, tournament.entry_fee)
        return participant
