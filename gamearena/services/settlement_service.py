"""
Tournament settlement.

Marks a tournament FINISHED, records every participant's result and pays
prizes. The status change happens first and is the idempotence guard: a
second settlement of the same tournament fails with InvalidStateError before
touching any balance. Each result line is then its own unit of work, so a
bad line is reported and rolled back without undoing the lines already paid.
"""
import logging
from typing import Any, List, Optional, Set

from pydantic import ValidationError

from gamearena.core.errors import InvalidStateError, LedgerError, LedgerValidationError
from gamearena.models.common import ZERO, to_money, utcnow
from gamearena.models.participant_model import ParticipantStatus
from gamearena.models.tournament_model import TERMINAL_STATUSES, Tournament, TournamentStatus
from gamearena.models.transaction_model import TransactionStatus, TransactionType
from gamearena.schemas.admin_schemas import SettlementOutcome, SettlementReport, SettlementResult
from gamearena.services.leaderboard_service import LeaderboardService
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.user_service import UserService

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(self, store: LedgerStore, leaderboard: Optional[LeaderboardService] = None):
        self.store = store
        self.users = UserService(store)
        self.leaderboard = leaderboard or LeaderboardService(store)

    def settle_tournament(self, tournament_id: str, admin_id: str, results: List[Any]) -> SettlementReport:
        self.users.require_admin(admin_id)

        with self.store.tournament_lock(tournament_id):
            tournament = self.store.get_tournament(tournament_id)
            if tournament.status in TERMINAL_STATUSES:
                raise InvalidStateError(f"Tournament is already {tournament.status}")
            tournament = self.store.transition_tournament(
                tournament_id, TournamentStatus.FINISHED, end_time=utcnow()
            )

            outcomes = []
            seen: Set[str] = set()
            for raw in results:
                outcomes.append(self._settle_one(tournament, raw, seen))

        total_paid = to_money(sum((o.prize_won for o in outcomes if o.success), ZERO))
        warnings = []
        if total_paid > tournament.prize_pool:
            message = f"Total prizes paid ({total_paid}) exceed the prize pool ({tournament.prize_pool})"
            logger.warning("Tournament %s: %s", tournament_id, message)
            warnings.append(message)

        failed = sum(1 for o in outcomes if not o.success)
        logger.info(
            "Settled tournament %s: %d results, %d failed, %s paid",
            tournament_id, len(outcomes), failed, total_paid,
        )
        self.leaderboard.recompute_all()

        return SettlementReport(
            tournament_id=tournament_id,
            total_paid=total_paid,
            prize_pool=tournament.prize_pool,
            outcomes=outcomes,
            warnings=warnings,
        )

    def _settle_one(self, tournament: Tournament, raw: Any, seen: Set[str]) -> SettlementOutcome:
        participant_id = raw.get("participantId", raw.get("participant_id")) if isinstance(raw, dict) else None
        try:
            result = SettlementResult.model_validate(raw)
        except ValidationError as e:
            error = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
                for err in e.errors()
            )
            logger.info("Rejected malformed result line for tournament %s: %s", tournament.id, error)
            return SettlementOutcome(participant_id=participant_id, success=False, error=error)

        try:
            return self._apply_result(tournament, result, seen)
        except LedgerError as e:
            logger.info("Result for participant %s not applied: %s", result.participant_id, e.message)
            return SettlementOutcome(participant_id=result.participant_id, success=False, error=e.message)

    def _apply_result(self, tournament: Tournament, result: SettlementResult, seen: Set[str]) -> SettlementOutcome:
        if result.participant_id in seen:
            raise LedgerValidationError("Duplicate result for participant")
        participant = self.store.get_participant(result.participant_id)
        if participant.tournament_id != tournament.id:
            raise LedgerValidationError("Participant does not belong to this tournament")
        seen.add(result.participant_id)

        prize = result.prize_won
        if prize is None:
            prize = tournament.prize_for_placement(result.placement)
        prize = to_money(prize)

        transaction_id = None
        with self.store.user_lock(participant.user_id):
            with self.store.unit_of_work() as uow:
                changes = {
                    "placement": result.placement,
                    "kills": result.kills,
                    "survival_time": result.survival_time,
                    "prize_won": prize,
                    "status": ParticipantStatus.FINISHED.value,
                }
                if result.points is not None:
                    changes["points"] = result.points
                self.store.update_participant(participant.id, changes, uow=uow)

                if prize > ZERO:
                    transaction = self.store.record_transaction(
                        user_id=participant.user_id,
                        type=TransactionType.PRIZE_WIN,
                        amount=prize,
                        tournament_id=tournament.id,
                        description=f"Prize for {tournament.name} (placement #{result.placement})",
                        uow=uow,
                    )
                    self.store.adjust_balance(participant.user_id, prize, uow=uow)
                    self.store.update_transaction_status(transaction.id, TransactionStatus.COMPLETED, uow=uow)
                    transaction_id = transaction.id

                self.store.update_user_stats(
                    participant.user_id,
                    games=1,
                    wins=1 if result.placement == 1 else 0,
                    winnings=prize,
                    uow=uow,
                )

        if prize > ZERO:
            logger.info("Paid %s to user %s for tournament %s", prize, participant.user_id, tournament.id)
        return SettlementOutcome(
            participant_id=participant.id,
            success=True,
            prize_won=prize,
            transaction_id=transaction_id,
        )
