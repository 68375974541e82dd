"""
In-memory ledger store.

The store is the only component allowed to mutate users, tournaments,
participants, transactions and leaderboard entries. Stored models are never
mutated in place: every write swaps in a new copy, which is what lets a
UnitOfWork undo a half-finished operation by putting the old copies back.

Locking:
    * tournament_lock(id) and user_lock(id) are re-entrant per-aggregate locks.
      Callers that need both take the tournament lock first.
    * _guard protects the dictionaries themselves and is only ever held for
      short reads/writes, never while acquiring an aggregate lock.
    * Reads of a user and of its transactions take the user lock, so a wallet
      balance is never observed halfway through a posting.
    * Locks are only registered for users and tournaments that exist.
"""
import itertools
import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from gamearena.core.errors import (
    AlreadyJoinedError,
    DuplicateIdentityError,
    InsufficientFundsError,
    InvalidStateError,
    LedgerValidationError,
    NotFoundError,
    TournamentFullError,
)
from gamearena.models.common import CENTS, ZERO, to_money, utcnow
from gamearena.models.leaderboard_model import LeaderboardEntry, LeaderboardPeriod
from gamearena.models.participant_model import TournamentParticipant
from gamearena.models.tournament_model import Tournament, TournamentStatus, can_transition
from gamearena.models.transaction_model import Transaction, TransactionStatus, TransactionType
from gamearena.models.user_model import User
from gamearena.schemas import tournament_schemas, user_schemas

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Undo log for a group of store mutations.

    Open it while holding the aggregate locks of everything it touches so the
    restored copies cannot clobber a concurrent writer.
    """

    def __init__(self):
        self._undo: List[Callable[[], None]] = []

    def on_rollback(self, action: Callable[[], None]):
        self._undo.append(action)

    def rollback(self):
        while self._undo:
            action = self._undo.pop()
            action()

    def commit(self):
        self._undo.clear()


class LedgerStore:
    def __init__(self):
        self._users: Dict[str, User] = {}
        self._tournaments: Dict[str, Tournament] = {}
        self._participants: Dict[str, TournamentParticipant] = {}
        self._participant_index: Dict[Tuple[str, str], str] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._leaderboard: Dict[str, LeaderboardEntry] = {}
        self._leaderboard_index: Dict[Tuple[str, str], str] = {}

        self._guard = threading.RLock()
        self._user_locks: Dict[str, threading.RLock] = {}
        self._tournament_locks: Dict[str, threading.RLock] = {}
        self._leaderboard_lock = threading.RLock()
        self._sequence = itertools.count(1)

    # --- locking and units of work ---

    def _lock_for(self, registry: Dict[str, threading.RLock], entities: Dict, key: str, label: str) -> threading.RLock:
        with self._guard:
            if key not in entities:
                raise NotFoundError(f"{label} not found")
            lock = registry.get(key)
            if lock is None:
                lock = registry[key] = threading.RLock()
            return lock

    @contextmanager
    def user_lock(self, user_id: str) -> Iterator[None]:
        with self._lock_for(self._user_locks, self._users, user_id, "User"):
            yield

    @contextmanager
    def tournament_lock(self, tournament_id: str) -> Iterator[None]:
        with self._lock_for(self._tournament_locks, self._tournaments, tournament_id, "Tournament"):
            yield

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        uow = UnitOfWork()
        try:
            yield uow
        except BaseException:
            uow.rollback()
            raise
        uow.commit()

    def _put(self, table: Dict, key, value, uow: Optional[UnitOfWork]):
        with self._guard:
            previous = table.get(key)
            table[key] = value
        if uow is not None:
            uow.on_rollback(lambda: self._restore(table, key, previous))

    def _restore(self, table: Dict, key, previous):
        with self._guard:
            if previous is None:
                table.pop(key, None)
            else:
                table[key] = previous

    def _fetch(self, table: Dict, key: str, label: str):
        with self._guard:
            item = table.get(key)
        if item is None:
            raise NotFoundError(f"{label} not found")
        return item

    # --- users ---

    def get_user(self, user_id: str) -> User:
        with self.user_lock(user_id):
            return self._fetch(self._users, user_id, "User").model_copy(deep=True)

    def find_user_by_email(self, email: str) -> Optional[User]:
        wanted = email.casefold()
        with self._guard:
            user = next((u for u in self._users.values() if u.email.casefold() == wanted), None)
        return user.model_copy(deep=True) if user else None

    def find_user_by_username(self, username: str) -> Optional[User]:
        wanted = username.casefold()
        with self._guard:
            user = next((u for u in self._users.values() if u.username.casefold() == wanted), None)
        return user.model_copy(deep=True) if user else None

    def list_users(self) -> List[User]:
        with self._guard:
            users = list(self._users.values())
        return [u.model_copy(deep=True) for u in users]

    def create_user(self, registration: user_schemas.UserCreate, hashed_password: str, is_admin: bool = False) -> User:
        # Usernames and emails are unique regardless of case.
        with self._guard:
            if self.find_user_by_username(registration.username):
                raise DuplicateIdentityError(f"Username '{registration.username}' is already taken")
            if self.find_user_by_email(registration.email):
                raise DuplicateIdentityError(f"Email '{registration.email}' is already registered")
            user = User(
                **registration.model_dump(exclude={"password"}),
                hashed_password=hashed_password,
                is_admin=is_admin,
            )
            self._users[user.id] = user
        logger.info("Created user %s (%s)%s", user.id, user.username, " as admin" if is_admin else "")
        return user.model_copy(deep=True)

    def adjust_balance(self, user_id: str, signed_amount, uow: Optional[UnitOfWork] = None) -> User:
        amount = to_money(signed_amount)
        with self.user_lock(user_id):
            current = self._fetch(self._users, user_id, "User")
            new_balance = to_money(current.wallet_balance + amount)
            if new_balance < ZERO:
                raise InsufficientFundsError(
                    f"Insufficient wallet balance: {current.wallet_balance} available, {-amount} required"
                )
            updated = current.model_copy(update={"wallet_balance": new_balance, "updated_at": utcnow()})
            self._put(self._users, user_id, updated, uow)
        return updated.model_copy(deep=True)

    def update_user_stats(
        self,
        user_id: str,
        games: int = 0,
        wins: int = 0,
        winnings: Decimal = ZERO,
        uow: Optional[UnitOfWork] = None,
    ) -> User:
        with self.user_lock(user_id):
            current = self._fetch(self._users, user_id, "User")
            total_games = current.total_games + games
            total_wins = current.total_wins + wins
            win_rate = ZERO
            if total_games:
                win_rate = (Decimal(total_wins) * 100 / Decimal(total_games)).quantize(CENTS)
            updated = current.model_copy(update={
                "total_games": total_games,
                "total_wins": total_wins,
                "total_winnings": to_money(current.total_winnings + winnings),
                "win_rate": win_rate,
                "updated_at": utcnow(),
            })
            self._put(self._users, user_id, updated, uow)
        return updated.model_copy(deep=True)

    def set_global_rank(self, user_id: str, rank: int) -> User:
        with self.user_lock(user_id):
            current = self._fetch(self._users, user_id, "User")
            updated = current.model_copy(update={"rank": rank})
            self._put(self._users, user_id, updated, None)
        return updated.model_copy(deep=True)

    # --- tournaments ---

    def get_tournament(self, tournament_id: str) -> Tournament:
        return self._fetch(self._tournaments, tournament_id, "Tournament").model_copy(deep=True)

    def list_tournaments(self, game: Optional[str] = None, featured: bool = False, featured_limit: int = 6) -> List[Tournament]:
        """
        Newest first. Featured tournaments are the open ones (WAITING or LIVE),
        at most `featured_limit` of them; otherwise `game` filters when given.
        """
        with self._guard:
            tournaments = list(self._tournaments.values())
        tournaments.sort(key=lambda t: t.created_at, reverse=True)
        if featured:
            tournaments = [
                t for t in tournaments if t.status in (TournamentStatus.WAITING, TournamentStatus.LIVE)
            ][:featured_limit]
        elif game:
            tournaments = [t for t in tournaments if t.game == game]
        return [t.model_copy(deep=True) for t in tournaments]

    def create_tournament(self, data: tournament_schemas.TournamentCreate, created_by: Optional[str] = None) -> Tournament:
        try:
            tournament = Tournament(
                **data.model_dump(exclude={"created_by"}),
                created_by=created_by,
                current_players=0,
                status=TournamentStatus.WAITING,
            )
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid tournament data: {e.errors()[0]['msg']}")
        self._put(self._tournaments, tournament.id, tournament, None)
        logger.info("Created tournament %s (%s)", tournament.id, tournament.name)
        return tournament.model_copy(deep=True)

    def update_tournament(self, tournament_id: str, changes: Dict[str, Any]) -> Tournament:
        with self.tournament_lock(tournament_id):
            current = self._fetch(self._tournaments, tournament_id, "Tournament")
            new_status = changes.get("status")
            if new_status is not None and new_status != current.status and not can_transition(current.status, new_status):
                raise InvalidStateError(f"Cannot move tournament from {current.status} to {new_status}")
            max_players = changes.get("max_players")
            if max_players is not None and max_players < current.current_players:
                raise LedgerValidationError(
                    f"maxPlayers cannot be lower than the {current.current_players} players already joined"
                )
            entry_fee = changes.get("entry_fee")
            if entry_fee is not None and current.current_players and to_money(entry_fee) != current.entry_fee:
                raise InvalidStateError("Entry fee cannot change once players have joined")
            try:
                updated = Tournament.model_validate({
                    **current.model_dump(),
                    **changes,
                    "updated_at": utcnow(),
                })
            except ValidationError as e:
                raise LedgerValidationError(f"Invalid tournament update: {e.errors()[0]['msg']}")
            self._put(self._tournaments, tournament_id, updated, None)
        return updated.model_copy(deep=True)

    def transition_tournament(
        self,
        tournament_id: str,
        new_status: TournamentStatus,
        uow: Optional[UnitOfWork] = None,
        **fields,
    ) -> Tournament:
        with self.tournament_lock(tournament_id):
            current = self._fetch(self._tournaments, tournament_id, "Tournament")
            if not can_transition(current.status, new_status):
                raise InvalidStateError(f"Cannot move tournament from {current.status} to {TournamentStatus(new_status).value}")
            updated = current.model_copy(update={
                **fields,
                "status": TournamentStatus(new_status).value,
                "updated_at": utcnow(),
            })
            self._put(self._tournaments, tournament_id, updated, uow)
        return updated.model_copy(deep=True)

    def delete_tournament(self, tournament_id: str) -> bool:
        with self.tournament_lock(tournament_id):
            tournament = self._fetch(self._tournaments, tournament_id, "Tournament")
            if tournament.current_players or self.list_participants(tournament_id):
                raise InvalidStateError("Cannot delete a tournament that has participants")
            with self._guard:
                del self._tournaments[tournament_id]
                self._tournament_locks.pop(tournament_id, None)
        logger.info("Deleted tournament %s", tournament_id)
        return True

    # --- participants ---

    def get_participant(self, participant_id: str) -> TournamentParticipant:
        return self._fetch(self._participants, participant_id, "Participant").model_copy(deep=True)

    def find_participant(self, tournament_id: str, user_id: str) -> Optional[TournamentParticipant]:
        with self._guard:
            participant_id = self._participant_index.get((tournament_id, user_id))
            participant = self._participants.get(participant_id) if participant_id else None
        return participant.model_copy(deep=True) if participant else None

    def list_participants(self, tournament_id: str) -> List[TournamentParticipant]:
        with self._guard:
            participants = [p for p in self._participants.values() if p.tournament_id == tournament_id]
        participants.sort(key=lambda p: p.joined_at)
        return [p.model_copy(deep=True) for p in participants]

    def list_user_participations(self, user_id: str) -> List[TournamentParticipant]:
        with self._guard:
            participants = [p for p in self._participants.values() if p.user_id == user_id]
        participants.sort(key=lambda p: p.joined_at, reverse=True)
        return [p.model_copy(deep=True) for p in participants]

    def add_participant(
        self,
        tournament_id: str,
        user_id: str,
        in_game_name: str,
        in_game_id: str,
        uow: Optional[UnitOfWork] = None,
    ) -> TournamentParticipant:
        with self.tournament_lock(tournament_id):
            tournament = self._fetch(self._tournaments, tournament_id, "Tournament")
            self._fetch(self._users, user_id, "User")
            if tournament.current_players >= tournament.max_players:
                raise TournamentFullError("Tournament is full")
            with self._guard:
                if (tournament_id, user_id) in self._participant_index:
                    raise AlreadyJoinedError("User has already joined this tournament")
            participant = TournamentParticipant(
                tournament_id=tournament_id,
                user_id=user_id,
                in_game_name=in_game_name,
                in_game_id=in_game_id,
            )
            self._put(self._participants, participant.id, participant, uow)
            self._put(self._participant_index, (tournament_id, user_id), participant.id, uow)
            updated = tournament.model_copy(update={
                "current_players": tournament.current_players + 1,
                "updated_at": utcnow(),
            })
            self._put(self._tournaments, tournament_id, updated, uow)
        return participant.model_copy(deep=True)

    def update_participant(self, participant_id: str, changes: Dict[str, Any], uow: Optional[UnitOfWork] = None) -> TournamentParticipant:
        current = self._fetch(self._participants, participant_id, "Participant")
        with self.tournament_lock(current.tournament_id):
            current = self._fetch(self._participants, participant_id, "Participant")
            updated = current.model_copy(update=changes)
            self._put(self._participants, participant_id, updated, uow)
        return updated.model_copy(deep=True)

    # --- transactions ---

    def get_transaction(self, transaction_id: str) -> Transaction:
        return self._fetch(self._transactions, transaction_id, "Transaction").model_copy(deep=True)

    def record_transaction(
        self,
        user_id: str,
        type: TransactionType,
        amount,
        tournament_id: Optional[str] = None,
        description: Optional[str] = None,
        payment_gateway: Optional[str] = None,
        transaction_ref: Optional[str] = None,
        uow: Optional[UnitOfWork] = None,
    ) -> Transaction:
        amount = to_money(amount)
        if amount <= ZERO:
            raise LedgerValidationError("Transaction amount must be positive")
        with self.user_lock(user_id):
            self._fetch(self._users, user_id, "User")
            with self._guard:
                sequence = next(self._sequence)
            transaction = Transaction(
                user_id=user_id,
                tournament_id=tournament_id,
                type=type,
                amount=amount,
                description=description,
                payment_gateway=payment_gateway,
                transaction_ref=transaction_ref,
                sequence=sequence,
            )
            self._put(self._transactions, transaction.id, transaction, uow)
        return transaction.model_copy(deep=True)

    def update_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        uow: Optional[UnitOfWork] = None,
    ) -> Transaction:
        current = self._fetch(self._transactions, transaction_id, "Transaction")
        with self.user_lock(current.user_id):
            current = self._fetch(self._transactions, transaction_id, "Transaction")
            if current.status != TransactionStatus.PENDING:
                raise InvalidStateError(f"Transaction {transaction_id} is already {current.status}")
            updated = current.model_copy(update={"status": TransactionStatus(status).value})
            self._put(self._transactions, transaction_id, updated, uow)
        return updated.model_copy(deep=True)

    def list_user_transactions(self, user_id: str) -> List[Transaction]:
        """Newest first."""
        with self.user_lock(user_id), self._guard:
            transactions = [t for t in self._transactions.values() if t.user_id == user_id]
        transactions.sort(key=lambda t: t.sequence, reverse=True)
        return [t.model_copy(deep=True) for t in transactions]

    def list_transactions(self) -> List[Transaction]:
        with self._guard:
            transactions = list(self._transactions.values())
        transactions.sort(key=lambda t: t.sequence)
        return [t.model_copy(deep=True) for t in transactions]

    def balance_from_ledger(self, user_id: str) -> Decimal:
        """Replays the user's COMPLETED transactions; must always equal the wallet balance."""
        with self.user_lock(user_id), self._guard:
            completed = [
                t for t in self._transactions.values()
                if t.user_id == user_id and t.status == TransactionStatus.COMPLETED
            ]
        return to_money(sum((t.signed_amount for t in completed), ZERO))

    # --- leaderboard ---

    def upsert_leaderboard_entry(self, user_id: str, period: LeaderboardPeriod, stats: Dict[str, Any]) -> LeaderboardEntry:
        period = LeaderboardPeriod(period).value
        with self._leaderboard_lock:
            with self._guard:
                entry_id = self._leaderboard_index.get((user_id, period))
                existing = self._leaderboard.get(entry_id) if entry_id else None
            if existing:
                entry = existing.model_copy(update={**stats, "updated_at": utcnow()})
            else:
                entry = LeaderboardEntry(user_id=user_id, period=period, **stats)
            self._put(self._leaderboard, entry.id, entry, None)
            self._put(self._leaderboard_index, (user_id, period), entry.id, None)
        return entry.model_copy(deep=True)

    def replace_leaderboard(self, period: LeaderboardPeriod, entries: List[LeaderboardEntry]):
        period = LeaderboardPeriod(period).value
        with self._leaderboard_lock:
            with self._guard:
                stale = [e.id for e in self._leaderboard.values() if e.period == period]
                for entry_id in stale:
                    entry = self._leaderboard.pop(entry_id)
                    self._leaderboard_index.pop((entry.user_id, period), None)
                for entry in entries:
                    self._leaderboard[entry.id] = entry
                    self._leaderboard_index[(entry.user_id, period)] = entry.id

    def list_leaderboard(self, period: LeaderboardPeriod) -> List[LeaderboardEntry]:
        period = LeaderboardPeriod(period).value
        with self._guard:
            entries = [e for e in self._leaderboard.values() if e.period == period]
        return [e.model_copy(deep=True) for e in entries]

    # --- reporting ---

    def admin_stats(self) -> Dict[str, Any]:
        with self._guard:
            transactions = list(self._transactions.values())
            tournaments = list(self._tournaments.values())
            total_users = len(self._users)

        def completed_sum(tx_type: TransactionType) -> Decimal:
            return to_money(sum(
                (t.amount for t in transactions if t.type == tx_type and t.status == TransactionStatus.COMPLETED),
                ZERO,
            ))

        return {
            "total_revenue": completed_sum(TransactionType.ENTRY_FEE),
            "total_prizes_paid": completed_sum(TransactionType.PRIZE_WIN),
            "active_tournaments": sum(
                1 for t in tournaments if t.status in (TournamentStatus.WAITING, TournamentStatus.LIVE)
            ),
            "total_users": total_users,
            "total_transactions": len(transactions),
        }

    def check_invariants(self) -> List[str]:
        """Returns a description of every broken ledger invariant (empty when consistent)."""
        problems = []
        for user_id in [u.id for u in self.list_users()]:
            with self.user_lock(user_id):
                user = self.get_user(user_id)
                replayed = self.balance_from_ledger(user_id)
            if replayed != user.wallet_balance:
                problems.append(f"user {user.id}: balance {user.wallet_balance} != ledger {replayed}")
            if user.wallet_balance < ZERO:
                problems.append(f"user {user.id}: negative balance {user.wallet_balance}")
        for tournament in self.list_tournaments():
            joined = len(self.list_participants(tournament.id))
            if tournament.current_players != joined:
                problems.append(f"tournament {tournament.id}: currentPlayers {tournament.current_players} != {joined} participants")
            if tournament.current_players > tournament.max_players:
                problems.append(f"tournament {tournament.id}: over capacity")
        return problems
