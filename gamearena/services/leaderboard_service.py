import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Tuple

from gamearena.core.errors import NotFoundError
from gamearena.models.common import CENTS, ZERO, to_money, utcnow
from gamearena.models.leaderboard_model import LeaderboardEntry, LeaderboardPeriod, PERIOD_WINDOWS
from gamearena.models.participant_model import ParticipantStatus
from gamearena.models.tournament_model import TournamentStatus
from gamearena.models.transaction_model import TransactionStatus, TransactionType
from gamearena.models.user_model import User
from gamearena.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


def _win_rate(wins: int, games: int) -> Decimal:
    if not games:
        return ZERO
    return (Decimal(wins) * 100 / Decimal(games)).quantize(CENTS)


class LeaderboardService:
    """
    Ranks players per period. "rank" is a position: 1 is the best player and
    the leaderboard is returned in ascending rank order.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def recompute(self, period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME) -> List[LeaderboardEntry]:
        """Regenerates every entry of the period from scratch."""
        period = LeaderboardPeriod(period)
        users = self.store.list_users()

        if period == LeaderboardPeriod.ALL_TIME:
            stats = {u.id: (u.total_winnings, u.total_games, u.total_wins) for u in users}
        else:
            stats = self._window_stats(period)

        rows = []
        for user_id, (winnings, games, wins) in stats.items():
            if games == 0 and winnings == ZERO:
                continue
            rows.append((user_id, to_money(winnings), games, _win_rate(wins, games)))
        rows.sort(key=lambda r: (-r[1], -r[3], -r[2], r[0]))

        entries = [
            LeaderboardEntry(
                user_id=user_id,
                period=period,
                total_winnings=winnings,
                total_games=games,
                win_rate=win_rate,
                rank=position,
            )
            for position, (user_id, winnings, games, win_rate) in enumerate(rows, start=1)
        ]
        self.store.replace_leaderboard(period, entries)

        if period == LeaderboardPeriod.ALL_TIME:
            positions = {e.user_id: e.rank for e in entries}
            for user in users:
                rank = positions.get(user.id, 0)
                if user.rank != rank:
                    self.store.set_global_rank(user.id, rank)

        logger.info("Recomputed %s leaderboard, %d ranked players", period.value, len(entries))
        return entries

    def recompute_all(self):
        for period in LeaderboardPeriod:
            self.recompute(period)

    def _window_stats(self, period: LeaderboardPeriod) -> Dict[str, Tuple[Decimal, int, int]]:
        since = utcnow() - PERIOD_WINDOWS[period]
        winnings: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        games: Dict[str, int] = defaultdict(int)
        wins: Dict[str, int] = defaultdict(int)

        for tx in self.store.list_transactions():
            if (tx.type == TransactionType.PRIZE_WIN and tx.status == TransactionStatus.COMPLETED
                    and tx.created_at >= since):
                winnings[tx.user_id] += tx.amount

        for tournament in self.store.list_tournaments():
            if tournament.status != TournamentStatus.FINISHED or not tournament.end_time or tournament.end_time < since:
                continue
            for participant in self.store.list_participants(tournament.id):
                if participant.status != ParticipantStatus.FINISHED:
                    continue
                games[participant.user_id] += 1
                if participant.placement == 1:
                    wins[participant.user_id] += 1

        user_ids = set(winnings) | set(games)
        return {uid: (winnings[uid], games[uid], wins[uid]) for uid in user_ids}

    def get_leaderboard(self, period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME, limit: int = 10) -> List[Tuple[LeaderboardEntry, User]]:
        entries = self.store.list_leaderboard(period)
        entries.sort(key=lambda e: (e.rank, -e.total_winnings, e.user_id))
        board = []
        for entry in entries[:limit]:
            try:
                user = self.store.get_user(entry.user_id)
            except NotFoundError:
                continue
            board.append((entry, user))
        return board
