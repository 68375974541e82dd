import pytest
from datetime import timedelta
from decimal import Decimal

from gamearena.models.common import utcnow
from gamearena.models.leaderboard_model import LeaderboardPeriod
from gamearena.schemas.tournament_schemas import TournamentCreate
from gamearena.schemas.user_schemas import UserCreate
from gamearena.services.leaderboard_service import LeaderboardService
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.participation_service import ParticipationService
from gamearena.services.settlement_service import SettlementService


@pytest.fixture
def store():
    return LedgerStore()

@pytest.fixture
def leaderboard_service(store):
    return LeaderboardService(store)

@pytest.fixture
def users(store):
    created = {}
    for name in ("alpha", "bravo", "charlie", "delta"):
        created[name] = store.create_user(
            UserCreate(username=name, email=f"{name}@example.com", password="secret1", full_name=name.title()),
            hashed_password="hashed",
        )
    created["admin"] = store.create_user(
        UserCreate(username="admin", email="admin@example.com", password="secret1", full_name="Admin"),
        hashed_password="hashed",
        is_admin=True,
    )
    return created

@pytest.fixture
def play(store, users, leaderboard_service):
    """Runs a free tournament with the given {username: (placement, prize)} results."""
    participation = ParticipationService(store)
    settlement = SettlementService(store, leaderboard_service)

    def _play(results):
        tournament = store.create_tournament(TournamentCreate(
            name="Kalahari Showdown", game="FREE_FIRE", game_mode="SOLO", max_players=10,
            entry_fee=Decimal("0"), prize_pool=Decimal("1000"),
        ))
        lines = []
        for name, (placement, prize) in results.items():
            participant = participation.join_tournament(tournament.id, users[name].id, name, name)
            lines.append({"participantId": participant.id, "placement": placement, "prizeWon": prize})
        return settlement.settle_tournament(tournament.id, users["admin"].id, lines)
    return _play


class TestLeaderboardService:

    def test_ranks_by_winnings_then_win_rate(self, leaderboard_service, play, users):
        play({"alpha": (1, "300"), "bravo": (2, "300"), "charlie": (3, "50")})

        board = leaderboard_service.get_leaderboard(LeaderboardPeriod.ALL_TIME)

        names = [user.username for _, user in board]
        # alpha and bravo tie on winnings; alpha has the better win rate
        assert names == ["alpha", "bravo", "charlie"]
        assert [entry.rank for entry, _ in board] == [1, 2, 3]
        assert board[0][0].win_rate == Decimal("100.00")
        assert board[1][0].win_rate == Decimal("0.00")

    def test_players_without_games_are_unranked(self, leaderboard_service, store, play, users):
        play({"alpha": (1, "100")})

        board = leaderboard_service.get_leaderboard(LeaderboardPeriod.ALL_TIME)

        assert [user.username for _, user in board] == ["alpha"]
        assert store.get_user(users["delta"].id).rank == 0
        assert store.get_user(users["alpha"].id).rank == 1

    def test_limit(self, leaderboard_service, play):
        play({"alpha": (1, "300"), "bravo": (2, "200"), "charlie": (3, "100")})
        assert len(leaderboard_service.get_leaderboard(LeaderboardPeriod.ALL_TIME, limit=2)) == 2

    def test_recompute_replaces_previous_entries(self, leaderboard_service, store, play):
        play({"alpha": (1, "300")})
        first = leaderboard_service.recompute(LeaderboardPeriod.ALL_TIME)
        second = leaderboard_service.recompute(LeaderboardPeriod.ALL_TIME)
        assert len(first) == len(second) == 1
        assert len(store.list_leaderboard(LeaderboardPeriod.ALL_TIME)) == 1

    def test_periods_use_rolling_windows(self, leaderboard_service, play, monkeypatch):
        play({"alpha": (1, "300"), "bravo": (2, "100")})
        assert len(leaderboard_service.get_leaderboard(LeaderboardPeriod.DAILY)) == 2

        later = utcnow() + timedelta(days=3)
        monkeypatch.setattr("gamearena.services.leaderboard_service.utcnow", lambda: later)
        leaderboard_service.recompute_all()

        assert leaderboard_service.get_leaderboard(LeaderboardPeriod.DAILY) == []
        weekly = leaderboard_service.get_leaderboard(LeaderboardPeriod.WEEKLY)
        assert [user.username for _, user in weekly] == ["alpha", "bravo"]
        assert weekly[0][0].total_winnings == Decimal("300.00")
        assert weekly[0][0].total_games == 1
        assert len(leaderboard_service.get_leaderboard(LeaderboardPeriod.ALL_TIME)) == 2

    def test_window_counts_games_and_wins(self, leaderboard_service, play):
        play({"alpha": (1, "100"), "bravo": (2, "0")})
        play({"alpha": (2, "0"), "bravo": (1, "100")})
        play({"alpha": (1, "100")})

        monthly = {user.username: entry for entry, user in leaderboard_service.get_leaderboard(LeaderboardPeriod.MONTHLY)}

        assert monthly["alpha"].total_games == 3
        assert monthly["alpha"].win_rate == Decimal("66.67")
        assert monthly["alpha"].total_winnings == Decimal("200.00")
        assert monthly["bravo"].total_games == 2
        assert monthly["alpha"].rank == 1
