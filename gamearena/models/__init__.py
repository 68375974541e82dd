from .common import CamelModel, Money, to_money, utcnow
from .user_model import User
from .tournament_model import Tournament, TournamentStatus, GameType, GameMode, TournamentTier
from .participant_model import TournamentParticipant, ParticipantStatus
from .transaction_model import Transaction, TransactionType, TransactionStatus
from .leaderboard_model import LeaderboardEntry, LeaderboardPeriod
