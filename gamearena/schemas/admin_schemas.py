from decimal import Decimal
from typing import Any, List, Optional

from pydantic import Field

from gamearena.models.common import CamelModel, Money

class AdminStats(CamelModel):
    total_revenue: Money
    total_prizes_paid: Money
    active_tournaments: int
    total_users: int
    total_transactions: int

class AdminStatsResponse(CamelModel):
    stats: AdminStats

class SettlementResult(CamelModel):
    """One line of an admin's results sheet."""
    participant_id: str
    placement: int = Field(ge=1)
    kills: int = Field(default=0, ge=0)
    survival_time: int = Field(default=0, ge=0)
    prize_won: Optional[Money] = Field(default=None, ge=0)  # derived from prizeDistribution when omitted
    points: Optional[int] = Field(default=None, ge=0)

class UpdateResultsRequest(CamelModel):
    admin_id: str
    # Items are validated one by one so a malformed line fails alone
    results: List[Any]

class SettlementOutcome(CamelModel):
    participant_id: Optional[str] = None
    success: bool
    prize_won: Money = Decimal("0.00")
    transaction_id: Optional[str] = None
    error: Optional[str] = None

class SettlementReport(CamelModel):
    tournament_id: str
    total_paid: Money
    prize_pool: Money
    outcomes: List[SettlementOutcome]
    warnings: List[str] = Field(default_factory=list)

class UpdateResultsResponse(CamelModel):
    message: str
    settlement: SettlementReport
