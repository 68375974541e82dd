from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field

from gamearena.models.common import CamelModel, Money, utcnow

class TransactionType(str, Enum):
    ENTRY_FEE = "ENTRY_FEE"
    PRIZE_WIN = "PRIZE_WIN"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"

class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

CREDIT_TYPES = {TransactionType.DEPOSIT, TransactionType.PRIZE_WIN}
DEBIT_TYPES = {TransactionType.ENTRY_FEE, TransactionType.WITHDRAWAL}

class Transaction(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    tournament_id: Optional[str] = None
    type: TransactionType
    amount: Money = Field(gt=0)  # always positive, direction comes from type
    status: TransactionStatus = TransactionStatus.PENDING
    description: Optional[str] = None
    payment_gateway: Optional[str] = None
    transaction_ref: Optional[str] = None
    sequence: int = 0  # assigned by the store, orders the ledger
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def signed_amount(self) -> Decimal:
        if TransactionType(self.type) in CREDIT_TYPES:
            return self.amount
        return -self.amount
