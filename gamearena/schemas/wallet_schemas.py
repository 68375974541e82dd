from datetime import datetime
from typing import List, Optional

from pydantic import Field

from gamearena.models.common import CamelModel, Money
from gamearena.models.transaction_model import TransactionStatus, TransactionType

class WalletOperationRequest(CamelModel):
    amount: Money = Field(gt=0)
    payment_gateway: Optional[str] = None  # e.g. "RAZORPAY", "PAYTM"
    transaction_ref: Optional[str] = None

class TransactionRead(CamelModel):
    id: str
    user_id: str
    tournament_id: Optional[str] = None
    type: TransactionType
    amount: Money
    status: TransactionStatus
    description: Optional[str] = None
    payment_gateway: Optional[str] = None
    transaction_ref: Optional[str] = None
    created_at: datetime

class TransactionListResponse(CamelModel):
    transactions: List[TransactionRead]

class TransactionResponse(CamelModel):
    transaction: TransactionRead
    message: str
