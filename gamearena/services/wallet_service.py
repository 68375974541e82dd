import logging
from decimal import Decimal
from typing import Optional

from gamearena.core.config import Settings, settings as default_settings
from gamearena.core.errors import InsufficientFundsError, LedgerValidationError
from gamearena.models.common import to_money
from gamearena.models.transaction_model import DEBIT_TYPES, Transaction, TransactionStatus, TransactionType
from gamearena.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

class WalletService:
    """Simulated deposits and withdrawals; no payment gateway is contacted."""

    def __init__(self, store: LedgerStore, settings: Settings = default_settings):
        self.store = store
        self.settings = settings

    def deposit(
        self,
        user_id: str,
        amount: Decimal,
        payment_gateway: Optional[str] = None,
        transaction_ref: Optional[str] = None,
    ) -> Transaction:
        amount = to_money(amount)
        self._check_limits(amount, self.settings.MIN_DEPOSIT, self.settings.MAX_DEPOSIT, "Deposit")
        return self._post(user_id, TransactionType.DEPOSIT, amount, "Wallet deposit", payment_gateway, transaction_ref)

    def withdraw(
        self,
        user_id: str,
        amount: Decimal,
        payment_gateway: Optional[str] = None,
        transaction_ref: Optional[str] = None,
    ) -> Transaction:
        amount = to_money(amount)
        self._check_limits(amount, self.settings.MIN_WITHDRAWAL, self.settings.MAX_WITHDRAWAL, "Withdrawal")
        with self.store.user_lock(user_id):
            user = self.store.get_user(user_id)
            if user.wallet_balance < amount:
                logger.info("Withdrawal of %s rejected for user %s (balance %s)", amount, user_id, user.wallet_balance)
                raise InsufficientFundsError("Insufficient wallet balance")
            return self._post(user_id, TransactionType.WITHDRAWAL, amount, "Wallet withdrawal", payment_gateway, transaction_ref)

    def _check_limits(self, amount: Decimal, minimum: Decimal, maximum: Decimal, label: str):
        if amount < minimum:
            raise LedgerValidationError(f"{label} amount must be at least {to_money(minimum)}")
        if amount > maximum:
            raise LedgerValidationError(f"{label} amount must not exceed {to_money(maximum)}")

    def _post(self, user_id, tx_type, amount, description, payment_gateway, transaction_ref) -> Transaction:
        signed = -amount if tx_type in DEBIT_TYPES else amount
        with self.store.user_lock(user_id):
            with self.store.unit_of_work() as uow:
                transaction = self.store.record_transaction(
                    user_id=user_id,
                    type=tx_type,
                    amount=amount,
                    description=description,
                    payment_gateway=payment_gateway,
                    transaction_ref=transaction_ref,
                    uow=uow,
                )
                self.store.adjust_balance(user_id, signed, uow=uow)
                transaction = self.store.update_transaction_status(transaction.id, TransactionStatus.COMPLETED, uow=uow)
        logger.info("%s of %s completed for user %s", tx_type.value, amount, user_id)
        return transaction
