from decimal import Decimal
from typing import List, Optional, Tuple, assert_never
import structlog

from errors import (
    AccountLockedError,
    AlreadyDisputedTransactionError,
    IneligibleTransactionError,
    InsufficientFundsError,
    NonDisputedTransactionError,
    TransactionNotFoundError,
)
from models import Account, Chargeback, Deposit, Dispute, Resolve, Transaction, Withdrawal
from repositories import (
    AccountRepository,
    DisputeRepository,
    InMemoryAccountRepository,
    InMemoryDisputeRepository,
    InMemoryTransactionHistoryRepository,
    TransactionHistoryRepository,
)

logger = structlog.get_logger(__name__)


class Engine:
    """Applies transactions, one at a time and in arrival order, to client accounts.

    The engine owns three stores: the account ledger, the history of settled
    deposits and withdrawals, and the set of tx ids currently under dispute.
    ``execute`` either applies a transaction completely or raises an
    ``ExecutionError`` subclass without touching any balance.
    Once an account is locked every transaction that touches it is rejected.

    Diagnostics go through structlog; a host that does not import ``main``
    configures structlog itself before running the engine.
    """

    def __init__(
        self,
        account_repo: Optional[AccountRepository] = None,
        history_repo: Optional[TransactionHistoryRepository] = None,
        dispute_repo: Optional[DisputeRepository] = None,
    ):
        self.account_repo = account_repo or InMemoryAccountRepository()
        self.history_repo = history_repo or InMemoryTransactionHistoryRepository()
        self.dispute_repo = dispute_repo or InMemoryDisputeRepository()

    def execute(self, transaction: Transaction) -> None:
        """Apply a single transaction to the ledger."""
        match transaction:
            case Deposit():
                self._deposit(transaction)
            case Withdrawal():
                self._withdraw(transaction)
            case Dispute():
                self._dispute(transaction)
            case Resolve():
                self._resolve(transaction)
            case Chargeback():
                self._chargeback(transaction)
            case _:
                assert_never(transaction)

        logger.debug(
            "Transaction applied",
            type=transaction.type,
            account_id=transaction.account,
            tx_id=transaction.tx_id,
        )

    def accounts(self) -> List[Account]:
        """All accounts, ascending by identifier."""
        return self.account_repo.list_accounts()

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.account_repo.get(account_id)

    @property
    def accounts_count(self) -> int:
        return self.account_repo.get_accounts_count()

    @property
    def transactions_count(self) -> int:
        return self.history_repo.get_transactions_count()

    @property
    def disputes_count(self) -> int:
        return self.dispute_repo.get_disputes_count()

    def _deposit(self, transaction: Deposit) -> None:
        account = self._fetch_unlocked_account(transaction.account, transaction.tx_id)
        account.available += transaction.amount
        account.total += transaction.amount
        self.history_repo.record(transaction)

    def _withdraw(self, transaction: Withdrawal) -> None:
        account = self._fetch_unlocked_account(transaction.account, transaction.tx_id)
        if account.available < transaction.amount:
            raise InsufficientFundsError(account.id, transaction.tx_id)

        account.available -= transaction.amount
        account.total -= transaction.amount
        self.history_repo.record(transaction)

    def _dispute(self, transaction: Dispute) -> None:
        if self.dispute_repo.contains(transaction.tx_id):
            raise AlreadyDisputedTransactionError(transaction.account, transaction.tx_id)

        account, amount = self._fetch_disputable(transaction.tx_id)
        account.available -= amount
        account.held += amount
        self.dispute_repo.add(transaction.tx_id)

    def _resolve(self, transaction: Resolve) -> None:
        if not self.dispute_repo.contains(transaction.tx_id):
            raise NonDisputedTransactionError(transaction.account, transaction.tx_id)

        account, amount = self._fetch_disputable(transaction.tx_id)
        account.available += amount
        account.held -= amount
        self.dispute_repo.remove(transaction.tx_id)

    def _chargeback(self, transaction: Chargeback) -> None:
        if not self.dispute_repo.contains(transaction.tx_id):
            raise NonDisputedTransactionError(transaction.account, transaction.tx_id)

        account, amount = self._fetch_disputable(transaction.tx_id)
        account.held -= amount
        account.total -= amount
        account.locked = True
        self.dispute_repo.remove(transaction.tx_id)

        logger.info("Account locked after chargeback", account_id=account.id, tx_id=transaction.tx_id)

    def _fetch_unlocked_account(self, account_id: int, tx_id: int) -> Account:
        account = self.account_repo.get_or_create(account_id)
        if account.locked:
            raise AccountLockedError(account_id, tx_id)
        return account

    def _fetch_disputable(self, tx_id: int) -> Tuple[Account, Decimal]:
        """Return the unlocked owning account and amount of a disputable deposit."""
        settlement = self.history_repo.get(tx_id)
        if settlement is None:
            raise TransactionNotFoundError(tx_id=tx_id)
        if not isinstance(settlement, Deposit):
            raise IneligibleTransactionError(settlement.account, tx_id)

        account = self._fetch_unlocked_account(settlement.account, tx_id)
        return account, settlement.amount
