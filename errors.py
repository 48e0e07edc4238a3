class LedgerError(Exception):
    """Base class for every error raised by the ledger."""


class DecodeError(LedgerError):
    """Raised when an input row cannot be turned into a transaction."""

    def __init__(self, line: int, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"line {line}: {reason}")


class ExecutionError(LedgerError):
    """Raised when the engine rejects a well-formed transaction.

    A rejected transaction never leaves a partial mutation behind.
    """

    error_code = "EXECUTION_ERROR"
    message = "Transaction rejected"

    def __init__(self, account_id: int | None = None, tx_id: int | None = None):
        self.account_id = account_id
        self.tx_id = tx_id
        super().__init__(self.describe())

    def describe(self) -> str:
        context = []
        if self.account_id is not None:
            context.append(f"account {self.account_id}")
        if self.tx_id is not None:
            context.append(f"tx {self.tx_id}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class InsufficientFundsError(ExecutionError):
    """Raised when a withdrawal exceeds the available balance."""

    error_code = "INSUFFICIENT_FUNDS"
    message = "Insufficient funds"


class AccountLockedError(ExecutionError):
    """Raised when a deposit or withdrawal targets a locked account."""

    error_code = "ACCOUNT_LOCKED"
    message = "Account is locked"


class TransactionNotFoundError(ExecutionError):
    error_code = "TRANSACTION_NOT_FOUND"
    message = "Transaction not found"


class IneligibleTransactionError(ExecutionError):
    """Raised when a dispute references a transaction that is not a deposit."""

    error_code = "INELIGIBLE_TRANSACTION"
    message = "Only deposits can be disputed"


class NonDisputedTransactionError(ExecutionError):
    error_code = "NON_DISPUTED_TRANSACTION"
    message = "Transaction is not under dispute"


class AlreadyDisputedTransactionError(ExecutionError):
    error_code = "ALREADY_DISPUTED_TRANSACTION"
    message = "Transaction is already under dispute"
