from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set

from models import Account, Settlement


class AccountRepository(ABC):
    @abstractmethod
    def get(self, account_id: int) -> Optional[Account]:
        """Get account. Returns None if account doesn't exist."""
        pass

    @abstractmethod
    def get_or_create(self, account_id: int) -> Account:
        """Get account, creating a zero-balance unlocked one on first use."""
        pass

    @abstractmethod
    def list_accounts(self) -> List[Account]:
        """List all accounts in ascending identifier order."""
        pass

    @abstractmethod
    def get_accounts_count(self) -> int:
        """Get total number of accounts."""
        pass


class TransactionHistoryRepository(ABC):
    @abstractmethod
    def record(self, transaction: Settlement) -> None:
        """Store a settled deposit or withdrawal under its tx id."""
        pass

    @abstractmethod
    def get(self, tx_id: int) -> Optional[Settlement]:
        """Get stored settlement by tx id."""
        pass

    @abstractmethod
    def get_transactions_count(self) -> int:
        """Get total number of stored settlements."""
        pass


class DisputeRepository(ABC):
    @abstractmethod
    def add(self, tx_id: int) -> None:
        pass

    @abstractmethod
    def contains(self, tx_id: int) -> bool:
        pass

    @abstractmethod
    def remove(self, tx_id: int) -> None:
        pass

    @abstractmethod
    def get_disputes_count(self) -> int:
        """Get number of transactions currently under dispute."""
        pass


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}

    def get(self, account_id: int) -> Optional[Account]:
        return self.accounts.get(account_id)

    def get_or_create(self, account_id: int) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            account = self.accounts.setdefault(account_id, Account(id=account_id))
        return account

    def list_accounts(self) -> List[Account]:
        return [self.accounts[account_id] for account_id in sorted(self.accounts)]

    def get_accounts_count(self) -> int:
        return len(self.accounts)


class InMemoryTransactionHistoryRepository(TransactionHistoryRepository):
    def __init__(self):
        self.store: Dict[int, Settlement] = {}

    def record(self, transaction: Settlement) -> None:
        # A repeated tx id replaces the earlier entry.
        self.store[transaction.tx_id] = transaction

    def get(self, tx_id: int) -> Optional[Settlement]:
        return self.store.get(tx_id)

    def get_transactions_count(self) -> int:
        return len(self.store)


class InMemoryDisputeRepository(DisputeRepository):
    def __init__(self):
        self.disputed: Set[int] = set()

    def add(self, tx_id: int) -> None:
        self.disputed.add(tx_id)

    def contains(self, tx_id: int) -> bool:
        return tx_id in self.disputed

    def remove(self, tx_id: int) -> None:
        self.disputed.discard(tx_id)

    def get_disputes_count(self) -> int:
        return len(self.disputed)
