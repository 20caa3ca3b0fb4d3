"""
Account directory for the ATM system.

Holds every account in memory, keyed by account number, and flushes the
whole collection back to the accounts store.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List

from .exceptions import AccountNotFoundError, DuplicateAccountError
from .models import LOCKOUT_THRESHOLD, Account
from .storage import AccountStore


class AccountDirectory:
    """In-memory accounts backed by an AccountStore."""

    def __init__(self, store: AccountStore, accounts: List[Account] = None):
        """Initialize directory with its store and initial accounts."""
        self.store = store
        self.logger = logging.getLogger(__name__)
        self._accounts: Dict[int, Account] = {}
        for account in accounts or []:
            self._accounts[account.account_number] = account

    @classmethod
    def load(cls, store: AccountStore) -> "AccountDirectory":
        """Load a directory from the store."""
        return cls(store, store.load())

    def save(self) -> None:
        """Flush every account to the store."""
        self.store.save(self.accounts())

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_number: int) -> bool:
        return account_number in self._accounts

    def accounts(self) -> List[Account]:
        """Accounts in load/insertion order."""
        return list(self._accounts.values())

    def find(self, account_number: int) -> Account:
        """Get account by number."""
        account = self._accounts.get(account_number)
        if account is None:
            raise AccountNotFoundError(f"Account {account_number} not found")
        return account

    def add(self, account: Account) -> Account:
        """Provision a new account (in memory only)."""
        if account.account_number in self._accounts:
            raise DuplicateAccountError(f"Account {account.account_number} already exists")
        self._accounts[account.account_number] = account
        return account

    def apply_balance_change(self, account_number: int, delta: Decimal) -> Account:
        """Change the balance in memory; sufficiency is the caller's concern."""
        account = self.find(account_number)
        account.balance = (account.balance + Decimal(str(delta))).quantize(Decimal('0.01'))
        return account

    def preview_balance_change(self, account_number: int, delta: Decimal) -> List[Account]:
        """Copy of all accounts with one balance changed, for writing before commit."""
        target = self.find(account_number)
        changed = replace(target, balance=target.balance + Decimal(str(delta)))
        return [changed if account is target else replace(account)
                for account in self._accounts.values()]

    def record_failed_login(self, account_number: int) -> Account:
        """
        Count a wrong PIN; lock and flush at the threshold.

        The lock stays in memory even if the flush fails.
        """
        account = self.find(account_number)
        account.failed_attempts = min(account.failed_attempts + 1, LOCKOUT_THRESHOLD)
        if account.failed_attempts >= LOCKOUT_THRESHOLD:
            account.locked = True
            self.logger.warning(f"Account {account_number} locked after {LOCKOUT_THRESHOLD} failed attempts")
            self.save()
        return account

    def reset_login_state(self, account_number: int) -> Account:
        """Clear the failed-login counter."""
        account = self.find(account_number)
        account.failed_attempts = 0
        return account

    def unlock(self, account_number: int) -> Account:
        """Administrative unlock; flushed immediately."""
        account = self.find(account_number)
        account.failed_attempts = 0
        account.locked = False
        self.save()
        self.logger.info(f"Account {account_number} unlocked")
        return account
