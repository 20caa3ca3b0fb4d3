"""
Transaction engine for the ATM system.

This module contains the business logic that ties authentication, note
allocation, account balances, the note inventory and the ledger together.
All mutable state is owned by a single ``TransactionEngine`` instance.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from .allocator import SMALLEST_NOTE, allocate
from .auth import Authenticator, AuthState, RejectReason
from .config import ATMConfig
from .directory import AccountDirectory
from .exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    AuthenticationError,
    DenominationUnavailableError,
    InsufficientATMCashError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidSessionError,
    PersistenceFailure,
)
from .ledger import Ledger, LedgerQuery
from .models import (
    Account,
    InquiryResult,
    NoteCounts,
    NoteInventory,
    Session,
    TransactionRecord,
    TransactionType,
    WithdrawalResult,
    WithdrawalStatus,
)
from .storage import AccountStore, InventoryStore


PinSupplier = Callable[[int], Optional[str]]
Confirmation = Callable[[NoteCounts], bool]

SAMPLE_ACCOUNTS = (
    Account(account_number=1001, pin="1234", balance=Decimal('15000.00'), name="Zaid"),
    Account(account_number=1002, pin="2345", balance=Decimal('5000.00'), name="Anita"),
    Account(account_number=1003, pin="3456", balance=Decimal('20000.00'), name="Ravi"),
)


@dataclass
class SessionResult:
    """Outcome of one login attempt."""

    state: AuthState
    account_number: int
    session: Optional[Session] = None
    reason: Optional[RejectReason] = None
    attempts_remaining: int = 0

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def locked_out(self) -> bool:
        return (self.state is AuthState.LOCKED_OUT
                or self.reason is RejectReason.ACCOUNT_LOCKED)

    def raise_for_state(self) -> Session:
        """Return the session, or raise the error matching the outcome."""
        if self.authenticated:
            return self.session
        if self.locked_out:
            raise AccountLockedError(
                f"Account {self.account_number} is locked due to multiple failed login attempts")
        if self.reason is RejectReason.ACCOUNT_NOT_FOUND:
            raise AccountNotFoundError(f"Account {self.account_number} not found")
        raise AuthenticationError(f"Login for account {self.account_number} was cancelled")


class TransactionEngine:
    """Runs ATM operations against the directory, inventory and ledger."""

    def __init__(self, directory: AccountDirectory, inventory: NoteInventory,
                 inventory_store: InventoryStore, ledger: Ledger):
        """Initialize the engine with its collaborators."""
        self.directory = directory
        self.inventory = inventory
        self.inventory_store = inventory_store
        self.ledger = ledger
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: ATMConfig) -> "TransactionEngine":
        """Load all stores named by the config."""
        directory = AccountDirectory.load(AccountStore(config.accounts_path))
        inventory_store = InventoryStore(config.inventory_path, config.default_inventory)
        return cls(directory, inventory_store.load(), inventory_store, Ledger(config.ledger_path))

    # Authentication

    def authenticate(self, account_number: int, pin_supplier: PinSupplier) -> SessionResult:
        """
        Run one login attempt.

        Args:
            account_number: Account to log into
            pin_supplier: Called with the attempts remaining; returns a PIN,
                or None to give up

        Returns:
            SessionResult carrying a Session when authenticated
        """
        machine = Authenticator(self.directory)
        state = machine.submit_account_number(account_number)

        try:
            while state is AuthState.AWAITING_PIN:
                pin = pin_supplier(machine.attempts_remaining)
                if pin is None:
                    state = machine.cancel()
                    break
                state = machine.submit_pin(pin)
        finally:
            # Runs even when the supplier aborts; lockouts were already flushed by the directory
            if machine.login_state_changed and machine.state is not AuthState.LOCKED_OUT:
                self._flush_accounts()

        result = SessionResult(
            state=state,
            account_number=account_number,
            reason=machine.reject_reason,
            attempts_remaining=machine.attempts_remaining if account_number in self.directory else 0
        )
        if state is AuthState.AUTHENTICATED:
            result.session = Session(account_number=account_number)
        return result

    def logout(self, session: Session) -> None:
        """End the session and flush accounts."""
        self._account_for(session)
        session.active = False
        self._flush_accounts()

    # Customer operations

    def inquire_balance(self, session: Session) -> Decimal:
        """Return the balance and log the inquiry."""
        return self.balance_inquiry(session).balance

    def balance_inquiry(self, session: Session) -> InquiryResult:
        """Log an inquiry and report whether the ledger took the record."""
        account = self._account_for(session)
        recorded = self._record(account.account_number, TransactionType.BALANCE_INQUIRY,
                                Decimal('0.00'), account.balance)
        return InquiryResult(account.balance, ledger_recorded=recorded)

    def withdraw(self, session: Session, amount, confirm: Optional[Confirmation] = None) -> WithdrawalResult:
        """
        Withdraw cash from the session's account.

        Args:
            session: Active session
            amount: Positive multiple of 100
            confirm: Called with the chosen notes; returning False cancels.
                When omitted the withdrawal proceeds.

        Returns:
            WithdrawalResult with status COMPLETED or CANCELLED

        Raises:
            InvalidAmountError, InsufficientFundsError, InsufficientATMCashError,
            DenominationUnavailableError: Request rejected, nothing changed
            PersistenceFailure: Stores could not be written, nothing changed
        """
        account = self._account_for(session)
        amount = self._validate_amount(amount)

        if not account.can_withdraw(amount):
            raise InsufficientFundsError(f"Insufficient balance. Available: {account.balance:.2f}")

        if amount > self.inventory.total_cash():
            raise InsufficientATMCashError("ATM does not have enough cash")

        allocation = allocate(amount, self.inventory)
        if not allocation.feasible:
            raise DenominationUnavailableError(
                "ATM cannot dispense the requested amount with available denominations")

        combination = allocation.combination
        if confirm is not None and not confirm(combination):
            self.logger.info(f"Withdrawal of {amount} from account {account.account_number} cancelled")
            return WithdrawalResult(WithdrawalStatus.CANCELLED, amount, combination, account.balance)

        accounts_after = self.directory.preview_balance_change(account.account_number, -amount)
        inventory_after = self.inventory.dispense(combination)
        self._write_stores(accounts_after, inventory_after)

        # Stores are durable; commit in memory
        self.directory.apply_balance_change(account.account_number, -amount)
        self.inventory = inventory_after
        self.logger.info(f"Dispensed {amount} from account {account.account_number}")

        recorded = self._record(account.account_number, TransactionType.WITHDRAWAL,
                                Decimal(amount), account.balance)
        return WithdrawalResult(WithdrawalStatus.COMPLETED, amount, combination,
                                account.balance, ledger_recorded=recorded)

    def history(self, account_number: int) -> LedgerQuery:
        """Ledger records for an account, in file order."""
        return self.ledger.query_by_account(account_number)

    # Administration

    def refill(self, additions: NoteCounts) -> NoteInventory:
        """Load additional notes and persist the inventory."""
        if any(count < 0 for _, count in additions.items()):
            raise ValueError("Refill counts cannot be negative")

        inventory_after = self.inventory.refill(additions)
        self.inventory_store.save(inventory_after)
        self.inventory = inventory_after
        self.logger.info(f"ATM refilled, total cash now {inventory_after.total_cash()}")
        return inventory_after

    def unlock_account(self, account_number: int) -> Account:
        return self.directory.unlock(account_number)

    def list_accounts(self) -> List[Account]:
        return self.directory.accounts()

    def seed_sample_accounts(self) -> List[Account]:
        """Provision the sample accounts when the directory is empty."""
        if len(self.directory):
            return []

        created = [self.directory.add(replace(sample)) for sample in SAMPLE_ACCOUNTS]
        self.directory.save()
        self.inventory_store.save(self.inventory)
        self.logger.info(f"Created {len(created)} sample accounts")
        return created

    def close(self) -> None:
        """Flush accounts and inventory."""
        self.directory.save()
        self.inventory_store.save(self.inventory)

    # Helpers

    def _account_for(self, session: Session) -> Account:
        if not session.active:
            raise InvalidSessionError("Session has ended")
        return self.directory.find(session.account_number)

    def _validate_amount(self, amount) -> int:
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise InvalidAmountError(f"Invalid amount: {amount}")

        if not value.is_finite() or value <= 0:
            raise InvalidAmountError("Invalid amount. Must be > 0")
        if value % SMALLEST_NOTE != 0:
            raise InvalidAmountError(f"Amount must be a multiple of {SMALLEST_NOTE}")
        return int(value)

    def _write_stores(self, accounts: List[Account], inventory: NoteInventory) -> None:
        """Write both stores; on failure restore the accounts store and re-raise."""
        self.directory.store.save(accounts)
        try:
            self.inventory_store.save(inventory)
        except PersistenceFailure:
            try:
                self.directory.save()
            except PersistenceFailure as e:
                self.logger.error(f"Accounts store could not be restored: {e}")
            raise

    def _record(self, account_number: int, kind: TransactionType,
                amount: Decimal, balance_after: Decimal) -> bool:
        """Append a ledger record; a failure is logged and reported as False."""
        record = TransactionRecord(
            account_number=account_number,
            kind=kind,
            amount=amount,
            balance_after=balance_after
        )
        try:
            self.ledger.append(record)
        except PersistenceFailure as e:
            self.logger.warning(f"Transaction not logged: {e}")
            return False
        return True

    def _flush_accounts(self) -> None:
        try:
            self.directory.save()
        except PersistenceFailure as e:
            self.logger.warning(f"Account changes not persisted: {e}")
