"""
Login state machine.

A fresh ``Authenticator`` is used for every login attempt::

    AWAITING_ACCOUNT_NUMBER -> AWAITING_PIN -> AUTHENTICATED
                                            -> LOCKED_OUT
                            -> REJECTED

Once a terminal state is reached the instance accepts no more input.
"""

import logging
from enum import Enum
from typing import Optional

from .directory import AccountDirectory
from .exceptions import AccountNotFoundError, AuthenticationError, PersistenceFailure


logger = logging.getLogger(__name__)


class AuthState(Enum):
    AWAITING_ACCOUNT_NUMBER = "awaiting_account_number"
    AWAITING_PIN = "awaiting_pin"
    AUTHENTICATED = "authenticated"
    LOCKED_OUT = "locked_out"
    REJECTED = "rejected"

    @property
    def terminal(self) -> bool:
        return self in (AuthState.AUTHENTICATED, AuthState.LOCKED_OUT, AuthState.REJECTED)


class RejectReason(Enum):
    ACCOUNT_NOT_FOUND = "account_not_found"
    ACCOUNT_LOCKED = "account_locked"
    CANCELLED = "cancelled"


class Authenticator:
    """Drives one login attempt against the account directory."""

    def __init__(self, directory: AccountDirectory):
        self.directory = directory
        self.state = AuthState.AWAITING_ACCOUNT_NUMBER
        self.account_number: Optional[int] = None
        self.reject_reason: Optional[RejectReason] = None
        self.login_state_changed = False

    def _expect(self, state: AuthState) -> None:
        if self.state is not state:
            raise AuthenticationError(f"Cannot do that while {self.state.value}")

    def _reject(self, reason: RejectReason) -> AuthState:
        self.state = AuthState.REJECTED
        self.reject_reason = reason
        return self.state

    @property
    def attempts_remaining(self) -> int:
        if self.account_number is None:
            return 0
        return self.directory.find(self.account_number).attempts_remaining

    def submit_account_number(self, account_number: int) -> AuthState:
        self._expect(AuthState.AWAITING_ACCOUNT_NUMBER)
        self.account_number = account_number
        try:
            account = self.directory.find(account_number)
        except AccountNotFoundError:
            logger.info(f"Login rejected: unknown account {account_number}")
            return self._reject(RejectReason.ACCOUNT_NOT_FOUND)

        if account.locked:
            logger.info(f"Login rejected: account {account_number} is locked")
            return self._reject(RejectReason.ACCOUNT_LOCKED)

        self.state = AuthState.AWAITING_PIN
        return self.state

    def submit_pin(self, pin: str) -> AuthState:
        self._expect(AuthState.AWAITING_PIN)
        account = self.directory.find(self.account_number)

        if str(pin) == account.pin:
            if account.failed_attempts:
                self.login_state_changed = True
            self.directory.reset_login_state(self.account_number)
            self.state = AuthState.AUTHENTICATED
            logger.info(f"Account {self.account_number} authenticated")
            return self.state

        self.login_state_changed = True
        try:
            account = self.directory.record_failed_login(self.account_number)
        except PersistenceFailure as e:
            # The in-memory lock still holds for the rest of this process
            logger.warning(f"Lockout of account {self.account_number} not persisted: {e}")
            account = self.directory.find(self.account_number)

        if account.locked:
            self.state = AuthState.LOCKED_OUT
        return self.state

    def cancel(self) -> AuthState:
        """Abandon the attempt from any non-terminal state."""
        if self.state.terminal:
            raise AuthenticationError(f"Login already finished ({self.state.value})")
        return self._reject(RejectReason.CANCELLED)
