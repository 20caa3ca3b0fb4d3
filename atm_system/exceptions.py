"""
Exception hierarchy for the ATM system.

Withdrawal validation errors also derive from ``ValueError`` so callers that
handle bad input generically keep working.
"""


class ATMError(Exception):
    """Base class for all ATM specific errors."""


class AccountNotFoundError(ATMError):
    """Raised when an account lookup fails."""


class AccountLockedError(ATMError):
    """Raised when a locked account tries to authenticate."""


class DuplicateAccountError(ATMError):
    """Raised when provisioning an account number that already exists."""


class AuthenticationError(ATMError):
    """Raised when a login attempt does not produce a session."""


class InvalidSessionError(ATMError):
    """Raised when an operation uses a session that is no longer active."""


class WithdrawalError(ATMError, ValueError):
    """Base class for withdrawal requests rejected before any state change."""


class InvalidAmountError(WithdrawalError):
    """Raised when the amount is not a positive multiple of 100."""


class InsufficientFundsError(WithdrawalError):
    """Raised when the account balance does not cover the amount."""


class InsufficientATMCashError(WithdrawalError):
    """Raised when the ATM holds less cash than requested."""


class DenominationUnavailableError(WithdrawalError):
    """Raised when the available notes cannot form the exact amount."""


class PersistenceFailure(ATMError):
    """Raised when a durable write fails."""
