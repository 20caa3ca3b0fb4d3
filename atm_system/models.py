"""
Data models for the ATM system.

This module contains the core data structures used throughout the application.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union


DENOMINATIONS: Tuple[int, ...] = (2000, 500, 200, 100)
LOCKOUT_THRESHOLD = 3
# Stored in place of an empty name so the accounts line keeps six fields
UNNAMED = "-"


class TransactionType(str, Enum):
    """Kinds of ledger records."""
    BALANCE_INQUIRY = "Balance Inquiry"
    WITHDRAWAL = "Withdrawal"


class WithdrawalStatus(Enum):
    """Outcome of a withdrawal that passed validation."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Account:
    """Represents an account holder known to the ATM."""

    account_number: int
    pin: str
    balance: Decimal = Decimal('0.00')
    name: str = ""
    failed_attempts: int = 0
    locked: bool = False

    def __post_init__(self):
        """Normalize field types after creation."""
        if not isinstance(self.balance, Decimal):
            self.balance = Decimal(str(self.balance))
        self.balance = self.balance.quantize(Decimal('0.01'))

        self.pin = str(self.pin)
        # Names are stored as a single whitespace-free token
        self.name = "_".join(str(self.name).split()) or UNNAMED

    @property
    def attempts_remaining(self) -> int:
        """PIN attempts left before the account locks."""
        return max(LOCKOUT_THRESHOLD - self.failed_attempts, 0)

    def can_withdraw(self, amount: Decimal) -> bool:
        """Check if the balance covers the amount."""
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        return amount <= self.balance


@dataclass(frozen=True)
class NoteCounts:
    """Counts of each note denomination, largest first."""

    note_2000: int = 0
    note_500: int = 0
    note_200: int = 0
    note_100: int = 0

    @classmethod
    def from_mapping(cls, counts: Mapping[int, int]) -> "NoteCounts":
        """Build from a ``{denomination: count}`` mapping."""
        return cls(*(int(counts.get(denomination, 0)) for denomination in DENOMINATIONS))

    def count(self, denomination: int) -> int:
        """Number of notes of the given denomination."""
        if denomination not in DENOMINATIONS:
            raise ValueError(f"Unknown denomination: {denomination}")
        return getattr(self, f"note_{denomination}")

    def items(self) -> Iterator[Tuple[int, int]]:
        """Yield ``(denomination, count)`` pairs from largest to smallest."""
        for denomination in DENOMINATIONS:
            yield denomination, self.count(denomination)

    def as_dict(self) -> Dict[int, int]:
        return dict(self.items())

    @property
    def total(self) -> int:
        """Weighted sum of all notes."""
        return sum(denomination * count for denomination, count in self.items())

    def __iter__(self):
        return iter(tuple(getattr(self, f.name) for f in fields(self)))


@dataclass(frozen=True)
class NoteInventory(NoteCounts):
    """Notes currently loaded in the ATM."""

    def __post_init__(self):
        for denomination, count in self.items():
            if count < 0:
                raise ValueError(f"Note count for {denomination} cannot be negative")

    def total_cash(self) -> int:
        """Total cash held by the ATM."""
        return self.total

    def can_dispense(self, combination: NoteCounts) -> bool:
        """Check whether every note in the combination is available."""
        return all(count <= self.count(denomination)
                   for denomination, count in combination.items())

    def dispense(self, combination: NoteCounts) -> "NoteInventory":
        """Return the inventory left after handing out the combination."""
        if not self.can_dispense(combination):
            raise ValueError("Combination exceeds the available notes")
        return NoteInventory(*(count - combination.count(denomination)
                               for denomination, count in self.items()))

    def refill(self, additions: NoteCounts) -> "NoteInventory":
        """Return the inventory after loading additional notes."""
        return NoteInventory(*(count + additions.count(denomination)
                               for denomination, count in self.items()))


@dataclass(frozen=True)
class TransactionRecord:
    """Represents one ledger entry."""

    account_number: int
    kind: Union[TransactionType, str] = TransactionType.WITHDRAWAL
    amount: Decimal = Decimal('0.00')
    balance_after: Decimal = Decimal('0.00')
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Initialize record after creation."""
        # Frozen dataclass, so normalized values go through object.__setattr__
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', datetime.now().replace(microsecond=0))

        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

        if not isinstance(self.balance_after, Decimal):
            object.__setattr__(self, 'balance_after', Decimal(str(self.balance_after)))


@dataclass
class Session:
    """An authenticated interaction with one account."""

    account_number: int
    opened_at: datetime = field(default_factory=datetime.now)
    active: bool = True


@dataclass(frozen=True)
class WithdrawalResult:
    """Result of a withdrawal request that passed validation."""

    status: WithdrawalStatus
    amount: int
    combination: NoteCounts
    balance: Decimal
    ledger_recorded: bool = False

    @property
    def completed(self) -> bool:
        return self.status is WithdrawalStatus.COMPLETED


@dataclass(frozen=True)
class InquiryResult:
    """Result of a balance inquiry."""

    balance: Decimal
    ledger_recorded: bool = False
