"""
ATM System

A single-branch ATM transaction engine with a CLI interface.
Supports PIN authentication with lockout, cash withdrawals from a finite
note inventory, balance inquiries and an append-only transaction ledger.
"""

__version__ = "0.1.0"

from .models import (
    Account,
    NoteCounts,
    NoteInventory,
    Session,
    TransactionRecord,
    TransactionType,
    InquiryResult,
    WithdrawalResult,
    WithdrawalStatus,
)
from .allocator import Allocation, allocate
from .config import ATMConfig
from .ledger import Ledger
from .directory import AccountDirectory
from .transaction_engine import SessionResult, TransactionEngine
from .cli import main


def create_engine(data_dir: str = ".") -> TransactionEngine:
    """
    Create a TransactionEngine backed by the stores in a directory.

    Args:
        data_dir: Directory holding accounts.txt, atm.txt and transactions.txt

    Returns:
        TransactionEngine instance
    """
    return TransactionEngine.from_config(ATMConfig(data_dir=data_dir))


__all__ = [
    "Account",
    "NoteCounts",
    "NoteInventory",
    "Session",
    "TransactionRecord",
    "TransactionType",
    "InquiryResult",
    "WithdrawalResult",
    "WithdrawalStatus",
    "Allocation",
    "allocate",
    "ATMConfig",
    "Ledger",
    "AccountDirectory",
    "SessionResult",
    "TransactionEngine",
    "create_engine",
    "main"
]
