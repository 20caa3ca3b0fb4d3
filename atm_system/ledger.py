"""
Append-only transaction ledger.

One record per line: ``accountNumber;kind;amount;resultingBalance;timestamp``.
The engine only ever appends to the file; it never rewrites or truncates it.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterator, Optional, Union

from .exceptions import PersistenceFailure
from .models import TransactionRecord, TransactionType


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def format_record(record: TransactionRecord) -> str:
    kind = record.kind.value if isinstance(record.kind, TransactionType) else record.kind
    return (f"{record.account_number};{kind};{record.amount:.2f};"
            f"{record.balance_after:.2f};{record.timestamp.strftime(TIMESTAMP_FORMAT)}")


def parse_record(line: str) -> Optional[TransactionRecord]:
    """Parse one ledger line, or return None if it does not match the format."""
    parts = line.rstrip("\r\n").split(";")
    if len(parts) != 5:
        return None

    number, kind, amount, balance, timestamp = parts
    try:
        record_kind = TransactionType(kind)
    except ValueError:
        record_kind = kind

    try:
        return TransactionRecord(
            account_number=int(number),
            kind=record_kind,
            amount=Decimal(amount),
            balance_after=Decimal(balance),
            timestamp=datetime.strptime(timestamp, TIMESTAMP_FORMAT)
        )
    except (ValueError, InvalidOperation):
        return None


class LedgerQuery:
    """Lazy view over the records of one account; iterating again rereads the file."""

    def __init__(self, ledger: "Ledger", account_number: int):
        self.ledger = ledger
        self.account_number = account_number

    def __iter__(self) -> Iterator[TransactionRecord]:
        for record in self.ledger.records():
            if record.account_number == self.account_number:
                yield record


class Ledger:
    """Durable, ordered record of inquiries and withdrawals."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def append(self, record: TransactionRecord) -> None:
        """Append a record or raise PersistenceFailure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8", newline="\n") as handle:
                handle.write(format_record(record) + "\n")
        except OSError as e:
            logger.error(f"Error appending to ledger {self.path}: {e}")
            raise PersistenceFailure(f"Unable to append to {self.path}: {e}") from e

    def records(self) -> Iterator[TransactionRecord]:
        """Yield every parseable record in file order."""
        try:
            handle = open(self.path, "r", encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return

        with handle:
            for line in handle:
                record = parse_record(line)
                if record is not None:
                    yield record

    def query_by_account(self, account_number: int) -> LedgerQuery:
        return LedgerQuery(self, account_number)
