"""
Flat-file storage for the ATM system.

This module reads and writes the accounts store and the note inventory
store. Both are rewritten atomically through a temporary file in the same
directory so a failed write never leaves a truncated store behind.
"""

import logging
import os
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .exceptions import PersistenceFailure
from .models import LOCKOUT_THRESHOLD, Account, NoteInventory


PathLike = Union[str, Path]


def atomic_write(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` or raise PersistenceFailure."""
    logger = logging.getLogger(__name__)
    tmp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Error writing {path}: {e}")
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise PersistenceFailure(f"Unable to write {path}: {e}") from e


def parse_account_line(line: str) -> Optional[Account]:
    """
    Parse one accounts store line.

    Format: ``accountNumber pin balance name failedAttempts locked``

    Returns:
        Account, or None if the line is malformed
    """
    parts = line.split()
    if len(parts) != 6:
        return None

    number, pin, balance, name, attempts, locked = parts
    try:
        account_number = int(number)
        balance_value = Decimal(balance)
        failed_attempts = int(attempts)
        locked_flag = int(locked)
    except (ValueError, InvalidOperation):
        return None

    if not pin.isdigit() or not balance_value.is_finite() or balance_value < 0:
        return None
    if not 0 <= failed_attempts <= LOCKOUT_THRESHOLD or locked_flag not in (0, 1):
        return None

    # A lock always sits at the threshold, and reaching the threshold always locks
    is_locked = bool(locked_flag) or failed_attempts == LOCKOUT_THRESHOLD
    if is_locked:
        failed_attempts = LOCKOUT_THRESHOLD

    return Account(
        account_number=account_number,
        pin=pin,
        balance=balance_value,
        name=name,
        failed_attempts=failed_attempts,
        locked=is_locked
    )


def format_account(account: Account) -> str:
    """Render an account as one accounts store line."""
    return (f"{account.account_number} {account.pin} {account.balance:.2f} "
            f"{account.name} {account.failed_attempts} {int(account.locked)}")


class AccountStore:
    """Reads and writes the accounts store."""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> List[Account]:
        """Load accounts in file order; a missing store yields no accounts."""
        accounts = []
        seen = set()
        try:
            # Undecodable bytes turn into U+FFFD, so the line fails to parse
            with open(self.path, "r", encoding="utf-8", errors="replace") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    account = parse_account_line(line)
                    if account is None:
                        self.logger.warning(f"Skipping malformed account line {line_number} in {self.path}")
                        continue
                    if account.account_number in seen:
                        self.logger.warning(
                            f"Skipping duplicate account {account.account_number} on line {line_number}")
                        continue
                    seen.add(account.account_number)
                    accounts.append(account)
        except FileNotFoundError:
            self.logger.info(f"No accounts store at {self.path}, starting empty")
        except OSError as e:
            self.logger.error(f"Error reading accounts: {e}")
            raise PersistenceFailure(f"Unable to read {self.path}: {e}") from e

        return accounts

    def save(self, accounts: Iterable[Account]) -> None:
        """Rewrite the store with the given accounts."""
        text = "".join(format_account(account) + "\n" for account in accounts)
        atomic_write(self.path, text)


class InventoryStore:
    """Reads and writes the single-line note inventory store."""

    def __init__(self, path: PathLike, default: NoteInventory):
        self.path = Path(path)
        self.default = default
        self.logger = logging.getLogger(__name__)

    def load(self) -> NoteInventory:
        """Load the inventory; a missing or malformed store yields the default."""
        try:
            text = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            self.logger.info(f"No inventory store at {self.path}, using defaults")
            return self.default
        except OSError as e:
            self.logger.error(f"Error reading inventory: {e}")
            return self.default

        parts = text.split()
        try:
            if len(parts) < 4:
                raise ValueError("expected four note counts")
            return NoteInventory(*(int(part) for part in parts[:4]))
        except ValueError as e:
            self.logger.warning(f"Malformed inventory store {self.path} ({e}), using defaults")
            return self.default

    def save(self, inventory: NoteInventory) -> None:
        atomic_write(self.path, " ".join(str(count) for count in inventory) + "\n")
