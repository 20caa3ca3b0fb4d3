"""Configuration for the ATM system."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import NoteInventory


DEFAULT_DATA_DIR = "."
DEFAULT_ADMIN_PIN = "999999"
ACCOUNTS_FILE_NAME = "accounts.txt"
INVENTORY_FILE_NAME = "atm.txt"
LEDGER_FILE_NAME = "transactions.txt"
DEFAULT_INVENTORY = NoteInventory(note_2000=10, note_500=20, note_200=50, note_100=100)


@dataclass
class ATMConfig:
    """Where the ATM keeps its data and how it is administered."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    admin_pin: str = DEFAULT_ADMIN_PIN
    accounts_file: str = ACCOUNTS_FILE_NAME
    inventory_file: str = INVENTORY_FILE_NAME
    ledger_file: str = LEDGER_FILE_NAME
    default_inventory: NoteInventory = field(default_factory=lambda: DEFAULT_INVENTORY)

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.admin_pin = str(self.admin_pin)

    @classmethod
    def from_env(cls, **overrides) -> "ATMConfig":
        """Build a config from ``ATM_DATA_DIR`` and ``ATM_ADMIN_PIN``."""
        values = {
            "data_dir": os.environ.get("ATM_DATA_DIR", DEFAULT_DATA_DIR),
            "admin_pin": os.environ.get("ATM_ADMIN_PIN", DEFAULT_ADMIN_PIN),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def accounts_path(self) -> Path:
        return self.data_dir / self.accounts_file

    @property
    def inventory_path(self) -> Path:
        return self.data_dir / self.inventory_file

    @property
    def ledger_path(self) -> Path:
        return self.data_dir / self.ledger_file
