"""
Tests for the models module.

This module contains tests for the Account, note count and transaction
record models.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from atm_system.models import (
    Account,
    NoteCounts,
    NoteInventory,
    Session,
    TransactionRecord,
    TransactionType,
    WithdrawalResult,
    WithdrawalStatus,
)


class TestTransactionType:
    """Test TransactionType enum."""

    def test_transaction_types(self):
        """Test ledger kind labels."""
        assert TransactionType.BALANCE_INQUIRY.value == "Balance Inquiry"
        assert TransactionType.WITHDRAWAL.value == "Withdrawal"

    def test_transaction_type_compares_to_string(self):
        assert TransactionType.WITHDRAWAL == "Withdrawal"


class TestAccount:
    """Test Account model."""

    def test_account_defaults(self):
        account = Account(account_number=1001, pin="1234")

        assert account.balance == Decimal('0.00')
        assert account.name == "-"
        assert account.failed_attempts == 0
        assert account.locked is False
        assert account.attempts_remaining == 3

    def test_balance_converted_to_decimal(self):
        """Test float and string balances are normalized."""
        account = Account(account_number=1001, pin="1234", balance=1500.5)
        assert isinstance(account.balance, Decimal)
        assert account.balance == Decimal('1500.50')

        account = Account(account_number=1002, pin="1234", balance="20")
        assert account.balance == Decimal('20.00')

    def test_pin_stored_as_string(self):
        account = Account(account_number=1001, pin=1234)
        assert account.pin == "1234"

    def test_name_whitespace_collapsed(self):
        account = Account(account_number=1001, pin="1234", name="  John   Doe ")
        assert account.name == "John_Doe"

    def test_blank_name_gets_placeholder(self):
        account = Account(account_number=1001, pin="1234", name="   ")
        assert account.name == "-"

    def test_attempts_remaining(self):
        account = Account(account_number=1001, pin="1234", failed_attempts=2)
        assert account.attempts_remaining == 1

        account.failed_attempts = 3
        assert account.attempts_remaining == 0

    def test_can_withdraw(self):
        account = Account(account_number=1001, pin="1234", balance=Decimal('500.00'))

        assert account.can_withdraw(Decimal('500')) is True
        assert account.can_withdraw(400) is True
        assert account.can_withdraw(600) is False


class TestNoteCounts:
    """Test NoteCounts and NoteInventory."""

    def test_total(self):
        counts = NoteCounts(note_2000=1, note_500=1, note_200=1, note_100=1)
        assert counts.total == 2800

    def test_from_mapping(self):
        counts = NoteCounts.from_mapping({2000: 2, 100: 3})
        assert counts == NoteCounts(2, 0, 0, 3)

    def test_items_largest_first(self):
        counts = NoteCounts(1, 2, 3, 4)
        assert list(counts.items()) == [(2000, 1), (500, 2), (200, 3), (100, 4)]
        assert tuple(counts) == (1, 2, 3, 4)
        assert counts.as_dict() == {2000: 1, 500: 2, 200: 3, 100: 4}

    def test_count_unknown_denomination(self):
        with pytest.raises(ValueError, match="Unknown denomination"):
            NoteCounts().count(50)

    def test_inventory_rejects_negative(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            NoteInventory(note_2000=-1)

    def test_inventory_total_cash(self):
        inventory = NoteInventory(10, 20, 50, 100)
        assert inventory.total_cash() == 10 * 2000 + 20 * 500 + 50 * 200 + 100 * 100

    def test_dispense_returns_new_inventory(self):
        inventory = NoteInventory(10, 20, 50, 100)
        after = inventory.dispense(NoteCounts(1, 0, 1, 1))

        assert after == NoteInventory(9, 20, 49, 99)
        assert inventory == NoteInventory(10, 20, 50, 100)

    def test_dispense_more_than_available(self):
        inventory = NoteInventory(0, 1, 0, 0)

        assert inventory.can_dispense(NoteCounts(0, 2, 0, 0)) is False
        with pytest.raises(ValueError, match="exceeds"):
            inventory.dispense(NoteCounts(0, 2, 0, 0))

    def test_refill(self):
        inventory = NoteInventory(1, 1, 1, 1)
        assert inventory.refill(NoteCounts(1, 2, 3, 4)) == NoteInventory(2, 3, 4, 5)


class TestTransactionRecord:
    """Test TransactionRecord model."""

    def test_timestamp_defaults_to_now_without_microseconds(self):
        record = TransactionRecord(account_number=1001)

        assert isinstance(record.timestamp, datetime)
        assert record.timestamp.microsecond == 0

    def test_amounts_converted_to_decimal(self):
        record = TransactionRecord(
            account_number=1001,
            kind=TransactionType.WITHDRAWAL,
            amount=500,
            balance_after=1500.25
        )

        assert record.amount == Decimal('500')
        assert record.balance_after == Decimal('1500.25')

    def test_record_is_immutable(self):
        record = TransactionRecord(account_number=1001)
        with pytest.raises(AttributeError):
            record.amount = Decimal('1')


class TestSessionAndResult:
    """Test Session and WithdrawalResult."""

    def test_session_active_by_default(self):
        session = Session(account_number=1001)
        assert session.active is True
        assert isinstance(session.opened_at, datetime)

    def test_withdrawal_result_completed(self):
        result = WithdrawalResult(WithdrawalStatus.COMPLETED, 500, NoteCounts(0, 1, 0, 0), Decimal('0.00'))
        assert result.completed is True

        result = WithdrawalResult(WithdrawalStatus.CANCELLED, 500, NoteCounts(0, 1, 0, 0), Decimal('500.00'))
        assert result.completed is False
