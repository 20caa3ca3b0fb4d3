"""
Tests for the ledger module.
"""

import tempfile
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from atm_system.exceptions import PersistenceFailure
from atm_system.ledger import Ledger, format_record, parse_record
from atm_system.models import TransactionRecord, TransactionType


class TestRecordFormat:
    """Test ledger line encoding."""

    def test_format_record(self):
        record = TransactionRecord(
            account_number=1001,
            kind=TransactionType.WITHDRAWAL,
            amount=Decimal('2300'),
            balance_after=Decimal('12700.00'),
            timestamp=datetime(2024, 1, 15, 9, 30, 5)
        )

        assert format_record(record) == "1001;Withdrawal;2300.00;12700.00;2024-01-15 09:30:05"

    def test_parse_record(self):
        record = parse_record("1001;Balance Inquiry;0.00;15000.00;2024-01-15 09:30:05\n")

        assert record.account_number == 1001
        assert record.kind is TransactionType.BALANCE_INQUIRY
        assert record.amount == Decimal('0.00')
        assert record.balance_after == Decimal('15000.00')
        assert record.timestamp == datetime(2024, 1, 15, 9, 30, 5)

    def test_unknown_kind_kept_as_text(self):
        record = parse_record("1001;Deposit;500.00;15500.00;2024-01-15 09:30:05")
        assert record.kind == "Deposit"

    @pytest.mark.parametrize("line", [
        "",
        "not a record",
        "1001;Withdrawal;100.00;900.00",
        "abc;Withdrawal;100.00;900.00;2024-01-15 09:30:05",
        "1001;Withdrawal;ten;900.00;2024-01-15 09:30:05",
        "1001;Withdrawal;100.00;900.00;yesterday",
    ])
    def test_unparseable_lines(self, line):
        assert parse_record(line) is None


class TestLedger:
    """Test Ledger append and queries."""

    @pytest.fixture
    def ledger(self):
        """Create a ledger in a temporary directory."""
        with tempfile.TemporaryDirectory() as path:
            yield Ledger(Path(path) / "transactions.txt")

    def _record(self, account_number, kind=TransactionType.WITHDRAWAL, amount=100, balance=900):
        return TransactionRecord(
            account_number=account_number,
            kind=kind,
            amount=amount,
            balance_after=balance,
            timestamp=datetime(2024, 1, 15, 9, 30, 5)
        )

    def test_missing_file_has_no_records(self, ledger):
        assert list(ledger.records()) == []
        assert list(ledger.query_by_account(1001)) == []

    def test_append_only(self, ledger):
        ledger.append(self._record(1001))
        first = ledger.path.read_text()
        ledger.append(self._record(1002))

        assert ledger.path.read_text().startswith(first)
        assert len(ledger.path.read_text().splitlines()) == 2

    def test_query_by_account_in_file_order(self, ledger):
        ledger.append(self._record(1001, amount=100, balance=900))
        ledger.append(self._record(1002, amount=200, balance=4800))
        ledger.append(self._record(1001, TransactionType.BALANCE_INQUIRY, 0, 900))
        ledger.append(self._record(1001, amount=300, balance=600))

        records = list(ledger.query_by_account(1001))

        assert [record.balance_after for record in records] == [Decimal('900'), Decimal('900'), Decimal('600')]
        assert records[1].kind is TransactionType.BALANCE_INQUIRY

    def test_query_is_lazy_and_restartable(self, ledger):
        query = ledger.query_by_account(1001)
        assert list(query) == []

        ledger.append(self._record(1001))
        assert len(list(query)) == 1

        ledger.append(self._record(1001))
        assert len(list(query)) == 2
        assert len(list(query)) == 2

    def test_garbage_lines_skipped(self, ledger):
        ledger.path.write_text("garbage\n1001;Withdrawal;100.00;900.00;2024-01-15 09:30:05\n;;;;\n")
        assert len(list(ledger.query_by_account(1001))) == 1

    def test_undecodable_lines_skipped(self, ledger):
        ledger.path.write_bytes(
            b"1001;Withdrawal;100.00;900.00;2024-01-15 09:30:05\n"
            b"\xff\xfe garbage\n"
            b"1001;Balance Inquiry;0.00;900.00;2024-01-15 09:31:00\n"
        )

        records = list(ledger.query_by_account(1001))

        assert [record.kind for record in records] == [
            TransactionType.WITHDRAWAL,
            TransactionType.BALANCE_INQUIRY,
        ]

    def test_append_failure_raises(self, ledger):
        with patch('builtins.open', side_effect=OSError("read-only")):
            with pytest.raises(PersistenceFailure, match="read-only"):
                ledger.append(self._record(1001))
