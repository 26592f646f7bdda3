import sys
import os
import logging

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Amount
from payments_engine import PaymentsEngine


def amount(text: str) -> Amount:
    return Amount.parse(text)


def run(tmp_path, *lines, engine=None):
    csv_file = tmp_path / "test.csv"
    csv_file.write_text('\n'.join(lines))

    engine = engine or PaymentsEngine()
    return {account.client_id: account for account in engine.process_file(str(csv_file))}


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert sorted(accounts) == [1, 2]

        assert accounts[1].available == amount("1.5")
        assert accounts[1].held == amount("0")
        assert accounts[1].total == amount("1.5")

        assert accounts[2].available == amount("2.0")
        assert accounts[2].held == amount("0")
        assert accounts[2].total == amount("2.0")

    def test_snapshot_ordered_by_client(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 9, 1, 1",
            "deposit, 3, 2, 1",
            "deposit, 5, 3, 1",
        ]))

        snapshot = PaymentsEngine().process_file(str(csv_file))

        assert [account.client_id for account in snapshot] == [3, 5, 9]

    def test_dispute_resolve(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")
        assert accounts[1].locked is False

    def test_chargeback(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == amount("0")
        assert accounts[1].held == amount("0")
        assert accounts[1].total == amount("0")
        assert accounts[1].locked is True

    def test_dispute_before_deposit_is_rejected(self, tmp_path):
        """Transactions are applied strictly in file order, nothing is retried."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")

    def test_insufficient_funds(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 50.0",
            "withdrawal, 1, 2, 100.0",
        )

        assert accounts[1].available == amount("50")
        assert accounts[1].total == amount("50")

    def test_decimal_precision(self, tmp_path):
        """Amounts keep four decimal places exactly."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 1.2345",
            "deposit, 1, 2, 0.0001",
            "withdrawal, 1, 3, 0.2346",
        )

        # 1.2345 + 0.0001 - 0.2346 = 1.0000
        assert accounts[1].available == amount("1.0000")

    def test_too_many_decimal_places_skipped(self, tmp_path):
        engine = PaymentsEngine()
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 1.00001",
            "deposit, 1, 2, 2",
            engine=engine,
        )

        assert accounts[1].available == amount("2")
        assert engine.stats.skipped == 1

    def test_dispute_withdrawal_holds_negative(self, tmp_path):
        """Disputing a withdrawal moves its negative amount into held funds."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 50.0",
            "dispute, 1, 2,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("-50")
        assert accounts[1].total == amount("50")

    def test_duplicate_dispute_ignored(self, tmp_path):
        """Second dispute on same transaction is rejected."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "dispute, 1, 1,",
        )

        assert accounts[1].available == amount("0")
        assert accounts[1].held == amount("100")

    def test_frozen_account_rejects_operations(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 50.0",
            "withdrawal, 1, 3, 10.0",
        )

        # Deposit 100, dispute, chargeback (frozen), deposit 50 (rejected), withdrawal (rejected)
        assert accounts[1].available == amount("0")
        assert accounts[1].total == amount("0")
        assert accounts[1].locked is True

    def test_wrong_client_dispute_ignored(self, tmp_path):
        """Client cannot dispute another client's transaction."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 2, 1,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")
        assert 2 not in accounts

    def test_resolve_without_dispute_ignored(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "resolve, 1, 1,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")

    def test_chargeback_after_resolve_ignored(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")
        assert accounts[1].locked is False

    def test_multiple_disputes_same_client(self, tmp_path):
        """Multiple disputes on different transactions, one resolved, one charged back."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 50.0",
            "dispute, 1, 1,",
            "dispute, 1, 2,",
            "resolve, 1, 1,",
            "chargeback, 1, 2,",
        )

        # After resolve tx1: available=100, held=50
        # After chargeback tx2: available=100, held=0, total=100, locked=True
        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")
        assert accounts[1].total == amount("100")
        assert accounts[1].locked is True

    def test_no_redispute_after_resolve(self, tmp_path):
        """A resolved dispute is final: further dispute and chargeback are rejected."""
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        )

        assert accounts[1].available == amount("100")
        assert accounts[1].held == amount("0")
        assert accounts[1].locked is False

    def test_negative_deposit_passes_through(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, -100.0",
            "deposit, 1, 2, 50.0",
        )

        assert accounts[1].available == amount("-50")

    def test_duplicate_deposit_rejected(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 1, 100.0",
        )

        assert accounts[1].available == amount("100")

    def test_duplicate_withdrawal_rejected(self, tmp_path):
        accounts = run(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 200.0",
            "withdrawal, 1, 2, 50.0",
            "withdrawal, 1, 2, 50.0",
            "withdrawal, 1, 2, 50.0",
        )

        assert accounts[1].available == amount("150")

    def test_failures_are_logged_and_counted(self, tmp_path, caplog):
        engine = PaymentsEngine()
        with caplog.at_level(logging.WARNING):
            run(
                tmp_path,
                "type, client, tx, amount",
                "deposit, 2, 2, 1.0",
                "withdrawal, 2, 5, 3.0",
                "refund, 2, 6, 1.0",
                "deposit, 2, 7, 1.0",
                engine=engine,
            )

        assert engine.stats.processed == 2
        assert engine.stats.failed == 1
        assert engine.stats.skipped == 1
        messages = [record.getMessage() for record in caplog.records]
        assert any("Line 3" in message and "insufficient available funds" in message for message in messages)
        assert any("Line 4" in message and "unknown transaction type 'refund'" in message for message in messages)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PaymentsEngine().process_file(str(tmp_path / "missing.csv"))
