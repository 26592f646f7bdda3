import logging
from typing import List, Optional

from errors import DuplicateTransaction, InsufficientFunds, UnknownTransaction
from models import (
    AccountSnapshot,
    Amount,
    Chargeback,
    ClientAccount,
    ClientId,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionRecord,
    TxId,
    Withdrawal,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger one at a time, in the order given.

    process() raises a LedgerError subclass when a transaction is rejected.
    Every check runs before any mutation, so a rejected transaction leaves
    accounts and transaction records exactly as they were. Callers are
    expected to log the error and carry on with the next transaction.
    """

    def __init__(self, state: Optional[StateManager] = None):
        self._state = state if state is not None else StateManager()

    def process_transaction(self, transaction: Transaction) -> None:
        """
        Process a single transaction.

        Raises:
            AccountFrozen: the client's account is locked after a chargeback
            InsufficientFunds: a withdrawal would overdraw available funds
            DuplicateTransaction: a deposit or withdrawal reuses a recorded tx id
            UnknownTransaction: dispute/resolve/chargeback of an unrecorded tx
            AlreadyDisputed: dispute of a tx that is no longer PROCESSED
            NotDisputed: resolve/chargeback of a tx that is not DISPUTED
        """
        match transaction:
            case Deposit(client_id=client_id, transaction_id=transaction_id, amount=amount):
                self._handle_deposit(client_id, transaction_id, amount)
            case Withdrawal(client_id=client_id, transaction_id=transaction_id, amount=amount):
                self._handle_withdrawal(client_id, transaction_id, amount)
            case Dispute(client_id=client_id, transaction_id=transaction_id):
                self._handle_dispute(client_id, transaction_id)
            case Resolve(client_id=client_id, transaction_id=transaction_id):
                self._handle_resolve(client_id, transaction_id)
            case Chargeback(client_id=client_id, transaction_id=transaction_id):
                self._handle_chargeback(client_id, transaction_id)
            case _:
                raise TypeError(f"not a transaction: {transaction!r}")

    process = process_transaction

    def snapshot(self) -> List[AccountSnapshot]:
        """Every account ever created, ordered by ascending client id."""
        return self._state.snapshot()

    def _handle_deposit(self, client_id: ClientId, transaction_id: TxId, amount: Amount) -> None:
        account = self._account_for_transfer(client_id, transaction_id)
        account.credit(amount)
        self._commit_transfer(account, transaction_id, amount)

    def _handle_withdrawal(self, client_id: ClientId, transaction_id: TxId, amount: Amount) -> None:
        account = self._account_for_transfer(client_id, transaction_id)
        if account.available - amount < Amount.ZERO:
            raise InsufficientFunds(
                client_id, transaction_id, f"available {account.available}, requested {amount}"
            )
        account.debit(amount)
        self._commit_transfer(account, transaction_id, -amount)

    def _handle_dispute(self, client_id: ClientId, transaction_id: TxId) -> None:
        record, account = self._lookup(client_id, transaction_id)
        disputed = record.dispute()
        account.ensure_unlocked(transaction_id)
        account.hold(record.amount)
        self._state.store_transaction(disputed)

    def _handle_resolve(self, client_id: ClientId, transaction_id: TxId) -> None:
        record, account = self._lookup(client_id, transaction_id)
        resolved = record.resolve()
        account.ensure_unlocked(transaction_id)
        account.release_hold(record.amount)
        self._state.store_transaction(resolved)

    def _handle_chargeback(self, client_id: ClientId, transaction_id: TxId) -> None:
        record, account = self._lookup(client_id, transaction_id)
        charged_back = record.charge_back()
        account.ensure_unlocked(transaction_id)
        account.charge_back(record.amount)
        self._state.store_transaction(charged_back)
        logger.info(f"Client {client_id}: account locked after chargeback of tx {transaction_id}")

    def _account_for_transfer(self, client_id: ClientId, transaction_id: TxId) -> ClientAccount:
        """
        Validate a deposit or withdrawal and return the account it applies to.
        A client seen for the first time gets a fresh, unregistered account that
        only becomes part of the ledger once the transfer is committed.
        """
        account = self._state.get_account(client_id)
        if account is None:
            return ClientAccount(client_id=client_id)

        account.ensure_unlocked(transaction_id)
        if self._state.has_transaction(client_id, transaction_id):
            raise DuplicateTransaction(client_id, transaction_id)
        return account

    def _commit_transfer(self, account: ClientAccount, transaction_id: TxId, signed_amount: Amount) -> None:
        self._state.add_account(account)
        self._state.store_transaction(TransactionRecord(account.client_id, transaction_id, signed_amount))

    def _lookup(self, client_id: ClientId, transaction_id: TxId):
        record = self._state.get_transaction(client_id, transaction_id)
        if record is None:
            raise UnknownTransaction(client_id, transaction_id)
        account = self._state.get_account(client_id)
        if account is None:
            raise RuntimeError(f"tx {transaction_id} is recorded but client {client_id} has no account")
        return record, account
