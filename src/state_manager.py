from typing import Dict, List, Optional, Tuple

from models import AccountSnapshot, ClientAccount, ClientId, TransactionRecord, TxId

TransactionKey = Tuple[ClientId, TxId]


class StateManager:
    """
    Owns client accounts and transaction history for dispute lookups.
    Transaction records are keyed by (client, tx): the same tx id presented by
    two different clients refers to two different transactions.
    """

    def __init__(self):
        self._accounts: Dict[ClientId, ClientAccount] = {}
        self._transactions: Dict[TransactionKey, TransactionRecord] = {}

    def get_account(self, client_id: ClientId) -> Optional[ClientAccount]:
        """Return the account for a client, or None if it was never created."""
        return self._accounts.get(client_id)

    def add_account(self, account: ClientAccount) -> None:
        """Register a newly created account. Accounts are never removed."""
        self._accounts.setdefault(account.client_id, account)

    def store_transaction(self, record: TransactionRecord) -> None:
        """Store or replace a transaction record for future dispute lookups."""
        self._transactions[(record.client_id, record.transaction_id)] = record

    def get_transaction(self, client_id: ClientId, transaction_id: TxId) -> Optional[TransactionRecord]:
        return self._transactions.get((client_id, transaction_id))

    def has_transaction(self, client_id: ClientId, transaction_id: TxId) -> bool:
        return (client_id, transaction_id) in self._transactions

    def snapshot(self) -> List[AccountSnapshot]:
        """Return a copy of every account, ordered by client id (for final output)."""
        return [AccountSnapshot.of(self._accounts[client_id]) for client_id in sorted(self._accounts)]
