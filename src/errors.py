from typing import Optional


class LedgerError(Exception):
    """
    Base class for failures raised while applying a transaction to the ledger.
    A LedgerError never leaves partial state behind: the ledger is exactly as it
    was before the failing call, and the caller is free to continue with the
    next transaction.
    """

    reason = "ledger error"

    def __init__(self, client_id: int, transaction_id: Optional[int] = None, detail: str = ""):
        self.client_id = client_id
        self.transaction_id = transaction_id
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        target = f"client {self.client_id}"
        if self.transaction_id is not None:
            target += f", tx {self.transaction_id}"
        message = f"{self.reason} ({target})"
        if self.detail:
            message += f": {self.detail}"
        return message


class InsufficientFunds(LedgerError):
    reason = "insufficient available funds"


class UnknownTransaction(LedgerError):
    reason = "unknown transaction"


class AlreadyDisputed(LedgerError):
    reason = "transaction cannot be disputed"


class NotDisputed(LedgerError):
    reason = "transaction is not under dispute"


class AccountFrozen(LedgerError):
    reason = "account is frozen"


class DuplicateTransaction(LedgerError):
    reason = "transaction id already recorded"


class ParseError(ValueError):
    """Raised when an input record cannot be decoded into a transaction."""


class MissingAmount(ParseError):
    def __init__(self, transaction_type: str):
        self.transaction_type = transaction_type
        super().__init__(f"amount not provided for {transaction_type}")


class UnknownTransactionType(ParseError):
    def __init__(self, transaction_type: str):
        self.transaction_type = transaction_type
        super().__init__(f"unknown transaction type '{transaction_type}'")


class InvalidField(ParseError):
    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"invalid {field} '{value}': {reason}")
