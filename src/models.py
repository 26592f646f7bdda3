from dataclasses import dataclass, replace
from decimal import Context, Decimal, DecimalException, Inexact, InvalidOperation, Overflow, Rounded
from enum import Enum
from typing import ClassVar, NewType, Optional, Union

from errors import AccountFrozen, AlreadyDisputed, NotDisputed

ClientId = NewType("ClientId", int)
TxId = NewType("TxId", int)

CLIENT_ID_MAX = 2**16 - 1
TX_ID_MAX = 2**32 - 1

AMOUNT_SCALE = 4
_QUANTUM = Decimal(1).scaleb(-AMOUNT_SCALE)

# Any operation that would have to round raises instead.
_EXACT = Context(prec=28, traps=[InvalidOperation, Inexact, Rounded, Overflow])
# Values must fit in 28 digits once held at four decimal places.
_SCALED = Context(prec=28, traps=[InvalidOperation, Inexact, Overflow])


@dataclass(frozen=True, order=True)
class Amount:
    """
    Exact monetary amount with at most four fractional places.
    Wraps Decimal; never goes through float.
    """

    value: Decimal = Decimal(0)

    ZERO: ClassVar["Amount"]

    def __post_init__(self):
        if not isinstance(self.value, Decimal):
            raise TypeError(f"Amount requires a Decimal, got {type(self.value).__name__}")
        if not self.value.is_finite():
            raise ValueError(f"Amount must be finite, got {self.value}")
        try:
            _SCALED.quantize(self.value, _QUANTUM)
        except Inexact as e:
            raise ValueError(f"Amount {self.value} has more than {AMOUNT_SCALE} decimal places") from e
        except DecimalException as e:
            raise ValueError(f"Amount {self.value} is out of range") from e

    @classmethod
    def parse(cls, text: str) -> "Amount":
        try:
            value = Decimal(text.strip())
        except InvalidOperation as e:
            raise ValueError(f"not a decimal number: {text!r}") from e
        return cls(value)

    def __add__(self, other: "Amount") -> "Amount":
        return Amount(_EXACT.add(self.value, other.value))

    def __sub__(self, other: "Amount") -> "Amount":
        return Amount(_EXACT.subtract(self.value, other.value))

    def __neg__(self) -> "Amount":
        return Amount(_EXACT.minus(self.value))

    def __str__(self) -> str:
        """Render with up to 4 decimal places, removing trailing zeros."""
        if self.value.is_zero():
            return "0"
        normalized = self.value.normalize(_EXACT)
        return f"{normalized:f}"

    def __repr__(self) -> str:
        return f"Amount('{self}')"


Amount.ZERO = Amount()


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class _TransactionBase:
    transaction_type: ClassVar[TransactionType]

    client_id: ClientId
    transaction_id: TxId

    def __str__(self) -> str:
        return f"{self.transaction_type.value} (client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class Deposit(_TransactionBase):
    """Credit the client's available funds."""

    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT

    amount: Amount

    def __str__(self) -> str:
        return f"deposit (client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Withdrawal(_TransactionBase):
    """Debit the client's available funds. Never allowed to overdraw."""

    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL

    amount: Amount

    def __str__(self) -> str:
        return f"withdrawal (client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Dispute(_TransactionBase):
    """Hold the funds of an earlier deposit or withdrawal pending resolution."""

    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True)
class Resolve(_TransactionBase):
    """Settle a dispute in the client's favour: held funds go back to available."""

    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True)
class Chargeback(_TransactionBase):
    """Settle a dispute by reversal: held funds are removed and the account is frozen."""

    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


class TransactionState(Enum):
    """
    Dispute lifecycle of a stored deposit or withdrawal:

        PROCESSED -> DISPUTED
        DISPUTED  -> RESOLVED
        DISPUTED  -> CHARGED_BACK

    PROCESSED is the initial state; RESOLVED and CHARGED_BACK are terminal.
    """

    PROCESSED = "processed"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


@dataclass(frozen=True)
class TransactionRecord:
    """
    A deposit or withdrawal kept for later dispute lookups.
    The amount is signed: positive for deposits, negative for withdrawals.
    State only changes through dispute(), resolve() and charge_back(), each of
    which returns a new record and leaves this one untouched.
    """

    client_id: ClientId
    transaction_id: TxId
    amount: Amount
    state: TransactionState = TransactionState.PROCESSED

    def dispute(self) -> "TransactionRecord":
        if self.state is not TransactionState.PROCESSED:
            raise AlreadyDisputed(self.client_id, self.transaction_id, f"state is {self.state.value}")
        return replace(self, state=TransactionState.DISPUTED)

    def resolve(self) -> "TransactionRecord":
        self._require_disputed()
        return replace(self, state=TransactionState.RESOLVED)

    def charge_back(self) -> "TransactionRecord":
        self._require_disputed()
        return replace(self, state=TransactionState.CHARGED_BACK)

    def _require_disputed(self) -> None:
        if self.state is not TransactionState.DISPUTED:
            raise NotDisputed(self.client_id, self.transaction_id, f"state is {self.state.value}")


@dataclass
class ClientAccount:
    client_id: ClientId
    available: Amount = Amount.ZERO
    held: Amount = Amount.ZERO
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available + self.held

    def ensure_unlocked(self, transaction_id: Optional[TxId] = None) -> None:
        if self.locked:
            raise AccountFrozen(self.client_id, transaction_id)

    def credit(self, amount: Amount) -> None:
        self.ensure_unlocked()
        self.available += amount

    def debit(self, amount: Amount) -> None:
        self.ensure_unlocked()
        self.available -= amount

    def hold(self, amount: Amount) -> None:
        self.ensure_unlocked()
        available, held = self.available - amount, self.held + amount
        self.available, self.held = available, held

    def release_hold(self, amount: Amount) -> None:
        self.ensure_unlocked()
        available, held = self.available + amount, self.held - amount
        self.available, self.held = available, held

    def charge_back(self, amount: Amount) -> None:
        self.ensure_unlocked()
        self.held -= amount
        self.locked = True


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: ClientId
    available: Amount
    held: Amount
    total: Amount
    locked: bool

    @classmethod
    def of(cls, account: ClientAccount) -> "AccountSnapshot":
        return cls(
            client_id=account.client_id,
            available=account.available,
            held=account.held,
            total=account.total,
            locked=account.locked,
        )


class ProcessingStats:
    """Counters for a single run, reported once processing is complete."""

    def __init__(self):
        self.processed = 0
        self.failed = 0
        self.skipped = 0

    def record_success(self):
        self.processed += 1

    def record_failure(self):
        self.failed += 1

    def record_skipped(self):
        self.skipped += 1

    def __str__(self) -> str:
        return f"Processed: {self.processed}, Failed: {self.failed}, Skipped: {self.skipped}"
