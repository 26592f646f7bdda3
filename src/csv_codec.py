import csv
from typing import Dict, Iterable, Iterator, Optional, TextIO, Tuple, Union

from errors import InvalidField, MissingAmount, ParseError, UnknownTransactionType
from models import (
    CLIENT_ID_MAX,
    TX_ID_MAX,
    AccountSnapshot,
    Amount,
    Chargeback,
    ClientId,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionType,
    TxId,
    Withdrawal,
)

SNAPSHOT_HEADER = ("client", "available", "held", "total", "locked")


def read_transactions(stream: TextIO) -> Iterator[Tuple[int, Union[Transaction, ParseError]]]:
    """
    Decode a `type, client, tx, amount` CSV stream row by row.

    Yields (line number, transaction) for good rows and (line number, ParseError)
    for rows that cannot be decoded, so the caller decides whether to skip them.
    Whitespace around headers and values is ignored and the amount column may
    be left out entirely on dispute, resolve and chargeback rows.
    """
    reader = csv.DictReader(stream, skipinitialspace=True)
    for row in reader:
        if not any(value and value.strip() for key, value in row.items() if key is not None):
            continue
        try:
            yield reader.line_num, parse_row(row)
        except ParseError as e:
            yield reader.line_num, e


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction."""
    normalized = {key.strip().lower(): (value or "").strip() for key, value in row.items() if key is not None}

    type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise UnknownTransactionType(type_str) from None

    client_id = ClientId(_parse_id(normalized, "client", CLIENT_ID_MAX))
    transaction_id = TxId(_parse_id(normalized, "tx", TX_ID_MAX))

    match transaction_type:
        case TransactionType.DEPOSIT:
            return Deposit(client_id, transaction_id, _parse_amount(normalized, type_str))
        case TransactionType.WITHDRAWAL:
            return Withdrawal(client_id, transaction_id, _parse_amount(normalized, type_str))
        case TransactionType.DISPUTE:
            return Dispute(client_id, transaction_id)
        case TransactionType.RESOLVE:
            return Resolve(client_id, transaction_id)
        case TransactionType.CHARGEBACK:
            return Chargeback(client_id, transaction_id)


def _parse_id(normalized: Dict[str, str], field: str, maximum: int) -> int:
    raw = normalized.get(field, "")
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidField(field, raw, "not an unsigned integer")
    value = int(raw)
    if not 0 <= value <= maximum:
        raise InvalidField(field, raw, f"out of range 0..{maximum}")
    return value


def _parse_amount(normalized: Dict[str, str], type_str: str) -> Amount:
    raw = normalized.get("amount", "")
    if not raw:
        raise MissingAmount(type_str)
    try:
        return Amount.parse(raw)
    except ValueError as e:
        raise InvalidField("amount", raw, str(e)) from None


def write_snapshot(snapshot: Iterable[AccountSnapshot], stream: TextIO) -> None:
    """Write accounts as `client,available,held,total,locked` rows, one per account."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(SNAPSHOT_HEADER)
    for account in snapshot:
        writer.writerow(
            [
                account.client_id,
                str(account.available),
                str(account.held),
                str(account.total),
                str(account.locked).lower(),
            ]
        )
