import csv
from typing import Dict, Iterable, Iterator, TextIO, Union

from payments_ledger.amount import format_amount, parse_amount
from payments_ledger.errors import InputFormatError
from payments_ledger.models import ClientAccount, RecordError, Transaction, TransactionType

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def open_input(filepath: str) -> TextIO:
    """Open an input file; undecodable bytes become U+FFFD and fail that row only."""
    return open(filepath, "r", newline="", encoding="utf-8", errors="replace")


def read_transactions(stream: TextIO) -> Iterator[Union[Transaction, RecordError]]:
    """
    Lazily decode CSV rows into Transactions.

    Rows that cannot be decoded are yielded as RecordError so the caller can
    report them and carry on. A missing or incomplete header raises
    InputFormatError before anything is yielded.
    """
    reader = csv.reader(stream)
    try:
        header = next(reader, None)
    except csv.Error as e:
        raise InputFormatError(f"unreadable header: {e}") from None
    if header is None:
        raise InputFormatError("input is empty, expected a header row")

    columns = [name.strip().lower() for name in header]
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise InputFormatError(f"input header is missing columns: {', '.join(missing)}")

    while True:
        try:
            values = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            # the reader resumes at the next physical line
            yield RecordError(line_number=reader.line_num, message=f"unreadable row: {e}")
            continue

        if not any(value.strip() for value in values):
            continue
        row = dict(zip(columns, values))
        try:
            yield _parse_row(row)
        except (KeyError, ValueError) as e:
            yield RecordError(line_number=reader.line_num, message=str(e), row=row)


def _parse_row(row: Dict[str, str]) -> Transaction:
    """Parse CSV row into Transaction."""
    normalized = {k: (v or "").strip() for k, v in row.items()}

    type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise ValueError(f"unknown transaction type {type_str!r}") from None

    client_id = _parse_id(normalized.get("client", ""), "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized.get("tx", ""), "tx", MAX_TRANSACTION_ID)

    amount = None
    amount_str = normalized.get("amount", "")
    if transaction_type.moves_funds:
        if not amount_str:
            raise ValueError(f"{transaction_type.value} requires an amount")
        amount = parse_amount(amount_str)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, column: str, upper_bound: int) -> int:
    if not value:
        raise ValueError(f"missing {column} id")
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"invalid {column} id {value!r}") from None
    if not 0 <= parsed <= upper_bound:
        raise ValueError(f"{column} id {parsed} out of range 0..{upper_bound}")
    return parsed


def write_accounts(accounts: Union[Dict[int, ClientAccount], Iterable[ClientAccount]], stream: TextIO) -> None:
    """Write the account table, one row per client ordered by client id."""
    if isinstance(accounts, dict):
        accounts = accounts.values()

    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for account in sorted(accounts, key=lambda a: a.client_id):
        writer.writerow([
            account.client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])

