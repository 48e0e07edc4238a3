"""
CSV adapters around the engine.

``read_transactions`` turns the rows of a transaction file into validated
transaction models, ``write_accounts`` renders the final account table.
"""

import csv
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Iterable, Iterator, TextIO, Union

from pydantic import ValidationError as PydanticValidationError

from errors import DecodeError
from models import Account, Transaction, transaction_adapter

REPORT_HEADER = ["client", "available", "held", "total", "locked"]
SETTLEMENT_TYPES = {"deposit", "withdrawal"}


def round_amount(amount: Decimal, scale: int = 4) -> Decimal:
    """Round half-to-even to ``scale`` fractional digits."""
    return amount.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_EVEN)


def format_amount(amount: Decimal, scale: int = 4) -> str:
    """
    Render a balance as plain decimal text.

    At most ``scale`` fractional digits are kept and trailing zeros are
    trimmed, so ``Decimal("10.0000")`` becomes ``"10"`` and
    ``Decimal("1.5000")`` becomes ``"1.5"``. Zero is always ``"0"``.
    """
    text = format(round_amount(amount, scale), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def _describe_validation_error(error: PydanticValidationError) -> str:
    reasons = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        reasons.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(reasons)


def decode_row(row: list[str], line: int, scale: int = 4) -> Transaction:
    """
    Decode a single CSV row into a transaction.

    Parameters
    ----------
    row : list[str]
        Raw fields: type, client, tx and an optional amount.
    line : int
        Line number of the row in the source, used in error messages.
    scale : int
        Fractional digits kept on settlement amounts.

    Returns
    -------
    Transaction
        The validated transaction model.

    Raises
    ------
    DecodeError
        If the row has the wrong shape, an unknown type, unparsable or
        out-of-range fields, or a settlement without a valid amount.
    """
    if len(row) not in (3, 4):
        raise DecodeError(line, f"expected 3 or 4 fields, got {len(row)}")

    fields = [field.strip() for field in row]
    record = {"type": fields[0], "account": fields[1], "tx_id": fields[2]}

    if fields[0] in SETTLEMENT_TYPES:
        amount = fields[3] if len(fields) == 4 else ""
        if not amount:
            raise DecodeError(line, f"{fields[0]} requires an amount")
        record["amount"] = amount

    try:
        transaction = transaction_adapter.validate_python(record)
    except PydanticValidationError as e:
        raise DecodeError(line, _describe_validation_error(e)) from e

    if transaction.type in SETTLEMENT_TYPES:
        try:
            rounded = round_amount(transaction.amount, scale)
        except InvalidOperation as e:
            raise DecodeError(line, f"amount {fields[3]} cannot be represented") from e
        transaction = transaction.model_copy(update={"amount": rounded})

    return transaction


def read_transactions(stream: TextIO, scale: int = 4) -> Iterator[Union[Transaction, DecodeError]]:
    """
    Read transactions from a CSV stream, one per data row, in file order.

    The first row is a header and is skipped; columns are taken by position.
    Rows that fail to decode are yielded as ``DecodeError`` instances rather
    than raised, so a single bad row never stops the stream. Blank lines are
    ignored.
    """
    reader = csv.reader(stream)
    header = next(reader, None)
    if header is None:
        return

    for row in reader:
        if not row or all(not field.strip() for field in row):
            continue
        try:
            yield decode_row(row, reader.line_num, scale)
        except DecodeError as e:
            yield e


def write_accounts(accounts: Iterable[Account], stream: TextIO, scale: int = 4) -> int:
    """Write the account report and return the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_HEADER)

    count = 0
    for account in accounts:
        writer.writerow(
            [
                account.id,
                format_amount(account.available, scale),
                format_amount(account.held, scale),
                format_amount(account.total, scale),
                "true" if account.locked else "false",
            ]
        )
        count += 1

    stream.flush()
    return count
