from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from decimal import Decimal
from typing import Annotated, Literal, Union


ZERO = Decimal("0.0000")

AccountId = Annotated[int, Field(ge=0, le=65535, description="Client account identifier")]
TransactionId = Annotated[int, Field(ge=0, le=4294967295, description="Settlement transaction identifier")]
Amount = Annotated[Decimal, Field(ge=0, description="Settled amount, 4 fractional digits")]


class _TransactionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    account: AccountId
    tx_id: TransactionId


class Deposit(_TransactionBase):
    type: Literal["deposit"] = "deposit"
    amount: Amount


class Withdrawal(_TransactionBase):
    type: Literal["withdrawal"] = "withdrawal"
    amount: Amount


class Dispute(_TransactionBase):
    type: Literal["dispute"] = "dispute"


class Resolve(_TransactionBase):
    type: Literal["resolve"] = "resolve"


class Chargeback(_TransactionBase):
    type: Literal["chargeback"] = "chargeback"


# Closed set of transaction kinds; the engine matches on every member.
Transaction = Annotated[
    Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback],
    Field(discriminator="type"),
]

# Deposits and withdrawals are the only kinds kept in the history.
Settlement = Union[Deposit, Withdrawal]

transaction_adapter = TypeAdapter(Transaction)


class Account(BaseModel):
    """Balances of a single client account.

    ``total`` is stored, not derived; ``total == available + held`` after
    every operation.
    """

    id: AccountId
    available: Decimal = ZERO
    held: Decimal = ZERO
    total: Decimal = ZERO
    locked: bool = False


class RunSummary(BaseModel):
    processed: int = Field(0, description="Decoded transactions handed to the engine")
    decode_failures: int = Field(0, description="Rows skipped because they could not be decoded")
    execution_failures: int = Field(0, description="Transactions rejected by the engine")
    accounts_count: int = Field(0, description="Number of accounts in the final report")
    duration_seconds: float = Field(0.0, description="Wall-clock time spent processing the stream")
