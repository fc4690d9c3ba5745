import re
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from web3 import Web3

from core.exceptions import (
    InvalidAddressException,
    InvalidBlockNumberException,
    InvalidDateException
)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
DATE_FORMAT = "%Y-%m-%d"
# uint256 has at most 78 decimal digits
BLOCK_NUMBER_PATTERN = re.compile(r"^[0-9]{1,78}$")


def parse_address(value: str, field: str = "address") -> str:
    """
    Validate a hex address and return it in checksum form.

    Parameters
    ----------
    value : str
        Raw query value
    field : str
        Parameter name used in the error message

    Returns
    -------
    str
        Checksum address

    Raises
    ------
    InvalidAddressException
        If the value is not ``0x`` followed by 40 hex digits
    """
    if not ADDRESS_PATTERN.fullmatch(value or ""):
        raise InvalidAddressException(f"Invalid {field}: expected 0x followed by 40 hex digits, got {value!r}")
    return Web3.to_checksum_address(value)


def parse_date(value: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` date.

    Raises
    ------
    InvalidDateException
        If the value is not a valid calendar date in that format
    """
    message = f"Invalid date: expected YYYY-MM-DD, got {value!r}"
    if not DATE_PATTERN.fullmatch(value or ""):
        raise InvalidDateException(message)
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateException(message) from e


def parse_block_number(value: str, field: str = "startBlock") -> int:
    """
    Parse a non-negative decimal block number.

    Raises
    ------
    InvalidBlockNumberException
        If the value is not a non-negative decimal integer
    """
    if not BLOCK_NUMBER_PATTERN.fullmatch(value or ""):
        raise InvalidBlockNumberException(f"Invalid {field}: expected a non-negative integer, got {value!r}")
    return int(value)


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class BalanceResponse(CamelModel):
    """
    Response schema for balance query.

    Attributes
    ----------
    balance : str
        Balance in the base unit, as a decimal string
    block_number : int
        Block the balance was read at
    """
    balance: str
    block_number: int


class TransactionResponse(CamelModel):
    """
    One raw log record in the transactions response.

    Attributes
    ----------
    tx_hash : str
        Transaction hash
    address : str
        Emitting address
    data : str
        0x-prefixed log payload
    """
    tx_hash: str
    address: str
    data: str


class TransactionsResponse(CamelModel):
    transactions: list[TransactionResponse]


class NftTransferResponse(CamelModel):
    """
    One decoded Transfer event.

    Attributes
    ----------
    from_address : str
        Sender, serialized as ``from``
    to_address : str
        Receiver, serialized as ``to``
    token_id : str
        Token id as a decimal string
    """
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    token_id: str


class NftTransfersResponse(CamelModel):
    nft_transfers: list[NftTransferResponse]
