from pydantic import BaseModel, ConfigDict


class LogRecordEntity(BaseModel):
    """
    Entity representing one emitted log record, as reported by the node.

    Attributes
    ----------
    transaction_hash : str
        Hash of the transaction that emitted the log
    address : str
        Address of the emitting contract
    topics : list[str]
        0x-prefixed 32-byte topics; the first one identifies the event
    data : str
        0x-prefixed ABI-encoded non-indexed parameters
    block_number : int
        Block the log was included in
    log_index : int
        Position of the log within its block
    """
    transaction_hash: str
    address: str
    topics: list[str]
    data: str
    block_number: int
    log_index: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class BlockEntity(BaseModel):
    """
    Entity representing a block header.

    Attributes
    ----------
    number : int
        Block number
    timestamp : int
        Block timestamp, unix seconds
    """
    number: int
    timestamp: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class TransferEventEntity(BaseModel):
    """
    Entity representing a decoded NFT Transfer event.

    Attributes
    ----------
    from_address : str
        Sender (checksum address)
    to_address : str
        Receiver (checksum address)
    token_id : int
        Token identifier (uint256)
    transaction_hash : str
        Hash of the emitting transaction
    block_number : int
        Block the event was included in
    log_index : int
        Position of the log within its block
    """
    from_address: str
    to_address: str
    token_id: int
    transaction_hash: str
    block_number: int
    log_index: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class BalanceEntity(BaseModel):
    """
    Entity representing an account balance at a specific block.

    Attributes
    ----------
    address : str
        Account address
    block_number : int
        Block the balance was read at
    balance_wei : int
        Balance in the chain's base unit
    """
    address: str
    block_number: int
    balance_wei: int

    model_config = ConfigDict(from_attributes=True, frozen=True)
