import json
import logging
from typing import Any

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict
from web3 import Web3

from blockchain.entities import LogRecordEntity
from core.exceptions import DecodeException

# Fixed NFT contract interface. From and to are indexed, the token id
# travels in the data payload, so a Transfer log carries exactly 3 topics.
NFT_CONTRACT_ABI = json.loads("""[
    {"constant": true, "inputs": [{"name": "tokenId", "type": "uint256"}],
     "name": "ownerOf", "outputs": [{"name": "owner", "type": "address"}],
     "payable": false, "stateMutability": "view", "type": "function"},
    {"anonymous": false, "inputs": [
        {"indexed": true, "name": "from", "type": "address"},
        {"indexed": true, "name": "to", "type": "address"},
        {"indexed": false, "name": "tokenId", "type": "uint256"}],
     "name": "Transfer", "type": "event"}
]""")


class EventInput(BaseModel):
    """
    One parameter of an event definition.

    Attributes
    ----------
    name : str
        Parameter name
    type : str
        Canonical ABI type (e.g. ``address``, ``uint256``)
    indexed : bool
        Whether the parameter is carried in a topic
    """
    name: str
    type: str
    indexed: bool = False

    model_config = ConfigDict(frozen=True)


class EventSchema(BaseModel):
    """
    Event definition taken from a contract ABI.

    Attributes
    ----------
    name : str
        Event name
    inputs : list[EventInput]
        Parameters in declaration order
    """
    name: str
    inputs: list[EventInput]

    model_config = ConfigDict(frozen=True)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    @property
    def topic(self) -> str:
        """Lowercase 0x-prefixed keccak-256 of the canonical signature."""
        return Web3.to_hex(Web3.keccak(text=self.signature)).lower()

    @property
    def indexed_inputs(self) -> list[EventInput]:
        return [i for i in self.inputs if i.indexed]

    @property
    def data_inputs(self) -> list[EventInput]:
        return [i for i in self.inputs if not i.indexed]

    def matches(self, log: LogRecordEntity) -> bool:
        """
        Check that a log is an instance of this event.

        The first topic must equal the signature topic and the topic count
        must be one plus the number of indexed parameters.

        Parameters
        ----------
        log : LogRecordEntity
            Raw log record

        Returns
        -------
        bool
            True if the log has this event's shape
        """
        if len(log.topics) != 1 + len(self.indexed_inputs):
            return False
        return log.topics[0].lower() == self.topic


class ABIService:
    """
    Registry of the events declared by a contract ABI, and the
    schema-driven decoder for their logs.

    Parameters
    ----------
    contract_abi : list[dict[str, Any]]
        Contract ABI
    logger : logging.Logger
        Logger instance
    """

    def __init__(self, contract_abi: list[dict[str, Any]], logger: logging.Logger):
        self.logger = logger
        self.events: dict[str, EventSchema] = {
            item['name']: EventSchema(
                name=item['name'],
                inputs=[EventInput(**event_input) for event_input in item.get('inputs', [])]
            )
            for item in contract_abi
            if item.get('type') == 'event'
        }
        self.logger.debug(f"Registered events: {list(self.events)}")

    def get_event(self, name: str) -> EventSchema:
        """
        Get an event schema by name.

        Parameters
        ----------
        name : str
            Event name

        Returns
        -------
        EventSchema
            Registered schema

        Raises
        ------
        KeyError
            If the ABI declares no such event
        """
        if name not in self.events:
            raise KeyError(f"Event {name} is not declared by the contract ABI")
        return self.events[name]

    def decode_log(self, schema: EventSchema, log: LogRecordEntity) -> dict[str, Any]:
        """
        Decode a log into named event arguments.

        Indexed parameters are read from ``topics[1:]``, the rest from the
        data payload. Addresses are returned in checksum form.

        Parameters
        ----------
        schema : EventSchema
            Event the log is an instance of
        log : LogRecordEntity
            Raw log record

        Returns
        -------
        dict[str, Any]
            Argument name to decoded value

        Raises
        ------
        DecodeException
            If topics or payload do not conform to the schema
        """
        args: dict[str, Any] = {}
        try:
            for event_input, topic in zip(schema.indexed_inputs, log.topics[1:]):
                (args[event_input.name],) = decode([event_input.type], HexBytes(topic))

            data_inputs = schema.data_inputs
            values = decode([i.type for i in data_inputs], HexBytes(log.data))
            args.update(zip((i.name for i in data_inputs), values))
        except (DecodingError, ValueError) as e:
            self.logger.warning(
                f"Failed to decode {schema.name} in tx {log.transaction_hash} "
                f"(log index {log.log_index}): {e}"
            )
            raise DecodeException(
                f"Log {log.log_index} of tx {log.transaction_hash} does not match {schema.signature}: {e}"
            ) from e

        for event_input in schema.inputs:
            if event_input.type == 'address':
                args[event_input.name] = Web3.to_checksum_address(args[event_input.name])

        return args
