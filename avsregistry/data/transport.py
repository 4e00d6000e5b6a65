"""JSON-RPC transport via Web3."""

import logging
from typing import Any, Mapping, Protocol

from pydantic import BaseModel
from web3 import AsyncWeb3, Web3

from ..core.types import BlockIdentifier

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A JSON-RPC request failed or returned unusable data."""


class LogFilter(BaseModel):
    """eth_getLogs filter. ``None`` in ``topics`` leaves that slot unconstrained."""

    address: str
    from_block: BlockIdentifier
    to_block: BlockIdentifier
    topics: list[bytes | None]

    def to_rpc_params(self) -> dict:
        return {
            "address": self.address,
            "fromBlock": self.from_block,
            "toBlock": self.to_block,
            "topics": [None if t is None else Web3.to_hex(t) for t in self.topics],
        }


class LogRecord(BaseModel):
    address: str
    topics: list[bytes]
    data: bytes
    block_number: int
    log_index: int


class Transport(Protocol):
    """What the registry reader needs from an RPC client. Must be safe for concurrent use."""

    async def block_number(self) -> int: ...

    async def call(self, to: str, data: bytes, block: BlockIdentifier = "latest") -> bytes: ...

    async def get_logs(self, log_filter: LogFilter) -> list[LogRecord]: ...


def to_log_record(raw: Mapping[str, Any]) -> LogRecord:
    """Convert a log as returned by web3 into a LogRecord."""
    return LogRecord(
        address=Web3.to_checksum_address(raw["address"]),
        topics=[bytes(topic) for topic in raw["topics"]],
        data=bytes(raw["data"]),
        block_number=raw["blockNumber"],
        log_index=raw["logIndex"],
    )


class Web3Transport:
    """Transport backed by an AsyncWeb3 HTTP provider.

    Timeouts and retries are whatever the provider is configured with.
    """

    def __init__(self, rpc_url: str | None = None, w3: AsyncWeb3 | None = None):
        if w3 is None:
            if rpc_url is None:
                raise ValueError("Either rpc_url or w3 is required")
            w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.w3 = w3

    async def block_number(self) -> int:
        try:
            return await self.w3.eth.block_number
        except Exception as e:
            raise TransportError(f"eth_blockNumber failed: {e}") from e

    async def call(self, to: str, data: bytes, block: BlockIdentifier = "latest") -> bytes:
        try:
            result = await self.w3.eth.call(
                {"to": Web3.to_checksum_address(to), "data": Web3.to_hex(data)},
                block_identifier=block,
            )
        except Exception as e:
            raise TransportError(f"eth_call to {to} failed: {e}") from e
        return bytes(result)

    async def get_logs(self, log_filter: LogFilter) -> list[LogRecord]:
        params = log_filter.to_rpc_params()
        logger.debug(f"eth_getLogs {params}")
        try:
            raw_logs = await self.w3.eth.get_logs(params)
        except Exception as e:
            raise TransportError(f"eth_getLogs failed: {e}") from e
        try:
            return [to_log_record(raw) for raw in raw_logs]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"eth_getLogs returned a malformed log: {e}") from e
