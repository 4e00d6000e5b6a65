"""Shared fixtures: an in-memory transport that answers eth_call through the real bindings."""

import asyncio

import pytest
from web3 import Web3

from avsregistry.data.bindings import ContractFunction
from avsregistry.data.transport import LogFilter, LogRecord, TransportError
from avsregistry.services.reader import AvsRegistryChainReader

REGISTRY_COORDINATOR = Web3.to_checksum_address("0x" + "11" * 20)
BLS_APK_REGISTRY = Web3.to_checksum_address("0x" + "22" * 20)
OPERATOR_STATE_RETRIEVER = Web3.to_checksum_address("0x" + "33" * 20)
STAKE_REGISTRY = Web3.to_checksum_address("0x" + "44" * 20)


def address(n: int) -> str:
    return Web3.to_checksum_address(n.to_bytes(20, "big"))


def operator_id(n: int) -> bytes:
    return n.to_bytes(32, "big")


class Raw(bytes):
    """Return these bytes verbatim instead of ABI-encoding a handler result."""


class FakeTransport:
    """
    Transport double. Handlers are registered per (contract, function) and
    receive the decoded call arguments; single-output functions return a
    bare value, multi-output functions a tuple. Every request yields to the
    event loop once so concurrent callers interleave.
    """

    def __init__(self, block_number: int = 1_000):
        self.current_block = block_number
        self.handlers = {}
        self.calls = []
        self.logs: list[LogRecord] = []
        self.log_filters: list[LogFilter] = []
        self.block_number_error: Exception | None = None
        self.logs_error: Exception | None = None

    def on(self, contract: str, function: ContractFunction, handler):
        self.handlers[(Web3.to_checksum_address(contract), function.selector)] = (function, handler)

    def returns(self, contract: str, function: ContractFunction, value):
        self.on(contract, function, lambda *args: value)

    def fails(self, contract: str, function: ContractFunction, message: str = "execution reverted"):
        def _fail(*args):
            raise TransportError(message)

        self.on(contract, function, _fail)

    def calls_to(self, name: str) -> list:
        return [c for c in self.calls if c[1] == name]

    async def block_number(self) -> int:
        await asyncio.sleep(0)
        self.calls.append(("", "eth_blockNumber", (), None))
        if self.block_number_error is not None:
            raise self.block_number_error
        return self.current_block

    async def call(self, to: str, data: bytes, block="latest") -> bytes:
        await asyncio.sleep(0)
        key = (to, data[:4])
        if key not in self.handlers:
            raise TransportError(f"no handler for {to} selector 0x{data[:4].hex()}")
        function, handler = self.handlers[key]
        args = function.decode_input(data)
        self.calls.append((to, function.name, args, block))
        result = handler(*args)
        if isinstance(result, Raw):
            return bytes(result)
        if len(function.output_types) == 1:
            result = (result,)
        return function.encode_output(*result)

    async def get_logs(self, log_filter: LogFilter) -> list[LogRecord]:
        await asyncio.sleep(0)
        self.log_filters.append(log_filter)
        self.calls.append(("", "eth_getLogs", (log_filter,), None))
        if self.logs_error is not None:
            raise self.logs_error
        return list(self.logs)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def reader(transport) -> AvsRegistryChainReader:
    return AvsRegistryChainReader(
        registry_coordinator=REGISTRY_COORDINATOR,
        bls_apk_registry=BLS_APK_REGISTRY,
        operator_state_retriever=OPERATOR_STATE_RETRIEVER,
        stake_registry=STAKE_REGISTRY,
        transport=transport,
    )
