"""Typed bindings for the AVS registry contracts.

Calldata is built from the ABI fragments in ``core.contracts`` and sent
through a ``Transport`` as a raw eth_call; return data is decoded back into
domain values.
"""

from typing import Any, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, keccak
from web3 import Web3

from ..core.contracts import (
    BLS_APK_REGISTRY_ABI,
    OPERATOR_STATE_RETRIEVER_ABI,
    REGISTRY_COORDINATOR_ABI,
    STAKE_REGISTRY_ABI,
)
from ..core.types import (
    BlockIdentifier,
    CheckSignaturesIndices,
    OperatorStake,
    OperatorStateAtBlock,
)
from .transport import Transport, TransportError


def _abi_type_to_eth_abi_str(abi_item: dict) -> str:
    abi_type = abi_item["type"]
    if not abi_type.startswith("tuple"):
        return abi_type

    # Supports tuple and tuple[]
    suffix = abi_type[len("tuple"):]
    components = abi_item.get("components") or []
    inner = ",".join(_abi_type_to_eth_abi_str(c) for c in components)
    return f"({inner}){suffix}"


class ContractFunction:
    """One ABI function: selector plus input/output codecs."""

    def __init__(self, abi: dict):
        self.abi = abi
        self.name = abi["name"]
        self.input_types = [_abi_type_to_eth_abi_str(i) for i in abi.get("inputs") or []]
        self.output_types = [_abi_type_to_eth_abi_str(o) for o in abi.get("outputs") or []]
        self.signature = f"{self.name}({','.join(self.input_types)})"
        self.selector = function_signature_to_4byte_selector(self.signature)

    def encode_input(self, *args: Any) -> bytes:
        return self.selector + abi_encode(self.input_types, args)

    def decode_input(self, data: bytes) -> tuple:
        if data[:4] != self.selector:
            raise ValueError(f"Calldata is not for {self.signature}")
        return abi_decode(self.input_types, data[4:])

    def encode_output(self, *values: Any) -> bytes:
        return abi_encode(self.output_types, values)

    def decode_output(self, data: bytes) -> tuple:
        return abi_decode(self.output_types, data)

    def __repr__(self) -> str:
        return f"<ContractFunction {self.signature}>"


class ContractEvent:
    """One ABI event: topic0 and the codec for its non-indexed data."""

    def __init__(self, abi: dict):
        self.abi = abi
        self.name = abi["name"]
        inputs = abi.get("inputs") or []
        self.signature = f"{self.name}({','.join(_abi_type_to_eth_abi_str(i) for i in inputs)})"
        self.topic = keccak(text=self.signature)
        self.indexed_count = sum(1 for i in inputs if i.get("indexed"))
        self.data_types = [_abi_type_to_eth_abi_str(i) for i in inputs if not i.get("indexed")]

    def encode_data(self, *values: Any) -> bytes:
        return abi_encode(self.data_types, values)

    def decode_data(self, data: bytes) -> tuple:
        return abi_decode(self.data_types, data)


def find_function(abi: list[dict], name: str, input_types: Sequence[str] | None = None) -> ContractFunction:
    """Look up a function by name, and by input types when it is overloaded."""
    for item in abi:
        if item.get("type") != "function" or item["name"] != name:
            continue
        function = ContractFunction(item)
        if input_types is None or function.input_types == list(input_types):
            return function
    raise KeyError(f"No function {name}{tuple(input_types or ())} in ABI")


def find_event(abi: list[dict], name: str) -> ContractEvent:
    for item in abi:
        if item.get("type") == "event" and item["name"] == name:
            return ContractEvent(item)
    raise KeyError(f"No event {name} in ABI")


def _to_operator_state(raw: Sequence[Sequence[tuple]]) -> OperatorStateAtBlock:
    return [
        [
            OperatorStake(
                address=Web3.to_checksum_address(operator),
                operator_id=bytes(operator_id),
                stake=stake,
            )
            for operator, operator_id, stake in quorum
        ]
        for quorum in raw
    ]


class ContractBinding:
    """Base for a contract handle bound to an address and a transport."""

    def __init__(self, address: str, transport: Transport):
        self.address = Web3.to_checksum_address(address)
        self.transport = transport

    async def _call(self, function: ContractFunction, *args: Any, block: BlockIdentifier = "latest") -> Any:
        raw = await self.transport.call(self.address, function.encode_input(*args), block)
        try:
            decoded = function.decode_output(raw)
        except DecodingError as e:
            raise TransportError(
                f"Could not decode {function.signature} result from {self.address}: {e}"
            ) from e
        return decoded[0] if len(decoded) == 1 else decoded

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"


class RegistryCoordinator(ContractBinding):
    QUORUM_COUNT = find_function(REGISTRY_COORDINATOR_ABI, "quorumCount")
    BLS_APK_REGISTRY = find_function(REGISTRY_COORDINATOR_ABI, "blsApkRegistry")
    STAKE_REGISTRY = find_function(REGISTRY_COORDINATOR_ABI, "stakeRegistry")
    GET_CURRENT_QUORUM_BITMAP = find_function(REGISTRY_COORDINATOR_ABI, "getCurrentQuorumBitmap")
    GET_OPERATOR_ID = find_function(REGISTRY_COORDINATOR_ABI, "getOperatorId")
    GET_OPERATOR_FROM_ID = find_function(REGISTRY_COORDINATOR_ABI, "getOperatorFromId")
    GET_OPERATOR_STATUS = find_function(REGISTRY_COORDINATOR_ABI, "getOperatorStatus")

    async def quorum_count(self) -> int:
        return await self._call(self.QUORUM_COUNT)

    async def bls_apk_registry(self) -> str:
        return Web3.to_checksum_address(await self._call(self.BLS_APK_REGISTRY))

    async def stake_registry(self) -> str:
        return Web3.to_checksum_address(await self._call(self.STAKE_REGISTRY))

    async def get_current_quorum_bitmap(self, operator_id: bytes) -> int:
        return await self._call(self.GET_CURRENT_QUORUM_BITMAP, operator_id)

    async def get_operator_id(self, operator: str) -> bytes:
        return bytes(await self._call(self.GET_OPERATOR_ID, operator))

    async def get_operator_from_id(self, operator_id: bytes) -> str:
        return Web3.to_checksum_address(await self._call(self.GET_OPERATOR_FROM_ID, operator_id))

    async def get_operator_status(self, operator: str) -> int:
        return await self._call(self.GET_OPERATOR_STATUS, operator)


class StakeRegistry(ContractBinding):
    GET_CURRENT_STAKE = find_function(STAKE_REGISTRY_ABI, "getCurrentStake")

    async def get_current_stake(self, operator_id: bytes, quorum_number: int) -> int:
        return await self._call(self.GET_CURRENT_STAKE, operator_id, quorum_number)


class OperatorStateRetriever(ContractBinding):
    GET_OPERATOR_STATE = find_function(
        OPERATOR_STATE_RETRIEVER_ABI, "getOperatorState", ["address", "bytes", "uint32"]
    )
    GET_OPERATOR_STATE_WITH_OPERATOR_ID = find_function(
        OPERATOR_STATE_RETRIEVER_ABI, "getOperatorState", ["address", "bytes32", "uint32"]
    )
    GET_CHECK_SIGNATURES_INDICES = find_function(OPERATOR_STATE_RETRIEVER_ABI, "getCheckSignaturesIndices")

    async def get_operator_state(
        self, registry_coordinator: str, quorum_numbers: bytes, block_number: int
    ) -> OperatorStateAtBlock:
        raw = await self._call(
            self.GET_OPERATOR_STATE, registry_coordinator, quorum_numbers, block_number
        )
        return _to_operator_state(raw)

    async def get_operator_state_with_registry_coordinator_and_operator_id(
        self, registry_coordinator: str, operator_id: bytes, block_number: int
    ) -> tuple[int, OperatorStateAtBlock]:
        bitmap, raw = await self._call(
            self.GET_OPERATOR_STATE_WITH_OPERATOR_ID, registry_coordinator, operator_id, block_number
        )
        return bitmap, _to_operator_state(raw)

    async def get_check_signatures_indices(
        self,
        registry_coordinator: str,
        reference_block_number: int,
        quorum_numbers: bytes,
        non_signer_operator_ids: Sequence[bytes],
    ) -> CheckSignaturesIndices:
        bitmap_indices, apk_indices, total_stake_indices, stake_indices = await self._call(
            self.GET_CHECK_SIGNATURES_INDICES,
            registry_coordinator,
            reference_block_number,
            quorum_numbers,
            list(non_signer_operator_ids),
        )
        return CheckSignaturesIndices(
            non_signer_quorum_bitmap_indices=list(bitmap_indices),
            quorum_apk_indices=list(apk_indices),
            total_stake_indices=list(total_stake_indices),
            non_signer_stake_indices=[list(indices) for indices in stake_indices],
        )


class BLSApkRegistry(ContractBinding):
    NEW_PUBKEY_REGISTRATION = find_event(BLS_APK_REGISTRY_ABI, "NewPubkeyRegistration")
