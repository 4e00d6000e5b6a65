"""Read-only facade over the AVS registry contracts."""

import logging
from typing import Iterable, Sequence

from web3 import Web3

from ..core.bitmap import bitmap_to_quorum_ids
from ..core.config import Settings, get_settings
from ..core.errors import (
    BitmapLookupError,
    BlockNumberOverflowError,
    CheckSignaturesIndicesError,
    ContractResolutionError,
    OperatorLookupError,
    OperatorStatusError,
    RpcCallError,
    StakeLookupError,
)
from ..core.types import (
    BLOCK_NUMBER_MAX,
    BlockIdentifier,
    CheckSignaturesIndices,
    OperatorPubKeys,
    OperatorStateAtBlock,
    OperatorStatus,
    to_operator_id,
    to_quorum_numbers,
)
from ..data.bindings import (
    OperatorStateRetriever,
    RegistryCoordinator,
    StakeRegistry,
)
from ..data.events import scan_new_pubkey_registrations
from ..data.transport import Transport, TransportError, Web3Transport

logger = logging.getLogger(__name__)

LATEST = "latest"


def check_block_number(block_number: int) -> int:
    """Reject block numbers that do not fit in 32 bits."""
    if not 0 <= block_number <= BLOCK_NUMBER_MAX:
        raise BlockNumberOverflowError(f"Block number {block_number} does not fit in 32 bits")
    return block_number


class AvsRegistryChainReader:
    """
    Answers registry questions by composing contract reads.

    Holds four contract addresses and a shared transport; nothing else, and
    nothing changes after construction, so one instance can serve concurrent
    callers.

    The ``*_at_current_block`` methods read the chain height and then query
    at that height in a second request. The pair is not atomic; callers that
    need a consistent snapshot across several reads should pin a block.
    """

    __slots__ = (
        "_registry_coordinator",
        "_bls_apk_registry",
        "_operator_state_retriever",
        "_stake_registry",
        "_transport",
    )

    def __init__(
        self,
        registry_coordinator: str,
        bls_apk_registry: str,
        operator_state_retriever: str,
        stake_registry: str,
        transport: Transport,
    ):
        self._registry_coordinator = Web3.to_checksum_address(registry_coordinator)
        self._bls_apk_registry = Web3.to_checksum_address(bls_apk_registry)
        self._operator_state_retriever = Web3.to_checksum_address(operator_state_retriever)
        self._stake_registry = Web3.to_checksum_address(stake_registry)
        self._transport = transport

    @classmethod
    async def from_registry_coordinator(
        cls,
        registry_coordinator: str,
        operator_state_retriever: str,
        transport: Transport,
    ) -> "AvsRegistryChainReader":
        """Build a reader, discovering BLSApkRegistry and StakeRegistry from the coordinator."""
        coordinator = RegistryCoordinator(registry_coordinator, transport)
        try:
            bls_apk_registry = await coordinator.bls_apk_registry()
        except TransportError as e:
            raise ContractResolutionError(
                f"Could not resolve BLSApkRegistry from {coordinator.address}"
            ) from e
        try:
            stake_registry = await coordinator.stake_registry()
        except TransportError as e:
            raise ContractResolutionError(
                f"Could not resolve StakeRegistry from {coordinator.address}"
            ) from e

        logger.debug(
            f"Resolved BLSApkRegistry={bls_apk_registry} StakeRegistry={stake_registry} "
            f"from RegistryCoordinator={coordinator.address}"
        )
        return cls(
            registry_coordinator=registry_coordinator,
            bls_apk_registry=bls_apk_registry,
            operator_state_retriever=operator_state_retriever,
            stake_registry=stake_registry,
            transport=transport,
        )

    @property
    def registry_coordinator_address(self) -> str:
        return self._registry_coordinator

    @property
    def bls_apk_registry_address(self) -> str:
        return self._bls_apk_registry

    @property
    def operator_state_retriever_address(self) -> str:
        return self._operator_state_retriever

    @property
    def stake_registry_address(self) -> str:
        return self._stake_registry

    @property
    def transport(self) -> Transport:
        return self._transport

    def _registry_coordinator_contract(self) -> RegistryCoordinator:
        return RegistryCoordinator(self._registry_coordinator, self._transport)

    def _operator_state_retriever_contract(self) -> OperatorStateRetriever:
        return OperatorStateRetriever(self._operator_state_retriever, self._transport)

    def _stake_registry_contract(self) -> StakeRegistry:
        return StakeRegistry(self._stake_registry, self._transport)

    async def _current_block_number(self) -> int:
        try:
            block_number = await self._transport.block_number()
        except TransportError as e:
            raise RpcCallError("Could not read current block number") from e
        if block_number > BLOCK_NUMBER_MAX:
            raise BlockNumberOverflowError(
                f"Current block number {block_number} does not fit in 32 bits"
            )
        return block_number

    async def get_quorum_count(self) -> int:
        """Number of quorums created on the RegistryCoordinator."""
        try:
            return await self._registry_coordinator_contract().quorum_count()
        except TransportError as e:
            raise RpcCallError("Could not read quorum count") from e

    async def get_operators_stake_in_quorums_at_block(
        self, block_number: int, quorum_numbers: bytes | Iterable[int]
    ) -> OperatorStateAtBlock:
        """Operators and their stakes for each requested quorum at ``block_number``.

        The outer list is parallel to ``quorum_numbers``.
        """
        check_block_number(block_number)
        quorums = to_quorum_numbers(quorum_numbers)
        try:
            state = await self._operator_state_retriever_contract().get_operator_state(
                self._registry_coordinator, quorums, block_number
            )
        except TransportError as e:
            logger.warning(f"getOperatorState failed at block {block_number}: {e}")
            raise RpcCallError(
                f"Could not read operator state for quorums {list(quorums)} at block {block_number}"
            ) from e
        logger.debug(f"Operator state at block {block_number} for quorums {list(quorums)}")
        return state

    async def get_operators_stake_in_quorums_at_current_block(
        self, quorum_numbers: bytes | Iterable[int]
    ) -> OperatorStateAtBlock:
        quorums = to_quorum_numbers(quorum_numbers)
        block_number = await self._current_block_number()
        return await self.get_operators_stake_in_quorums_at_block(block_number, quorums)

    async def get_operator_addrs_in_quorums_at_current_block(
        self, quorum_numbers: bytes | Iterable[int]
    ) -> list[list[str]]:
        """Operator addresses per quorum, in the same order as the stakes query."""
        state = await self.get_operators_stake_in_quorums_at_current_block(quorum_numbers)
        return [[operator.address for operator in quorum] for quorum in state]

    async def get_operators_stake_in_quorums_of_operator_at_block(
        self, operator_id: bytes | str, block_number: int
    ) -> tuple[list[int], OperatorStateAtBlock]:
        """Quorums the operator belongs to and the full operator set of each.

        The returned quorum ids are parallel to the outer list of the state.
        """
        check_block_number(block_number)
        operator_id = to_operator_id(operator_id)
        retriever = self._operator_state_retriever_contract()
        try:
            bitmap, state = await retriever.get_operator_state_with_registry_coordinator_and_operator_id(
                self._registry_coordinator, operator_id, block_number
            )
        except TransportError as e:
            logger.warning(f"getOperatorState for operator 0x{operator_id.hex()} failed: {e}")
            raise RpcCallError(
                f"Could not read operator state of 0x{operator_id.hex()} at block {block_number}"
            ) from e
        return bitmap_to_quorum_ids(bitmap), state

    async def get_operators_stake_in_quorums_of_operator_at_current_block(
        self, operator_id: bytes | str
    ) -> tuple[list[int], OperatorStateAtBlock]:
        operator_id = to_operator_id(operator_id)
        block_number = await self._current_block_number()
        return await self.get_operators_stake_in_quorums_of_operator_at_block(operator_id, block_number)

    async def get_operator_stake_in_quorums_of_operator_at_current_block(
        self, operator_id: bytes | str
    ) -> dict[int, int]:
        """
        Current stake of one operator in each quorum it belongs to.

        Stakes are read one quorum at a time at "latest", so they may straddle
        an on-chain update. Any failed lookup fails the whole call.
        """
        operator_id = to_operator_id(operator_id)
        try:
            bitmap = await self._registry_coordinator_contract().get_current_quorum_bitmap(operator_id)
        except TransportError as e:
            raise BitmapLookupError(
                f"Could not read quorum bitmap of operator 0x{operator_id.hex()}"
            ) from e

        stake_registry = self._stake_registry_contract()
        quorum_stakes: dict[int, int] = {}
        for quorum in bitmap_to_quorum_ids(bitmap):
            try:
                quorum_stakes[quorum] = await stake_registry.get_current_stake(operator_id, quorum)
            except TransportError as e:
                logger.warning(f"getCurrentStake failed for quorum {quorum}: {e}")
                raise StakeLookupError(
                    f"Could not read stake of operator 0x{operator_id.hex()} in quorum {quorum}"
                ) from e
        return quorum_stakes

    async def get_check_signatures_indices(
        self,
        reference_block_number: int,
        quorum_numbers: bytes | Iterable[int],
        non_signer_operator_ids: Sequence[bytes | str],
    ) -> CheckSignaturesIndices:
        check_block_number(reference_block_number)
        quorums = to_quorum_numbers(quorum_numbers)
        non_signers = [to_operator_id(operator_id) for operator_id in non_signer_operator_ids]
        try:
            return await self._operator_state_retriever_contract().get_check_signatures_indices(
                self._registry_coordinator, reference_block_number, quorums, non_signers
            )
        except TransportError as e:
            raise CheckSignaturesIndicesError(
                f"Could not read signature indices at reference block {reference_block_number}"
            ) from e

    async def get_operator_id(self, operator_address: str) -> bytes:
        operator_address = Web3.to_checksum_address(operator_address)
        try:
            return await self._registry_coordinator_contract().get_operator_id(operator_address)
        except TransportError as e:
            raise OperatorLookupError(f"Could not read operator id of {operator_address}") from e

    async def get_operator_from_id(self, operator_id: bytes | str) -> str:
        operator_id = to_operator_id(operator_id)
        try:
            return await self._registry_coordinator_contract().get_operator_from_id(operator_id)
        except TransportError as e:
            raise OperatorLookupError(f"Could not read operator address of 0x{operator_id.hex()}") from e

    async def get_operator_status(self, operator_address: str) -> OperatorStatus | int:
        """Registration status; values the enum does not know are returned as int."""
        operator_address = Web3.to_checksum_address(operator_address)
        try:
            status = await self._registry_coordinator_contract().get_operator_status(operator_address)
        except TransportError as e:
            raise OperatorStatusError(f"Could not read status of operator {operator_address}") from e
        try:
            return OperatorStatus(status)
        except ValueError:
            return status

    async def is_operator_registered(self, operator_address: str) -> bool:
        return await self.get_operator_status(operator_address) == OperatorStatus.REGISTERED

    async def query_existing_registered_operator_pub_keys(
        self, start_block: BlockIdentifier, stop_block: BlockIdentifier = LATEST
    ) -> tuple[list[str], list[OperatorPubKeys]]:
        """
        Operators that registered BLS keys in [start_block, stop_block].

        Returns two parallel lists: operator addresses and their key pairs,
        in log order.
        """
        for block in (start_block, stop_block):
            if isinstance(block, str):
                if block != LATEST:
                    raise ValueError(f"Unsupported block tag {block!r}, only {LATEST!r} is accepted")
            else:
                check_block_number(block)
        if start_block == LATEST and isinstance(stop_block, int):
            raise ValueError(f"start_block {LATEST!r} is after stop_block {stop_block}")
        if isinstance(start_block, int) and isinstance(stop_block, int) and start_block > stop_block:
            raise ValueError(f"start_block {start_block} is after stop_block {stop_block}")

        return await scan_new_pubkey_registrations(
            self._transport, self._bls_apk_registry, start_block, stop_block
        )

    def __repr__(self) -> str:
        return (
            f"AvsRegistryChainReader(registry_coordinator={self._registry_coordinator}, "
            f"bls_apk_registry={self._bls_apk_registry}, "
            f"operator_state_retriever={self._operator_state_retriever}, "
            f"stake_registry={self._stake_registry})"
        )


async def build_avs_registry_chain_reader(
    rpc_url: str | None = None,
    settings: Settings | None = None,
    transport: Transport | None = None,
) -> AvsRegistryChainReader:
    """Build a reader from settings, discovering dependent registries when not configured."""
    settings = settings or get_settings()
    if not settings.registry_coordinator_address or not settings.operator_state_retriever_address:
        raise ValueError(
            "REGISTRY_COORDINATOR_ADDRESS and OPERATOR_STATE_RETRIEVER_ADDRESS must be configured"
        )
    transport = transport or Web3Transport(rpc_url or settings.eth_rpc_url)

    if settings.bls_apk_registry_address and settings.stake_registry_address:
        return AvsRegistryChainReader(
            registry_coordinator=settings.registry_coordinator_address,
            bls_apk_registry=settings.bls_apk_registry_address,
            operator_state_retriever=settings.operator_state_retriever_address,
            stake_registry=settings.stake_registry_address,
            transport=transport,
        )
    return await AvsRegistryChainReader.from_registry_coordinator(
        settings.registry_coordinator_address,
        settings.operator_state_retriever_address,
        transport,
    )
