"""Data models for AVS registry reads."""

from enum import IntEnum
from typing import Iterable, Union

from eth_utils import is_hex, to_bytes
from pydantic import BaseModel, ConfigDict

BLOCK_NUMBER_MAX = 2**32 - 1

# Block identifier accepted by the transport: a height or a tag such as "latest".
BlockIdentifier = Union[int, str]


class OperatorStatus(IntEnum):
    """Registration status kept by the RegistryCoordinator."""

    NEVER_REGISTERED = 0
    REGISTERED = 1
    DEREGISTERED = 2


class OperatorStake(BaseModel):
    """Operator stake record emitted by the OperatorStateRetriever."""

    model_config = ConfigDict(frozen=True)

    address: str
    operator_id: bytes
    stake: int


# Outer axis parallel to the requested quorum numbers.
OperatorStateAtBlock = list[list[OperatorStake]]


class CheckSignaturesIndices(BaseModel):
    """Indices into historical operator state, passed through unchanged."""

    non_signer_quorum_bitmap_indices: list[int]
    quorum_apk_indices: list[int]
    total_stake_indices: list[int]
    non_signer_stake_indices: list[list[int]]


class G1Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int


class G2Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: tuple[int, int]
    y: tuple[int, int]


class OperatorPubKeys(BaseModel):
    """BLS key pair registered by an operator."""

    model_config = ConfigDict(frozen=True)

    g1: G1Point
    g2: G2Point


def to_operator_id(value: bytes | str) -> bytes:
    """Normalize a 32-byte operator id given as bytes or a hex string."""
    if isinstance(value, str):
        if not is_hex(value):
            raise ValueError(f"Operator id is not hex: {value!r}")
        value = to_bytes(hexstr=value)
    value = bytes(value)
    if len(value) != 32:
        raise ValueError(f"Operator id must be 32 bytes, got {len(value)}")
    return value


def to_quorum_numbers(quorums: bytes | Iterable[int]) -> bytes:
    """Quorum numbers as a byte string, one quorum id per byte."""
    if isinstance(quorums, (bytes, bytearray)):
        return bytes(quorums)
    return bytes(list(quorums))
