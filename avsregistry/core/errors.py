"""Error taxonomy for AVS registry reads."""

from enum import Enum


class ErrorKind(str, Enum):
    """Which external dependency produced a failure."""

    CONTRACT_RESOLUTION = "ContractResolution"
    RPC_CALL = "RpcCall"
    LOG_FETCH = "LogFetch"
    BLOCK_NUMBER_OVERFLOW = "BlockNumberOverflow"
    BITMAP_LOOKUP = "BitmapLookup"
    STAKE_LOOKUP = "StakeLookup"
    OPERATOR_LOOKUP = "OperatorLookup"
    OPERATOR_STATUS = "OperatorStatus"
    CHECK_SIGNATURES_INDICES = "CheckSignaturesIndices"
    EVENT_DECODE = "EventDecode"


class AvsRegistryError(Exception):
    """
    Base class for every failure raised by the registry reader.

    The underlying transport or decoding error is chained as ``__cause__``
    and also available as ``cause``.
    """

    kind: ErrorKind

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def __str__(self) -> str:
        message = super().__str__()
        if self.__cause__ is not None:
            return f"{self.kind.value}: {message} ({self.__cause__})"
        return f"{self.kind.value}: {message}"


class ContractResolutionError(AvsRegistryError):
    kind = ErrorKind.CONTRACT_RESOLUTION


class RpcCallError(AvsRegistryError):
    kind = ErrorKind.RPC_CALL


class LogFetchError(AvsRegistryError):
    kind = ErrorKind.LOG_FETCH


class BlockNumberOverflowError(AvsRegistryError):
    kind = ErrorKind.BLOCK_NUMBER_OVERFLOW


class BitmapLookupError(AvsRegistryError):
    kind = ErrorKind.BITMAP_LOOKUP


class StakeLookupError(AvsRegistryError):
    kind = ErrorKind.STAKE_LOOKUP


class OperatorLookupError(AvsRegistryError):
    kind = ErrorKind.OPERATOR_LOOKUP


class OperatorStatusError(AvsRegistryError):
    kind = ErrorKind.OPERATOR_STATUS


class CheckSignaturesIndicesError(AvsRegistryError):
    kind = ErrorKind.CHECK_SIGNATURES_INDICES


class EventDecodeError(AvsRegistryError):
    kind = ErrorKind.EVENT_DECODE
