"""Historical scan of NewPubkeyRegistration events on the BLSApkRegistry."""

import logging

from eth_abi.exceptions import DecodingError
from web3 import Web3

from ..core.errors import EventDecodeError, LogFetchError
from ..core.types import BlockIdentifier, G1Point, G2Point, OperatorPubKeys
from .bindings import BLSApkRegistry
from .transport import LogFilter, LogRecord, Transport, TransportError

logger = logging.getLogger(__name__)

NEW_PUBKEY_REGISTRATION = BLSApkRegistry.NEW_PUBKEY_REGISTRATION
NEW_PUBKEY_REGISTRATION_EVENT_SIGNATURE = NEW_PUBKEY_REGISTRATION.topic

# Topic slot of the indexed ``operator`` argument
OPERATOR_TOPIC_INDEX = 1


def new_pubkey_registration_filter(
    bls_apk_registry: str, start_block: BlockIdentifier, stop_block: BlockIdentifier
) -> LogFilter:
    return LogFilter(
        address=Web3.to_checksum_address(bls_apk_registry),
        from_block=start_block,
        to_block=stop_block,
        topics=[NEW_PUBKEY_REGISTRATION_EVENT_SIGNATURE],
    )


def decode_new_pubkey_registration(log: LogRecord) -> tuple[str, OperatorPubKeys]:
    """
    Decode one NewPubkeyRegistration log into (operator address, key pair).

    The operator comes from the indexed topic; the G1/G2 points from the data.
    Raises EventDecodeError if the log does not match the event layout.
    """
    where = f"log {log.log_index} in block {log.block_number}"
    if len(log.topics) != NEW_PUBKEY_REGISTRATION.indexed_count + 1:
        raise EventDecodeError(f"Expected 2 topics, got {len(log.topics)} ({where})")
    if log.topics[0] != NEW_PUBKEY_REGISTRATION_EVENT_SIGNATURE:
        raise EventDecodeError(f"Not a NewPubkeyRegistration event ({where})")

    operator_topic = log.topics[OPERATOR_TOPIC_INDEX]
    if len(operator_topic) != 32 or any(operator_topic[:12]):
        raise EventDecodeError(f"Operator topic is not a padded address ({where})")
    operator = Web3.to_checksum_address(operator_topic[12:])

    try:
        (g1_x, g1_y), (g2_x, g2_y) = NEW_PUBKEY_REGISTRATION.decode_data(log.data)
    except DecodingError as e:
        raise EventDecodeError(f"Malformed NewPubkeyRegistration data ({where})") from e

    pub_keys = OperatorPubKeys(
        g1=G1Point(x=g1_x, y=g1_y),
        g2=G2Point(x=(g2_x[0], g2_x[1]), y=(g2_y[0], g2_y[1])),
    )
    return operator, pub_keys


async def scan_new_pubkey_registrations(
    transport: Transport,
    bls_apk_registry: str,
    start_block: BlockIdentifier,
    stop_block: BlockIdentifier,
) -> tuple[list[str], list[OperatorPubKeys]]:
    """Fetch and decode every registration in [start_block, stop_block].

    Results keep the transport's log order. One undecodable log fails the scan.
    """
    log_filter = new_pubkey_registration_filter(bls_apk_registry, start_block, stop_block)
    try:
        logs = await transport.get_logs(log_filter)
    except TransportError as e:
        logger.warning(f"Failed to fetch NewPubkeyRegistration logs: {e}")
        raise LogFetchError(
            f"Could not fetch logs for blocks {start_block}..{stop_block}"
        ) from e

    logger.debug(f"Fetched {len(logs)} NewPubkeyRegistration logs from {bls_apk_registry}")

    operator_addresses: list[str] = []
    operator_pub_keys: list[OperatorPubKeys] = []
    for log in logs:
        operator, pub_keys = decode_new_pubkey_registration(log)
        operator_addresses.append(operator)
        operator_pub_keys.append(pub_keys)

    return operator_addresses, operator_pub_keys
