"""Read-only client for EigenLayer AVS registry contracts."""

from .core.bitmap import bitmap_to_quorum_ids, quorum_ids_to_bitmap
from .core.errors import AvsRegistryError, ErrorKind
from .services.reader import AvsRegistryChainReader, build_avs_registry_chain_reader

__version__ = "0.1.0"

__all__ = [
    "AvsRegistryChainReader",
    "AvsRegistryError",
    "ErrorKind",
    "bitmap_to_quorum_ids",
    "build_avs_registry_chain_reader",
    "quorum_ids_to_bitmap",
]
