"""Quorum bitmap encoding."""

from typing import Iterable

MAX_QUORUM_ID = 255
BITMAP_BITS = 256


def bitmap_to_quorum_ids(bitmap: int) -> list[int]:
    """
    Decode a packed quorum bitmap.

    Bit k set means quorum k is a member. The result is strictly ascending.
    """
    if bitmap < 0 or bitmap.bit_length() > BITMAP_BITS:
        raise ValueError(f"Quorum bitmap does not fit in {BITMAP_BITS} bits: {bitmap}")
    return [quorum for quorum in range(bitmap.bit_length()) if bitmap >> quorum & 1]


def quorum_ids_to_bitmap(quorum_ids: Iterable[int]) -> int:
    """Pack quorum ids into a bitmap. Duplicates collapse."""
    bitmap = 0
    for quorum in quorum_ids:
        if not 0 <= quorum <= MAX_QUORUM_ID:
            raise ValueError(f"Quorum id out of range: {quorum}")
        bitmap |= 1 << quorum
    return bitmap
