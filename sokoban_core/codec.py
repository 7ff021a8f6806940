from __future__ import annotations

from .errors import InvalidStateError
from .geometry import MAX_STATE, Size


def packed_len(size: Size) -> int:
    """Number of bytes needed to hold one nibble per cell."""
    return (size.cells + 1) // 2


def read_nibble(buf: bytes, cell_index: int) -> int:
    """Reads the state of one cell. Even indexes live in the high nibble, odd in the low one."""
    byte = buf[cell_index // 2]
    if cell_index % 2 == 1:
        return byte & 0x0F
    return byte >> 4


def write_nibble(buf: bytearray, cell_index: int, state: int) -> None:
    """Writes one cell in place, leaving its neighbour nibble and every other byte untouched."""
    if not isinstance(state, int) or state < 0 or state > MAX_STATE:
        raise InvalidStateError(f"There is no such available state: {state!r}")
    i = cell_index // 2
    if cell_index % 2 == 1:
        buf[i] = (buf[i] & 0xF0) | state
    else:
        buf[i] = (state << 4) | (buf[i] & 0x0F)
