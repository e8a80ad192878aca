# gameon/utils/bitmask.py

from typing import Iterable, List


def bits_from_indices(indices: Iterable[int]) -> int:
    """Build a mask from board origins (0-based)."""
    mask = 0
    for i in indices:
        mask |= 1 << int(i)
    return mask


def indices_from_bits(mask: int) -> List[int]:
    """Return the set bits of a mask as an ascending list of origins."""
    idxs = []
    mask = int(mask)
    while mask:
        lsb = mask & -mask
        idxs.append(lsb.bit_length() - 1)  # bit 0 = origin 0
        mask &= mask - 1
    return idxs


def set_bit(idx: int, mask: int = 0) -> int:
    """Set the bit for origin idx."""
    return mask | (1 << idx)


def clear_bit(idx: int, mask: int) -> int:
    """Clear the bit for origin idx."""
    return mask & ~(1 << idx)


def set_all_bits(start: int, end: int) -> int:
    """Mask with every bit from start to end (inclusive) set."""
    if end < start:
        return 0
    return ((1 << (end + 1)) - 1) & ~((1 << start) - 1)
