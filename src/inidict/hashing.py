"""String hashing for the dictionary's hash index.

The hash is Paul Hsieh's SuperFastHash, computed over the UTF-8 encoding
of the key. It is fast and has good avalanche behaviour for short
configuration keys, but it is not a keyed hash: it offers no resistance
to deliberately constructed collisions.

Any callable with the signature ``(str) -> int`` returning a value in
``[0, 2**32)`` may be used instead; see ``IniDict(hash_function=...)``.
"""
from __future__ import annotations

from typing import Callable

UINT32_MASK = 0xFFFFFFFF

HashFunction = Callable[[str], int]


def _get16bits(data: bytes, pos: int) -> int:
    return data[pos] | (data[pos + 1] << 8)


def superfasthash(data: bytes) -> int:
    """Compute the 32-bit SuperFastHash of a byte string.

    Input is consumed in 4-byte blocks, then the 0-3 trailing bytes are
    folded in, then a fixed series of shift/xor/add steps forces
    avalanching of the final bits.

    Args:
        data: Bytes to hash.

    Returns:
        int: Unsigned 32-bit hash. Empty input hashes to 0.
    """
    length = len(data)
    if length == 0:
        return 0

    h = length
    rem = length & 3
    pos = 0
    for _ in range(length >> 2):
        h = (h + _get16bits(data, pos)) & UINT32_MASK
        tmp = ((_get16bits(data, pos + 2) << 11) ^ h) & UINT32_MASK
        h = ((h << 16) & UINT32_MASK) ^ tmp
        pos += 4
        h = (h + (h >> 11)) & UINT32_MASK

    if rem == 3:
        h = (h + _get16bits(data, pos)) & UINT32_MASK
        h ^= (h << 16) & UINT32_MASK
        h ^= (data[pos + 2] << 18) & UINT32_MASK
        h = (h + (h >> 11)) & UINT32_MASK
    elif rem == 2:
        h = (h + _get16bits(data, pos)) & UINT32_MASK
        h ^= (h << 11) & UINT32_MASK
        h = (h + (h >> 17)) & UINT32_MASK
    elif rem == 1:
        h = (h + data[pos]) & UINT32_MASK
        h ^= (h << 10) & UINT32_MASK
        h = (h + (h >> 1)) & UINT32_MASK

    h ^= (h << 3) & UINT32_MASK
    h = (h + (h >> 5)) & UINT32_MASK
    h ^= (h << 4) & UINT32_MASK
    h = (h + (h >> 17)) & UINT32_MASK
    h ^= (h << 25) & UINT32_MASK
    h = (h + (h >> 6)) & UINT32_MASK
    return h


def dictionary_hash(key: str) -> int:
    """Hash a dictionary key.

    Args:
        key (str): Key to hash.

    Returns:
        int: Unsigned 32-bit hash of the UTF-8 encoded key.
    """
    return superfasthash(key.encode("utf-8"))
