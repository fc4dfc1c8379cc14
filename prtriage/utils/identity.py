"""Stable integer identities for remote node ids."""

_MASK_64 = (1 << 64) - 1
_SIGN_BIT = 1 << 63


def stable_hash(value: str) -> int:
    """Derive a compact, process-independent integer from a string.

    Computes ``h = h * 31 + byte`` over the UTF-8 bytes with signed 64-bit
    wraparound and returns ``abs(h)``. Unlike ``hash()`` the result does
    not change between interpreter runs.
    """
    h = 0
    for byte in value.encode("utf-8"):
        h = (h * 31 + byte) & _MASK_64
    if h & _SIGN_BIT:
        h -= 1 << 64
    return abs(h)
