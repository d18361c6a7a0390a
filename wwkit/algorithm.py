"""Small integer and path helpers."""

from __future__ import annotations

_U64_MASK = (1 << 64) - 1


def align_up(value: int, align: int) -> int:
    """Round ``value`` up to a multiple of ``align`` (a power of two)."""
    return (value + align - 1) & ~(align - 1)


def align_down(value: int, align: int) -> int:
    """Round ``value`` down to a multiple of ``align`` (a power of two)."""
    return value & ~(align - 1)


def set_bits(val: int, bits: int, begin: int, end: int) -> int:
    """Replace bits ``[begin, end)`` of the 64-bit ``val`` with ``bits``."""
    mask = (1 << (end - begin)) - 1
    return ((val & ~(mask << begin)) | (bits << begin)) & _U64_MASK


def get_bits(val: int, begin: int, end: int) -> int:
    """Extract bits ``[begin, end)`` of ``val``."""
    return (val >> begin) & ((1 << (end - begin)) - 1)


def join_path(a: str, b: str) -> str:
    """Join two path pieces; an absolute ``b`` replaces ``a``."""
    if not a:
        return b
    if not b:
        return a
    if b.startswith("/"):
        return b
    if not a.endswith("/"):
        a += "/"
    return a + b


def parse_null_terminated_strings(buffer: bytes) -> list[str]:
    """Split a buffer of NUL-terminated names, stopping at the first empty one."""
    names: list[str] = []
    position = 0
    size = len(buffer)
    while position < size:
        end = buffer.find(b"\0", position)
        if end == -1:
            end = size
        raw = buffer[position:end]
        if not raw:
            break
        names.append(raw.decode("utf-8", errors="replace"))
        position = end + 1
    return names