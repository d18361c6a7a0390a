"""First-fit free-list allocator over a simulated address range."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from wwkit.algorithm import align_up

HEADER_SIZE = 16

_log = logging.getLogger(__name__)


class MemoryCorruptedError(RuntimeError):
    """The free list is inconsistent with the address being released."""


@dataclass
class _Header:
    size: int
    next: int | None


class Allocator:
    """Manage ``[address, address + size)`` with an address-ordered free list.

    Every chunk starts with a 16-byte header. The first header is a
    zero-sized sentinel that heads the free list.
    """

    def __init__(self, address: int, size: int) -> None:
        if size < 2 * HEADER_SIZE:
            raise ValueError("invalid size")
        first = address + HEADER_SIZE
        self._head = address
        self._headers: dict[int, _Header] = {
            address: _Header(0, first),
            first: _Header(size - 2 * HEADER_SIZE, None),
        }
        self.begin = address
        self.size = size

    def _chain(self) -> Iterator[tuple[int, _Header]]:
        address: int | None = self._head
        while address is not None:
            header = self._headers[address]
            yield address, header
            address = header.next

    def _find_chunk(self, size: int, align: int) -> tuple[int, int] | None:
        prev = self._head
        current = self._headers[prev].next
        while current is not None:
            header = self._headers[current]
            start = current + HEADER_SIZE
            end = align_up(start, align) + size
            if header.size >= end - start:
                return prev, current
            prev, current = current, header.next
        return None

    def allocate(self, size: int, align: int) -> int:
        """Reserve ``size`` bytes aligned to ``align``; return their address."""
        if align <= 0:
            raise ValueError("alignment must be positive")
        align = align_up(align, 8)
        size = align_up(size, 8)
        found = self._find_chunk(size, align)
        if found is None:
            raise MemoryError(f"no free chunk for {size} bytes aligned to {align}")
        prev_address, chunk_address = found
        prev = self._headers[prev_address]
        chunk = self._headers[chunk_address]

        start = chunk_address + HEADER_SIZE
        aligned_start = align_up(start, align)
        end = aligned_start + size

        if chunk.size > end - start + HEADER_SIZE:
            self._headers[end] = _Header(chunk.size - (end - start) - HEADER_SIZE, chunk.next)
            prev.next = end
        else:
            prev.next = chunk.next

        # The header's next field remembers where the chunk really begins.
        self._headers[aligned_start - HEADER_SIZE] = _Header(end - start, chunk_address)
        _log.debug("allocate size=%#x align=%#x -> %#x", size, align, aligned_start)
        return aligned_start

    def deallocate(self, address: int | None) -> None:
        """Return a chunk obtained from :meth:`allocate`; ``None`` is ignored."""
        if address is None:
            return
        stored = self._headers.get(address - HEADER_SIZE)
        if stored is None or stored.next is None:
            raise MemoryCorruptedError(f"no chunk header for {address:#x}")
        chunk_size = stored.size
        chunk_address = stored.next
        released = _Header(chunk_size, None)
        self._headers[chunk_address] = released
        _log.debug("deallocate %#x chunk=%#x size=%#x", address, chunk_address, chunk_size)

        prev_address = self._head
        current_address = self._headers[prev_address].next
        while True:
            if prev_address < chunk_address and (
                current_address is None or chunk_address < current_address
            ):
                self._link(prev_address, current_address, chunk_address, released)
                return
            if current_address is None:
                break
            prev_address = current_address
            current_address = self._headers[current_address].next
        raise MemoryCorruptedError(f"chunk {chunk_address:#x} not placeable in free list")

    def _link(self, prev_address: int, current_address: int | None,
              chunk_address: int, released: _Header) -> None:
        prev = self._headers[prev_address]
        current = None if current_address is None else self._headers[current_address]
        end_of_prev = prev_address + HEADER_SIZE + prev.size
        end_of_chunk = chunk_address + HEADER_SIZE + released.size
        if end_of_prev > chunk_address or (
            current_address is not None and end_of_chunk > current_address
        ):
            raise MemoryCorruptedError("freed chunk overlaps a free chunk")

        with_prev = end_of_prev == chunk_address and prev_address != self._head
        with_current = current is not None and end_of_chunk == current_address

        if with_prev and with_current:
            prev.size += 2 * HEADER_SIZE + released.size + current.size
            prev.next = current.next
        elif with_prev:
            prev.size += HEADER_SIZE + released.size
            prev.next = current_address
        elif with_current:
            released.size += HEADER_SIZE + current.size
            released.next = current.next
            prev.next = chunk_address
        else:
            released.next = current_address
            prev.next = chunk_address

    def _tail(self) -> tuple[int, _Header]:
        last = (self._head, self._headers[self._head])
        for entry in self._chain():
            last = entry
        return last

    def extend(self, new_end: int) -> None:
        """Grow the managed range so that it ends at ``new_end``."""
        old_end = self.begin + self.size
        if new_end <= old_end:
            raise ValueError("new end must lie beyond the current end")
        tail_address, tail = self._tail()
        if tail_address + tail.size + HEADER_SIZE == old_end:
            tail.size += new_end - old_end
        else:
            self._headers[old_end] = _Header(new_end - old_end - HEADER_SIZE, None)
            tail.next = old_end
        self.size = new_end - self.begin

    def used_address_upperbound(self) -> int:
        """Lowest address above which nothing is in use."""
        tail_address, tail = self._tail()
        if tail_address + tail.size + HEADER_SIZE == self.begin + self.size:
            return tail_address + HEADER_SIZE
        return self.begin + self.size

    def free_chunks(self) -> list[tuple[int, int]]:
        """Return ``(header address, usable size)`` for each free chunk."""
        return [(address, header.size) for address, header in self._chain() if address != self._head]