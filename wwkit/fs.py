"""A small ext2-like block file system stored in a byte buffer.

Layout, each area padded to whole blocks: meta block, inode bitmap, data
bitmap, inode table (128-byte inodes) and data blocks. Directories hold
entries made of a NUL-terminated name padded to 8 bytes followed by a
little-endian 64-bit inode id.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import NamedTuple

from wwkit.algorithm import align_up

INODE_SIZE = 128
DIRECT_BLOCKS = 10
META_STRUCT = struct.Struct("<QQQ")
_INODE_STRUCT = struct.Struct("<I4xQ10QQ24x")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")


class FileSystemError(Exception):
    """The file system is misused, full or inconsistent."""


class InodeType(IntEnum):
    DIRECTORY = 0
    FILE = 1
    FIFO = 2


@dataclass
class Inode:
    """One entry of the inode table."""

    type: InodeType
    size: int = 0
    blocks_l0: list[int] = field(default_factory=lambda: [0] * DIRECT_BLOCKS)
    block_l1: int = 0

    def _pack(self) -> bytes:
        return _INODE_STRUCT.pack(int(self.type), self.size, *self.blocks_l0, self.block_l1)

    @classmethod
    def _unpack(cls, raw: bytes) -> Inode:
        kind, size, *rest = _INODE_STRUCT.unpack(raw)
        try:
            inode_type = InodeType(kind)
        except ValueError:
            raise FileSystemError(f"corrupted inode type {kind}") from None
        return cls(inode_type, size, list(rest[:DIRECT_BLOCKS]), rest[DIRECT_BLOCKS])


class _Layout(NamedTuple):
    meta: int
    bitmap_inode: int
    bitmap_data: int
    inodes: int
    data: int
    end: int


def _ceil_div(a: int, b: int) -> int:
    return (a + b - 1) // b


@dataclass(frozen=True)
class Meta:
    """Geometry of a file system image."""

    block_size: int
    block_count: int
    inode_count: int

    def _layout(self) -> _Layout:
        bits_per_block = 8 * self.block_size
        bitmap_inode = 1
        bitmap_data = bitmap_inode + _ceil_div(self.inode_count, bits_per_block)
        inodes = bitmap_data + _ceil_div(self.block_count, bits_per_block)
        data = inodes + _ceil_div(self.inode_count, self.block_size // INODE_SIZE)
        return _Layout(0, bitmap_inode, bitmap_data, inodes, data, data + self.block_count)

    def required_size(self) -> int:
        """Number of bytes an image with this geometry occupies."""
        return self._layout().end * self.block_size

    def _pack(self) -> bytes:
        return META_STRUCT.pack(self.block_size, self.block_count, self.inode_count)

    @classmethod
    def _unpack(cls, raw: bytes) -> Meta:
        return cls(*META_STRUCT.unpack_from(raw))


class MemoryBlockDevice:
    """Block-addressed view of a mutable byte buffer."""

    def __init__(self, memory: bytearray, block_size: int, block_count: int) -> None:
        if memory is None:
            raise ValueError("invalid memory")
        if len(memory) < block_size * block_count:
            raise ValueError("memory is smaller than the device")
        self.memory = memory
        self.block_size = block_size
        self.block_count = block_count

    def _span(self, block: int) -> slice:
        if not 0 <= block < self.block_count:
            raise IndexError(f"invalid block {block}")
        start = block * self.block_size
        return slice(start, start + self.block_size)

    def read(self, block: int) -> bytes:
        return bytes(self.memory[self._span(block)])

    def write(self, block: int, data: bytes) -> None:
        if len(data) != self.block_size:
            raise ValueError("data must fill exactly one block")
        self.memory[self._span(block)] = data

    def size(self) -> int:
        return self.block_count * self.block_size


class FileSystem:
    """Directories and files stored on a :class:`MemoryBlockDevice`."""

    def __init__(self, device: MemoryBlockDevice) -> None:
        if device is None:
            raise ValueError("invalid device")
        self._device = device
        self.meta: Meta | None = None
        self._layout: _Layout | None = None

    # -- setup -----------------------------------------------------------

    def format(self, meta: Meta) -> None:
        """Write an empty file system with ``meta`` and create the root."""
        self._check_geometry(meta)
        self._device.write(0, meta._pack().ljust(meta.block_size, b"\0"))
        self.initialize()
        layout = self._require_layout()
        zero = bytes(meta.block_size)
        for bid in range(layout.bitmap_inode, layout.inodes):
            self._device.write(bid, zero)
        root = self._allocate_inode()
        if root != 0:
            raise FileSystemError("invalid root inode")
        self._set_inode(root, Inode(InodeType.DIRECTORY))

    def initialize(self) -> None:
        """Read the meta block and compute the layout."""
        meta = Meta._unpack(self._device.read(0))
        self._check_geometry(meta)
        self.meta = meta
        self._layout = meta._layout()

    def _check_geometry(self, meta: Meta) -> None:
        if meta.block_size <= 0 or meta.block_size % 1024 != 0:
            raise FileSystemError("invalid block size")
        if self._device.block_size != meta.block_size:
            raise FileSystemError("device block size does not match")
        if self._device.size() != meta.required_size():
            raise FileSystemError("invalid device size")

    def _require_layout(self) -> _Layout:
        if self._layout is None:
            raise FileSystemError("file system is not initialized")
        return self._layout

    @property
    def _block_size(self) -> int:
        if self.meta is None:
            raise FileSystemError("file system is not initialized")
        return self.meta.block_size

    # -- public operations ------------------------------------------------

    def root(self) -> int:
        return 0

    def create(self, parent: int, name: str, inode_type: InodeType) -> int:
        """Create ``name`` under directory ``parent`` and return its inode id."""
        if parent < 0:
            raise FileSystemError("invalid parent inode")
        encoded = name.encode("utf-8")
        if b"\0" in encoded:
            raise FileSystemError("invalid name")
        if any(child == name for child, _ in self.children(parent)):
            raise FileSystemError(f"{name!r} already exists")

        new_id = self._allocate_inode()
        self._set_inode(new_id, Inode(InodeType(inode_type)))

        padded = align_up(len(encoded) + 1, 8)
        entry = encoded.ljust(padded, b"\0") + _U64.pack(new_id)
        old_size = self._get_inode(parent).size
        parent_inode = self.resize_inode(parent, old_size + len(entry))
        self._write_inode_data(parent_inode, old_size, entry)
        return new_id

    def children(self, inode_id: int) -> list[tuple[str, int]]:
        """Return ``(name, inode id)`` for each entry of a directory."""
        if inode_id < 0:
            raise FileSystemError("invalid inode id")
        inode = self._get_inode(inode_id)
        if inode.type != InodeType.DIRECTORY:
            raise FileSystemError("not a directory")
        if inode.size == 0:
            return []
        raw = self._read_inode_data(inode, 0, inode.size)
        entries: list[tuple[str, int]] = []
        position = 0
        while position < inode.size:
            end = raw.find(b"\0", position)
            if end == -1:
                raise FileSystemError("corrupted directory entry")
            name = raw[position:end]
            position += align_up(len(name) + 1, 8)
            (child,) = _I64.unpack_from(raw, position)
            position += 8
            entries.append((name.decode("utf-8", errors="replace"), child))
        return entries

    def inode_type(self, inode_id: int) -> InodeType:
        if inode_id < 0:
            raise FileSystemError("invalid inode id")
        return self._get_inode(inode_id).type

    def inode_size(self, inode_id: int) -> int:
        if inode_id < 0:
            raise FileSystemError("invalid inode id")
        return self._get_inode(inode_id).size

    def read_data(self, inode_id: int, offset: int, size: int) -> bytes:
        """Read up to ``size`` bytes of a file starting at ``offset``."""
        if size == 0 or inode_id < 0:
            return b""
        inode = self._get_inode(inode_id)
        if inode.type != InodeType.FILE:
            raise FileSystemError("not a file")
        size = min(size, max(inode.size - offset, 0))
        if size == 0:
            return b""
        return self._read_inode_data(inode, offset, size)

    def write_data(self, inode_id: int, offset: int, data: bytes) -> int:
        """Write ``data`` into a file at ``offset``, growing it as needed."""
        if inode_id < 0 or not data:
            return 0
        inode = self._get_inode(inode_id)
        if inode.type != InodeType.FILE:
            raise FileSystemError("not a file")
        if offset + len(data) > inode.size:
            inode = self.resize_inode(inode_id, offset + len(data))
        self._write_inode_data(inode, offset, bytes(data))
        return len(data)

    def resize_inode(self, inode_id: int, new_size: int) -> Inode:
        """Set an inode's size, allocating or freeing data blocks."""
        inode = self._get_inode(inode_id)
        old_size = inode.size
        if old_size == new_size:
            return inode
        inode.size = new_size
        block_size = self._block_size
        old_blocks = _ceil_div(old_size, block_size)
        new_blocks = _ceil_div(new_size, block_size)

        if old_blocks < new_blocks:
            if old_blocks < DIRECT_BLOCKS <= new_blocks:
                inode.block_l1 = self._allocate_block()
            for index in range(old_blocks, new_blocks):
                self._set_blockid(inode, index, self._allocate_block())
        elif new_blocks < old_blocks:
            for index in range(new_blocks, old_blocks):
                self._free_bit(self._require_layout().bitmap_data, self._blockid(inode, index))

        self._set_inode(inode_id, inode)
        return inode

    # -- inode table ------------------------------------------------------

    def _inode_location(self, inode_id: int) -> tuple[int, int]:
        per_block = self._block_size // INODE_SIZE
        bid = self._require_layout().inodes + inode_id // per_block
        return bid, (inode_id % per_block) * INODE_SIZE

    def _get_inode(self, inode_id: int) -> Inode:
        bid, offset = self._inode_location(inode_id)
        block = self._device.read(bid)
        return Inode._unpack(block[offset:offset + INODE_SIZE])

    def _set_inode(self, inode_id: int, inode: Inode) -> None:
        bid, offset = self._inode_location(inode_id)
        block = bytearray(self._device.read(bid))
        block[offset:offset + INODE_SIZE] = inode._pack()
        self._device.write(bid, bytes(block))

    # -- bitmaps ------------------------------------------------------------

    def _allocate_bit(self, first: int, stop: int, limit: int) -> int | None:
        bits_per_block = self._block_size * 8
        for bid in range(first, stop):
            block = bytearray(self._device.read(bid))
            for byte_index, byte in enumerate(block):
                if byte == 0xFF:
                    continue
                bit = ((~byte) & (byte + 1)).bit_length() - 1
                found = (bid - first) * bits_per_block + byte_index * 8 + bit
                if found >= limit:
                    return None
                block[byte_index] |= 1 << bit
                self._device.write(bid, bytes(block))
                return found
        return None

    def _free_bit(self, first: int, item: int) -> None:
        bits_per_block = self._block_size * 8
        bid = first + item // bits_per_block
        offset = item % bits_per_block
        block = bytearray(self._device.read(bid))
        block[offset // 8] &= ~(1 << (offset % 8)) & 0xFF
        self._device.write(bid, bytes(block))

    def _allocate_inode(self) -> int:
        layout = self._require_layout()
        assert self.meta is not None
        found = self._allocate_bit(layout.bitmap_inode, layout.bitmap_data, self.meta.inode_count)
        if found is None:
            raise FileSystemError("no available inode")
        return found

    def _allocate_block(self) -> int:
        layout = self._require_layout()
        assert self.meta is not None
        found = self._allocate_bit(layout.bitmap_data, layout.inodes, self.meta.block_count)
        if found is None:
            raise FileSystemError("no available block")
        return found

    # -- data blocks --------------------------------------------------------

    def _read_block(self, block_id: int) -> bytes:
        return self._device.read(self._require_layout().data + block_id)

    def _write_block(self, block_id: int, data: bytes) -> None:
        self._device.write(self._require_layout().data + block_id, data)

    def _blockid(self, inode: Inode, index: int) -> int:
        if index < DIRECT_BLOCKS:
            return inode.blocks_l0[index]
        if index < DIRECT_BLOCKS + self._block_size // 8:
            (block_id,) = _U64.unpack_from(self._read_block(inode.block_l1), (index - DIRECT_BLOCKS) * 8)
            return block_id
        raise FileSystemError("file too large")

    def _set_blockid(self, inode: Inode, index: int, block_id: int) -> None:
        if index < DIRECT_BLOCKS:
            inode.blocks_l0[index] = block_id
        elif index < DIRECT_BLOCKS + self._block_size // 8:
            table = bytearray(self._read_block(inode.block_l1))
            _U64.pack_into(table, (index - DIRECT_BLOCKS) * 8, block_id)
            self._write_block(inode.block_l1, bytes(table))
        else:
            raise FileSystemError("file too large")

    def _spans(self, offset: int, size: int):
        block_size = self._block_size
        for index in range(offset // block_size, (offset + size - 1) // block_size + 1):
            low = max(offset, index * block_size)
            high = min(offset + size, (index + 1) * block_size)
            yield index, low, high

    def _read_inode_data(self, inode: Inode, offset: int, size: int) -> bytes:
        block_size = self._block_size
        out = bytearray()
        for index, low, high in self._spans(offset, size):
            block = self._read_block(self._blockid(inode, index))
            base = index * block_size
            out += block[low - base:high - base]
        return bytes(out)

    def _write_inode_data(self, inode: Inode, offset: int, data: bytes) -> None:
        block_size = self._block_size
        for index, low, high in self._spans(offset, len(data)):
            block_id = self._blockid(inode, index)
            piece = data[low - offset:high - offset]
            base = index * block_size
            if low == base and high == base + block_size:
                self._write_block(block_id, piece)
            else:
                block = bytearray(self._read_block(block_id))
                block[low - base:high - base] = piece
                self._write_block(block_id, bytes(block))