# wwkit

wwkit holds a small ext2-like filesystem, called wwfs, that lives in a
`bytearray`. It also holds the data structures that go with it.

A wwfs image has these parts, in this order. Each part is padded to whole blocks.

1. A metadata block. It holds the block size, the block count and the inode count.
2. The inode bitmap, then the data-block bitmap.
3. A table of 128-byte inodes. Each inode has ten direct block pointers and one single-indirect block.
4. The data blocks.

A directory is stored as a list of entries. Each entry is a NUL-terminated name,
padded to 8 bytes, followed by a little-endian 64-bit inode id. Inode 0 is the
root directory.

## Installation

```
pip install .
```

## Filesystem

```python
from wwkit.fs import FileSystem, InodeType, MemoryBlockDevice, Meta

meta = Meta(block_size=1024, block_count=64, inode_count=32)
memory = bytearray(meta.required_size())
fs = FileSystem(MemoryBlockDevice(memory, 1024, len(memory) // 1024))
fs.format(meta)

docs = fs.create(fs.root(), "docs", InodeType.DIRECTORY)
note = fs.create(docs, "note.txt", InodeType.FILE)
fs.write_data(note, 0, b"hello")
assert fs.read_data(note, 0, 5) == b"hello"
print(fs.children(docs))   # [('note.txt', 2)]
```

The geometry rules:

- The block size must be a positive multiple of 1024.
- The device must be exactly `Meta.required_size()` bytes.

To reopen an image that already exists, wrap its bytes in a `MemoryBlockDevice`
and call `FileSystem.initialize()`.

Misuse raises `FileSystemError`. These cases count as misuse:

- a duplicate name;
- no free inode or block left;
- reading a directory as a file;
- an unknown geometry.

`FileSystem` also has these methods:

- `inode_type`
- `inode_size`
- `resize_inode`

## Other modules

- `wwkit.avl`: `AvlTree`, an AVL tree ordered by `<` that keeps equal items. `TreeMap`, a map with unique keys built on the tree.
- `wwkit.allocator`: `Allocator`. It is a first-fit allocator over an address range, using an address-ordered free list with 16-byte chunk headers. It raises `MemoryError` when no chunk fits and `MemoryCorruptedError` when a release does not match the free list.
- `wwkit.ring`: `CycleQueue`, a fixed-capacity double-ended ring buffer.
- `wwkit.formatting`: `format_message` and `parse_int`. `format_message` fills `{}` fields in order. It supports `{:x}` for integers and widths such as `{:8}` or `{:8l}` for strings.
- `wwkit.algorithm`: these helpers:
  - `align_up` and `align_down`;
  - `set_bits` and `get_bits`;
  - `join_path`;
  - `parse_null_terminated_strings`.
- `wwkit.semaphores`: `SemaphoreRegistry`, numbered counting semaphores. It takes a `clock` callable that returns microseconds and a `wake` callable that is called with each released pid. `signal_after` schedules a signal, and `fire_expired` delivers every signal that is due.

## What it does not do

- wwkit has no command-line tool. To build or inspect image files on disk, use the `wwkit.fs` API and read or write the bytes yourself.
- It has no task scheduler or process model. `SemaphoreRegistry` only reports which pids to wake, through its `wake` callback.

## Tests

```
pip install .[test]
pytest
```