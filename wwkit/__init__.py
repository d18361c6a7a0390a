"""An in-memory wwfs block filesystem with an AVL tree, allocator, ring queue, formatter and semaphores."""

__version__ = "0.1.0"