"""In-memory models of a small x86 teaching kernel: paging, descriptors, traps, locks, allocator, system call arguments, shell parser and word count."""

__version__ = "0.1.0"