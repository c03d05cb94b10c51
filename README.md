# xv6sim

Pure-Python models of the core pieces of a small x86 teaching kernel and its
user library. Everything runs in memory; nothing touches real hardware. The
package has no dependencies outside the standard library.

## Modules

- `xv6sim.mmu`: kernel parameters and memory-layout constants, address
  arithmetic (`pdx`, `ptx`, `pgaddr`, `pg_round_up`, `pg_round_down`,
  `pte_addr`, `pte_flags`, `v2p`, `p2v`) and descriptors: `seg` and `seg16`
  build a `SegmentDescriptor`, `make_gate` builds a `GateDescriptor`, and both
  classes encode themselves to 8 bytes with `pack()`. `seg_asm` returns the
  8 bytes of a boot-time segment descriptor directly.
- `xv6sim.cstring`: C-style string and memory helpers on `bytes` and
  `bytearray`: `memcmp`, `memmove` and `memset` (in-place, by offset, raising
  `IndexError` outside the buffer), `strncmp`, `strcmp`, `strncpy`,
  `safestrcpy`, `strlen`, `strchr` (an index or `None`), `atoi`, and `gets`,
  which reads one line from a binary stream.
- `xv6sim.elf`: `ElfHeader` and `ProgramHeader` dataclasses with `pack()`,
  and `parse_elf_header` / `parse_program_headers`. Short data or a bad magic
  number raises `ElfFormatError`.
- `xv6sim.traps`: the `Trap`, `Irq` and `Syscall` number enums, `TrapFrame`
  (with `pack()` and a `from_user` property) and `unpack_trapframe`,
  `build_idt` (256 interrupt gates, with the system call vector as a
  user-callable trap gate) and `pseudo_descriptor` (the 6-byte `lgdt`/`lidt`
  operand).
- `xv6sim.umalloc`: `Allocator`, a first-fit free-list allocator over a
  simulated heap that starts at address 0 and grows with `sbrk` up to a
  limit. `malloc` returns an address, `free` coalesces neighbouring blocks,
  `free_blocks` lists the free list. Running out of heap raises `MemoryError`;
  freeing an address that was not allocated raises `ValueError`.
- `xv6sim.vm`: `PhysicalMemory`, a pool of 4 KiB pages (`kalloc`, `kfree`,
  `read`, `write`, `free_count`), and `PageDirectory`, a two-level page table
  stored in those pages (`walk`, `map_pages`, `init_user`, `load_user`,
  `alloc_user`, `dealloc_user`, `free`, `clear_user`, `copy`, `uva2ka`,
  `copyout`). `setup_kvm` builds a directory holding the kernel mappings.
  Exhausted memory raises `MemoryError`; mapping a page twice raises
  `RuntimeError("remap")`.
- `xv6sim.shell`: the shell command-line parser. `parse_command` returns a
  tree of `ExecCommand`, `RedirCommand`, `PipeCommand`, `ListCommand` and
  `BackCommand`; syntax problems raise `ShellSyntaxError`. `Scanner` exposes
  the tokenizer (`peek`, `get_token`). `>` and `>>` both produce a
  write-and-create redirection on descriptor 1.
- `xv6sim.locks`: `Cpu` (interrupt nesting with `push_cli` / `pop_cli`),
  `SpinLock` (held by a `Cpu`) and `SleepLock` (held by a process id), built
  on `threading`. Misuse, such as acquiring a lock twice or releasing a lock
  not held, raises `LockError`.
- `xv6sim.syscall`: `UserMemory` (`fetch_int`, `fetch_str`), `SyscallArgs`
  (`arg_int`, `arg_ptr`, `arg_str`) and `SyscallTable` (`register`,
  `dispatch`). Bad addresses raise `SyscallError`; `dispatch` returns -1 for
  an unknown call (after printing a notice) or a handler that raised
  `SyscallError`.
- `xv6sim.wc`: `count` returns a `WordCount` of lines, words and bytes in a
  binary stream; `main` is the command below.

## Install

```
pip install .
```

## Examples

Parse a shell line:

```python
from xv6sim.shell import parse_command

cmd = parse_command("cat < in.txt | grep foo > out.txt &\n")
```

Page-table work:

```python
from xv6sim.vm import PhysicalMemory, PageDirectory

phys = PhysicalMemory(0x200000, 0x400000)
pgdir = PageDirectory(phys)
size = pgdir.alloc_user(0, 8192)
pgdir.copyout(100, b"hello")
```

Heap allocation:

```python
from xv6sim.umalloc import Allocator

heap = Allocator(1 << 20)
p = heap.malloc(100)
heap.free(p)
```

## Command line

Count lines, words and bytes of files, or of standard input when no file is
given:

```
xv6-wc README.md
```

Each output line is `lines words bytes name`. A file that cannot be opened
prints `wc: cannot open NAME` and ends the run with exit status 1.

## What it does not do

This is a set of models, not a running system. There is no file system, no
process table or scheduler, and no boot path. The shell module parses
command lines but does not run them, and `SyscallTable` dispatches only to
handlers you register yourself.

## Tests

```
pip install .[test]
pytest
```