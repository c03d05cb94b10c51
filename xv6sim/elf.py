"""ELF32 executable file header and program header formats."""

from __future__ import annotations

import struct
from dataclasses import dataclass

ELF_MAGIC = 0x464C457F  # "\x7FELF" little endian

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELFHDR = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass
class ElfHeader:
    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELFHDR.size

    def pack(self) -> bytes:
        return _ELFHDR.pack(
            self.magic, self.elf, self.type, self.machine, self.version,
            self.entry, self.phoff, self.shoff, self.flags, self.ehsize,
            self.phentsize, self.phnum, self.shentsize, self.shnum, self.shstrndx,
        )


@dataclass
class ProgramHeader:
    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE = _PROGHDR.size

    def pack(self) -> bytes:
        return _PROGHDR.pack(
            self.type, self.off, self.vaddr, self.paddr,
            self.filesz, self.memsz, self.flags, self.align,
        )


def parse_elf_header(data: bytes) -> ElfHeader:
    """Decode the file header at the start of data and check its magic."""
    if len(data) < _ELFHDR.size:
        raise ElfFormatError("file too short for an ELF header")
    header = ElfHeader(*_ELFHDR.unpack_from(data))
    if header.magic != ELF_MAGIC:
        raise ElfFormatError("bad ELF magic")
    return header


def parse_program_headers(data: bytes, header: ElfHeader) -> list[ProgramHeader]:
    """Decode the header.phnum program headers found at header.phoff."""
    end = header.phoff + header.phnum * _PROGHDR.size
    if end > len(data):
        raise ElfFormatError("program headers extend beyond end of file")
    return [
        ProgramHeader(*fields)
        for fields in _PROGHDR.iter_unpack(data[header.phoff:end])
    ]