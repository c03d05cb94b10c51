"""NUL-terminated byte-string and memory helpers."""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import BinaryIO

_DIGITS = re.compile(r"[0-9]*")


def _cstr(s) -> bytes:
    """The bytes of s up to (not including) the first NUL."""
    data = bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def _check_range(buf, start: int, n: int) -> None:
    if n < 0 or start < 0 or start + n > len(buf):
        raise IndexError("range outside buffer")


def memcmp(a, b, n: int) -> int:
    """Compare the first n bytes; the difference of the first unequal pair, or 0."""
    if n > len(a) or n > len(b):
        raise IndexError("comparison beyond end of buffer")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> None:
    """Copy n bytes within buf from offset src to offset dst; overlap is safe."""
    _check_range(buf, dst, n)
    _check_range(buf, src, n)
    buf[dst:dst + n] = buf[src:src + n]


def memset(buf: bytearray, dst: int, c: int, n: int) -> None:
    """Fill n bytes of buf from offset dst with the low byte of c."""
    _check_range(buf, dst, n)
    buf[dst:dst + n] = bytes([c & 0xFF]) * n


def strncmp(p, q, n: int) -> int:
    a = _cstr(p)[:n]
    b = _cstr(q)[:n]
    for x, y in zip_longest(a, b, fillvalue=0):
        if x != y:
            return x - y
    return 0


def strcmp(p, q) -> int:
    for x, y in zip_longest(_cstr(p), _cstr(q), fillvalue=0):
        if x != y:
            return x - y
    return 0


def strncpy(t, n: int) -> bytes:
    """Exactly n bytes: t up to its NUL, padded with NULs; not terminated if t is long."""
    if n <= 0:
        return b""
    return _cstr(t)[:n].ljust(n, b"\0")


def safestrcpy(t, n: int) -> bytes:
    """At most n bytes, always ending in a NUL."""
    if n <= 0:
        return b""
    return _cstr(t)[:n - 1] + b"\0"


def strlen(s) -> int:
    return len(_cstr(s))


def strchr(s, c) -> int | None:
    """Index of the first c in the string s, or None."""
    if isinstance(c, (bytes, bytearray)):
        if len(c) != 1:
            raise ValueError("strchr expects a single byte")
        c = c[0]
    if c == 0:
        return None
    pos = _cstr(s).find(c & 0xFF)
    return None if pos < 0 else pos


def atoi(s) -> int:
    """Value of the leading decimal digits of s; 0 if there are none."""
    if isinstance(s, (bytes, bytearray)):
        s = bytes(s).decode("latin-1")
    digits = _DIGITS.match(s).group()
    return int(digits) if digits else 0


def gets(stream: BinaryIO, max_len: int) -> bytes:
    """Read one line, ending at newline or carriage return, of at most max_len - 1 bytes."""
    out = bytearray()
    while len(out) + 1 < max_len:
        c = stream.read(1)
        if not c:
            break
        out += c
        if c in (b"\n", b"\r"):
            break
    return bytes(out)