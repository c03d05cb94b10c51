"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO

WHITESPACE = frozenset(b" \r\t\n\v")
CHUNK = 512


@dataclass(frozen=True)
class WordCount:
    lines: int
    words: int
    chars: int

    def format(self, name: str) -> str:
        return f"{self.lines} {self.words} {self.chars} {name}"


def count(stream: BinaryIO) -> WordCount:
    """Count lines, words and bytes in a binary stream."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(CHUNK):
        chars += len(chunk)
        lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        try:
            result = count(sys.stdin.buffer)
        except OSError:
            print("wc: read error")
            return 1
        print(result.format(""))
        return 0
    for name in args:
        try:
            f = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with f:
            try:
                result = count(f)
            except OSError:
                print("wc: read error")
                return 1
        print(result.format(name))
    return 0


if __name__ == "__main__":
    sys.exit(main())