"""Command-line parsing for the shell: tokens, redirections, pipes, lists and blocks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

O_RDONLY = 0x000
O_WRONLY = 0x001
O_RDWR = 0x002
O_CREATE = 0x200
O_NO_DEREF = 0x004

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """The command line cannot be parsed."""


@dataclass
class ExecCommand:
    """Run a program with arguments; argv[0] names the program."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCommand:
    """Run cmd with file descriptor fd reopened on file with the given mode."""

    cmd: Command
    file: str
    mode: int
    fd: int


@dataclass
class PipeCommand:
    """Connect the output of left to the input of right."""

    left: Command
    right: Command


@dataclass
class ListCommand:
    """Run left, wait for it, then run right."""

    left: Command
    right: Command


@dataclass
class BackCommand:
    """Run cmd in the background."""

    cmd: Command


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]


class Scanner:
    """Splits a command line into tokens.

    Token kinds are the symbol characters themselves, '+' for '>>',
    'a' for a word and '' at the end of the line.
    """

    def __init__(self, text: str) -> None:
        end = text.find("\0")
        self.text = text if end < 0 else text[:end]
        self.pos = 0

    def _skip_whitespace(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in WHITESPACE:
            self.pos += 1

    @property
    def rest(self) -> str:
        """The text not yet consumed."""
        return self.text[self.pos:]

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, toks: str) -> bool:
        """Skip whitespace; true if the next character is one of toks."""
        self._skip_whitespace()
        return not self.at_end and self.text[self.pos] in toks

    def get_token(self) -> tuple[str, str]:
        """Consume the next token and return its kind and its text."""
        self._skip_whitespace()
        text = self.text
        start = self.pos
        if start >= len(text):
            kind = ""
        else:
            c = text[start]
            if c in "|();&<":
                kind = c
                self.pos += 1
            elif c == ">":
                kind = ">"
                self.pos += 1
                if self.pos < len(text) and text[self.pos] == ">":
                    kind = "+"
                    self.pos += 1
            else:
                kind = "a"
                while (self.pos < len(text)
                       and text[self.pos] not in WHITESPACE
                       and text[self.pos] not in SYMBOLS):
                    self.pos += 1
        word = text[start:self.pos]
        self._skip_whitespace()
        return kind, word


def parse_command(s: str) -> Command:
    """Parse a whole command line."""
    scanner = Scanner(s)
    cmd = _parse_line(scanner)
    scanner.peek("")
    if not scanner.at_end:
        raise ShellSyntaxError(f"leftovers: {scanner.rest}")
    return cmd


def _parse_line(scanner: Scanner) -> Command:
    cmd = _parse_pipe(scanner)
    while scanner.peek("&"):
        scanner.get_token()
        cmd = BackCommand(cmd)
    if scanner.peek(";"):
        scanner.get_token()
        cmd = ListCommand(cmd, _parse_line(scanner))
    return cmd


def _parse_pipe(scanner: Scanner) -> Command:
    cmd = _parse_exec(scanner)
    if scanner.peek("|"):
        scanner.get_token()
        cmd = PipeCommand(cmd, _parse_pipe(scanner))
    return cmd


def _parse_redirs(cmd: Command, scanner: Scanner) -> Command:
    while scanner.peek("<>"):
        tok, _ = scanner.get_token()
        kind, word = scanner.get_token()
        if kind != "a":
            raise ShellSyntaxError("missing file for redirection")
        if tok == "<":
            cmd = RedirCommand(cmd, word, O_RDONLY, 0)
        else:  # '>' and '>>' both truncate-or-create for writing
            cmd = RedirCommand(cmd, word, O_WRONLY | O_CREATE, 1)
    return cmd


def _parse_block(scanner: Scanner) -> Command:
    if not scanner.peek("("):
        raise ShellSyntaxError("parseblock")
    scanner.get_token()
    cmd = _parse_line(scanner)
    if not scanner.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    scanner.get_token()
    return _parse_redirs(cmd, scanner)


def _parse_exec(scanner: Scanner) -> Command:
    if scanner.peek("("):
        return _parse_block(scanner)
    exec_cmd = ExecCommand()
    ret: Command = _parse_redirs(exec_cmd, scanner)
    while not scanner.peek("|)&;"):
        kind, word = scanner.get_token()
        if kind == "":
            break
        if kind != "a":
            raise ShellSyntaxError("syntax")
        exec_cmd.argv.append(word)
        if len(exec_cmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        ret = _parse_redirs(ret, scanner)
    return ret