"""Standard input types: text, bytes and arbitrary sequences."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pegloom.runtime import Matched, ParseInput, RuleResult


@dataclass(frozen=True)
class LineCol:
    """Line and column within a string."""

    line: int
    """Line, counted from 1."""
    column: int
    """Column, counted from 1."""
    offset: int
    """Character offset from the start of the string, counted from 0."""

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class StrInput(ParseInput):
    """Text input; elements are single characters."""

    text: str

    def __len__(self) -> int:
        return len(self.text)

    def start(self) -> int:
        return 0

    def is_eof(self, pos: int) -> bool:
        return pos >= len(self.text)

    def position_repr(self, pos: int) -> LineCol:
        before = self.text[:pos]
        line = before.count("\n") + 1
        column = len(before) - before.rfind("\n")
        return LineCol(line=line, column=column, offset=pos)

    def parse_elem(self, pos: int) -> RuleResult:
        if 0 <= pos < len(self.text):
            return Matched(pos + 1, self.text[pos])
        return None

    def parse_string_literal(self, pos: int, literal: str) -> RuleResult:
        if self.text.startswith(literal, pos):
            return Matched(pos + len(literal))
        return None

    def parse_slice(self, start: int, end: int) -> str:
        return self.text[start:end]


@dataclass(frozen=True)
class SequenceInput(ParseInput):
    """Input made of arbitrary elements such as tokens; positions are indices."""

    items: Sequence

    def __len__(self) -> int:
        return len(self.items)

    def start(self) -> int:
        return 0

    def is_eof(self, pos: int) -> bool:
        return pos >= len(self.items)

    def position_repr(self, pos: int) -> int:
        return pos

    def parse_elem(self, pos: int) -> RuleResult:
        if 0 <= pos < len(self.items):
            return Matched(pos + 1, self.items[pos])
        return None

    def parse_string_literal(self, pos: int, literal: str) -> RuleResult:
        raise TypeError("string literals can only be matched against text or bytes input")

    def parse_slice(self, start: int, end: int) -> Sequence:
        return self.items[start:end]


@dataclass(frozen=True)
class BytesInput(SequenceInput):
    """Byte input; elements are integers and literals match their UTF-8 bytes."""

    items: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", bytes(self.items))

    def parse_string_literal(self, pos: int, literal: str | bytes) -> RuleResult:
        encoded = literal.encode("utf-8") if isinstance(literal, str) else bytes(literal)
        if pos >= 0 and self.items.startswith(encoded, pos):
            return Matched(pos + len(encoded))
        return None


def as_input(value: Any) -> ParseInput:
    """Wrap ``value`` in the matching input type."""
    if isinstance(value, ParseInput):
        return value
    if isinstance(value, str):
        return StrInput(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BytesInput(bytes(value))
    if isinstance(value, Sequence):
        return SequenceInput(value)
    raise TypeError(f"cannot parse a value of type {type(value).__name__}")