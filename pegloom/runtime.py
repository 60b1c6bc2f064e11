"""Match results and the input protocol that parsers run against."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Matched(Generic[T]):
    """A successful match that ends at ``pos`` and produced ``value``."""

    pos: int
    value: Any = None


# A rule either matches or fails; failure is represented by ``None``.
RuleResult = Optional[Matched]


class ParseInput(ABC):
    """Something a parser can read from.

    ``is_eof`` and ``position_repr`` are required. The other operations are
    needed only by the expressions that use them: ``parse_elem`` by element
    patterns, ``parse_string_literal`` by literals and ``parse_slice`` by
    slice captures.
    """

    def start(self) -> int:
        """Position at which parsing begins."""
        return 0

    @abstractmethod
    def is_eof(self, pos: int) -> bool:
        """Whether ``pos`` is at or past the end of the input."""

    @abstractmethod
    def position_repr(self, pos: int) -> Any:
        """A printable description of ``pos`` for error messages."""

    def parse_elem(self, pos: int) -> RuleResult:
        """The element at ``pos``, or ``None`` past the end."""
        raise TypeError(f"{type(self).__name__} does not support element patterns")

    def parse_string_literal(self, pos: int, literal: str) -> RuleResult:
        """Match ``literal`` at ``pos``."""
        raise TypeError(f"{type(self).__name__} does not support string literals")

    def parse_slice(self, start: int, end: int) -> Any:
        """The part of the input between ``start`` and ``end``."""
        raise TypeError(f"{type(self).__name__} does not support slice captures")