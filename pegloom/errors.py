"""Parse error reporting."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator

if TYPE_CHECKING:
    from pegloom.runtime import ParseInput


class ExpectedSet:
    """The set of literals or names that failed to match at a position."""

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[str] = ()) -> None:
        self._tokens = set(tokens)

    def tokens(self) -> Iterator[str]:
        """The expected tokens in sorted order."""
        return iter(sorted(self._tokens))

    def _add(self, token: str) -> None:
        self._tokens.add(token)

    def __iter__(self) -> Iterator[str]:
        return self.tokens()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._tokens

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpectedSet):
            return NotImplemented
        return self._tokens == other._tokens

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ExpectedSet({sorted(self._tokens)!r})"

    def __str__(self) -> str:
        items = list(self.tokens())
        if not items:
            return "<unreported>"
        if len(items) == 1:
            return items[0]
        return "one of " + ", ".join(items)


class ParseError(Exception):
    """A parse failure at the furthest position the parser reached."""

    def __init__(self, location: Any, expected: ExpectedSet) -> None:
        super().__init__(location, expected)
        self.location = location
        self.expected = expected

    def __str__(self) -> str:
        return f"error at {self.location}: expected {self.expected}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.location == other.location and self.expected == other.expected

    __hash__ = None  # type: ignore[assignment]


class ErrorState:
    """Tracks the furthest failure while parsing.

    The first pass only records the furthest failing position. When parsing
    fails, a second pass is made with ``reparse_for_error`` set, which
    collects every token expected at that position.
    """

    def __init__(self, initial_pos: int = 0) -> None:
        self.max_err_pos = initial_pos
        self.suppress_fail = 0
        self.reparsing_on_error = False
        self.expected = ExpectedSet()

    def reparse_for_error(self) -> None:
        """Prepare for a second pass that records the expected tokens."""
        self.suppress_fail = 0
        self.reparsing_on_error = True

    def mark_failure(self, pos: int, expected: str) -> None:
        """Flag a failure of ``expected`` at ``pos``; always returns a failed result."""
        if self.suppress_fail == 0:
            if self.reparsing_on_error:
                if pos == self.max_err_pos:
                    self.expected._add(expected)
            elif pos > self.max_err_pos:
                self.max_err_pos = pos
        return None

    @contextmanager
    def quiet(self) -> Iterator[None]:
        """Suppress failure reporting inside the block; blocks may nest."""
        self.suppress_fail += 1
        try:
            yield
        finally:
            self.suppress_fail -= 1

    def into_parse_error(self, input: "ParseInput") -> ParseError:
        """Build the error describing the furthest failure in ``input``."""
        return ParseError(input.position_repr(self.max_err_pos), self.expected)