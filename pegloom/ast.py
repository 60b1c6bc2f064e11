"""Expression tree describing a grammar.

Actions, patterns and custom matchers are Python callables. Wherever code
needs the names bound so far (labels, pattern captures, rule parameters and
grammar arguments), it is handed a ``dict`` of those bindings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

# A repeat bound: a fixed count, or a callable computing it from the bindings.
Bound = Union[int, Callable[[dict], int], None]


class CacheKind(enum.Enum):
    """How a rule's results are memoized."""

    SIMPLE = "cache"
    """Plain packrat memoization by position."""
    RECURSIVE = "cache_left_rec"
    """Memoization that also resolves left recursion by growing the seed."""


@dataclass(frozen=True)
class BoundedRepeat:
    """Lower and upper repetition bounds; ``None`` means unbounded.

    ``e*`` has neither bound, ``e+`` has ``min=1``, ``e*<n>`` has
    ``min=max=n`` and ``e*<n,m>`` has both.
    """

    min: Bound = None
    max: Bound = None

    def has_lower_bound(self) -> bool:
        """Whether at least some number of repetitions is required."""
        return self.min is not None

    def has_upper_bound(self) -> bool:
        """Whether the number of repetitions is capped."""
        return self.max is not None


def _freeze(obj: Any, name: str) -> None:
    object.__setattr__(obj, name, tuple(getattr(obj, name)))


@dataclass(frozen=True)
class LiteralExpr:
    """Match a literal string."""

    literal: str


@dataclass(frozen=True)
class PatternExpr:
    """Match a single element accepted by ``predicate``.

    The predicate receives the element and returns a truthy value when it
    matches; a ``dict`` result adds its entries to the bindings. With
    ``inverted`` set, the expression matches exactly the elements the
    predicate rejects. ``description`` is reported when the match fails.
    """

    predicate: Callable[[Any], Any]
    description: str
    inverted: bool = False


@dataclass(frozen=True)
class RuleExpr:
    """Call another rule.

    Each argument that is an expression is passed as a rule argument. A
    callable argument is called with the current bindings to compute the
    value; any other argument is passed as it is.
    """

    name: str
    args: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class MethodExpr:
    """Call ``input.<method>(pos, *args)``, which returns a match result."""

    method: str
    args: tuple = ()

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class CustomExpr:
    """Call ``func(input, pos)``, which returns a match result."""

    func: Callable[[Any, int], Any]


@dataclass(frozen=True)
class ChoiceExpr:
    """Ordered choice: the first alternative that matches wins."""

    choices: tuple

    def __post_init__(self) -> None:
        _freeze(self, "choices")


@dataclass(frozen=True)
class OptionalExpr:
    """Match ``expr`` zero or one time."""

    expr: Expr


@dataclass(frozen=True)
class RepeatExpr:
    """Match ``inner`` repeatedly within ``bound``, optionally separated by ``sep``."""

    inner: Expr
    bound: BoundedRepeat = field(default_factory=BoundedRepeat)
    sep: Optional[Expr] = None


@dataclass(frozen=True)
class PosAssertExpr:
    """Positive lookahead: match ``expr`` without consuming input."""

    expr: Expr


@dataclass(frozen=True)
class NegAssertExpr:
    """Negative lookahead: succeed only where ``expr`` does not match."""

    expr: Expr


@dataclass(frozen=True)
class TaggedExpr:
    """An element of a sequence, with the label its result is bound to."""

    expr: Expr
    name: Optional[str] = None


@dataclass(frozen=True)
class ActionExpr:
    """Match ``elements`` in sequence, then run ``action`` on the bindings.

    Without an action the sequence produces no value. When ``conditional``
    is set, the action may raise ``ValueError``; the match then fails and the
    exception's message is reported as what was expected.
    """

    elements: tuple
    action: Optional[Callable[[dict], Any]] = None
    conditional: bool = False

    def __post_init__(self) -> None:
        _freeze(self, "elements")


@dataclass(frozen=True)
class MatchStrExpr:
    """Match ``expr`` and produce the slice of input it covered."""

    expr: Expr


@dataclass(frozen=True)
class PositionExpr:
    """Produce the current position without consuming input."""


@dataclass(frozen=True)
class QuietExpr:
    """Match ``expr`` without reporting its failures as expected tokens."""

    expr: Expr


@dataclass(frozen=True)
class FailExpr:
    """Always fail, reporting ``expected``."""

    expected: str


@dataclass(frozen=True)
class MarkerExpr:
    """An operand marker inside a precedence expression.

    ``parenthesized`` is true for ``(@)`` and false for ``@``.
    """

    parenthesized: bool


@dataclass(frozen=True)
class PrecedenceOperator:
    """One operator of a precedence level and its action."""

    elements: tuple
    action: Callable[[dict], Any]

    def __post_init__(self) -> None:
        _freeze(self, "elements")


@dataclass(frozen=True)
class PrecedenceLevel:
    """Operators sharing one binding strength."""

    operators: tuple

    def __post_init__(self) -> None:
        _freeze(self, "operators")


@dataclass(frozen=True)
class PrecedenceExpr:
    """Precedence climbing; later levels bind more tightly."""

    levels: tuple

    def __post_init__(self) -> None:
        _freeze(self, "levels")


Expr = Union[
    LiteralExpr,
    PatternExpr,
    RuleExpr,
    MethodExpr,
    CustomExpr,
    ChoiceExpr,
    OptionalExpr,
    RepeatExpr,
    PosAssertExpr,
    NegAssertExpr,
    ActionExpr,
    MatchStrExpr,
    PositionExpr,
    QuietExpr,
    FailExpr,
    PrecedenceExpr,
    MarkerExpr,
]


@dataclass(frozen=True)
class RuleParam:
    """A rule parameter; ``is_rule`` marks one that takes an expression."""

    name: str
    is_rule: bool = False


@dataclass(frozen=True)
class Rule:
    """A named rule of a grammar."""

    name: str
    expr: Expr
    params: tuple = ()
    returns_value: bool = False
    public: bool = False
    cache: Optional[CacheKind] = None
    no_eof: bool = False
    doc: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "params")


@dataclass(frozen=True)
class Grammar:
    """A named set of rules and the arguments every rule receives."""

    name: str
    rules: tuple = ()
    args: tuple = ()
    doc: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "rules")
        _freeze(self, "args")

    def iter_rules(self) -> Iterator[Rule]:
        """The rules in definition order, duplicates included."""
        return (item for item in self.rules if isinstance(item, Rule))