"""Static checks for grammars that would loop forever."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pegloom.ast import (
    ActionExpr,
    CacheKind,
    ChoiceExpr,
    Grammar,
    MatchStrExpr,
    NegAssertExpr,
    OptionalExpr,
    PosAssertExpr,
    PositionExpr,
    PrecedenceExpr,
    QuietExpr,
    RepeatExpr,
    Rule,
    RuleExpr,
)


@dataclass(frozen=True)
class LeftRecursionError:
    """A chain of rules that calls itself without consuming input."""

    path: tuple

    def msg(self) -> str:
        return "left recursive rules create an infinite loop: " + " -> ".join(self.path)


@dataclass(frozen=True)
class LoopNullabilityError:
    """An unbounded loop in ``rule`` whose body can match without consuming input."""

    rule: str
    expr: RepeatExpr

    def msg(self) -> str:
        return "loops infinitely because loop body can match without consuming input"


@dataclass
class GrammarAnalysis:
    """Rules by name (first definition wins) and the problems found."""

    rules: dict = field(default_factory=dict)
    left_recursion: list = field(default_factory=list)
    loop_nullability: list = field(default_factory=list)


def check(grammar: Grammar) -> GrammarAnalysis:
    """Analyse ``grammar`` for left recursion and nullable loops."""
    rules: dict[str, Rule] = {}
    for rule in grammar.iter_rules():
        rules.setdefault(rule.name, rule)

    nullability, left_recursion = _LeftRecursionVisitor(rules).check(grammar)
    loop_nullability = _LoopNullabilityVisitor(nullability).check(grammar)
    return GrammarAnalysis(rules, left_recursion, loop_nullability)


class _LeftRecursionVisitor:
    """Walks the prefix of each rule reachable without consuming input."""

    def __init__(self, rules: dict[str, Rule]) -> None:
        self.rules = rules
        self.stack: list[str] = []
        self.errors: list[LeftRecursionError] = []

    def check(self, grammar: Grammar) -> tuple[dict[str, bool], list[LeftRecursionError]]:
        nullability: dict[str, bool] = {}
        for rule in grammar.iter_rules():
            nullability.setdefault(rule.name, self._walk_rule(rule))
        return nullability, self.errors

    def _walk_rule(self, rule: Rule) -> bool:
        self.stack.append(rule.name)
        try:
            return self._walk(rule.expr)
        finally:
            self.stack.pop()

    def _walk(self, expr) -> bool:
        """Whether ``expr`` is known to match without consuming input.

        Unknown cases answer False so that no false positives are reported.
        """
        match expr:
            case RuleExpr(name=name):
                rule = self.rules.get(name)
                if rule is None:
                    return False
                if name in self.stack:
                    loop = (*self.stack[self.stack.index(name):], name)
                    if rule.cache in (None, CacheKind.SIMPLE):
                        self.errors.append(LeftRecursionError(loop))
                    return False
                return self._walk_rule(rule)
            case ActionExpr(elements=elements):
                return all(self._walk(element.expr) for element in elements)
            case ChoiceExpr(choices=choices):
                return any([self._walk(choice) for choice in choices])
            case OptionalExpr(expr=inner) | PosAssertExpr(expr=inner) | NegAssertExpr(expr=inner):
                self._walk(inner)
                return True
            case RepeatExpr(inner=inner, bound=bound):
                inner_nullable = self._walk(inner)
                return inner_nullable or not bound.has_lower_bound()
            case MatchStrExpr(expr=inner) | QuietExpr(expr=inner):
                return self._walk(inner)
            case PrecedenceExpr(levels=levels):
                nullable = False
                for level in levels:
                    for operator in level.operators:
                        if all(self._walk(element.expr) for element in operator.elements):
                            nullable = True
                return nullable
            case PositionExpr():
                return True
            case _:
                return False


class _LoopNullabilityVisitor:
    """Walks every expression looking for unbounded loops with nullable bodies."""

    def __init__(self, rule_nullability: dict[str, bool]) -> None:
        self.rule_nullability = rule_nullability
        self.errors: list[LoopNullabilityError] = []
        self.current_rule: Optional[str] = None

    def check(self, grammar: Grammar) -> list[LoopNullabilityError]:
        for rule in grammar.iter_rules():
            self.current_rule = rule.name
            self._walk(rule.expr)
        return self.errors

    def _walk(self, expr) -> bool:
        """Whether ``expr`` is known to match without consuming input.

        Unlike the left-recursion walk, this visits the whole tree and takes
        the nullability of called rules from the earlier analysis.
        """
        match expr:
            case RuleExpr(name=name):
                return self.rule_nullability.get(name, False)
            case ActionExpr(elements=elements):
                return all([self._walk(element.expr) for element in elements])
            case ChoiceExpr(choices=choices):
                return any([self._walk(choice) for choice in choices])
            case OptionalExpr(expr=inner) | PosAssertExpr(expr=inner) | NegAssertExpr(expr=inner):
                self._walk(inner)
                return True
            case RepeatExpr(inner=inner, bound=bound, sep=sep):
                inner_nullable = self._walk(inner)
                sep_nullable = True if sep is None else self._walk(sep)
                if inner_nullable and sep_nullable and not bound.has_upper_bound():
                    self.errors.append(LoopNullabilityError(self.current_rule, expr))
                return inner_nullable or not bound.has_lower_bound()
            case MatchStrExpr(expr=inner) | QuietExpr(expr=inner):
                return self._walk(inner)
            case PrecedenceExpr(levels=levels):
                nullable = False
                for level in levels:
                    for operator in level.operators:
                        if all([self._walk(element.expr) for element in operator.elements]):
                            nullable = True
                return nullable
            case PositionExpr():
                return True
            case _:
                return False