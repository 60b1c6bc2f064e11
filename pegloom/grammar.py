"""Validated grammars and the parsers built from them."""

from __future__ import annotations

import functools
from typing import Any, Iterable, get_args

from pegloom.analysis import check
from pegloom.ast import (
    ActionExpr,
    ChoiceExpr,
    Expr,
    Grammar,
    MarkerExpr,
    MatchStrExpr,
    NegAssertExpr,
    OptionalExpr,
    PosAssertExpr,
    PrecedenceExpr,
    QuietExpr,
    RepeatExpr,
    Rule,
    RuleExpr,
)
from pegloom.errors import ErrorState, ParseError
from pegloom.evaluate import Evaluator, _plan_precedence
from pegloom.inputs import as_input

_EXPR_TYPES = get_args(Expr)


class GrammarError(ValueError):
    """A grammar that cannot be turned into a parser.

    ``errors`` holds every problem found, in the order they were found.
    """

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = tuple(errors)
        super().__init__("; ".join(self.errors))


class _RuleChecker:
    """Checks the calls and markers inside one rule's expression."""

    def __init__(self, rules: dict[str, Rule], param_names: set[str], errors: list[str]) -> None:
        self.rules = rules
        self.param_names = param_names
        self.errors = errors

    def check(self, expr: Any, used: bool) -> None:
        match expr:
            case RuleExpr(name=name, args=args):
                self._check_call(name, args, used)
            case ChoiceExpr(choices=choices):
                for choice in choices:
                    self.check(choice, used)
            case OptionalExpr(expr=inner) | PosAssertExpr(expr=inner) | QuietExpr(expr=inner):
                self.check(inner, used)
            case NegAssertExpr(expr=inner) | MatchStrExpr(expr=inner):
                self.check(inner, False)
            case RepeatExpr(inner=inner, sep=sep):
                self.check(inner, used)
                if sep is not None:
                    self.check(sep, False)
            case ActionExpr(elements=elements):
                self._check_sequence(elements)
            case PrecedenceExpr():
                try:
                    plan = _plan_precedence(expr)
                except ValueError as exc:
                    self.errors.append(str(exc))
                    return
                for op in plan.prefix:
                    self._check_sequence(op.elements)
                for _, operators in plan.levels:
                    for op in operators:
                        self._check_sequence(op.elements)
            case MarkerExpr():
                self.errors.append("`@` is only allowed in `precedence!{}`")
            case _:
                pass

    def _check_sequence(self, elements: Iterable) -> None:
        for element in elements:
            self.check(element.expr, element.name is not None)

    def _check_call(self, name: str, args: tuple, used: bool) -> None:
        if name in self.param_names:
            if args:
                self.errors.append("rule closure does not accept arguments")
            return
        rule = self.rules.get(name)
        if rule is None:
            self.errors.append(f"undefined rule `{name}`")
            return
        if used and not rule.returns_value:
            self.errors.append(
                f"using result of rule `{name}`, which does not return a value"
            )
            return
        if len(rule.params) != len(args):
            self.errors.append(
                f"this rule takes {len(rule.params)} parameters "
                f"but {len(args)} parameters were supplied"
            )
            return
        for arg in args:
            if isinstance(arg, _EXPR_TYPES):
                self.check(arg, True)


def compile_grammar(grammar: Grammar) -> "Parser":
    """Check ``grammar`` and build a parser for it.

    Raises ``GrammarError`` listing every problem found.
    """
    analysis = check(grammar)
    errors = [error.msg() for error in analysis.left_recursion]
    errors.extend(error.msg() for error in analysis.loop_nullability)

    seen: set[str] = set()
    for rule in grammar.iter_rules():
        if rule.name in seen:
            errors.append(f"duplicate rule `{rule.name}`")
            continue
        seen.add(rule.name)

        if rule.cache is not None and rule.params:
            errors.append(
                "rules with generics or parameters cannot use #[cache] or #[cache_left_rec]"
            )
            continue

        if rule.public:
            errors.extend(
                "parameters on `pub rule` must be Rust types"
                for param in rule.params
                if param.is_rule
            )
        elif rule.no_eof:
            errors.append("#[no_eof] is only meaningful for `pub rule`")

        checker = _RuleChecker(
            analysis.rules, {param.name for param in rule.params}, errors
        )
        checker.check(rule.expr, rule.returns_value)

    if errors:
        raise GrammarError(errors)
    return Parser(grammar)


class Parser:
    """Parses input with the public rules of a grammar.

    Build one with ``compile_grammar``, which checks the grammar first.
    Public rules can also be called as methods: ``parser.expr(text)``.
    """

    def __init__(self, grammar: Grammar) -> None:
        self.grammar = grammar
        rules: dict[str, Rule] = {}
        for rule in grammar.iter_rules():
            rules.setdefault(rule.name, rule)
        self._rules = rules
        self._arg_names = tuple(
            arg if isinstance(arg, str) else arg.name for arg in grammar.args
        )

    @property
    def public_rules(self) -> tuple:
        """Names of the rules that can be parsed with."""
        return tuple(name for name, rule in self._rules.items() if rule.public)

    def parse(self, rule: str, input: Any, *args: Any) -> Any:
        """Parse ``input`` with public rule ``rule`` and return its value.

        ``args`` are the grammar arguments followed by the rule's parameters.
        Raises ``ParseError`` when the input does not match.
        """
        definition = self._rules.get(rule)
        if definition is None or not definition.public:
            raise LookupError(f"no public rule `{rule}`")
        expected = len(self._arg_names) + len(definition.params)
        if len(args) != expected:
            raise TypeError(
                f"rule `{rule}` takes {expected} arguments but {len(args)} were supplied"
            )
        grammar_args = dict(zip(self._arg_names, args))
        rule_args = args[len(self._arg_names):]

        source = as_input(input)
        err_state = ErrorState(source.start())

        result = Evaluator(self._rules, source, err_state, grammar_args).call_rule(
            rule, source.start(), rule_args
        )
        if result is not None:
            if definition.no_eof or source.is_eof(result.pos):
                return result.value
            err_state.mark_failure(result.pos, "EOF")

        err_state.reparse_for_error()
        result = Evaluator(self._rules, source, err_state, grammar_args).call_rule(
            rule, source.start(), rule_args
        )
        if result is not None:
            if definition.no_eof or source.is_eof(result.pos):
                raise RuntimeError(
                    "Parser is nondeterministic: succeeded when reparsing for error position"
                )
            err_state.mark_failure(result.pos, "EOF")

        error: ParseError = err_state.into_parse_error(source)
        raise error

    def __getattr__(self, name: str) -> Any:
        rules = self.__dict__.get("_rules", {})
        rule = rules.get(name)
        if name.startswith("_") or rule is None or not rule.public:
            raise AttributeError(name)
        return functools.partial(self.parse, name)

    def __repr__(self) -> str:
        return f"Parser({self.grammar.name!r})"