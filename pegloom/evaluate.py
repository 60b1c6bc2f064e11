"""Evaluation of grammar expressions against an input."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Union, get_args

from pegloom.ast import (
    ActionExpr,
    Bound,
    CacheKind,
    ChoiceExpr,
    CustomExpr,
    Expr,
    FailExpr,
    LiteralExpr,
    MarkerExpr,
    MatchStrExpr,
    MethodExpr,
    NegAssertExpr,
    OptionalExpr,
    PatternExpr,
    PosAssertExpr,
    PositionExpr,
    PrecedenceExpr,
    QuietExpr,
    RepeatExpr,
    Rule,
    RuleExpr,
)
from pegloom.errors import ErrorState
from pegloom.inputs import as_input
from pegloom.runtime import Matched, RuleResult

_EXPR_TYPES = get_args(Expr)

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}


def _quote(literal: str) -> str:
    """The literal as it is written in a grammar, used in expected sets."""
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in literal) + '"'


@dataclass
class _RuleArgument:
    """An expression passed to a rule parameter, with the bindings of its caller."""

    expr: Any
    env: dict


@dataclass(frozen=True)
class _SpanCapture:
    start: Optional[str]
    value: Optional[str]
    end: Optional[str]
    action: Callable[[dict], Any]


@dataclass
class _Operator:
    elements: tuple
    action: Callable[[dict], Any]
    wrap: Optional[_SpanCapture]
    left: Optional[str] = None
    right: Optional[str] = None
    recurse_prec: Optional[int] = None


@dataclass
class _PrecedencePlan:
    prefix: list = field(default_factory=list)
    levels: list = field(default_factory=list)


def _plan_precedence(expr: PrecedenceExpr) -> _PrecedencePlan:
    plan = _PrecedencePlan()
    span: Optional[_SpanCapture] = None
    for prec, level in enumerate(expr.levels):
        post: list[_Operator] = []
        for op in level.operators:
            elements = op.elements
            if not elements:
                raise ValueError("incomplete rule")
            first, last = elements[0], elements[-1]
            wrap = span
            match (first.expr, last.expr):
                case (PositionExpr(), PositionExpr()) if len(elements) == 3:
                    if not isinstance(elements[1].expr, MarkerExpr):
                        raise ValueError(
                            "span capture rule must be `l:position!() n:@ r:position!()`"
                        )
                    span = _SpanCapture(first.name, elements[1].name, last.name, op.action)
                case (MarkerExpr(parenthesized=la), MarkerExpr(parenthesized=ra)) if len(
                    elements
                ) >= 3:
                    if la and not ra:
                        new_prec = prec + 1
                    elif ra and not la:
                        new_prec = prec
                    else:
                        raise ValueError(
                            "precedence rules must use `@` and `(@)` to indicate associativity"
                        )
                    post.append(
                        _Operator(elements[1:-1], op.action, wrap, first.name, last.name, new_prec)
                    )
                case (MarkerExpr(), _) if len(elements) >= 2:
                    post.append(_Operator(elements[1:], op.action, wrap, left=first.name))
                case (_, MarkerExpr(parenthesized=paren)) if len(elements) >= 2:
                    plan.prefix.append(
                        _Operator(
                            elements[:-1],
                            op.action,
                            wrap,
                            right=last.name,
                            recurse_prec=prec if paren else prec + 1,
                        )
                    )
                case _:
                    plan.prefix.append(_Operator(elements, op.action, wrap))
        if post:
            plan.levels.append((prec, post))
    return plan


class Evaluator:
    """Runs grammar rules against one input.

    ``rules`` maps rule names to rules (an iterable of rules is also accepted;
    the first definition of a name wins). ``args`` are the grammar arguments
    visible to every rule. Failures are recorded in ``err_state``.
    """

    def __init__(
        self,
        rules: Union[Mapping, Iterable[Rule]],
        input: Any,
        err_state: Optional[ErrorState] = None,
        args: Optional[Mapping] = None,
    ) -> None:
        if isinstance(rules, Mapping):
            self.rules = dict(rules)
        else:
            self.rules = {}
            for rule in rules:
                self.rules.setdefault(rule.name, rule)
        self.input = as_input(input)
        self.err_state = err_state if err_state is not None else ErrorState(self.input.start())
        self.args = dict(args or {})
        self._caches: dict[str, dict[int, RuleResult]] = {}
        self._plans: dict[int, tuple[PrecedenceExpr, _PrecedencePlan]] = {}

    # -- rules -----------------------------------------------------------

    def call_rule(self, name: str, pos: int, args: Iterable = ()) -> RuleResult:
        """Match rule ``name`` at ``pos`` with the given parameter values."""
        rule = self.rules.get(name)
        if rule is None:
            raise LookupError(f"undefined rule `{name}`")
        args = tuple(args)
        if len(args) != len(rule.params):
            raise TypeError(
                f"this rule takes {len(rule.params)} parameters "
                f"but {len(args)} parameters were supplied"
            )
        if rule.cache is None:
            return self._invoke(rule, pos, args)

        cache = self._caches.setdefault(name, {})
        if pos in cache:
            return cache[pos]

        if rule.cache is CacheKind.SIMPLE:
            result = self._invoke(rule, pos, args)
            cache[pos] = result
            return result

        # Grow the seed: re-run the rule while each attempt gets further.
        cache[pos] = None
        last: RuleResult = None
        while True:
            current = self._invoke(rule, pos, args)
            if current is None:
                break
            if last is not None and current.pos <= last.pos:
                break
            cache[pos] = current
            last = current
        return last

    def _invoke(self, rule: Rule, pos: int, args: tuple) -> RuleResult:
        env = dict(self.args)
        for param, value in zip(rule.params, args):
            if param.is_rule and isinstance(value, _EXPR_TYPES):
                value = _RuleArgument(value, dict(self.args))
            env[param.name] = value
        result = self.evaluate(rule.expr, pos, env)
        if result is not None and not rule.returns_value:
            return Matched(result.pos, None)
        return result

    def _argument(self, arg: Any, env: dict) -> Any:
        if isinstance(arg, _EXPR_TYPES):
            return _RuleArgument(arg, env)
        if callable(arg):
            return arg(env)
        return arg

    # -- expressions -----------------------------------------------------

    def evaluate(self, expr: Any, pos: int, env: dict) -> RuleResult:
        """Match ``expr`` at ``pos`` with the bindings ``env``."""
        match expr:
            case LiteralExpr(literal=literal):
                result = self.input.parse_string_literal(pos, literal)
                if result is None:
                    return self.err_state.mark_failure(pos, _quote(literal))
                return Matched(result.pos, literal)
            case PatternExpr():
                return self._match_pattern(expr, pos)[0]
            case RuleExpr(name=name, args=args):
                bound = env.get(name)
                if isinstance(bound, _RuleArgument):
                    if args:
                        raise TypeError("rule closure does not accept arguments")
                    return self.evaluate(bound.expr, pos, bound.env)
                return self.call_rule(name, pos, [self._argument(a, env) for a in args])
            case MethodExpr(method=method, args=args):
                values = [a(env) if callable(a) else a for a in args]
                return getattr(self.input, method)(pos, *values)
            case CustomExpr(func=func):
                return func(self.input, pos)
            case ChoiceExpr(choices=choices):
                for choice in choices:
                    result = self.evaluate(choice, pos, env)
                    if result is not None:
                        return result
                return None
            case OptionalExpr(expr=inner):
                result = self.evaluate(inner, pos, env)
                return result if result is not None else Matched(pos, None)
            case RepeatExpr():
                return self._repeat(expr, pos, env)
            case PosAssertExpr(expr=inner):
                with self.err_state.quiet():
                    result = self.evaluate(inner, pos, env)
                return None if result is None else Matched(pos, result.value)
            case NegAssertExpr(expr=inner):
                with self.err_state.quiet():
                    result = self.evaluate(inner, pos, env)
                return Matched(pos, None) if result is None else None
            case ActionExpr(elements=elements, action=action, conditional=conditional):
                return self._sequence(
                    elements, pos, env, lambda end, b: self._act(action, conditional, end, b)
                )
            case MatchStrExpr(expr=inner):
                result = self.evaluate(inner, pos, env)
                if result is None:
                    return None
                return Matched(result.pos, self.input.parse_slice(pos, result.pos))
            case PositionExpr():
                return Matched(pos, pos)
            case QuietExpr(expr=inner):
                with self.err_state.quiet():
                    return self.evaluate(inner, pos, env)
            case FailExpr(expected=expected):
                return self.err_state.mark_failure(pos, expected)
            case PrecedenceExpr():
                return self._precedence(expr, pos, env)
            case MarkerExpr():
                raise ValueError("`@` is only allowed in `precedence!{}`")
            case _:
                raise TypeError(f"not an expression: {expr!r}")

    def _match_pattern(self, expr: PatternExpr, pos: int) -> tuple[RuleResult, dict]:
        elem = self.input.parse_elem(pos)
        if elem is None:
            return self.err_state.mark_failure(pos, expr.description), {}
        test = expr.predicate(elem.value)
        accepted = isinstance(test, dict) or bool(test)
        if accepted == expr.inverted:
            return self.err_state.mark_failure(pos, expr.description), {}
        bindings = test if isinstance(test, dict) and not expr.inverted else {}
        return Matched(elem.pos, elem.value), bindings

    def _sequence(
        self,
        elements: tuple,
        pos: int,
        env: dict,
        finish: Callable[[int, dict], RuleResult],
    ) -> RuleResult:
        bindings = dict(env)
        for element in elements:
            if isinstance(element.expr, PatternExpr):
                result, captured = self._match_pattern(element.expr, pos)
                bindings.update(captured)
            else:
                result = self.evaluate(element.expr, pos, bindings)
            if result is None:
                return None
            if element.name is not None:
                bindings[element.name] = result.value
            pos = result.pos
        return finish(pos, bindings)

    def _act(
        self,
        action: Optional[Callable[[dict], Any]],
        conditional: bool,
        pos: int,
        bindings: dict,
    ) -> RuleResult:
        if action is None:
            return Matched(pos, None)
        if not conditional:
            return Matched(pos, action(bindings))
        try:
            value = action(bindings)
        except ValueError as exc:
            return self.err_state.mark_failure(pos, str(exc))
        return Matched(pos, value)

    def _resolve_bound(self, bound: Bound, env: dict) -> Optional[int]:
        if bound is None or isinstance(bound, int):
            return bound
        return bound(env)

    def _repeat(self, expr: RepeatExpr, pos: int, env: dict) -> RuleResult:
        low = self._resolve_bound(expr.bound.min, env)
        high = self._resolve_bound(expr.bound.max, env)
        values: list = []
        repeat_pos = pos
        while True:
            step_pos = repeat_pos
            if expr.sep is not None and values:
                sep = self.evaluate(expr.sep, step_pos, env)
                if sep is None:
                    break
                step_pos = sep.pos
            if high is not None and len(values) >= high:
                break
            step = self.evaluate(expr.inner, step_pos, env)
            if step is None:
                break
            repeat_pos = step.pos
            values.append(step.value)
        if low is not None and len(values) < low:
            return None
        return Matched(repeat_pos, values)

    # -- precedence climbing --------------------------------------------

    def _precedence(self, expr: PrecedenceExpr, pos: int, env: dict) -> RuleResult:
        cached = self._plans.get(id(expr))
        if cached is None or cached[0] is not expr:
            cached = (expr, _plan_precedence(expr))
            self._plans[id(expr)] = cached
        plan = cached[1]

        def infix_parse(min_prec: int, lpos: int) -> RuleResult:
            initial = prefix_atom(lpos)
            if initial is None:
                return None
            repeat_pos, result = initial.pos, initial.value
            while True:
                step = post_step(repeat_pos, lpos, min_prec, result)
                if step is None:
                    break
                repeat_pos, result = step.pos, step.value
            return Matched(repeat_pos, result)

        def prefix_atom(lpos: int) -> RuleResult:
            for op in plan.prefix:
                result = self._run_operator(op, lpos, lpos, env, None, infix_parse)
                if result is not None:
                    return result
            return None

        def post_step(at: int, lpos: int, min_prec: int, current: Any) -> RuleResult:
            for prec, operators in plan.levels:
                if prec < min_prec:
                    continue
                for op in operators:
                    result = self._run_operator(op, at, lpos, env, current, infix_parse)
                    if result is not None:
                        return result
            return None

        return infix_parse(0, pos)

    def _run_operator(
        self,
        op: _Operator,
        pos: int,
        lpos: int,
        env: dict,
        current: Any,
        recurse: Callable[[int, int], RuleResult],
    ) -> RuleResult:
        def finish(end: int, bindings: dict) -> RuleResult:
            if op.recurse_prec is not None:
                operand = recurse(op.recurse_prec, end)
                if operand is None:
                    return None
                end = operand.pos
                if op.right is not None:
                    bindings[op.right] = operand.value
            if op.left is not None:
                bindings[op.left] = current
            value = op.action(bindings)
            if op.wrap is not None:
                wrap_env = dict(env)
                for name, item in (
                    (op.wrap.start, lpos),
                    (op.wrap.value, value),
                    (op.wrap.end, end),
                ):
                    if name is not None:
                        wrap_env[name] = item
                value = op.wrap.action(wrap_env)
            return Matched(end, value)

        return self._sequence(op.elements, pos, env, finish)