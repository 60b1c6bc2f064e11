import dataclasses

import pytest

from pegloom.ast import (
    ActionExpr,
    BoundedRepeat,
    CacheKind,
    ChoiceExpr,
    Grammar,
    LiteralExpr,
    MarkerExpr,
    PrecedenceExpr,
    PrecedenceLevel,
    PrecedenceOperator,
    RepeatExpr,
    Rule,
    RuleExpr,
    TaggedExpr,
)


def test_unbounded_repeat_has_no_bounds():
    bound = BoundedRepeat()
    assert bound.has_lower_bound() is False
    assert bound.has_upper_bound() is False


def test_plus_has_only_lower_bound():
    bound = BoundedRepeat(min=1)
    assert bound.has_lower_bound() is True
    assert bound.has_upper_bound() is False


def test_exact_has_both_bounds():
    bound = BoundedRepeat(min=4, max=4)
    assert bound.has_lower_bound() is True
    assert bound.has_upper_bound() is True


def test_max_only_has_upper_bound():
    bound = BoundedRepeat(max=2)
    assert bound.has_lower_bound() is False
    assert bound.has_upper_bound() is True


def test_computed_bound_counts_as_bound():
    bound = BoundedRepeat(min=lambda env: env["i"], max=lambda env: env["i"])
    assert bound.has_lower_bound() and bound.has_upper_bound()


def test_repeat_defaults_to_unbounded():
    repeat = RepeatExpr(LiteralExpr("a"))
    assert repeat.bound == BoundedRepeat()
    assert repeat.sep is None


def test_sequences_are_stored_as_tuples():
    from_list = ChoiceExpr([LiteralExpr("a"), LiteralExpr("b")])
    from_tuple = ChoiceExpr((LiteralExpr("a"), LiteralExpr("b")))
    assert from_list == from_tuple
    assert from_list.choices == (LiteralExpr("a"), LiteralExpr("b"))


def test_rule_call_args_are_tuple():
    call = RuleExpr("foo", [1, LiteralExpr("x")])
    assert call.args == (1, LiteralExpr("x"))


def test_tagged_expr_defaults_to_unnamed():
    assert TaggedExpr(LiteralExpr("a")).name is None


def test_expressions_are_immutable():
    lit = LiteralExpr("a")
    with pytest.raises(dataclasses.FrozenInstanceError):
        lit.literal = "b"
    assert lit.literal == "a"


def test_rule_defaults():
    rule = Rule("r", LiteralExpr("a"))
    assert rule.public is False
    assert rule.cache is None
    assert rule.no_eof is False
    assert rule.returns_value is False
    assert rule.params == ()


def test_cache_kinds_are_distinct():
    assert CacheKind.SIMPLE != CacheKind.RECURSIVE
    assert CacheKind("cache") is CacheKind.SIMPLE
    assert CacheKind("cache_left_rec") is CacheKind.RECURSIVE


def test_iter_rules_keeps_order_and_duplicates():
    rules = [
        Rule("foo", LiteralExpr("foo")),
        Rule("bar", LiteralExpr("bar")),
        Rule("foo", LiteralExpr("xyz")),
    ]
    grammar = Grammar("g", rules)
    assert [rule.name for rule in grammar.iter_rules()] == ["foo", "bar", "foo"]
    assert list(grammar.iter_rules()) == rules


def test_precedence_structure_is_tuples():
    op = PrecedenceOperator(
        [TaggedExpr(MarkerExpr(True), "x"), TaggedExpr(LiteralExpr("+")), TaggedExpr(MarkerExpr(False), "y")],
        lambda env: env["x"] + env["y"],
    )
    prec = PrecedenceExpr([PrecedenceLevel([op])])
    assert prec.levels[0].operators[0].elements[0].name == "x"
    assert op.action({"x": 2, "y": 3}) == 5


def test_action_expr_defaults():
    action = ActionExpr([TaggedExpr(LiteralExpr("a"))])
    assert action.action is None
    assert action.conditional is False
    assert len(action.elements) == 1