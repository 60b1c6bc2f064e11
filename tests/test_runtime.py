import dataclasses

import pytest

from pegloom.runtime import Matched, ParseInput


class _Counter(ParseInput):
    def __init__(self, size):
        self.size = size

    def is_eof(self, pos):
        return pos >= self.size

    def position_repr(self, pos):
        return pos


def test_matched_holds_position_and_value():
    m = Matched(3, "abc")
    assert m.pos == 3
    assert m.value == "abc"


def test_matched_value_defaults_to_none():
    assert Matched(5).value is None
    assert Matched(5) == Matched(5, None)


def test_matched_equality_depends_on_both_fields():
    assert Matched(1, "a") == Matched(1, "a")
    assert not Matched(1, "a") == Matched(2, "a")
    assert not Matched(1, "a") == Matched(1, "b")


def test_matched_is_immutable():
    m = Matched(1, "x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        m.pos = 2
    assert m.pos == 1
    assert m.value == "x"


def test_parse_input_cannot_be_instantiated_directly():
    with pytest.raises(TypeError):
        ParseInput()


def test_default_start_is_zero():
    assert ParseInput.start(_Counter(4)) == 0


@pytest.mark.parametrize(
    "call",
    [
        lambda i: ParseInput.parse_elem(i, 0),
        lambda i: ParseInput.parse_string_literal(i, 0, "x"),
        lambda i: ParseInput.parse_slice(i, 0, 1),
    ],
)
def test_unsupported_operations_raise_type_error(call):
    with pytest.raises(TypeError, match="_Counter"):
        call(_Counter(3))