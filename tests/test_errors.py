import pytest

from pegloom.errors import ErrorState, ExpectedSet, ParseError
from pegloom.inputs import LineCol, StrInput


def test_empty_expected_set_display():
    assert str(ExpectedSet()) == "<unreported>"


def test_single_token_display():
    assert str(ExpectedSet(["EOF"])) == "EOF"


def test_multiple_tokens_sorted_display():
    expected = ExpectedSet(["EOF", '"a"', '"\\n"'])
    assert str(expected) == 'one of "\\n", "a", EOF'


def test_named_token_display():
    expected = ExpectedSet(["letter followed by number", "EOF"])
    assert str(expected) == "one of EOF, letter followed by number"


def test_tokens_are_sorted_and_unique():
    expected = ExpectedSet(["b", "a", "b", "c"])
    tokens = list(expected.tokens())
    assert tokens == sorted(set(tokens))
    assert len(expected) == 3
    assert "a" in expected


def test_expected_set_equality():
    assert ExpectedSet(["x", "y"]) == ExpectedSet(["y", "x"])
    assert not ExpectedSet(["x"]) == ExpectedSet(["y"])


def test_first_pass_tracks_furthest_position_only():
    state = ErrorState()
    assert state.mark_failure(3, "a") is None
    state.mark_failure(1, "b")
    assert state.max_err_pos == 3
    assert len(state.expected) == 0


def test_initial_position_is_kept():
    state = ErrorState(5)
    state.mark_failure(2, "x")
    assert state.max_err_pos == 5


def test_quiet_suppresses_failures_and_nests():
    state = ErrorState()
    with state.quiet():
        with state.quiet():
            state.mark_failure(4, "a")
        assert state.suppress_fail == 1
        state.mark_failure(6, "b")
    assert state.suppress_fail == 0
    assert state.max_err_pos == 0


def test_quiet_restores_counter_on_exception():
    state = ErrorState()
    with pytest.raises(ValueError):
        with state.quiet():
            raise ValueError("boom")
    assert state.suppress_fail == 0


def test_reparse_collects_tokens_at_furthest_position():
    state = ErrorState()
    state.mark_failure(2, "x")
    state.reparse_for_error()
    state.mark_failure(2, '"a"')
    state.mark_failure(1, '"b"')
    state.mark_failure(2, "EOF")
    state.mark_failure(3, '"c"')
    assert list(state.expected.tokens()) == sorted(['"a"', "EOF"])
    assert state.max_err_pos == 2


def test_reparse_resets_suppression():
    state = ErrorState()
    state.suppress_fail = 2
    state.reparse_for_error()
    assert state.suppress_fail == 0
    assert state.reparsing_on_error is True


def test_into_parse_error_uses_input_position():
    state = ErrorState()
    state.mark_failure(1, "EOF")
    state.reparse_for_error()
    state.mark_failure(1, "EOF")
    err = state.into_parse_error(StrInput("tt"))
    assert err.location == LineCol(line=1, column=2, offset=1)
    assert str(err.expected) == "EOF"
    assert str(err) == f"error at {err.location}: expected EOF"


def test_parse_error_is_raisable_and_comparable():
    err = ParseError(4, ExpectedSet(["EOF"]))
    with pytest.raises(ParseError) as info:
        raise err
    assert info.value == ParseError(4, ExpectedSet(["EOF"]))
    assert not info.value == ParseError(5, ExpectedSet(["EOF"]))