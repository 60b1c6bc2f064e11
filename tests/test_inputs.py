import pytest

from pegloom.inputs import BytesInput, LineCol, SequenceInput, StrInput, as_input
from pegloom.runtime import Matched


def test_utf8_literal_mismatch_fails_cleanly():
    inp = StrInput("f↙↙↙↙")
    assert inp.parse_string_literal(0, "foo") is None


def test_str_literal_match_advances():
    inp = StrInput("foobar")
    assert inp.parse_string_literal(0, "foo") == Matched(3)
    assert inp.parse_string_literal(3, "bar") == Matched(6)
    assert inp.parse_string_literal(4, "bar") is None


def test_str_literal_past_end_fails():
    assert StrInput("fo").parse_string_literal(0, "foo") is None


def test_str_elements_are_characters():
    inp = StrInput("a↙")
    assert inp.parse_elem(0) == Matched(1, "a")
    assert inp.parse_elem(1) == Matched(2, "↙")
    assert inp.parse_elem(2) is None


def test_str_eof_and_start():
    inp = StrInput("ab")
    assert inp.start() == 0
    assert not inp.is_eof(1)
    assert inp.is_eof(2)


def test_str_slice():
    assert StrInput("(asdf)").parse_slice(1, 5) == "asdf"


def test_position_repr_single_line():
    assert StrInput("tt").position_repr(1) == LineCol(line=1, column=2, offset=1)


def test_position_repr_multiline():
    text = "\naaaa\naaaaaa\naaaabaaaa\n"
    assert StrInput(text).position_repr(17) == LineCol(line=4, column=5, offset=17)


def test_position_repr_at_line_start():
    text = "aa\naaaa\nbaaa\n"
    pos = text.index("b")
    loc = StrInput(text).position_repr(pos)
    assert (loc.line, loc.column) == (3, 1)


def test_position_repr_with_crlf():
    text = "aa\r\naaaa\r\naaab\r\naa"
    loc = StrInput(text).position_repr(text.index("b"))
    assert (loc.line, loc.column) == (3, 4)


def test_linecol_display():
    assert str(LineCol(line=4, column=5, offset=17)) == "4:5"


def test_sequence_elements_and_slices():
    tokens = ["(", "one", ",", "two", ")"]
    inp = SequenceInput(tokens)
    assert inp.parse_elem(1) == Matched(2, "one")
    assert inp.parse_elem(5) is None
    assert inp.parse_slice(1, 4) == ["one", ",", "two"]
    assert inp.position_repr(3) == 3
    assert inp.is_eof(5)


def test_sequence_rejects_string_literals():
    with pytest.raises(TypeError):
        SequenceInput([1, 2]).parse_string_literal(0, "x")


def test_bytes_elements_are_ints():
    inp = BytesInput(b">asdf\0")
    assert inp.parse_elem(0) == Matched(1, ord(">"))
    assert inp.parse_elem(5) == Matched(6, 0)


def test_bytes_literal_and_slice():
    inp = BytesInput(b"foobar")
    assert inp.parse_string_literal(0, "foo") == Matched(3)
    assert inp.parse_string_literal(0, "bar") is None
    assert inp.parse_slice(3, 6) == b"bar"


def test_bytes_literal_encodes_utf8():
    data = "↙x".encode("utf-8")
    inp = BytesInput(data)
    assert inp.parse_string_literal(0, "↙") == Matched(len("↙".encode("utf-8")))


def test_bytes_input_coerces_bytearray():
    inp = BytesInput(bytearray(b"ab"))
    assert inp.items == b"ab"
    assert inp.parse_slice(0, 2) == b"ab"


def test_as_input_dispatch():
    assert as_input("abc") == StrInput("abc")
    assert as_input(b"abc") == BytesInput(b"abc")
    assert as_input(bytearray(b"x")) == BytesInput(b"x")
    assert as_input([1, 2]) == SequenceInput([1, 2])
    existing = StrInput("q")
    assert as_input(existing) is existing


def test_as_input_rejects_unknown_types():
    with pytest.raises(TypeError):
        as_input(42)