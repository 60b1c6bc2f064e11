# pegloom

pegloom runs Parsing Expression Grammars (PEGs) as recursive-descent parsers.
A grammar is built in Python as a tree of expression objects. It is checked
for mistakes and then run against strings, byte strings or sequences of tokens.

## What it offers

* Inputs of `str`, `bytes` (also `bytearray` and `memoryview`) or any other
  sequence, such as a list of tokens. `pegloom.inputs.as_input` wraps a plain
  value in `StrInput`, `BytesInput` or `SequenceInput`. Your own input types
  can subclass `pegloom.runtime.ParseInput`.
* Literals, single-element patterns (inverted ones too), rule calls with
  arguments, ordered choice and optional expressions.
* Repetition with no bounds, a minimum, a maximum or both, with or without a
  separator. A bound may be a number or a callable that computes it from the
  names bound so far.
* Positive and negative lookahead, slices of the input, the current position,
  quiet blocks and custom expected-token messages.
* Precedence climbing for infix, prefix and postfix operators, with optional
  span capture.
* Per-rule memoization (`CacheKind.SIMPLE`) and left-recursive rules
  (`CacheKind.RECURSIVE`).
* Error reports that give the furthest failure position and every token that
  was expected there.

## Building a grammar

The classes live in `pegloom.ast`. A `Grammar` holds `Rule` objects; each rule
body is an expression such as `LiteralExpr`, `PatternExpr`, `RuleExpr`,
`ChoiceExpr`, `OptionalExpr`, `RepeatExpr`, `ActionExpr`, `MatchStrExpr`,
`PositionExpr`, `PosAssertExpr`, `NegAssertExpr`, `QuietExpr`, `FailExpr`,
`MethodExpr`, `CustomExpr` or `PrecedenceExpr`.

Code inside a grammar is plain Python:

* A `PatternExpr` predicate receives one element and returns a truthy value
  when it matches. If it returns a `dict`, those entries become bindings.
* An `ActionExpr` runs its elements in order, binding each `TaggedExpr` with a
  name to its result, then calls `action(bindings)`. With `conditional=True`
  the action may raise `ValueError`; the match then fails and the message is
  reported as what was expected.
* `RuleExpr` arguments that are expressions are passed to rule parameters
  declared with `RuleParam(name, is_rule=True)`. Callable arguments are called
  with the bindings; anything else is passed as it is.
* A rule produces a value only when `returns_value=True`; otherwise it
  produces `None`. A literal produces the literal text.

A bracketed, comma-separated list of numbers:

```python
from pegloom.ast import (
    ActionExpr, BoundedRepeat, Grammar, LiteralExpr, MatchStrExpr,
    PatternExpr, RepeatExpr, Rule, RuleExpr, TaggedExpr,
)
from pegloom.grammar import compile_grammar

digits = RepeatExpr(PatternExpr(str.isdigit, "['0'..='9']"), BoundedRepeat(min=1))

number = Rule(
    "number",
    ActionExpr((TaggedExpr(MatchStrExpr(digits), "n"),), lambda b: int(b["n"])),
    returns_value=True,
)
numbers = Rule(
    "list",
    ActionExpr(
        (
            TaggedExpr(LiteralExpr("[")),
            TaggedExpr(RepeatExpr(RuleExpr("number"), sep=LiteralExpr(",")), "l"),
            TaggedExpr(LiteralExpr("]")),
        ),
        lambda b: b["l"],
    ),
    returns_value=True,
    public=True,
)

parser = compile_grammar(Grammar("list_parser", (number, numbers)))
parser.parse("list", "[1,1,2,3,5,8]")   # [1, 1, 2, 3, 5, 8]
parser.list("[1,2]")                    # public rules are also methods
```

## Checking a grammar

`compile_grammar` raises `pegloom.grammar.GrammarError` when the grammar is
unusable; its `errors` attribute lists every problem found. It reports:

* duplicate rules
* undefined rules
* wrong argument counts
* use of the result of a rule that returns nothing
* caching on rules that take parameters
* expression parameters on public rules
* `no_eof` on a rule that is not public
* arguments given to an expression parameter
* operand markers outside a precedence expression, and malformed operators
  inside one
* left recursion without `CacheKind.RECURSIVE`
* loops whose body can match without consuming input

`pegloom.analysis.check(grammar)` runs the last two checks alone and returns a
`GrammarAnalysis` with the rules by name, any `LeftRecursionError` entries and
any `LoopNullabilityError` entries. Each entry's `msg()` describes the problem,
for example `left recursive rules create an infinite loop: bar -> foo -> bar`.

## Parsing

```python
from pegloom.errors import ParseError

try:
    value = parser.parse("list", "[1,,2]")
except ParseError as err:
    print(err.location, err.expected)
```

`Parser.parse(rule, input, *args)` takes the grammar's arguments (named in
`Grammar.args`) followed by the rule's parameters. Only public rules can be
parsed with; `Parser.public_rules` lists them. A public rule must consume the
whole input unless it is marked `no_eof`.

When parsing fails, `ParseError` reports:

* `location`: the furthest position reached. For text this is a `LineCol` with
  `line`, `column` and `offset`; for bytes and sequences it is the index.
* `expected`: an `ExpectedSet`. Its `tokens()` lists, in sorted order, every
  literal or name that would have let the parse go further. It prints as
  `"a"`, or as `one of "\n", "a", EOF` when there are several, and as
  `<unreported>` when there are none.

## What it does not do

* There is no textual grammar notation: grammars are written as Python objects
  from `pegloom.ast`.
* It does not generate parser source code; grammars are interpreted directly.
* There is no command-line tool and no rule tracing.