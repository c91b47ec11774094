import pytest

from pale.pale_parser import parse, parse_source, Parser, NestingTooDeep
from pale.pale_lexer import tokenize
from pale.pale_printer import Printer
from pale.pale_datatypes import (
    Atom, Call, Symbol, Location,
    ParseError, EmptyExpression, UnexpectedCloseParen, UnterminatedExpression,
    UnterminatedString,
)


def sym(name):
    return Atom(Symbol(name))


def call(head, *args):
    return Call(sym(head) if isinstance(head, str) else head, list(args))


def test_simple_call():
    assert parse_source("(+ 34 35)") == [call("+", Atom(34), Atom(35))]


def test_atoms_at_top_level():
    assert parse_source('print 10 "ten"') == [sym("print"), Atom(10), Atom("ten")]


def test_string_literal_and_symbol_are_distinct():
    assert parse_source('"print"') != parse_source("print")


def test_nested_calls():
    tree = parse_source("(print (+ 34 (- 40 (+ 23))))")
    assert tree == [call("print", call("+", Atom(34), call("-", Atom(40), call("+", Atom(23)))))]


def test_dollar_sugar_matches_explicit_parens():
    sugared = parse_source("(print $ - 489 $ + 34 35)")
    explicit = parse_source("(print (- 489 (+ 34 35)))")
    assert sugared == explicit
    assert sugared == [call("print", call("-", Atom(489), call("+", Atom(34), Atom(35))))]


def test_dollar_at_top_level_runs_to_end_of_input():
    assert parse_source("$ print $ + 1 2") == parse_source("(print (+ 1 2))")


def test_dollar_stops_before_unmatched_close_paren():
    tree = parse_source("(a $ b c) d")
    assert tree == [call("a", call("b", sym("c"))), sym("d")]


def test_dollar_in_the_middle_of_arguments():
    assert parse_source("(f 1 $ g 2 3)") == parse_source("(f 1 (g 2 3))")


def test_dollar_inside_nested_explicit_call():
    assert parse_source("(f (g $ h 1) 2)") == parse_source("(f (g (h 1)) 2)")


def test_call_with_only_a_head():
    assert parse_source("(f)") == [call("f")]
    assert parse_source("$ f") == [call("f")]


def test_call_location_is_the_opening_token():
    (tree,) = parse_source("\n  (f x)")
    assert tree.loc == Location("<provided>", 2, 3)
    assert tree.head.loc == Location("<provided>", 2, 4)


def test_multiple_statements_in_order():
    tree = parse_source("(a)\n(b)\nc")
    assert tree == [call("a"), call("b"), sym("c")]


def test_empty_script():
    assert parse_source("") == []
    assert parse_source("// just a comment") == []


def test_empty_parens_is_empty_expression():
    with pytest.raises(EmptyExpression) as exc:
        parse_source("()")
    assert isinstance(exc.value, ParseError)
    assert exc.value.loc == Location("<provided>", 1, 1)


def test_nested_empty_parens_is_empty_expression():
    with pytest.raises(EmptyExpression):
        parse_source("(print ())")


@pytest.mark.parametrize("source", ["$", "(print $)", "(f $ )"])
def test_dollar_with_nothing_after_it_is_empty_expression(source):
    with pytest.raises(EmptyExpression):
        parse_source(source)


def test_unexpected_close_paren():
    with pytest.raises(UnexpectedCloseParen) as exc:
        parse_source("(+ 1 2))")
    assert exc.value.loc == Location("<provided>", 1, 8)


def test_close_paren_after_top_level_dollar():
    with pytest.raises(UnexpectedCloseParen):
        parse_source("$ + 1 2 )")


def test_unterminated_expression_points_at_the_open_paren():
    with pytest.raises(UnterminatedExpression) as exc:
        parse_source("(+ 1 (- 2 3)")
    assert exc.value.loc == Location("<provided>", 1, 1)


def test_unterminated_inner_expression():
    with pytest.raises(UnterminatedExpression) as exc:
        parse_source("(+ 1 (- 2 3")
    assert exc.value.loc == Location("<provided>", 1, 6)


def test_lex_errors_pass_through_the_parser():
    with pytest.raises(UnterminatedString):
        parse_source('(print "oops)')


def test_parse_accepts_a_token_list():
    toks = tokenize("(f 1)")
    assert parse(toks) == [call("f", Atom(1))]


def test_nesting_limit():
    source = "(" * 50 + "f" + ")" * 50
    assert len(Parser(tokenize(source), max_depth=60).parse()) == 1
    with pytest.raises(NestingTooDeep):
        Parser(tokenize(source), max_depth=10).parse()


def test_call_requires_a_head():
    with pytest.raises(ValueError):
        Call(None, [])


@pytest.mark.parametrize("source", [
    "(print (- 489 (+ 34 35)))",
    "(f (g 1) (h (i 2 (j))))",
    '(concat "a" (to-str (+ 1 2)))',
    "(a (b (c (d))))",
])
def test_sugared_rendering_reparses_to_the_same_tree(source):
    original = parse_source(source)
    sugared_text = Printer(sugar=True).pformat(original)
    assert "$" in sugared_text
    assert parse_source(sugared_text) == original


def test_nil_is_a_literal_atom():
    assert parse_source("(f nil)") == [call("f", Atom(None))]
    assert parse_source("nil") != parse_source('"nil"')
