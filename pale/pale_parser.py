"""
Builds expression trees from a PALE token stream.

Grammar:

    script    := statement*
    statement := ATOM | "(" statement+ ")" | "$" statement+

`$` opens an implicit call that runs up to (but not including) the next
unmatched `)` or to the end of input, so `(print $ - 489 $ + 34 35)` is
the same tree as `(print (- 489 (+ 34 35)))`.
"""
from typing import Iterable, Iterator, List, Optional

from pale.pale_datatypes import (
    Atom, Call, Expr, Symbol, Token, TokenType,
    ParseError, EmptyExpression, UnexpectedCloseParen, UnterminatedExpression,
)
from pale.pale_lexer import DEFAULT_FILENAME, iter_tokens

MAX_DEPTH = 200


class NestingTooDeep(ParseError):
    default_message = "Expression is nested too deeply!"


class Parser:
    """Recursive-descent parser with one token of lookahead.

    Each active `_call` frame is a pending close: explicit frames consume
    their `)`, implicit (`$`) frames stop in front of it and leave it to the
    enclosing frame.
    """

    def __init__(self, tokens: Iterable[Token], max_depth: int = MAX_DEPTH):
        self._tokens: Iterator[Token] = iter(tokens)
        self._lookahead: Optional[Token] = None
        self._exhausted = False
        self._depth = 0
        self.max_depth = max_depth

    def _peek(self) -> Optional[Token]:
        if self._lookahead is None and not self._exhausted:
            self._lookahead = next(self._tokens, None)
            self._exhausted = self._lookahead is None
        return self._lookahead

    def _next(self) -> Token:
        tok = self._peek()
        self._lookahead = None
        return tok

    def parse(self) -> List[Expr]:
        """Parses every top-level statement in order."""
        statements: List[Expr] = []
        while (tok := self._peek()) is not None:
            if tok.type is TokenType.RPAREN:
                raise UnexpectedCloseParen(loc=tok.loc).note("Delete it.")
            statements.append(self._statement())
        return statements

    def _statement(self) -> Expr:
        tok = self._next()
        match tok.type:
            case TokenType.LPAREN:
                return self._call(tok, explicit=True)
            case TokenType.DOLLAR:
                return self._call(tok, explicit=False)
            case TokenType.IDENT:
                return Atom(Symbol(tok.value), tok.loc)
            case TokenType.STRING | TokenType.NUMBER | TokenType.NIL:
                return Atom(tok.value, tok.loc)
            case _:
                raise UnexpectedCloseParen(loc=tok.loc).note("Delete it.")

    def _call(self, opener: Token, explicit: bool) -> Call:
        self._depth += 1
        if self._depth > self.max_depth:
            raise NestingTooDeep(loc=opener.loc)
        terms: List[Expr] = []
        while True:
            tok = self._peek()
            if tok is None:
                if explicit:
                    raise UnterminatedExpression(loc=opener.loc).note("Deleting it might fix this error.")
                break
            if tok.type is TokenType.RPAREN:
                if explicit:
                    self._next()
                break
            terms.append(self._statement())
        self._depth -= 1
        if not terms:
            err = EmptyExpression(loc=opener.loc)
            if not explicit:
                err.note("`$` must be followed by at least a function.")
            raise err
        return Call(terms[0], terms[1:], loc=opener.loc)


def parse(tokens: Iterable[Token]) -> List[Expr]:
    """Parses a token sequence into top-level expressions."""
    return Parser(tokens).parse()


def parse_source(source: str, filename: str = DEFAULT_FILENAME) -> List[Expr]:
    """Lexes and parses source text in a single streaming pass."""
    return Parser(iter_tokens(source, filename)).parse()
