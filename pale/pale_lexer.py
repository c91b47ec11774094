"""
Turns PALE source text into a stream of tokens.

Whitespace, `// line` comments and `{* block }*` comments are discarded.
Everything else becomes one of: `(`, `)`, `$`, `nil`, a string literal, a
number literal or an identifier.
"""
import re
from typing import Iterator, List, Union

from pale.pale_datatypes import (
    Location, Token, TokenType, UnterminatedString, UnterminatedComment, NumberTooLarge
)

DEFAULT_FILENAME = "<provided>"

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "$": TokenType.DOLLAR,
}

LINE_COMMENT = "//"
BLOCK_COMMENT_OPEN = "{*"
BLOCK_COMMENT_CLOSE = "}*"
NIL = "nil"


def parse_number(text: str) -> Union[int, float, None]:
    """Returns the numeric value of text, or None when it is not a number literal.

    Raises ValueError for integers beyond the interpreter's digit limit.
    """
    if not _NUMBER_RE.fullmatch(text):
        return None
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


class Lexer:
    """A single-use scanner over one source text."""

    def __init__(self, source: str, filename: str = DEFAULT_FILENAME):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1

    def _loc(self) -> Location:
        return Location(self.filename, self.line, self.col)

    def _at(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _advance(self, count: int = 1):
        for _ in range(count):
            ch = self.source[self.pos]
            self.pos += 1
            if ch == "\n":
                self.line += 1
                self.col = 1
            else:
                self.col += 1

    def _at_boundary(self) -> bool:
        """True when the current character cannot continue an identifier or number."""
        ch = self.source[self.pos]
        return (
            ch.isspace()
            or ch in _PUNCTUATION
            or ch == '"'
            or self._at(LINE_COMMENT)
            or self._at(BLOCK_COMMENT_OPEN)
        )

    def _skip_line_comment(self):
        # The terminator itself is left for the whitespace skipper.
        while self.pos < len(self.source) and self.source[self.pos] not in "\r\n":
            self._advance()

    def _skip_block_comment(self):
        start = self._loc()
        self._advance(len(BLOCK_COMMENT_OPEN))
        while self.pos < len(self.source):
            if self._at(BLOCK_COMMENT_CLOSE):
                self._advance(len(BLOCK_COMMENT_CLOSE))
                return
            self._advance()
        raise UnterminatedComment(loc=start).note(f"Close the comment with `{BLOCK_COMMENT_CLOSE}`.")

    def _read_string(self, start: Location) -> Token:
        self._advance()  # opening quote
        begin = self.pos
        while self.pos < len(self.source):
            if self.source[self.pos] == '"':
                text = self.source[begin:self.pos]
                self._advance()
                return Token(TokenType.STRING, text, start)
            self._advance()
        raise UnterminatedString(loc=start).note('Add a closing `"`.')

    def _read_word(self, start: Location) -> Token:
        begin = self.pos
        while self.pos < len(self.source) and not self._at_boundary():
            self._advance()
        text = self.source[begin:self.pos]
        if text == NIL:
            return Token(TokenType.NIL, None, start)
        try:
            number = parse_number(text)
        except ValueError:
            raise NumberTooLarge(loc=start).note(f"The literal has {len(text)} characters.") from None
        if number is not None:
            return Token(TokenType.NUMBER, number, start)
        return Token(TokenType.IDENT, text, start)

    def __iter__(self) -> Iterator[Token]:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch.isspace():
                self._advance()
            elif self._at(LINE_COMMENT):
                self._skip_line_comment()
            elif self._at(BLOCK_COMMENT_OPEN):
                self._skip_block_comment()
            elif ch == '"':
                yield self._read_string(self._loc())
            elif ch in _PUNCTUATION:
                loc = self._loc()
                self._advance()
                yield Token(_PUNCTUATION[ch], None, loc)
            else:
                yield self._read_word(self._loc())


def iter_tokens(source: str, filename: str = DEFAULT_FILENAME) -> Iterator[Token]:
    """Lazily yields tokens; a LexError surfaces when the bad input is reached."""
    return iter(Lexer(source, filename))


def tokenize(source: str, filename: str = DEFAULT_FILENAME) -> List[Token]:
    """Tokenizes the whole source eagerly."""
    return list(iter_tokens(source, filename))
