"""
Defines the core data types for the PALE language runtime.

This module provides the token and location types produced by the lexer,
the expression tree built by the parser, the runtime value types the
evaluator works with, and the error classes raised by every stage.
"""

from abc import ABC
from enum import Enum
from typing import List, Dict, Any, Optional, Callable, Iterator


# =================================================================
# Source Locations and Errors
# =================================================================

class Location:
    """A position in a source text. Lines and columns are 1-based."""
    __slots__ = ("filename", "line", "col")

    def __init__(self, filename: str, line: int, col: int):
        self.filename = filename
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.col}"

    def __repr__(self) -> str:
        return f"Location({self.filename!r}, {self.line}, {self.col})"

    def __eq__(self, other):
        if not isinstance(other, Location):
            return NotImplemented
        return (self.filename, self.line, self.col) == (other.filename, other.line, other.col)

    def __hash__(self):
        return hash((self.filename, self.line, self.col))


class PaleError(Exception):
    """Base class for every error the language itself reports.

    Carries the location of the offending text (when known) and a list of
    free-form notes that hint at a fix.
    """
    default_message = "error"

    def __init__(self, message: Optional[str] = None, loc: Optional[Location] = None,
                 notes: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.loc = loc
        self.notes: List[str] = list(notes or [])
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def note(self, text: str) -> 'PaleError':
        self.notes.append(text)
        return self

    def __str__(self) -> str:
        head = f"{self.loc} - {self.message}" if self.loc else self.message
        return "\n".join([head] + [f"\tNOTE: {n}" for n in self.notes])


class LexError(PaleError):
    default_message = "malformed input"


class UnterminatedString(LexError):
    default_message = "Unterminated string literal!"


class UnterminatedComment(LexError):
    default_message = "Unterminated block comment!"


class NumberTooLarge(LexError):
    default_message = "Number literal is too large!"


class ParseError(PaleError):
    default_message = "malformed expression"


class EmptyExpression(ParseError):
    default_message = "Empty statements are not allowed!"


class UnexpectedCloseParen(ParseError):
    default_message = "Unmatched closing parenthesis!"


class UnterminatedExpression(ParseError):
    default_message = "Unmatched opening parenthesis!"


class EvalError(PaleError):
    default_message = "evaluation failed"


class UnboundName(EvalError):
    def __init__(self, name: str, loc: Optional[Location] = None):
        super().__init__(f"Unknown identifier `{name}`!", loc)
        self.name = name


class NotCallable(EvalError):
    def __init__(self, value: Any, loc: Optional[Location] = None):
        from pale.pale_printer import Printer
        super().__init__(f"{Printer().pformat(value)} is not a function!", loc)
        self.value = value


class BadArguments(EvalError):
    default_message = "invalid arguments"


class DivisionByZero(EvalError):
    default_message = "Division by zero!"


class NumberOverflow(EvalError):
    default_message = "Numeric result is too large!"


class StepLimitExceeded(EvalError):
    def __init__(self, limit: int, loc: Optional[Location] = None):
        super().__init__(f"Step limit of {limit} exceeded!", loc)
        self.limit = limit


# =================================================================
# Tokens
# =================================================================

class TokenType(Enum):
    IDENT = "identifier"
    STRING = "string"
    NUMBER = "number"
    LPAREN = "("
    RPAREN = ")"
    DOLLAR = "$"
    NIL = "nil"


class Token:
    """A single lexeme. `value` holds the identifier text, string contents or number."""
    __slots__ = ("type", "value", "loc")

    def __init__(self, type: TokenType, value: Any, loc: Location):
        self.type = type
        self.value = value
        self.loc = loc

    def __repr__(self) -> str:
        if self.type in (TokenType.LPAREN, TokenType.RPAREN, TokenType.DOLLAR):
            return f"Token<{self.type.value} @{self.loc}>"
        return f"Token<{self.type.name} {self.value!r} @{self.loc}>"

    def __eq__(self, other):
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and type(self.value) is type(other.value)
            and self.loc == other.loc
        )


# =================================================================
# Expression Tree
# =================================================================

class Symbol:
    """A bare name inside an Atom, e.g. `print` in `(print 1)`."""
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Symbol<{self.name!r}>"

    def __eq__(self, other):
        return isinstance(other, Symbol) and self.name == other.name

    def __hash__(self):
        return hash(self.name)


class Expr(ABC):
    """Abstract base class for expression tree nodes."""
    loc: Optional[Location] = None


class Atom(Expr):
    """A literal (str, int, float, or None for `nil`) or a Symbol reference."""
    __slots__ = ("value", "loc")

    def __init__(self, value: Any, loc: Optional[Location] = None):
        self.value = value
        self.loc = loc

    @property
    def is_symbol(self) -> bool:
        return isinstance(self.value, Symbol)

    def __repr__(self) -> str:
        return f"Atom({self.value!r})"

    # Equality is structural: locations do not take part.
    def __eq__(self, other):
        return (
            isinstance(other, Atom)
            and type(self.value) is type(other.value)
            and self.value == other.value
        )

    def __hash__(self):
        return hash((type(self.value), self.value))


class Call(Expr):
    """A parenthesized call `(head arg*)`. The head is mandatory."""
    __slots__ = ("head", "args", "loc")

    def __init__(self, head: Expr, args: Optional[List[Expr]] = None, loc: Optional[Location] = None):
        if head is None:
            raise ValueError("Call must have a head expression.")
        self.head = head
        self.args = tuple(args or ())
        self.loc = loc

    def __iter__(self) -> Iterator[Expr]:
        yield self.head
        yield from self.args

    def __len__(self) -> int:
        return 1 + len(self.args)

    def __repr__(self) -> str:
        return f"Call({self.head!r}, {list(self.args)!r})"

    def __eq__(self, other):
        return isinstance(other, Call) and self.head == other.head and self.args == other.args

    def __hash__(self):
        return hash((self.head, self.args))


# =================================================================
# Runtime Values
# =================================================================

class Builtin(Enum):
    """Markers for functions implemented inside the evaluator."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    PRINT = "print"


class Function:
    """A first-class function value.

    Exactly one of `native` (a host Python callable) or `builtin` (a marker
    the evaluator dispatches on) is set.
    """
    __slots__ = ("name", "native", "builtin")

    def __init__(self, name: str, native: Optional[Callable[..., Any]] = None,
                 builtin: Optional[Builtin] = None):
        if (native is None) == (builtin is None):
            raise ValueError("Function needs exactly one of a native callable or a builtin marker.")
        self.name = name
        self.native = native
        self.builtin = builtin

    @classmethod
    def wrap(cls, name: str, value: Any) -> 'Function':
        """Coerce a Python callable (or an existing Function) into a Function value."""
        if isinstance(value, Function):
            return value
        if isinstance(value, Builtin):
            return cls(name, builtin=value)
        if not callable(value):
            raise TypeError(f"Cannot bind non-callable {value!r} as function {name!r}")
        return cls(name, native=value)

    @property
    def is_builtin(self) -> bool:
        return self.builtin is not None

    def __repr__(self) -> str:
        return f"<Function {self.name}>"

    def __eq__(self, other):
        if not isinstance(other, Function):
            return NotImplemented
        return self.builtin is other.builtin and self.native is other.native

    def __hash__(self):
        return hash((self.builtin, id(self.native)))


def is_number(value: Any) -> bool:
    """Numbers are ints and floats; bools are excluded even though Python treats them as ints."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# =================================================================
# Environment
# =================================================================

class Environment:
    """Maps names to values, falling back to an optional parent environment.

    A run uses a single flat global environment; the parent chain exists so a
    host can layer its own bindings over a shared seed without copying it.
    """
    def __init__(self, bindings: Optional[Dict[str, Any]] = None,
                 parent: Optional['Environment'] = None):
        self.bindings: Dict[str, Any] = {}
        self.parent = parent
        for name, value in (bindings or {}).items():
            self[name] = value

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Environment key must be a str, not {type(key)}")
        if isinstance(value, Builtin) or (callable(value) and not isinstance(value, Function)):
            value = Function.wrap(key, value)
        self.bindings[key] = value

    def __getitem__(self, key: str) -> Any:
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        raise KeyError(f"'{key}'")

    def __delitem__(self, key: str):
        if key not in self.bindings:
            raise KeyError(f"'{key}'")
        del self.bindings[key]

    def __contains__(self, key: Any) -> bool:
        return isinstance(key, str) and self.find_owner(key) is not None

    def find_owner(self, key: str) -> Optional['Environment']:
        """Finds the Environment in the parent chain that binds key."""
        env = self
        while env is not None:
            if key in env.bindings:
                return env
            env = env.parent
        return None

    def get(self, key: str, default: Any = None) -> Any:
        owner = self.find_owner(key)
        if owner is not None:
            return owner.bindings[key]
        return default

    def keys(self) -> List[str]:
        """All visible names, innermost bindings first."""
        seen: List[str] = []
        env = self
        while env is not None:
            seen.extend(k for k in env.bindings if k not in seen)
            env = env.parent
        return seen

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Environment bindings=[{keys}]{parent_id}>"
