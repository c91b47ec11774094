"""PALE: a small embeddable s-expression scripting language."""

from pale.pale_datatypes import (
    Location, Token, TokenType, Symbol, Expr, Atom, Call, Builtin, Function, Environment,
    PaleError, LexError, UnterminatedString, UnterminatedComment, NumberTooLarge,
    ParseError, EmptyExpression, UnexpectedCloseParen, UnterminatedExpression,
    EvalError, UnboundName, NotCallable, BadArguments, DivisionByZero, NumberOverflow,
    StepLimitExceeded,
)
from pale.pale_lexer import tokenize, iter_tokens
from pale.pale_parser import parse, parse_source, NestingTooDeep
from pale.pale_interpreter import Evaluator
from pale.pale_printer import Printer
from pale.pale_profile import Profile, ProfileError, load_profile, parse_profile
from pale.pale_runtime import (
    ScriptRunner, ExecutionResult, StdLib, pale_api_method, default_environment, run
)

__all__ = [
    "Location", "Token", "TokenType", "Symbol", "Expr", "Atom", "Call", "Builtin",
    "Function", "Environment",
    "PaleError", "LexError", "UnterminatedString", "UnterminatedComment", "NumberTooLarge",
    "ParseError", "EmptyExpression", "UnexpectedCloseParen", "UnterminatedExpression",
    "NestingTooDeep",
    "EvalError", "UnboundName", "NotCallable", "BadArguments", "DivisionByZero", "NumberOverflow",
    "StepLimitExceeded",
    "tokenize", "iter_tokens", "parse", "parse_source", "Evaluator", "Printer",
    "Profile", "ProfileError", "load_profile", "parse_profile",
    "ScriptRunner", "ExecutionResult", "StdLib", "pale_api_method",
    "default_environment", "run",
]
