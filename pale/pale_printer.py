"""
A pretty-printer for PALE values, tokens and expression trees.
"""
from pale.pale_datatypes import (
    Atom, Call, Function, Symbol, Token, TokenType, Environment
)


class Printer:
    """Formats PALE objects as readable, valid PALE source strings.

    With `sugar=True`, a call whose last argument is itself a call is
    written with `$` instead of a nested pair of parentheses.
    """

    def __init__(self, sugar: bool = False):
        self.sugar = sugar
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format an object."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            if isinstance(obj, (list, tuple)):
                return "\n".join(self.pformat(o) for o in obj)
            return repr(obj)
        return handler(obj)

    def display(self, value) -> str:
        """The text `print` writes: strings unquoted, everything else as pformat."""
        if isinstance(value, str):
            return value
        return self.pformat(value)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_int,
            float: self._pformat_primitive,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            Symbol: self._pformat_symbol,
            Atom: self._pformat_atom,
            Call: self._pformat_call,
            Function: self._pformat_function,
            Token: self._pformat_token,
            Environment: self._pformat_environment,
        }

    def _pformat_primitive(self, obj):
        return str(obj)

    def _pformat_int(self, obj):
        try:
            return str(obj)
        except ValueError:
            # Past the int-to-decimal digit limit; hex has no such limit.
            return f"{obj:#x}"

    def _pformat_str(self, obj):
        # No escapes exist in the language, so the text goes in verbatim.
        return f'"{obj}"'

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj):
        return 'nil'

    def _pformat_symbol(self, obj):
        return obj.name

    def _pformat_atom(self, obj):
        return self.pformat(obj.value)

    def _pformat_function(self, obj):
        return f"<function {obj.name}>"

    def _pformat_call(self, obj):
        return f"({self._call_body(obj)})"

    def _call_body(self, call):
        parts = [self.pformat(call.head)]
        args = list(call.args)
        tail = None
        if self.sugar and args and isinstance(args[-1], Call):
            tail = args.pop()
        parts.extend(self.pformat(a) for a in args)
        if tail is not None:
            parts.append(f"$ {self._call_body(tail)}")
        return " ".join(parts)

    def _pformat_token(self, obj):
        if obj.type in (TokenType.LPAREN, TokenType.RPAREN, TokenType.DOLLAR):
            return f"{obj.loc} {obj.type.value}"
        value = obj.value if obj.type is TokenType.IDENT else self.pformat(obj.value)
        return f"{obj.loc} {obj.type.name} {value}"

    def _pformat_environment(self, obj):
        return "{" + ", ".join(obj.keys()) + "}"
