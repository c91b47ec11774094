# pale_runtime.py

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional

from pale.pale_datatypes import Builtin, Environment, Function, Location, PaleError
from pale.pale_interpreter import Evaluator
from pale.pale_lexer import DEFAULT_FILENAME
from pale.pale_parser import parse_source
from pale.pale_printer import Printer
from pale.pale_profile import Profile

# ===================================================================
# 1. Host API
# ===================================================================


def pale_api_method(func):
    """A decorator to explicitly mark host methods as safe for PALE execution."""
    func._is_pale_api = True
    return func


# ===================================================================
# 2. The Standard Library
# ===================================================================

class StdLib:
    """The default functions a runner exposes.

    The arithmetic operators and `print` are builtins executed by the
    evaluator. The remaining entries are plain Python methods; a leading
    underscore is dropped and underscores become dashes (`_to_str` -> `to-str`).
    """
    BUILTINS = {op.value: op for op in Builtin}

    def _concat(self, *parts):
        printer = Printer()
        return "".join(printer.display(p) for p in parts)

    def _to_str(self, value):
        return Printer().display(value)

    def _apply(self, func, *args, evaluator):
        if not isinstance(func, Function):
            raise TypeError(f"apply expects a function, got {Printer().pformat(func)}")
        return evaluator.call(func, list(args))

    def bindings(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.BUILTINS)
        for name, member in inspect.getmembers(self):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                out[name[1:].replace('_', '-')] = member
        return out


# ===================================================================
# 3. Script Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution.

    `error_token` holds the `line`, `col` and `filename` the error points at,
    when it points anywhere.
    """
    status: Literal['success', 'error']
    value: Any = None
    error: Optional[BaseException] = None
    error_message: Optional[str] = None
    error_token: Optional[Dict[str, Any]] = None
    side_effects: List[Dict] = field(default_factory=list)

    @property
    def stdout(self) -> List[str]:
        return [e.get('message', '') for e in self.side_effects if e.get('topics') == ['stdout']]

    def format_error(self) -> str:
        """Prefixes the error message with the line and column it points at."""
        if self.status != 'error':
            return ""
        msg = self.error_message or "Unknown error"
        if not self.error_token:
            return msg
        return f"Error on line {self.error_token['line']}, col {self.error_token['col']}: {msg}"


def _source_context(source: str, loc: Location, radius: int = 2) -> str:
    """Up to `radius` lines either side of loc, with a caret under its column."""
    lines = source.splitlines()
    if not 1 <= loc.line <= len(lines):
        return ""
    first = max(1, loc.line - radius)
    last = min(len(lines), loc.line + radius)
    width = len(str(last))
    out = []
    for n in range(first, last + 1):
        marker = ">" if n == loc.line else " "
        out.append(f"{marker} {str(n).rjust(width)} | {lines[n - 1]}")
        if n == loc.line:
            out.append(f"  {' ' * width} | {' ' * (loc.col - 1)}^")
    return "\n".join(out)


class ScriptRunner:
    """Lexes, parses and executes PALE code against host-chosen bindings.

    Scripts can only reach what the host registers here: there is no
    built-in file, network or process access, and `print` merely records a
    side effect that the host decides whether to show. A runner created with
    `load_stdlib=False` exposes nothing at all until the host registers it.
    """

    def __init__(self, host_object: Optional[Any] = None, load_stdlib: bool = True,
                 profile: Optional[Profile] = None, max_steps: Optional[int] = None,
                 filename: str = DEFAULT_FILENAME):
        self.host_object = host_object
        self.profile = profile
        self.filename = filename
        self.root_scope = Environment()
        self.printer = Printer()

        if max_steps is None and profile is not None:
            max_steps = profile.max_steps
        self.evaluator = Evaluator(max_steps=max_steps)

        if load_stdlib:
            available = StdLib().bindings()
            if profile is not None:
                available = profile.select(available)
            for name, value in available.items():
                self.root_scope[name] = value

        self._bind_host_api_methods()

    # --- Registration ---

    def register(self, name: str, function: Optional[Callable] = None):
        """Binds a native function under name. Without a function, acts as a decorator."""
        if function is None:
            def decorator(fn):
                self.register(name, fn)
                return fn
            return decorator
        self.root_scope[name] = Function.wrap(name, function)
        return function

    def unregister(self, name: str):
        del self.root_scope[name]

    def bindings(self) -> List[str]:
        return sorted(self.root_scope.keys())

    def _bind_host_api_methods(self):
        """Bind @pale_api_method methods of the host into the root scope (kebab-case)."""
        host = self.host_object
        if host is None:
            return
        for name, member in inspect.getmembers(host):
            if callable(member) and getattr(member, "_is_pale_api", False):
                self.register(name.replace("_", "-"), member)

    def new_environment(self) -> Environment:
        """A fresh flat global environment holding a copy of the registered bindings."""
        return Environment(dict(self.root_scope.bindings))

    # --- Running ---

    def run(self, source_code: str, environment: Optional[Environment] = None) -> Any:
        """Executes a script and returns the value of its last statement.

        Raises the first LexError, ParseError or EvalError encountered, or the
        exception of a failing native function unchanged.
        """
        self.evaluator.reset()
        statements = parse_source(source_code, self.filename)
        env = environment if environment is not None else self.new_environment()
        return self.evaluator.eval_script(statements, env)

    def handle_script(self, source_code: str, environment: Optional[Environment] = None) -> ExecutionResult:
        """The main entry point for hosts: runs a script and never raises."""
        try:
            value = self.run(source_code, environment)
        except Exception as e:
            err_msg, err_token = self._format_runtime_error(e, source_code)
            self.evaluator.side_effects.append({'topics': ['stderr'], 'message': err_msg})
            return ExecutionResult(
                status='error',
                error=e,
                error_message=err_msg,
                error_token=err_token,
                side_effects=list(self.evaluator.side_effects),
            )
        return ExecutionResult(
            status='success',
            value=value,
            side_effects=list(self.evaluator.side_effects),
        )

    # --- Error formatting ---

    def _describe(self, value) -> str:
        # Trace arguments are arbitrary host values.
        try:
            return self.printer.pformat(value)
        except Exception:
            return f"<{type(value).__name__}>"

    def _error_location(self, e) -> Optional[Location]:
        if isinstance(e, PaleError):
            return e.loc
        # Native errors: blame the innermost call still on the stack.
        stack = self.evaluator.call_stack
        if stack and stack[-1]['call_site'] is not None:
            return stack[-1]['call_site']
        return getattr(self.evaluator.current_node, 'loc', None)

    def _format_runtime_error(self, e, source: str) -> tuple[str, Optional[Dict[str, Any]]]:
        match e:
            case PaleError():
                lines = [f"{e.kind}: {e.message}"]
                notes = e.notes
            case _:
                try:
                    detail = str(e)
                except Exception:
                    detail = "<unprintable error>"
                lines = [f"{type(e).__name__}: {detail}"]
                notes = []

        token = None
        loc = self._error_location(e)
        if loc is not None:
            token = {'line': loc.line, 'col': loc.col, 'filename': loc.filename}
            lines.append(f"({loc})")
            context = _source_context(source, loc)
            if context:
                lines.append(context)
        lines.extend(f"NOTE: {note}" for note in notes)

        trace = self._format_stacktrace()
        if trace:
            lines.append(trace)
        return "\n".join(lines), token

    def _format_stacktrace(self) -> str:
        frames = []
        for frame in self.evaluator.call_stack:
            parts = [frame['name']] + [self._describe(a) for a in frame['args']]
            frames.append(f"({' '.join(parts)})")
        return "pale stacktrace: " + " ".join(frames) if frames else ""


def default_environment() -> Environment:
    """An environment seeded with the full standard library."""
    return ScriptRunner().new_environment()


def run(source_code: str, environment: Optional[Environment] = None) -> Any:
    """Runs a script against `environment`, or the standard library when omitted."""
    return ScriptRunner().run(source_code, environment)
