"""
The core PALE interpreter: a tree-walking Evaluator over parsed expressions.
"""
import inspect
import os
import sys
from typing import Any, List, Optional, Dict

from pale.pale_datatypes import (
    Atom, Call, Expr, Symbol, Function, Builtin, Environment, Location, is_number,
    UnboundName, NotCallable, BadArguments, DivisionByZero, NumberOverflow, StepLimitExceeded,
)
from pale.pale_printer import Printer


def _accepts_evaluator(func) -> bool:
    """True when a native callable declares a keyword-only `evaluator` parameter."""
    try:
        param = inspect.signature(func).parameters.get('evaluator')
    except (TypeError, ValueError):
        return False
    return param is not None and param.kind == inspect.Parameter.KEYWORD_ONLY


def _divide(a, b):
    # Exact integer quotients stay integers.
    if isinstance(a, int) and isinstance(b, int) and a % b == 0:
        return a // b
    return a / b


class Evaluator:
    """The PALE execution engine.

    Holds the per-run state: emitted side effects, the call stack used for
    error traces and the step counter for the optional step budget.
    """
    def __init__(self, max_steps: Optional[int] = None):
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []
        self.current_node: Optional[Expr] = None
        self.max_steps = max_steps
        self.steps = 0
        self.printer = Printer()

    def reset(self):
        """Clears per-run state so the evaluator can be reused for another run."""
        self.side_effects.clear()
        self.call_stack.clear()
        self.current_node = None
        self.steps = 0

    def _dbg(self, *parts):
        if os.environ.get("PALE_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def _tick(self, node: Expr):
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise StepLimitExceeded(self.max_steps, node.loc)

    def _push_frame(self, name, func, args, call_site: Optional[Location]):
        self.call_stack.append({
            'name': name,
            'func': func,
            'args': args,
            'call_site': call_site,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def emit(self, topic_or_topics, *message_parts):
        """Records a side effect for the host application."""
        topics = topic_or_topics if isinstance(topic_or_topics, list) else [topic_or_topics]
        message = " ".join(self.printer.display(p) for p in message_parts)
        self.side_effects.append({"topics": topics, "message": message})

    # ---------------------------------------------------------------
    # Evaluation
    # ---------------------------------------------------------------

    def eval_script(self, statements: List[Expr], env: Environment) -> Any:
        """Evaluates top-level statements in order and returns the last value."""
        result = None
        for stmt in statements:
            result = self.eval(stmt, env)
        return result

    def eval(self, node: Expr, env: Environment) -> Any:
        """Recursive dispatcher for evaluating any expression node."""
        self._tick(node)
        self.current_node = node
        match node:
            case Atom(value=Symbol() as sym):
                owner = env.find_owner(sym.name)
                if owner is None:
                    raise UnboundName(sym.name, node.loc)
                return owner.bindings[sym.name]
            case Atom():
                return node.value
            case Call():
                head = self.eval(node.head, env)
                if not isinstance(head, Function):
                    raise NotCallable(head, node.head.loc).note("Only functions can be at the head of a statement.")
                args = [self.eval(arg, env) for arg in node.args]
                return self.call(head, args, node.head.loc)
            case _:
                raise TypeError(f"Cannot evaluate {node!r}")

    def call(self, func: Function, args: List[Any], call_site: Optional[Location] = None) -> Any:
        """Invokes a Function value with already-evaluated arguments.

        Builtins run inside the evaluator; native callables are invoked with
        positional arguments and whatever they raise propagates unchanged.
        """
        self._dbg("Evaluator.call", func.name, "argc", len(args))
        self._push_frame(func.name, func, args, call_site)
        match func:
            case Function(builtin=Builtin() as op):
                result = self._call_builtin(op, args, call_site)
            case Function(native=native):
                kwargs = {'evaluator': self} if _accepts_evaluator(native) else {}
                result = native(*args, **kwargs)
        # Frames are only popped on success so a failing call stays on the trace.
        self._pop_frame()
        return result

    # ---------------------------------------------------------------
    # Builtins
    # ---------------------------------------------------------------

    def _call_builtin(self, op: Builtin, args: List[Any], loc: Optional[Location]) -> Any:
        if op is Builtin.PRINT:
            if len(args) != 1:
                raise BadArguments("print requires exactly one argument!", loc).note(
                    "Try wrapping this in a statement with `$`.")
            self.emit("stdout", args[0])
            return None
        return self._arithmetic(op, args, loc)

    def _arithmetic(self, op: Builtin, args: List[Any], loc: Optional[Location]) -> Any:
        symbol = op.value
        if not args:
            raise BadArguments(f"`{symbol}` requires at least one argument!", loc)
        for arg in args:
            if not is_number(arg):
                raise BadArguments(
                    f"Incompatible operand for `{symbol}`: {self.printer.pformat(arg)} is not a number!", loc)
        result = args[0]
        for arg in args[1:]:
            try:
                match op:
                    case Builtin.ADD:
                        result = result + arg
                    case Builtin.SUBTRACT:
                        result = result - arg
                    case Builtin.MULTIPLY:
                        result = result * arg
                    case Builtin.DIVIDE:
                        if arg == 0:
                            raise DivisionByZero(loc=loc)
                        result = _divide(result, arg)
            except OverflowError as e:
                raise NumberOverflow(f"`{symbol}` overflowed: {e}", loc).note(
                    "The result does not fit in a decimal number.") from e
        return result
