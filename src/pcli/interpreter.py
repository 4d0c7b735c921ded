## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
import math
from dataclasses import dataclass

from .nodes import *
from .types import Function, Value, type_name, is_number
from .errors import PcliError, PcliNameError, PcliTypeError, PcliArityError, PcliValueError, PcliRuntimeError
from .library import Library
from .environment import Environment
from .formatting import show_step, show_call


# Each script-level call costs about a dozen Python frames; long operator chains two per term.
RECURSION_LIMIT = 50_000

def ensure_recursion_limit(limit: int = RECURSION_LIMIT) -> None:
    if sys.getrecursionlimit() < limit:
        sys.setrecursionlimit(limit)


## CONTROL-FLOW SIGNALS
class Signal:
    __slots__ = ()

@dataclass(frozen=True)
class Normal(Signal):
    pass

@dataclass(frozen=True)
class Returned(Signal):
    value: Value | None = None

@dataclass(frozen=True)
class Broken(Signal):
    pass

@dataclass(frozen=True)
class Continued(Signal):
    pass

NORMAL, BROKEN, CONTINUED = Normal(), Broken(), Continued()


## OPERATORS
def _divide(b: float, a: float) -> float:
    if a == 0: raise PcliValueError("Division by zero.")
    return b / a

def _modulo(b: float, a: float) -> float:
    if a == 0: raise PcliValueError("Modulo by zero.")
    return math.fmod(b, a)

_NUMBER_OPS = {
    Operator.ADD: lambda b, a: b + a,
    Operator.SUBTRACT: lambda b, a: b - a,
    Operator.MULTIPLY: lambda b, a: b * a,
    Operator.DIVIDE: _divide,
    Operator.MODULO: _modulo,
    Operator.EQUALS: lambda b, a: b == a,
    Operator.NOT_EQUALS: lambda b, a: b != a,
    Operator.LESS_THAN: lambda b, a: b < a,
    Operator.GREATER_THAN: lambda b, a: b > a,
    Operator.LESS_THAN_OR_EQUALS: lambda b, a: b <= a,
    Operator.GREATER_THAN_OR_EQUALS: lambda b, a: b >= a,
}
_BOOLEAN_OPS = {
    Operator.AND: lambda b, a: b and a,
    Operator.OR: lambda b, a: b or a,
    Operator.EQUALS: lambda b, a: b == a,
    Operator.NOT_EQUALS: lambda b, a: b != a,
}
_STRING_OPS = {
    Operator.EQUALS: lambda b, a: b == a,
    Operator.NOT_EQUALS: lambda b, a: b != a,
}


def apply_infix(left: Value, op: Operator, right: Value) -> Value:
    table = None
    if is_number(left) and is_number(right): table = _NUMBER_OPS
    elif isinstance(left, bool) and isinstance(right, bool): table = _BOOLEAN_OPS
    elif isinstance(left, str) and isinstance(right, str): table = _STRING_OPS

    if table is None or (fn := table.get(op)) is None:
        raise PcliTypeError(f"Unsupported operation: {type_name(left)} {op.symbol} {type_name(right)}.")
    return fn(left, right)


def apply_prefix(op: Operator, operand: Value) -> Value:
    if op is Operator.SUBTRACT and is_number(operand): return -operand
    if op is Operator.BANG and isinstance(operand, bool): return not operand
    raise PcliTypeError(f"Unsupported operation: {op.symbol}{type_name(operand)}.")


class Interpreter:
    """Tree-walking evaluator; one instance holds the top-level environment of a run."""

    def __init__(self, library: Library, verbosity: int = 0, stats: dict | None = None):
        self.library = library
        self.env = Environment()
        self.verbosity = verbosity
        self.stats = stats
        self.steps = 0
        ensure_recursion_limit()

    def run(self, program: Program) -> Value | None:
        """Execute top-level statements in order; the value of a top-level `return` is the result."""
        try:
            signal = self.execute_block(program)
        except RecursionError:
            raise PcliRuntimeError("Maximum recursion depth exceeded; expression or call nesting is too deep.") from None

        match signal:
            case Returned(value):
                return value
            case Normal():
                return None
            case signal:
                raise PcliRuntimeError(f"Control-flow signal `{type(signal).__name__}` escaped the program.")

    # Statements ──────────────────────────────────────────────────────────────────────────────
    def execute_block(self, block) -> Signal:
        for stmt in block:
            if (signal := self.execute(stmt)) is not NORMAL:
                return signal
        return NORMAL

    def execute(self, stmt: Statement) -> Signal:
        self.steps += 1
        if self.stats is not None:
            self.stats['steps'] = self.stats.get('steps', 0) + 1
        if self.verbosity == 2:
            show_step(self.steps, stmt, depth=self.env.depth)

        try:
            return self._execute(stmt)
        except PcliError as exc:
            if exc.pcl_line is None:
                exc.pcl_line, exc.pcl_node = stmt.line, stmt
            raise

    def _execute(self, stmt: Statement) -> Signal:
        match stmt:
            case Let(name, value):
                if (result := self.evaluate(value)) is None:
                    raise PcliValueError(f"Cannot bind `{name}` with `let`: initializer produced no value.", pcl_token=name)
                self.env.declare(name, result)
                return NORMAL

            case FunctionDeclaration(name, params, body):
                self.env.define_function(name, Function(name, params, body))
                return NORMAL

            case If(condition, then, otherwise):
                test = self.evaluate(condition)
                if not isinstance(test, bool):
                    raise PcliTypeError(f"Condition of `if` must be a boolean, got {type_name(test)}.")
                if test:
                    return self.execute_block(then)
                return self.execute_block(otherwise) if otherwise is not None else NORMAL

            case Loop(body, name, iterable) if iterable is not None:
                items = self.evaluate(iterable)
                if not isinstance(items, tuple):
                    raise PcliTypeError(f"Loop over `{name}` requires a list, got {type_name(items)}.", pcl_token=name)
                with self.env.scope():
                    for item in items:
                        self.env.declare(name, item)
                        match self.execute_block(body):
                            case Broken(): return NORMAL
                            case Returned() as signal: return signal
                return NORMAL

            case Loop(body):
                with self.env.scope():
                    while True:
                        match self.execute_block(body):
                            case Broken(): return NORMAL
                            case Returned() as signal: return signal

            case Return(value):
                return Returned(self.evaluate(value) if value is not None else None)

            case Break():
                return BROKEN

            case Continue():
                return CONTINUED

            case ExpressionStatement(expression):
                self.evaluate(expression)
                return NORMAL

        raise PcliRuntimeError(f"Unknown statement type `{type(stmt).__name__}`.")

    # Expressions ─────────────────────────────────────────────────────────────────────────────
    def evaluate(self, expr: Expression) -> Value | None:
        match expr:
            case Number(value) | String(value) | Boolean(value):
                return value

            case Identifier(name):
                return self.env.lookup(name)

            case Infix(left, op, right):
                lhs = self._evaluate_value(left, f"left operand of `{op.symbol}`")
                rhs = self._evaluate_value(right, f"right operand of `{op.symbol}`")
                return apply_infix(lhs, op, rhs)

            case Prefix(op, operand):
                return apply_prefix(op, self._evaluate_value(operand, f"operand of `{op.symbol}`"))

            case List(elements):
                return tuple(self._evaluate_value(e, "list element") for e in elements)

            case Assign(Identifier(name), value):
                self.env.assign(name, self._evaluate_value(value, f"assignment to `{name}`"))
                return None

            case Assign(target, _):
                raise PcliTypeError(f"Invalid assignment target `{type(target).__name__}`; only names can be assigned.")

            case FunctionLiteral(params, body):
                return Function('anonymous', params, body)

            case Call(callee, arguments):
                return self.call(callee, arguments)

            case Get(target, name):
                return self._get(self._evaluate_value(target, f"target of `.{name}`"), name)

            case Index(target, index):
                container = self._evaluate_value(target, "indexed value")
                return self._index(container, self._evaluate_value(index, "index"))

        raise PcliRuntimeError(f"Unknown expression type `{type(expr).__name__}`.")

    def _evaluate_value(self, expr: Expression, role: str) -> Value:
        if (value := self.evaluate(expr)) is None:
            raise PcliValueError(f"Expected a value for {role}, but the expression produced none.")
        return value

    def _get(self, target: Value, name: str) -> Value:
        if name == 'len' and isinstance(target, (tuple, str)):
            return float(len(target))
        raise PcliTypeError(f"Unknown member `{name}` on {type_name(target)}.", pcl_token=name)

    def _index(self, container: Value, index: Value) -> Value:
        if not isinstance(container, (tuple, str)):
            raise PcliTypeError(f"Cannot index into {type_name(container)}.")
        if not is_number(index) or not index.is_integer():
            raise PcliTypeError(f"List index must be a whole number, got {type_name(index)}.")
        if not 0 <= index < len(container):
            raise PcliValueError(f"Index {int(index)} out of range for {type_name(container)} of length {len(container)}.")
        return container[int(index)]

    # Calls ───────────────────────────────────────────────────────────────────────────────────
    def call(self, callee: Expression, arguments) -> Value | None:
        if isinstance(callee, Identifier):
            name = callee.name
            if self.library.has_builtin(name):
                args = self._evaluate_arguments(name, arguments)
                self.library.check_arguments(name, args)
                if self.verbosity >= 1:
                    show_call(name, args, depth=self.env.depth)
                self.library.get_builtin(name)(*args)
                return None
            if (fn := self.env.resolve_function(name)) is None:
                if not self.env.is_defined(name):
                    raise PcliNameError(f"Undefined function `{name}`.", pcl_token=name)
                fn = self.env.lookup(name)
        else:
            name, fn = None, self._evaluate_value(callee, "callee")

        if not isinstance(fn, Function):
            raise PcliTypeError(f"Cannot call {type_name(fn)}{f' `{name}`' if name else ''}; only functions are callable.", pcl_token=name)
        return self.call_function(fn, self._evaluate_arguments(fn.name, arguments))

    def _evaluate_arguments(self, name: str, arguments) -> list[Value]:
        return [self._evaluate_value(a, f"argument {i+1} of `{name}`") for i, a in enumerate(arguments)]

    def call_function(self, fn: Function, args: list[Value]) -> Value | None:
        if len(args) != fn.arity:
            raise PcliArityError(f"Function `{fn.name}` takes {fn.arity} argument(s) but {len(args)} were given.",
                                 pcl_token=fn.name, expected=fn.arity, received=len(args))
        if self.stats is not None:
            self.stats['calls'] = self.stats.get('calls', 0) + 1
        if self.verbosity >= 1:
            show_call(fn.name, args, depth=self.env.depth)

        try:
            with self.env.scope(call=True):
                for param, arg in zip(fn.params, args):
                    self.env.bind(param, arg)
                signal = self.execute_block(fn.body)
        except RecursionError:
            raise PcliRuntimeError(f"Maximum recursion depth exceeded in `{fn.name}`.", pcl_token=fn.name) from None

        match signal:
            case Returned(value): return value
            case _: return None
