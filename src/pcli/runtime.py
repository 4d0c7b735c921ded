## pcli — Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any, Callable

from .nodes import Program
from .types import Function, Value, is_value
from .parser import parse
from .library import Library
from .builtins import load_builtins_library
from .interpreter import Interpreter


class Runtime:
    """Minimal runtime facade focused on embedding and extension."""

    def __init__(self, library: Library | None = None):
        self.library = library or load_builtins_library()
        self.session: Interpreter | None = None

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def parse(self, source: str, filename: str | None = None) -> Program:
        return parse(source, filename=filename)

    def run(self, source: str, filename: str | None = None, verbosity: int = 0,
            stats: dict | None = None, interactive: bool = False) -> Value | None:
        """Parse then execute a script; `interactive` keeps top-level names between calls."""
        program = self.parse(source, filename=filename)
        return self.execute(program, verbosity=verbosity, stats=stats, interactive=interactive)

    def execute(self, program: Program, verbosity: int = 0, stats: dict | None = None,
                interactive: bool = False) -> Value | None:
        if interactive:
            if self.session is None:
                self.session = Interpreter(self.library)
            interpreter = self.session
            interpreter.verbosity, interpreter.stats = verbosity, stats
        else:
            interpreter = Interpreter(self.library, verbosity=verbosity, stats=stats)
        return interpreter.run(program)

    def reset(self) -> None:
        self.session = None

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_builtin(self, name: str, func: Callable) -> None:
        self.library.add_builtin(name, func)

    def register_alias(self, alias: str, name: str) -> None:
        self.library.add_alias(alias, name)
        self.library.ensure_consistent()

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def list_builtins(self) -> list[str]:
        return self.library.names()

    def is_function(self, x: Any) -> bool:
        return isinstance(x, Function)

    def to_value(self, obj: Any) -> Value:
        """Convert a Python object into a script value: ints become floats, lists become tuples."""
        if isinstance(obj, bool) or isinstance(obj, (str, Function)): return obj
        if isinstance(obj, (int, float)): return float(obj)
        if isinstance(obj, (list, tuple)): return tuple(self.to_value(x) for x in obj)
        raise TypeError(f"Cannot convert {type(obj).__name__} to a script value.")

    def from_value(self, value: Value) -> Any:
        assert value is None or is_value(value), f"Not a script value: {value!r}"
        if isinstance(value, tuple): return [self.from_value(v) for v in value]
        return value
