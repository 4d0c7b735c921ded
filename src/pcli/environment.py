## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from contextlib import contextmanager
from dataclasses import dataclass, field

from .types import Function, Value
from .errors import PcliNameError


@dataclass
class Frame:
    parent: int | None
    boundary: bool                # Call frames: variable lookup stops here.
    variables: dict[str, Value] = field(default_factory=dict)
    functions: dict[str, Function] = field(default_factory=dict)


class Environment:
    """Name bindings of a run, kept as a stack of frames linked by index.

    Loop bodies push a child frame that sees its parent's variables; function calls push
    a boundary frame that starts empty.  A `declare` of a name that is already visible
    updates it where it lives, so only names new to a loop body disappear with it.
    User functions resolve through every enclosing frame, builtins through the shared
    library held by the interpreter.
    """

    def __init__(self):
        self.frames: list[Frame] = [Frame(parent=None, boundary=True)]
        self.current = 0

    @property
    def frame(self) -> Frame:
        return self.frames[self.current]

    @property
    def depth(self) -> int:
        return len(self.frames) - 1

    @contextmanager
    def scope(self, *, call: bool = False):
        self.frames.append(Frame(parent=self.current, boundary=call))
        outer, self.current = self.current, len(self.frames) - 1
        try:
            yield self.frame
        finally:
            self.frames.pop()
            self.current = outer

    # Variables ───────────────────────────────────────────────────────────────────────────────
    def _owner(self, name: str) -> Frame | None:
        index = self.current
        while index is not None:
            frame = self.frames[index]
            if name in frame.variables: return frame
            if frame.boundary: return None
            index = frame.parent
        return None

    def is_defined(self, name: str) -> bool:
        return self._owner(name) is not None

    def lookup(self, name: str) -> Value:
        if (owner := self._owner(name)) is None:
            raise PcliNameError(f"Undefined name `{name}`.", pcl_token=name)
        return owner.variables[name]

    def declare(self, name: str, value: Value) -> None:
        owner = self._owner(name) or self.frame
        owner.variables[name] = value

    def bind(self, name: str, value: Value) -> None:
        self.frame.variables[name] = value

    def assign(self, name: str, value: Value) -> None:
        if (owner := self._owner(name)) is None:
            raise PcliNameError(f"Cannot assign to undeclared name `{name}`; declare it with `let` first.", pcl_token=name)
        owner.variables[name] = value

    def variables(self) -> dict[str, Value]:
        """Every variable visible from the current frame, innermost binding first."""
        visible, index = {}, self.current
        while index is not None:
            frame = self.frames[index]
            for name, value in frame.variables.items():
                visible.setdefault(name, value)
            if frame.boundary: break
            index = frame.parent
        return visible

    # Functions ───────────────────────────────────────────────────────────────────────────────
    def define_function(self, name: str, fn: Function) -> None:
        self.frame.functions[name] = fn

    def resolve_function(self, name: str) -> Function | None:
        index = self.current
        while index is not None:
            frame = self.frames[index]
            if (fn := frame.functions.get(name)) is not None:
                return fn
            index = frame.parent
        return None
