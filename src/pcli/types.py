## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any
from dataclasses import dataclass

from .nodes import Block


@dataclass(frozen=True)
class Function:
    """User-defined callable, from a declaration or a `fn` literal.  Captures nothing."""
    name: str
    params: tuple[str, ...]
    body: Block

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self):
        return f"<fn {self.name}>"


# Values are immutable: numbers are always floats and lists are tuples.
Value = float | str | bool | tuple | Function


TYPE_NAME_MAP: dict[type, str] = {
    float: 'number', str: 'string', bool: 'boolean', tuple: 'list', Function: 'function',
}


def type_name(value: Any) -> str:
    if value is None: return 'nothing'
    return TYPE_NAME_MAP.get(type(value), type(value).__name__)


def is_number(value: Any) -> bool:
    # `bool` is not a float subclass, so booleans never pass as numbers.
    return isinstance(value, float)


def is_value(value: Any) -> bool:
    if isinstance(value, tuple): return all(is_value(v) for v in value)
    return isinstance(value, (float, str, bool, Function))
