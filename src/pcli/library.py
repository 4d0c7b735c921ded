## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import inspect
from typing import Any, Callable
from dataclasses import dataclass, field

from .errors import PcliNameError, PcliArityError


Builtin = Callable[..., Any]


@dataclass
class Library:
    """Host-provided operations callable by name, shared by every scope of a run."""
    builtins: dict[str, Builtin]
    aliases: dict[str, str] = field(default_factory=dict)
    signatures: dict[str, inspect.Signature | None] = field(default_factory=dict)

    # Registration helpers
    def add_builtin(self, name: str, fn: Builtin) -> None:
        if not callable(fn):
            raise TypeError(f"Builtin `{name}` must be callable, got {type(fn).__name__}.")
        self.builtins[name] = fn
        self.signatures[name] = _signature(fn)

    def add_alias(self, alias: str, name: str) -> None:
        self.aliases[alias] = name

    def ensure_consistent(self) -> None:
        for alias, name in self.aliases.items():
            assert name in self.builtins, f"Alias `{alias}` refers to unknown builtin `{name}`."

    def has_builtin(self, name: str) -> bool:
        return self.aliases.get(name, name) in self.builtins

    def get_builtin(self, name: str) -> Builtin:
        resolved_name = self.aliases.get(name, name)
        if (builtin := self.builtins.get(resolved_name)) is not None:
            return builtin
        raise PcliNameError(f"Builtin `{name}` not found in library.", pcl_token=name)

    def check_arguments(self, name: str, args: list) -> None:
        """Raise `PcliArityError` if the builtin cannot accept this many arguments."""
        resolved_name = self.aliases.get(name, name)
        if (sig := self.signatures.get(resolved_name)) is None: return
        try:
            sig.bind(*args)
        except TypeError as exc:
            raise PcliArityError(f"Builtin `{name}` cannot be called with {len(args)} argument(s): {exc}.",
                                 pcl_token=name, received=len(args)) from None

    def names(self) -> list[str]:
        return sorted({*self.builtins, *self.aliases})


def _signature(fn: Builtin) -> inspect.Signature | None:
    try:
        return inspect.signature(fn)
    except (TypeError, ValueError):  # Some C callables have no introspectable signature.
        return None
