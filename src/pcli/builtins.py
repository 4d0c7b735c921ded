## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from . import operators
from .errors import PcliNameError
from .library import Library


def get_builtin_name(py_name: str) -> str:
    """Map an `op_` Python function name to the name scripts call it by."""
    if not py_name.startswith("op_"):
        raise PcliNameError(f"Builtin function `{py_name}` requires prefix `op_` by convention.", pcl_token=py_name)
    name = py_name[3:]
    return name[:-2] + '?' if name.endswith('_q') else name


def load_builtins_library() -> Library:
    aliases = {'run': 'cmd'}
    lib = Library(builtins={}, aliases=aliases)

    for k in dir(operators):
        if not k.startswith('op_'): continue
        lib.add_builtin(get_builtin_name(k), getattr(operators, k))

    lib.ensure_consistent()
    return lib
