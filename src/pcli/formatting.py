## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
import sys

from .nodes import *
from .types import Function


def format_number(x: float) -> str:
    if x != x or x in (float('inf'), float('-inf')): return str(x)
    return str(int(x)) if x.is_integer() else repr(x)

def format_value(value) -> str:
    """Render a value the way `print` shows it: strings raw, lists as `[ a, b ]`."""
    if isinstance(value, bool): return str(value).lower()
    if isinstance(value, float): return format_number(value)
    if isinstance(value, str): return value
    if isinstance(value, tuple):
        return '[ ' + ', '.join(format_value(v) for v in value) + ' ]'
    if isinstance(value, Function): return repr(value)
    if value is None: return ''
    return str(value)

def format_item(value) -> str:
    """Like `format_value` but with strings quoted, for echoing results and traces."""
    if isinstance(value, str): return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'
    if isinstance(value, tuple): return '[' + ', '.join(format_item(v) for v in value) + ']'
    return format_value(value)


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))


def _params(params) -> str:
    return '(' + ', '.join(params) + ')'

def format_expression(expr: Expression) -> str:
    match expr:
        case Number(value): return format_number(value)
        case String(value): return format_item(value)
        case Boolean(value): return 'true' if value else 'false'
        case Identifier(name): return name
        case Assign(target, value): return f"{target.name} = {format_expression(value)}"
        case Infix(left, op, right): return f"({format_expression(left)} {op.symbol} {format_expression(right)})"
        case Prefix(op, operand): return f"{op.symbol}{format_expression(operand)}"
        case Call(callee, args): return f"{format_expression(callee)}({', '.join(format_expression(a) for a in args)})"
        case List(elements): return '[' + ', '.join(format_expression(e) for e in elements) + ']'
        case FunctionLiteral(params, _): return f"fn {_params(params)} {{ … }}"
        case Get(target, name): return f"{format_expression(target)}.{name}"
        case Index(target, index): return f"{format_expression(target)}[{format_expression(index)}]"
    return repr(expr)

def format_statement(stmt: Statement) -> str:
    """Single-line summary of a statement; nested blocks are elided."""
    match stmt:
        case Let(name, value): return f"let {name} = {format_expression(value)}"
        case FunctionDeclaration(name, params, _): return f"fn {name}{_params(params)} {{ … }}"
        case If(condition, _, _): return f"if {format_expression(condition)} {{ … }}"
        case Loop(_, name, iterable) if iterable is not None: return f"loop (let {name} : {format_expression(iterable)}) {{ … }}"
        case Loop(): return "loop { … }"
        case Return(value): return "return" if value is None else f"return {format_expression(value)}"
        case Break(): return "break"
        case Continue(): return "continue"
        case ExpressionStatement(expression): return format_expression(expression)
    return repr(stmt)


def show_step(step: int, stmt: Statement, depth: int = 0, width: int = 72, file=None):
    text = format_statement(stmt)
    if len(text) > width:
        text = text[:width-2] + ' …'
    line = f"{stmt.line:>4}" if stmt.line is not None else '   ?'
    print(f"\033[90m{step:>3} :\033[0m \033[36m{line}\033[0m  {'  ' * depth}{text}", file=file or sys.stdout)

def show_call(name: str, args: list, depth: int = 0, file=None):
    print(f"\033[90m  → :\033[0m       {'  ' * depth}\033[97m{name}\033[0m({', '.join(format_item(a) for a in args)})", file=file or sys.stdout)
