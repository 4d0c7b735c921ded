## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import enum
from dataclasses import dataclass, field


class Operator(enum.Enum):
    ADD = '+'
    SUBTRACT = '-'
    MULTIPLY = '*'
    DIVIDE = '/'
    MODULO = '%'
    EQUALS = '=='
    NOT_EQUALS = '!='
    LESS_THAN = '<'
    GREATER_THAN = '>'
    LESS_THAN_OR_EQUALS = '<='
    GREATER_THAN_OR_EQUALS = '>='
    AND = '&&'
    OR = '||'
    BANG = '!'

    @property
    def symbol(self) -> str:
        return self.value

    def __repr__(self):
        return f"Operator.{self.name}"


# Token types of binary operators, as produced by the lexer.
INFIX_OPERATORS: dict[str, Operator] = {
    'PLUS': Operator.ADD, 'MINUS': Operator.SUBTRACT, 'STAR': Operator.MULTIPLY,
    'SLASH': Operator.DIVIDE, 'PERCENT': Operator.MODULO,
    'EQUAL': Operator.EQUALS, 'NOT_EQUAL': Operator.NOT_EQUALS,
    'LESS': Operator.LESS_THAN, 'GREATER': Operator.GREATER_THAN,
    'LESS_EQUAL': Operator.LESS_THAN_OR_EQUALS, 'GREATER_EQUAL': Operator.GREATER_THAN_OR_EQUALS,
    'AND': Operator.AND, 'OR': Operator.OR,
}

PREFIX_OPERATORS: dict[str, Operator] = {'MINUS': Operator.SUBTRACT, 'BANG': Operator.BANG}


## EXPRESSIONS
class Expression:
    __slots__ = ()

@dataclass(frozen=True)
class Number(Expression):
    value: float

@dataclass(frozen=True)
class String(Expression):
    value: str

@dataclass(frozen=True)
class Boolean(Expression):
    value: bool

@dataclass(frozen=True)
class Identifier(Expression):
    name: str

@dataclass(frozen=True)
class Assign(Expression):
    target: Identifier
    value: Expression

@dataclass(frozen=True)
class Infix(Expression):
    left: Expression
    operator: Operator
    right: Expression

@dataclass(frozen=True)
class Prefix(Expression):
    operator: Operator
    operand: Expression

@dataclass(frozen=True)
class Call(Expression):
    callee: Expression
    arguments: tuple[Expression, ...] = ()

@dataclass(frozen=True)
class List(Expression):
    elements: tuple[Expression, ...] = ()

@dataclass(frozen=True)
class FunctionLiteral(Expression):
    params: tuple[str, ...]
    body: tuple["Statement", ...]

@dataclass(frozen=True)
class Get(Expression):
    target: Expression
    name: str

@dataclass(frozen=True)
class Index(Expression):
    target: Expression
    index: Expression


## STATEMENTS
@dataclass(frozen=True)
class Statement:
    # Source line for diagnostics, ignored when comparing trees.
    line: int | None = field(default=None, compare=False, repr=False, kw_only=True)

@dataclass(frozen=True)
class Let(Statement):
    name: str
    value: Expression

@dataclass(frozen=True)
class FunctionDeclaration(Statement):
    name: str
    params: tuple[str, ...]
    body: tuple[Statement, ...]

@dataclass(frozen=True)
class If(Statement):
    condition: Expression
    then: tuple[Statement, ...]
    otherwise: tuple[Statement, ...] | None = None

@dataclass(frozen=True)
class Loop(Statement):
    """Bounded for-each loop when `name` and `iterable` are set, unbounded otherwise."""
    body: tuple[Statement, ...]
    name: str | None = None
    iterable: Expression | None = None

    @property
    def is_bounded(self) -> bool:
        return self.iterable is not None

@dataclass(frozen=True)
class Return(Statement):
    value: Expression | None = None

@dataclass(frozen=True)
class Break(Statement):
    pass

@dataclass(frozen=True)
class Continue(Statement):
    pass

@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression


Block = tuple[Statement, ...]
Program = list[Statement]
