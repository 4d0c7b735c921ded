## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import enum
from typing import Iterable, Iterator

import lark
from .lexer import tokenize, decode_string
from .nodes import *
from .errors import PcliParseError, PcliIncompleteParse


class Precedence(enum.IntEnum):
    LOWEST = 0
    STATEMENT = 1
    ASSIGN = 2
    AND_OR = 3
    COMPARISON = 4
    EQUALS = 5
    SUM = 6
    PRODUCT = 7
    PREFIX = 8
    CALL = 9


_PRECEDENCES: dict[str, Precedence] = {
    'STAR': Precedence.PRODUCT, 'SLASH': Precedence.PRODUCT, 'PERCENT': Precedence.PRODUCT,
    'PLUS': Precedence.SUM, 'MINUS': Precedence.SUM,
    'LPAREN': Precedence.CALL, 'DOT': Precedence.CALL, 'LSQB': Precedence.CALL,
    'LESS': Precedence.COMPARISON, 'GREATER': Precedence.COMPARISON,
    'LESS_EQUAL': Precedence.COMPARISON, 'GREATER_EQUAL': Precedence.COMPARISON,
    'EQUAL': Precedence.EQUALS, 'NOT_EQUAL': Precedence.EQUALS,
    'AND': Precedence.AND_OR, 'OR': Precedence.AND_OR,
    'ASSIGN': Precedence.ASSIGN,
    'LBRACE': Precedence.STATEMENT,
}

# Tokens that may begin an expression; used to tell `return x` from a bare `return`.
_EXPRESSION_STARTS = frozenset({'NUMBER', 'STRING', 'TRUE', 'FALSE', 'NAME', 'FN', 'MINUS', 'BANG', 'LSQB', 'LPAREN'})


def precedence_of(token: lark.Token) -> Precedence:
    """Binding power of a token when it follows an already-parsed expression."""
    return _PRECEDENCES.get(token.type, Precedence.LOWEST)


class Parser:
    """Recursive-descent statement parser with precedence climbing for expressions.

    Iterating over a parser yields one statement at a time until the end marker; the
    token sequence must be terminated by an `EOF` token as produced by `tokenize()`.
    """

    def __init__(self, tokens: Iterable[lark.Token], filename=None):
        self.tokens: Iterator[lark.Token] = iter(tokens)
        self.filename = filename
        self.current: lark.Token | None = None
        self.peek: lark.Token | None = None
        self._loop_depth = 0
        self.read()
        self.read()

    def __iter__(self):
        return self

    def __next__(self) -> Statement:
        if self.current.type == 'EOF':
            raise StopIteration
        return self.parse_statement()

    # Token handling ──────────────────────────────────────────────────────────────────────────
    def read(self) -> None:
        # Once the stream is exhausted, the end marker keeps repeating.
        self.current = self.peek
        self.peek = next(self.tokens, self.current)

    def expect(self, type_: str) -> lark.Token:
        if self.current.type != type_:
            raise self._unexpected(expected=type_)
        token = self.current
        self.read()
        return token

    def _unexpected(self, expected: str | None = None) -> PcliParseError:
        tok = self.current
        found = "end of input" if tok.type == 'EOF' else f"token `{tok.value}`"
        hint = f", expected {expected}" if expected else ""
        message = f"Unexpected {found} at line {tok.line}, column {tok.column}{hint}."
        error_class = PcliIncompleteParse if tok.type == 'EOF' else PcliParseError
        return error_class(message, filename=self.filename, line=tok.line, column=tok.column, token=tok.value)

    # Statements ──────────────────────────────────────────────────────────────────────────────
    def parse_statement(self) -> Statement:
        match self.current.type:
            case 'LET': return self.parse_let()
            case 'FN' if self.peek.type == 'NAME': return self.parse_function_declaration()
            case 'IF': return self.parse_if()
            case 'LOOP': return self.parse_loop()
            case 'RETURN': return self.parse_return()
            case 'BREAK' | 'CONTINUE': return self.parse_jump()
        line = self.current.line
        return ExpressionStatement(self.parse_expression(Precedence.LOWEST), line=line)

    def parse_let(self) -> Let:
        line = self.expect('LET').line
        name = self.expect('NAME').value
        self.expect('ASSIGN')
        return Let(name, self.parse_expression(Precedence.LOWEST), line=line)

    def parse_function_declaration(self) -> FunctionDeclaration:
        line = self.expect('FN').line
        name = self.expect('NAME').value
        params = self.parse_params()
        return FunctionDeclaration(name, params, self.parse_function_body(), line=line)

    def parse_if(self) -> If:
        if self.current.type not in ('IF', 'ELIF'):
            raise self._unexpected(expected='IF')
        line = self.current.line
        self.read()

        condition = self.parse_expression(Precedence.STATEMENT)
        then = self.parse_block()
        otherwise = None
        if self.current.type == 'ELIF':
            otherwise = (self.parse_if(),)
        elif self.current.type == 'ELSE':
            self.read()
            otherwise = self.parse_block()
        return If(condition, then, otherwise, line=line)

    def parse_loop(self) -> Loop:
        line = self.expect('LOOP').line
        name = iterable = None
        if self.current.type == 'LPAREN':
            self.read()
            self.expect('LET')
            name = self.expect('NAME').value
            self.expect('COLON')
            iterable = self.parse_expression(Precedence.LOWEST)
            self.expect('RPAREN')

        self._loop_depth += 1
        try:
            body = self.parse_block()
        finally:
            self._loop_depth -= 1
        return Loop(body, name, iterable, line=line)

    def parse_return(self) -> Return:
        line = self.expect('RETURN').line
        value = self.parse_expression(Precedence.LOWEST) if self.current.type in _EXPRESSION_STARTS else None
        return Return(value, line=line)

    def parse_jump(self) -> Statement:
        token = self.current
        if self._loop_depth == 0:
            raise PcliParseError(f"`{token.value}` outside of a loop at line {token.line}, column {token.column}.",
                                 filename=self.filename, line=token.line, column=token.column, token=token.value)
        self.read()
        match token.type:
            case 'BREAK': return Break(line=token.line)
            case 'CONTINUE': return Continue(line=token.line)
        raise PcliParseError("Entered unreachable code.", filename=self.filename,
                             line=token.line, column=token.column, token=token.value)

    def parse_block(self) -> Block:
        self.expect('LBRACE')
        statements = []
        while self.current.type != 'RBRACE':
            statements.append(self.parse_statement())
        self.expect('RBRACE')
        return tuple(statements)

    def parse_params(self) -> tuple[str, ...]:
        self.expect('LPAREN')
        params = []
        while self.current.type != 'RPAREN':
            params.append(self.expect('NAME').value)
            if self.current.type == 'COMMA':
                self.read()
            elif self.current.type != 'RPAREN':
                raise self._unexpected(expected='RPAREN')
        self.expect('RPAREN')
        return tuple(params)

    def parse_function_body(self) -> Block:
        # A function body is never inside the loop that surrounds its declaration.
        outer_depth, self._loop_depth = self._loop_depth, 0
        try:
            return self.parse_block()
        finally:
            self._loop_depth = outer_depth

    # Expressions ─────────────────────────────────────────────────────────────────────────────
    def parse_expression(self, precedence: Precedence) -> Expression:
        left = self.parse_leaf()
        while self.current.type != 'EOF' and precedence < precedence_of(self.current):
            if (expression := self.parse_postfix(left)) is None and (expression := self.parse_infix(left)) is None:
                break
            left = expression
        return left

    def parse_leaf(self) -> Expression:
        token = self.current
        match token.type:
            case 'NUMBER':
                self.read()
                return Number(float(token.value))
            case 'STRING':
                self.read()
                return String(decode_string(token.value))
            case 'TRUE' | 'FALSE':
                self.read()
                return Boolean(token.type == 'TRUE')
            case 'NAME':
                self.read()
                return Identifier(token.value)
            case 'FN':
                self.read()
                params = self.parse_params()
                return FunctionLiteral(params, self.parse_function_body())
            case 'MINUS' | 'BANG':
                self.read()
                return Prefix(PREFIX_OPERATORS[token.type], self.parse_expression(Precedence.PREFIX))
            case 'LSQB':
                self.read()
                return List(self.parse_sequence('RSQB'))
            case 'LPAREN':
                self.read()
                inner = self.parse_expression(Precedence.LOWEST)
                self.expect('RPAREN')
                return inner
        raise self._unexpected()

    def parse_sequence(self, closing: str) -> tuple[Expression, ...]:
        """Comma-separated expressions up to and including the `closing` token."""
        items = []
        while self.current.type != closing:
            items.append(self.parse_expression(Precedence.LOWEST))
            if self.current.type == 'COMMA':
                self.read()
            elif self.current.type != closing:
                raise self._unexpected(expected=closing)
        self.expect(closing)
        return tuple(items)

    def parse_postfix(self, left: Expression) -> Expression | None:
        match self.current.type:
            case 'LPAREN':
                self.read()
                return Call(left, self.parse_sequence('RPAREN'))
            case 'DOT':
                self.read()
                return Get(left, self.expect('NAME').value)
            case 'LSQB':
                self.read()
                index = self.parse_expression(Precedence.LOWEST)
                self.expect('RSQB')
                return Index(left, index)
        return None

    def parse_infix(self, left: Expression) -> Expression | None:
        token = self.current
        if (operator := INFIX_OPERATORS.get(token.type)) is not None:
            self.read()
            return Infix(left, operator, self.parse_expression(precedence_of(token)))

        if token.type == 'ASSIGN':
            if not isinstance(left, Identifier):
                raise PcliParseError(f"Invalid assignment target at line {token.line}, column {token.column}; only names can be assigned.",
                                     filename=self.filename, line=token.line, column=token.column, token=token.value)
            self.read()
            return Assign(left, self.parse_expression(Precedence.LOWEST))
        return None


def parse(source: str, filename=None) -> Program:
    return list(Parser(tokenize(source, filename=filename), filename=filename))


def _read_lines(filename, source):
    if source is not None: return source.splitlines()
    try:
        with open(filename, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except (OSError, TypeError):
        return []

def format_source_lines(filename, line: int | None, source: str | None = None, context: int = 0) -> str:
    """Show the given line of a script, plus `context` lines around it."""
    lines = _read_lines(filename, source)
    if line is None or not (0 < line <= len(lines)): return ""
    header = f"\033[97m  File \"{filename}\", line {line}\033[0m\n"
    start, end = max(0, line - 1 - context), min(len(lines), line + context)
    highlight, dim = '\033[97m', '\033[90m'
    body = [f"{highlight if i+1 == line else dim}{i+1:>5} |\033[0m {lines[i]}" for i in range(start, end)]
    return header + '\n'.join(body) + '\n'


def format_parse_error_context(filename, line, column, token_value, source=None):
    lines = _read_lines(filename, source)
    if line is None: return f"\033[97m  File \"{filename}\"\033[0m\n"
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    for i in range(start_line, end_line):
        line_content = lines[i]
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column and 0 < column <= len(line_content):
                width = max(1, len(token_value or ''))
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+width-1]}\033[0m" +
                    line_content[column+width-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
