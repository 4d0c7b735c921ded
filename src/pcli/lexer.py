## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
import functools

import lark
from .errors import PcliParseError


GRAMMAR = r"""start: _token*
_token: LET | FN | IF | ELIF | ELSE | LOOP | RETURN | CONTINUE | BREAK | TRUE | FALSE
      | NAME | NUMBER | STRING
      | LPAREN | RPAREN | LBRACE | RBRACE | LSQB | RSQB | COMMA | COLON | DOT
      | PLUS | MINUS | STAR | SLASH | PERCENT
      | EQUAL | NOT_EQUAL | LESS_EQUAL | GREATER_EQUAL | LESS | GREATER | ASSIGN
      | AND | OR | BANG

// KEYWORDS
LET: "let"
FN: "fn"
IF: "if"
ELIF: "elif"
ELSE: "else"
LOOP: "loop"
RETURN: "return"
CONTINUE: "continue"
BREAK: "break"
TRUE: "true"
FALSE: "false"

// LITERALS
NAME: /[A-Za-z_?][A-Za-z0-9_?]*/
NUMBER: /(?:[0-9]+\.)?[0-9]+/
STRING: /"(?:[^"\\]|\\.)*"/

// PUNCTUATION
LPAREN: "("
RPAREN: ")"
LBRACE: "{"
RBRACE: "}"
LSQB: "["
RSQB: "]"
COMMA: ","
COLON: ":"
DOT: "."

// OPERATORS
PLUS: "+"
MINUS: "-"
STAR: "*"
SLASH: "/"
PERCENT: "%"
EQUAL: "=="
NOT_EQUAL: "!="
LESS_EQUAL: "<="
GREATER_EQUAL: ">="
LESS: "<"
GREATER: ">"
ASSIGN: "="
AND: "&&"
OR: "||"
BANG: "!"

// COMMENTS & SEPARATORS
COMMENT: /--[^\n]*/
SEPARATOR: /[;\s]+/
%ignore COMMENT
%ignore SEPARATOR
"""

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '"': '"', '\\': '\\'}
_ESCAPE_RE = re.compile(r'\\(.)', re.S)


@functools.cache
def _lexer() -> lark.Lark:
    return lark.Lark(GRAMMAR, parser="lalr", lexer="basic")


def decode_string(literal: str) -> str:
    """Strip the quotes from a STRING token and resolve its backslash escapes."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), literal[1:-1])


def end_marker(source: str) -> lark.Token:
    line = source.count('\n') + 1
    column = len(source) - source.rfind('\n')
    return lark.Token('EOF', '', start_pos=len(source), line=line, column=column)


def tokenize(source: str, filename=None) -> list[lark.Token]:
    try:
        tokens = list(_lexer().lex(source))
    except lark.exceptions.UnexpectedCharacters as exc:
        raise PcliParseError(f"Unexpected character {exc.char!r} at line {exc.line}, column {exc.column}.",
                             filename=filename, line=exc.line, column=exc.column, token=exc.char) from None
    tokens.append(end_marker(source))
    return tokens
