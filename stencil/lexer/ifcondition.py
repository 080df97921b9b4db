from collections import namedtuple
from enum import Enum

from ..exceptions import InvalidRemainder
from .common import (
    lex_numeric, lex_text, lex_translated, lex_variable, next_non_whitespace,
    next_whitespace,
)


class IfConditionTokenType(Enum):
    NUMERIC = 'numeric'
    TEXT = 'text'
    TRANSLATED_TEXT = 'translated_text'
    VARIABLE = 'variable'
    EQUAL = '=='
    NOT_EQUAL = '!='
    LESS_THAN = '<'
    GREATER_THAN = '>'
    LESS_THAN_EQUAL = '<='
    GREATER_THAN_EQUAL = '>='


OPERATORS = {
    '==': IfConditionTokenType.EQUAL,
    '!=': IfConditionTokenType.NOT_EQUAL,
    '<': IfConditionTokenType.LESS_THAN,
    '>': IfConditionTokenType.GREATER_THAN,
    '<=': IfConditionTokenType.LESS_THAN_EQUAL,
    '>=': IfConditionTokenType.GREATER_THAN_EQUAL,
}

IfConditionToken = namedtuple('IfConditionToken', ['at', 'token_type'])


class IfConditionLexer:
    """
    Lex the condition of an ``if`` or ``elif`` tag into operands and the
    symbolic comparison operators. Word operators such as ``and`` and
    ``not in`` come out as variables and are recognised by the parser.
    """

    def __init__(self, source, parts):
        start, length = parts.at
        self.rest = source[start:start + length]
        self.byte = start

    def __iter__(self):
        return self

    def __next__(self):
        if not self.rest:
            raise StopIteration

        index = next_whitespace(self.rest)
        token_type = OPERATORS.get(self.rest[:index])
        if token_type is None:
            return self.lex_condition()

        at = (self.byte, index)
        next_index = next_non_whitespace(self.rest[index:])
        self.byte += index + next_index
        self.rest = self.rest[index + next_index:]
        return IfConditionToken(at, token_type)

    def lex_condition(self):
        rest = self.rest
        first = rest[0]
        try:
            if rest.startswith('_('):
                token_type = IfConditionTokenType.TRANSLATED_TEXT
                at, self.byte, self.rest = lex_translated(self.byte, rest)
            elif first in ('"', "'"):
                token_type = IfConditionTokenType.TEXT
                at, self.byte, self.rest = lex_text(self.byte, rest, first)
            elif first.isdigit() or first == '-':
                token_type = IfConditionTokenType.NUMERIC
                at, self.byte, self.rest = lex_numeric(self.byte, rest)
            else:
                token_type = IfConditionTokenType.VARIABLE
                at, self.byte, self.rest = lex_variable(self.byte, rest)
            self.lex_remainder()
        except InvalidRemainder:
            self.rest = ''
            raise
        return IfConditionToken(at, token_type)

    def lex_remainder(self):
        index = next_whitespace(self.rest)
        if index:
            raise InvalidRemainder(at=(self.byte, index))
        skip = next_non_whitespace(self.rest)
        self.byte += skip
        self.rest = self.rest[skip:]
