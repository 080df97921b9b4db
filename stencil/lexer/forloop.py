"""
Lexer for ``{% for name[, name...] in expression [reversed] %}``.
"""
from collections import namedtuple

from ..exceptions import (
    InvalidForName, InvalidRemainder, MissingComma, MissingForExpression,
    MissingIn, UnexpectedForExpression,
)
from .common import (
    ArgumentType, lex_numeric, lex_text, lex_translated, lex_variable,
    next_non_whitespace, next_whitespace,
)

ForVariableNameToken = namedtuple('ForVariableNameToken', ['at'])
ForVariableToken = namedtuple('ForVariableToken', ['at', 'token_type'])

VARIABLE_NAME = 'variable_name'
DONE = 'done'


class ForLexer:
    """
    Lex the parts of a ``for`` tag in order: the loop variable names, the
    ``in`` keyword, the iterable expression and the optional ``reversed``.
    """

    def __init__(self, source, parts):
        start, length = parts.at
        self.rest = source[start:start + length]
        self.byte = start
        self.state = VARIABLE_NAME
        self.previous_at = None

    def _advance(self, count):
        self.byte += count
        self.rest = self.rest[count:]

    def lex_variable_names(self):
        """Iterate over the loop variable names, up to the ``in`` keyword."""
        while True:
            token = self.lex_variable_name()
            if token is None:
                return
            yield token

    def lex_variable_name(self):
        if self.state is DONE:
            return None
        if not self.rest:
            self.state = DONE
            return None

        index = next_whitespace(self.rest)
        comma = self.rest.find(',')
        if comma != -1 and comma < index:
            index = comma
            next_index = next_non_whitespace(self.rest[comma + 1:]) + 1
        else:
            self.state = DONE
            next_index = next_non_whitespace(self.rest[index:])

        at = (self.byte, index)
        self.previous_at = at
        name = self.rest[:index]
        if any(char in name for char in ('"', "'", '|')):
            self.rest = ''
            self.state = DONE
            raise InvalidForName(at=at, name=name)
        self._advance(index + next_index)
        return ForVariableNameToken(at)

    def lex_in(self):
        if not self.rest:
            raise MissingIn(at=self.previous_at)
        index = next_whitespace(self.rest)
        at = (self.byte, index)
        if self.rest[:index] != 'in':
            raise MissingComma(at=at)
        self._advance(index + next_non_whitespace(self.rest[index:]))
        self.previous_at = at

    def lex_expression(self):
        if not self.rest:
            raise MissingForExpression(at=self.previous_at)
        rest = self.rest
        first = rest[0]
        if rest.startswith('_('):
            token_type = ArgumentType.TRANSLATED_TEXT
            at, self.byte, self.rest = lex_translated(self.byte, rest)
        elif first in ('"', "'"):
            token_type = ArgumentType.TEXT
            at, self.byte, self.rest = lex_text(self.byte, rest, first)
        elif first.isdigit() or first == '-':
            token_type = ArgumentType.NUMERIC
            at, self.byte, self.rest = lex_numeric(self.byte, rest)
        else:
            token_type = ArgumentType.VARIABLE
            at, self.byte, self.rest = lex_variable(self.byte, rest)
        self.lex_remainder()
        return ForVariableToken(at, token_type)

    def lex_remainder(self):
        index = next_whitespace(self.rest)
        if index:
            raise InvalidRemainder(at=(self.byte, index))
        self._advance(next_non_whitespace(self.rest))

    def lex_reversed(self):
        if not self.rest:
            return False
        index = next_whitespace(self.rest)
        if self.rest[:index] == 'reversed':
            next_index = next_non_whitespace(self.rest[index:])
            remaining = len(self.rest) - index - next_index
            if not remaining:
                return True
            at = (self.byte + index + next_index, remaining)
        else:
            at = (self.byte, index)
        raise UnexpectedForExpression(at=at)
