"""
Lexer for tag arguments of the form ``value`` or ``name=value``.

It is used by the ``url`` tag and by simple tags loaded from a library.
"""
from collections import namedtuple

from ..exceptions import IncompleteKeywordArgument, InvalidRemainder
from .common import (
    ArgumentType, content_at, is_xid_continue, lex_numeric, lex_text,
    lex_translated, lex_variable, next_non_whitespace, next_whitespace,
)


class UrlToken(namedtuple('UrlToken', ['at', 'token_type', 'kwarg'])):
    __slots__ = ()

    def content_at(self):
        return content_at(self.token_type, self.at)

    def content(self, source):
        start, length = self.content_at()
        return source[start:start + length]

    def kwarg_name(self, source):
        start, length = self.kwarg
        return source[start:start + length]


def _keyword_length(rest):
    """Length of ``name`` when ``rest`` starts with ``name=``, else 0."""
    index = 0
    while index < len(rest) and is_xid_continue(rest[index]):
        index += 1
    if index and rest[index:index + 1] == '=':
        return index
    return 0


class UrlLexer:

    def __init__(self, source, parts):
        start, length = parts.at
        self.rest = source[start:start + length]
        self.byte = start

    def __iter__(self):
        return self

    def __next__(self):
        if not self.rest:
            raise StopIteration
        try:
            token = self.lex_token()
            self.lex_remainder()
        except Exception:
            self.rest = ''
            raise
        return token

    def lex_token(self):
        kwarg = None
        length = _keyword_length(self.rest)
        if length:
            kwarg = (self.byte, length)
            value = self.rest[length + 1:]
            if not value or value[0].isspace():
                raise IncompleteKeywordArgument(at=(self.byte, length + 1))
            self.byte += length + 1
            self.rest = value

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
        return UrlToken(at, token_type, kwarg)

    def lex_remainder(self):
        index = next_whitespace(self.rest)
        if index:
            raise InvalidRemainder(at=(self.byte, index))
        skip = next_non_whitespace(self.rest)
        self.byte += skip
        self.rest = self.rest[skip:]
