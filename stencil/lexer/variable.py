"""
Lexer for the body of ``{{ }}`` tags: a head value followed by a chain of
``|filter[:argument]`` segments.
"""
from collections import namedtuple

from ..exceptions import (
    InvalidFilterName, InvalidRemainder, InvalidVariableName, LeadingUnderscore,
)
from .common import (
    ArgumentType, check_variable_attrs, content_at, is_xid_continue,
    is_xid_start, lex_numeric, lex_text, lex_translated, lex_variable_argument,
    next_non_whitespace, next_whitespace, trim_variable,
)


class Argument(namedtuple('Argument', ['argument_type', 'at'])):
    __slots__ = ()

    def content_at(self):
        return content_at(self.argument_type, self.at)

    def content(self, source):
        start, length = self.content_at()
        return source[start:start + length]


class FilterToken(namedtuple('FilterToken', ['at', 'argument'])):
    __slots__ = ()

    def content(self, source):
        start, length = self.at
        return source[start:start + length]


def _lex_head(start, rest):
    """Lex the value a filter chain starts from."""
    first = rest[0]
    if rest.startswith('_('):
        at, position, remainder = lex_translated(start, rest)
        return Argument(ArgumentType.TRANSLATED_TEXT, at), position, remainder
    if first in ('"', "'"):
        at, position, remainder = lex_text(start, rest, first)
        return Argument(ArgumentType.TEXT, at), position, remainder
    if first.isdigit() or first == '-':
        at, position, remainder = lex_numeric(start, rest)
        return Argument(ArgumentType.NUMERIC, at), position, remainder

    end = trim_variable(rest)
    if end == 0:
        raise InvalidVariableName(at=(start, len(rest.strip())))
    content = rest[:end]
    if content.endswith('.'):
        check_variable_attrs(content[:-1], start)
        following = rest[end:]
        length = min(next_whitespace(following), _find(following, '|'))
        raise InvalidVariableName(at=(start + end, length))
    check_variable_attrs(content, start)
    return Argument(ArgumentType.VARIABLE, (start, end)), start + end, rest[end:]


def _find(rest, char):
    index = rest.find(char)
    return len(rest) if index == -1 else index


def lex_variable(variable, start):
    """
    Lex the content of a ``{{ }}`` tag starting at offset ``start``.

    Returns ``None`` for an empty tag, otherwise the head :class:`Argument`
    and a :class:`FilterLexer` over the rest of the tag.
    """
    rest = variable.lstrip()
    if not rest.strip():
        return None

    start = start + len(variable) - len(rest)
    head, position, remainder = _lex_head(start, rest)

    before_filter = remainder[:_find(remainder, '|')]
    if before_filter.strip():
        if head.argument_type is ArgumentType.VARIABLE and not before_filter[0].isspace():
            length = head.at[1] + len(before_filter.rstrip())
            raise InvalidVariableName(at=(start, length))
        offset = next_non_whitespace(before_filter)
        raise InvalidRemainder(at=(position + offset, len(before_filter.strip())))

    return head, FilterLexer(remainder, position)


class FilterLexer:
    """Iterate over the :class:`FilterToken` of a filter chain."""

    def __init__(self, variable, start):
        pipe = variable.find('|')
        if pipe == -1:
            self.rest = ''
            self.byte = start + len(variable)
            return
        offset = pipe + 1
        variable = variable[offset:]
        rest = variable.lstrip()
        self.rest = rest.rstrip()
        self.byte = start + offset + len(variable) - len(rest)

    def __iter__(self):
        return self

    def __next__(self):
        if not self.rest:
            raise StopIteration
        try:
            token = self.lex_filter()
            remainder, start_next = self.remainder_to_filter_or_argument()
            return self.lex_remainder(token, remainder, start_next)
        except Exception:
            self.rest = ''
            raise

    def lex_filter(self):
        filter_name = self.rest.lstrip()
        skipped = len(self.rest) - len(filter_name)
        self.byte += skipped
        self.rest = self.rest[skipped:]

        end = len(filter_name)
        for index, char in enumerate(filter_name):
            if not is_xid_continue(char):
                end = index
                break

        if not filter_name[:end] or not is_xid_start(filter_name[0]):
            raise InvalidFilterName(at=(self.byte, _find(self.rest, '|')))

        at = (self.byte, end)
        self.byte += end
        self.rest = self.rest[end:]
        return FilterToken(at, self.lex_argument())

    def lex_argument(self):
        pipe, colon = self.rest.find('|'), self.rest.find(':')
        if colon == -1 or (pipe != -1 and pipe < colon):
            return None
        self.rest = self.rest[colon + 1:]
        self.byte += colon + 1

        rest = self.rest
        if not rest:
            raise InvalidRemainder(at=(self.byte - 1, 1))
        first = rest[0]
        if first == '_':
            if not rest.startswith('_('):
                raise LeadingUnderscore(at=(self.byte, next_whitespace(rest)))
            at, self.byte, self.rest = lex_translated(self.byte, rest)
            return Argument(ArgumentType.TRANSLATED_TEXT, at)
        if first in ('"', "'"):
            at, self.byte, self.rest = lex_text(self.byte, rest, first)
            return Argument(ArgumentType.TEXT, at)
        if first.isdigit() or first == '-':
            at, self.byte, self.rest = lex_numeric(self.byte, rest)
            return Argument(ArgumentType.NUMERIC, at)
        at, self.byte, self.rest = lex_variable_argument(self.byte, rest)
        return Argument(ArgumentType.VARIABLE, at)

    def remainder_to_filter_or_argument(self):
        pipe, colon = self.rest.find('|'), self.rest.find(':')
        if pipe == -1 and colon == -1:
            return self.rest, len(self.rest)
        if pipe == -1 or (colon != -1 and colon < pipe):
            return self.rest[:colon], colon + 1
        return self.rest[:pipe], pipe + 1

    def lex_remainder(self, token, remainder, start_next):
        offset = next_non_whitespace(remainder)
        if offset == len(remainder):
            self.rest = self.rest[start_next:]
            self.byte += start_next
            return token
        raise InvalidRemainder(at=(self.byte + offset, len(remainder.strip())))
