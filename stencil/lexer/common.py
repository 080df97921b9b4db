"""
Primitives shared by the tag sub-lexers.

Every ``lex_*`` function takes the text still to be lexed (``rest``) and the
absolute offset of its first character (``start``), and returns a triple of
``(at, start, rest)``: the span of the lexed item and the position and text
just past it.
"""
from enum import Enum

from ..exceptions import (
    IncompleteString, IncompleteTranslatedString, InvalidVariableName,
    MissingTranslatedString,
)

NUMERIC_CHARS = '0123456789-.e'


class ArgumentType(Enum):
    NUMERIC = 'numeric'
    TEXT = 'text'
    TRANSLATED_TEXT = 'translated_text'
    VARIABLE = 'variable'


def is_xid_start(char):
    return char != '_' and char.isidentifier()


def is_xid_continue(char):
    return ('a' + char).isidentifier()


def next_whitespace(rest):
    """Index of the first whitespace character in ``rest``, or its length."""
    for index, char in enumerate(rest):
        if char.isspace():
            return index
    return len(rest)


def next_non_whitespace(rest):
    """Index of the first non-whitespace character in ``rest``, or its length."""
    for index, char in enumerate(rest):
        if not char.isspace():
            return index
    return len(rest)


def content_at(argument_type, at):
    """The span of a literal's content, without its quotes or ``_()``."""
    start, length = at
    if argument_type is ArgumentType.TEXT:
        return (start + 1, length - 2)
    if argument_type is ArgumentType.TRANSLATED_TEXT:
        return (start + 3, length - 5)
    return at


def lex_text(start, rest, end):
    """Lex a string literal opened by ``rest[0]`` and closed by ``end``."""
    index = 1
    while index < len(rest):
        char = rest[index]
        index += 1
        if char == '\\':
            index += 1
        elif char == end:
            return (start, index), start + index, rest[index:]
    raise IncompleteString(at=(start, min(index, len(rest))))


def lex_translated(start, rest):
    """Lex ``_("...")``. ``rest`` must begin with ``_(``."""
    inner = rest[2:]
    if not inner:
        raise MissingTranslatedString(at=(start, 2))
    quote = inner[0]
    if quote not in ('"', "'"):
        raise MissingTranslatedString(at=(start, len(inner) + 2))
    (_, length), position, remainder = lex_text(start + 2, inner, quote)
    if not remainder.startswith(')'):
        raise IncompleteTranslatedString(at=(start, position - start))
    length = length + 3
    return (start, length), start + length, rest[length:]


def lex_numeric(start, rest):
    end = len(rest)
    for index, char in enumerate(rest):
        if char not in NUMERIC_CHARS:
            end = index
            break
    content = rest[:end]
    # A dash after the first character ends the literal, so ``5.2e-3``
    # lexes as ``5.2e`` and leaves ``-3`` for the caller.
    dash = content.find('-', 1)
    if dash != -1:
        end = dash
    return (start, end), start + end, rest[end:]


def lex_variable(start, rest):
    """
    Lex a variable path together with any trailing filters, stopping at the
    first whitespace outside of a quoted argument.
    """
    in_text = None
    end = len(rest)
    for index, char in enumerate(rest):
        if in_text is not None:
            if char == in_text:
                in_text = None
            continue
        if char in ('"', "'"):
            in_text = char
        elif is_xid_continue(char) or char in '.|:':
            continue
        else:
            end = index
            break
    return (start, end), start + end, rest[end:]


def trim_variable(rest):
    """Length of the leading ``name.attr`` run of ``rest``."""
    for index, char in enumerate(rest):
        if not (is_xid_continue(char) or char == '.'):
            return index
    return len(rest)


def check_variable_attrs(variable, start):
    offset = 0
    for segment in variable.split('.'):
        if not segment or segment.startswith('_'):
            raise InvalidVariableName(at=(start + offset, len(segment)))
        offset += len(segment) + 1


def lex_variable_argument(start, rest):
    end = trim_variable(rest)
    content = rest[:end]
    check_variable_attrs(content, start)
    return (start, end), start + end, rest[end:]
