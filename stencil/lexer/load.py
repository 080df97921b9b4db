from collections import namedtuple

from .common import next_non_whitespace, next_whitespace

LoadToken = namedtuple('LoadToken', ['at'])


def lex_load(source, parts):
    """Yield a :class:`LoadToken` for each whitespace separated word."""
    start, length = parts.at
    rest = source[start:start + length]
    while rest:
        end = next_whitespace(rest)
        skip = next_non_whitespace(rest[end:])
        yield LoadToken((start, end))
        start += end + skip
        rest = rest[end + skip:]
