from collections import namedtuple

from ..exceptions import (
    InvalidAutoescapeArgument, MissingAutoescapeArgument,
    UnexpectedAutoescapeArgument,
)

AutoescapeToken = namedtuple('AutoescapeToken', ['at', 'enabled'])


def lex_autoescape_argument(source, parts):
    start, length = parts.at
    content = source[start:start + length]
    if content == 'on':
        return AutoescapeToken(parts.at, True)
    if content == 'off':
        return AutoescapeToken(parts.at, False)
    if not content:
        raise MissingAutoescapeArgument(at=parts.at)
    if any(char.isspace() for char in content):
        raise UnexpectedAutoescapeArgument(at=parts.at)
    raise InvalidAutoescapeArgument(at=parts.at)
