"""
Split template source into text, variable, tag and comment tokens.
"""
from enum import Enum

START_TAG_LEN = 2
END_TAG_LEN = 2

END_DELIMITERS = {
    '{{': '}}',
    '{%': '%}',
    '{#': '#}',
}


class TokenType(Enum):
    TEXT = 'text'
    VARIABLE = 'variable'
    TAG = 'tag'
    COMMENT = 'comment'


_TOKEN_TYPES = {
    '{{': TokenType.VARIABLE,
    '{%': TokenType.TAG,
    '{#': TokenType.COMMENT,
}


class Token:
    __slots__ = ('token_type', 'at')

    def __init__(self, token_type, at):
        self.token_type = token_type
        self.at = at

    def content(self, source):
        start, length = self.at
        if self.token_type is TokenType.TEXT:
            return source[start:start + length]
        return source[start + START_TAG_LEN:start + length - END_TAG_LEN]

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.token_type is other.token_type and self.at == other.at

    def __hash__(self):
        return hash((self.token_type, self.at))

    def __repr__(self):
        return '<%s token: %r>' % (self.token_type.name.capitalize(), self.at)


class Lexer:
    """
    Iterate over the tokens of ``source``.

    The spans of the yielded tokens cover the source exactly once, so joining
    their contents rebuilds the template. Unterminated tags and verbatim
    blocks degrade to text rather than raising.
    """

    def __init__(self, source):
        self.source = source
        self.position = 0
        self.verbatim = None

    def __iter__(self):
        return self

    def __next__(self):
        if self.position >= len(self.source):
            raise StopIteration
        if self.verbatim is not None:
            return self.lex_verbatim()
        opening = self.source[self.position:self.position + START_TAG_LEN]
        if opening not in END_DELIMITERS:
            return self.lex_text()
        token = self.lex_tag(opening)
        if token.token_type is TokenType.TAG:
            content = token.content(self.source).strip()
            if content == 'verbatim' or content.startswith('verbatim '):
                self.verbatim = content
        return token

    def _emit(self, token_type, length):
        token = Token(token_type, (self.position, length))
        self.position += length
        return token

    def lex_text(self):
        source = self.source
        nexts = [
            index for index in (
                source.find(opening, self.position) for opening in END_DELIMITERS
            )
            if index != -1
        ]
        end = min(nexts) if nexts else len(source)
        return self._emit(TokenType.TEXT, end - self.position)

    def lex_text_to_end(self):
        return self._emit(TokenType.TEXT, len(self.source) - self.position)

    def lex_tag(self, opening):
        source = self.source
        close = source.find(END_DELIMITERS[opening], self.position + START_TAG_LEN)
        if close == -1:
            return self.lex_text_to_end()
        # Django's own lexer cannot see a tag broken over several lines.
        newline = source.find('\n', self.position, close)
        if newline != -1:
            return self._emit(TokenType.TEXT, newline + 1 - self.position)
        return self._emit(_TOKEN_TYPES[opening], close + END_TAG_LEN - self.position)

    def lex_verbatim(self):
        source = self.source
        verbatim = self.verbatim
        self.verbatim = None

        search = self.position
        while True:
            start_tag = source.find('{%', search)
            if start_tag == -1:
                return self.lex_text_to_end()
            end_tag = source.find('%}', start_tag)
            if end_tag == -1:
                return self.lex_text_to_end()
            inner = source[start_tag + START_TAG_LEN:end_tag].strip()
            # ``endverbatim`` is ``verbatim`` behind a three letter prefix.
            if len(inner) < 3 or inner[3:] != verbatim:
                search = end_tag + END_TAG_LEN
                continue
            if start_tag == self.position:
                return self._emit(TokenType.TAG, end_tag + END_TAG_LEN - self.position)
            return self._emit(TokenType.TEXT, start_tag - self.position)


def lex(source):
    return list(Lexer(source))
