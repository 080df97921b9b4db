from collections import namedtuple

from ..exceptions import InvalidTagName
from .common import is_xid_continue, next_whitespace

TagToken = namedtuple('TagToken', ['at'])
TagParts = namedtuple('TagParts', ['at'])


def lex_tag(tag, start):
    """
    Split the content of a ``{% %}`` block into its name and the remaining
    parts. Returns ``None`` for a block holding only whitespace.
    """
    rest = tag.lstrip()
    if not rest.strip():
        return None

    start = start + len(tag) - len(rest)
    tag = tag.strip()
    tag_len = len(tag)
    for index, char in enumerate(tag):
        if not is_xid_continue(char):
            tag_len = index
            break
    else:
        return TagToken((start, len(tag))), TagParts((start + len(tag), 0))

    index = next_whitespace(tag)
    if index > tag_len:
        raise InvalidTagName(at=(start, index))

    rest = tag[tag_len:]
    trimmed = rest.strip()
    parts_start = start + tag_len + len(rest) - len(trimmed)
    return TagToken((start, tag_len)), TagParts((parts_start, len(trimmed)))
