"""
Render-time values.

Values flowing between tags and filters are ordinary Python objects. Their
escaping state is tracked with Django's ``SafeData`` marker and decided only
when a value is materialized into the output:

* ``HTML_SAFE`` -- a ``SafeData`` string, written out unchanged.
* ``HTML_UNSAFE`` -- any other value while autoescaping, escaped on output.
* ``RAW`` -- any value while autoescaping is off, written out with ``str()``.
"""
from collections import namedtuple
from enum import Enum

from django.utils.html import escape
from django.utils.safestring import SafeData, mark_safe


class _Missing:
    """The result of resolving a variable that does not exist."""
    __slots__ = ()

    def __bool__(self):
        return False

    def __repr__(self):
        return '<missing>'

    def __reduce__(self):
        return 'MISSING'


MISSING = _Missing()


class ContentKind(Enum):
    RAW = 'raw'
    HTML_SAFE = 'html_safe'
    HTML_UNSAFE = 'html_unsafe'


class Content(namedtuple('Content', ['value', 'kind'])):
    """A string waiting to be written out, and how to escape it."""
    __slots__ = ()

    def render(self):
        if self.kind is ContentKind.HTML_UNSAFE:
            return escape(self.value)
        return self.value


def to_content(value, autoescape):
    """Classify ``value`` for output under the given autoescape setting."""
    if value is MISSING:
        return Content('', ContentKind.RAW)
    if not autoescape:
        return Content(str(value), ContentKind.RAW)
    if not issubclass(type(value), str):
        value = str(value)
    if isinstance(value, SafeData) or hasattr(value, '__html__'):
        return Content(value, ContentKind.HTML_SAFE)
    return Content(value, ContentKind.HTML_UNSAFE)


def render_value_in_context(value, context):
    """
    Convert any value to a string to become part of a rendered template. This
    means escaping, if required, and conversion to a string.
    """
    return to_content(value, context.autoescape).render()


def preserve_safety(value, result):
    """Mark ``result`` safe when the ``value`` it was computed from was."""
    if isinstance(value, SafeData):
        return mark_safe(result)
    return result


def to_string(value):
    """The text of ``value`` for filters, treating missing values as empty."""
    if value is MISSING:
        return ''
    return str(value)
