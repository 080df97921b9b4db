"""
Built-in filters and the wrapper for filters loaded from tag libraries.

A built-in filter is a function ``filter(value, argument, context)``:

* ``value`` is the resolved left-hand side, possibly
  :data:`~stencil.content.MISSING`.
* ``argument`` is the unresolved argument element, or ``None``. Filters
  resolve it themselves with :func:`resolve_argument`, so ``default`` only
  looks its argument up when it is needed.

Most built-ins mirror ``django.template.defaultfilters``: they work on the
string value and keep the result safe when the input was safe.
"""
import inspect
import math
import sys
from dataclasses import dataclass, field
from enum import Enum

from django.utils.html import conditional_escape
from django.utils.safestring import SafeData, mark_safe
from django.utils.text import slugify as _slugify, wrap
from django.utils.translation import gettext

from .content import MISSING, preserve_safety, to_string
from .elements import RAISE, Text, TranslatedText
from .exceptions import (
    ArgumentDoesNotExist, IntegerOverflow, InvalidArgumentFloat,
    InvalidArgumentInteger,
)


class Arity(Enum):
    REQUIRED = 'required'
    OPTIONAL = 'optional'
    FORBIDDEN = 'forbidden'


class Filters:
    """The registry of built-in filters."""

    def __init__(self):
        self.filters = {}
        self.arities = {}

    def filter(self, name=None, arity=Arity.FORBIDDEN):
        def dec(func):
            filter_name = name or func.__name__
            self.filters[filter_name] = func
            self.arities[filter_name] = arity
            return func
        return dec

    def __contains__(self, name):
        return name in self.filters


register = Filters()


def resolve_argument(argument, context):
    """Resolve a filter argument, which must exist."""
    value = argument.resolve(context, RAISE)
    if value is MISSING:
        raise ArgumentDoesNotExist(
            at=argument.at, key=argument.name, object=repr(context),
        )
    return value


def filter_arity(func):
    """
    How many arguments an external filter takes, going by its signature the
    way Django's ``FilterExpression.args_check`` does.
    """
    func = inspect.unwrap(func)
    args, _, _, defaults, _, _, _ = inspect.getfullargspec(func)
    if len(args) < 2:
        return Arity.FORBIDDEN
    if defaults and len(defaults) >= len(args) - 1:
        return Arity.OPTIONAL
    return Arity.REQUIRED


def _describe(value, argument):
    if isinstance(argument, (Text, TranslatedText)):
        return "'%s'" % value
    return str(value)


def to_integer(value, argument):
    """Coerce a width argument to an integer, as ``int()`` would."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgumentFloat(at=argument.at, argument=str(value))
        value = int(value)
    elif not isinstance(value, int):
        try:
            value = int(str(value))
        except ValueError:
            raise InvalidArgumentInteger(
                at=argument.at, argument=_describe(value, argument),
            )
    if not -sys.maxsize - 1 <= value <= sys.maxsize:
        raise IntegerOverflow(at=argument.at, argument=value)
    return value


@dataclass(frozen=True)
class BuiltinFilter:
    name: str
    argument: object = None

    def apply(self, value, context):
        return register.filters[self.name](value, self.argument, context)


@dataclass(frozen=True)
class ExternalFilter:
    """A filter registered on a Django ``Library`` and pulled in by ``load``."""
    name: str
    function: object = field(compare=False)
    argument: object = None

    def apply(self, value, context):
        if value is MISSING:
            value = ''
        args = [value]
        if self.argument is not None:
            args.append(resolve_argument(self.argument, context))
        if getattr(self.function, 'needs_autoescape', False):
            result = self.function(*args, autoescape=context.autoescape)
        else:
            result = self.function(*args)
        if getattr(self.function, 'is_safe', False) and isinstance(value, SafeData):
            return mark_safe(result)
        return result


@register.filter(arity=Arity.REQUIRED)
def add(value, argument, context):
    """Add the argument to the value."""
    if value is MISSING:
        return MISSING
    other = resolve_argument(argument, context)
    try:
        return int(value) + int(other)
    except (ValueError, TypeError):
        try:
            return value + other
        except Exception:
            return MISSING


@register.filter()
def addslashes(value, argument, context):
    """
    Add slashes before quotes. Useful for escaping strings in CSV, for
    example. Less useful for escaping JavaScript; use the ``escapejs``
    filter instead.
    """
    result = (
        to_string(value)
        .replace('\\', '\\\\')
        .replace('"', '\\"')
        .replace("'", "\\'")
    )
    return preserve_safety(value, result)


@register.filter()
def capfirst(value, argument, context):
    """Capitalize the first character of the value."""
    text = to_string(value)
    return preserve_safety(value, text and text[0].upper() + text[1:])


@register.filter(arity=Arity.REQUIRED)
def center(value, argument, context):
    """Center the value in a field of a given width."""
    width = to_integer(resolve_argument(argument, context), argument)
    return preserve_safety(value, to_string(value).center(width))


@register.filter(arity=Arity.REQUIRED)
def default(value, argument, context):
    """If value is unavailable, use given default."""
    if value is MISSING:
        return resolve_argument(argument, context)
    return value


@register.filter()
def escape(value, argument, context):
    """Mark the value as a string that should be auto-escaped."""
    if isinstance(value, SafeData):
        return value
    return conditional_escape(to_string(value))


@register.filter()
def lower(value, argument, context):
    """Convert a string into all lowercase."""
    return preserve_safety(value, to_string(value).lower())


@register.filter()
def safe(value, argument, context):
    """Mark the value as a string that should not be auto-escaped."""
    return mark_safe(to_string(value))


@register.filter()
def slugify(value, argument, context):
    """
    Convert to ASCII. Convert spaces to hyphens. Remove characters that aren't
    alphanumerics, underscores, or hyphens. Convert to lowercase. Also strip
    leading and trailing whitespace. Numbers are only converted to strings.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return preserve_safety(value, _slugify(to_string(value)))


@register.filter()
def upper(value, argument, context):
    """Convert a string into all uppercase."""
    return preserve_safety(value, to_string(value).upper())


@register.filter(arity=Arity.REQUIRED)
def wordwrap(value, argument, context):
    """Wrap words at `arg` line length."""
    width = to_integer(resolve_argument(argument, context), argument)
    if width <= 0:
        raise ValueError('invalid width %d (must be > 0)' % width)
    return preserve_safety(value, wrap(to_string(value), width))


@register.filter(arity=Arity.OPTIONAL)
def yesno(value, argument, context):
    """
    Given a string mapping values for true, false, and (optionally) None,
    return one of those strings according to the value:

    ==========  ======================  ==================================
    Value       Argument                Outputs
    ==========  ======================  ==================================
    ``True``    ``"yeah,no,maybe"``     ``yeah``
    ``False``   ``"yeah,no,maybe"``     ``no``
    ``None``    ``"yeah,no,maybe"``     ``maybe``
    ``None``    ``"yeah,no"``           ``"no"`` (converts None to False
                                        if no mapping for None is given.
    ==========  ======================  ==================================
    """
    if argument is None:
        choices = gettext('yes,no,maybe')
    else:
        choices = resolve_argument(argument, context)
    bits = str(choices).split(',')
    if len(bits) < 2:
        return value  # Invalid arg.
    try:
        yes, no, maybe = bits
    except ValueError:
        # Unpack list of wrong size (no "maybe" value provided).
        yes, no, maybe = bits[0], bits[1], bits[1]
    if value is None:
        return maybe
    if value:
        return yes
    return no
