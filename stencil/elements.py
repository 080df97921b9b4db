"""
Tag elements: the values that appear inside ``{{ }}`` and tag arguments.

Every element is an immutable dataclass with a ``resolve(context, failures)``
method. ``failures`` decides what a failed attribute lookup does:

* ``IGNORE`` -- the element resolves to :data:`~stencil.content.MISSING`.
* ``RAISE`` -- a :class:`~stencil.exceptions.VariableDoesNotExist` is raised.

A lookup of the first name in a path never raises; an unknown name is always
missing.
"""
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from django.utils.safestring import SafeData, mark_safe
from django.utils.translation import gettext

from .content import MISSING
from .context import BaseContext
from .exceptions import VariableDoesNotExist

logger = logging.getLogger('stencil.template')


class Failures(Enum):
    IGNORE = 'ignore'
    RAISE = 'raise'


IGNORE = Failures.IGNORE
RAISE = Failures.RAISE


class LookupFailed(Exception):
    pass


def lookup(current, bit):
    """
    Look ``bit`` up on ``current`` the way Django does: dictionary lookup,
    then attribute lookup, then list-index lookup.
    """
    try:
        return current[bit]
    except (TypeError, AttributeError, KeyError, ValueError, IndexError):
        pass
    try:
        if isinstance(current, BaseContext) and getattr(type(current), bit):
            raise AttributeError
        return getattr(current, bit)
    except (TypeError, AttributeError):
        # An attribute that exists but raised is the user's error.
        if not isinstance(current, BaseContext) and bit in dir(current):
            raise
    try:
        return current[int(bit)]
    except (IndexError, ValueError, KeyError, TypeError):
        raise LookupFailed(bit)


def resolve_callable(current):
    """Call ``current`` if it is callable and templates may call it."""
    if not callable(current):
        return current
    if getattr(current, 'do_not_call_in_templates', False):
        return current
    if getattr(current, 'alters_data', False):
        return MISSING
    try:
        return current()
    except TypeError:
        try:
            signature = inspect.signature(current)
        except ValueError:
            return MISSING
        try:
            signature.bind()
        except TypeError:
            # Arguments are required: this is not a template callable.
            return MISSING
        raise


def walk(current, bits, start, offset, context, failures):
    """
    Resolve the dotted ``bits`` starting from ``current``.

    ``start`` is where the path begins in the source and ``offset`` the length
    of the part of it already resolved, used to label lookup failures.
    """
    for bit in bits:
        key_at = (start + offset + 1, len(bit))
        try:
            current = resolve_callable(lookup(current, bit))
        except LookupFailed:
            if failures is RAISE:
                raise VariableDoesNotExist(
                    at=key_at, key=bit, object=repr(current),
                    object_at=(start, offset),
                )
            logger.debug(
                "Exception while resolving variable '%s' in template '%s'.",
                bit, context.template_name, exc_info=True,
            )
            return MISSING
        except Exception as e:
            if not getattr(e, 'silent_variable_failure', False):
                raise
            logger.debug(
                "Exception while resolving variable '%s' in template '%s'.",
                bit, context.template_name, exc_info=True,
            )
            return MISSING
        if current is MISSING:
            return current
        offset += len(bit) + 1
    return current


@dataclass(frozen=True)
class Int:
    at: Tuple[int, int]
    value: int

    def resolve(self, context, failures=IGNORE):
        return self.value


@dataclass(frozen=True)
class Float:
    at: Tuple[int, int]
    value: float

    def resolve(self, context, failures=IGNORE):
        return self.value


@dataclass(frozen=True)
class Text:
    """A quoted string literal, already unescaped and marked safe."""
    at: Tuple[int, int]
    value: str

    def resolve(self, context, failures=IGNORE):
        return self.value


@dataclass(frozen=True)
class TranslatedText:
    """A ``_("...")`` literal, translated each time it is rendered."""
    at: Tuple[int, int]
    value: str

    def resolve(self, context, failures=IGNORE):
        msgid = self.value.replace('%', '%%')
        if isinstance(self.value, SafeData):
            msgid = mark_safe(msgid)
        return gettext(msgid)


@dataclass(frozen=True)
class Variable:
    at: Tuple[int, int]
    lookups: Tuple[str, ...]

    @property
    def name(self):
        return self.lookups[0]

    def resolve(self, context, failures=IGNORE):
        first, *bits = self.lookups
        try:
            current = context[first]
        except KeyError:
            return MISSING
        current = resolve_callable(current)
        if current is MISSING:
            return current
        return walk(current, bits, self.at[0], len(first), context, failures)


@dataclass(frozen=True)
class ForVariable:
    """
    ``forloop`` inside a ``{% for %}`` body.

    ``parent_count`` is the number of ``.parentloop`` steps taken and
    ``variant`` the loop counter asked for, or ``None`` for the loop itself.
    ``lookups`` are whatever dotted names follow.
    """
    at: Tuple[int, int]
    variant: Optional[str]
    parent_count: int
    lookups: Tuple[str, ...] = ()

    @property
    def name(self):
        return 'forloop'

    def resolve(self, context, failures=IGNORE):
        forloop = context.get_loop(self.parent_count)
        offset = len('forloop') + len('.parentloop') * self.parent_count
        if forloop is None:
            if self.parent_count > len(context.loops) or self.variant is not None:
                return MISSING
            current = {}
        elif self.variant is None:
            current = context.loop_as_dict(self.parent_count)
        else:
            current = getattr(forloop, self.variant)
            offset += len(self.variant) + 1
        return walk(current, self.lookups, self.at[0], offset, context, failures)


@dataclass(frozen=True)
class Filter:
    """``left|filter``: ``filter`` is a bound filter from :mod:`stencil.filters`."""
    at: Tuple[int, int]
    left: object
    filter: object

    def resolve(self, context, failures=IGNORE):
        value = self.left.resolve(context, failures)
        return self.filter.apply(value, context)
