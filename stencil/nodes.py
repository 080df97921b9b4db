"""
The nodes of a parsed template.

Every node is an immutable dataclass with a ``render(context)`` method that
returns a string. A parsed tree can therefore be shared between renders; all
per-render state lives on the :class:`~stencil.context.Context`.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from django.urls import NoReverseMatch, reverse
from django.utils.safestring import mark_safe
from django.utils.translation import gettext

from .content import MISSING, render_value_in_context
from .elements import IGNORE, RAISE
from .exceptions import AnnotatedError, TupleUnpackError

logger = logging.getLogger('stencil.template')


class NodeList(tuple):
    """A sequence of nodes rendered one after another."""
    __slots__ = ()

    def render(self, context):
        return mark_safe(''.join(node.render(context) for node in self))

    def __repr__(self):
        return '<NodeList %s>' % list.__repr__(list(self))


def resolve_argument(element, context):
    """Resolve a tag argument, using an empty string for missing values."""
    value = element.resolve(context, RAISE)
    if value is MISSING:
        return ''
    return value


@dataclass(frozen=True)
class TextNode:
    at: Tuple[int, int]
    text: str

    def render(self, context):
        return self.text


@dataclass(frozen=True)
class TranslatedTextNode:
    """``{{ _("...") }}`` without filters."""
    at: Tuple[int, int]
    text: str

    def render(self, context):
        msgid = self.text.replace('%', '%%')
        return render_value_in_context(gettext(mark_safe(msgid)), context)


@dataclass(frozen=True)
class VariableNode:
    at: Tuple[int, int]
    element: object

    def render(self, context):
        value = self.element.resolve(context, IGNORE)
        return render_value_in_context(value, context)


@dataclass(frozen=True)
class AutoescapeNode:
    """Implement the actions of the autoescape tag."""
    at: Tuple[int, int]
    enabled: bool
    nodelist: NodeList

    def render(self, context):
        old_setting = context.autoescape
        context.autoescape = self.enabled
        try:
            return self.nodelist.render(context)
        finally:
            context.autoescape = old_setting


@dataclass(frozen=True)
class IfNode:
    """
    ``{% if %}``. An ``elif`` chain is a nested ``IfNode`` as the only node
    of ``falsey``.
    """
    at: Tuple[int, int]
    condition: object
    truthy: NodeList
    falsey: NodeList

    def render(self, context):
        if self.condition.eval(context):
            return self.truthy.render(context)
        return self.falsey.render(context)


@dataclass(frozen=True)
class ForNode:
    at: Tuple[int, int]
    names: Tuple[str, ...]
    names_at: Tuple[int, int]
    iterable: object
    is_reversed: bool
    nodelist_loop: NodeList
    nodelist_empty: NodeList

    def __repr__(self):
        reversed_text = ' reversed' if self.is_reversed else ''
        return '<%s: for %s in %r, tail_len: %d%s>' % (
            self.__class__.__name__,
            ', '.join(self.names),
            self.iterable,
            len(self.nodelist_loop),
            reversed_text,
        )

    def resolve_values(self, context):
        values = self.iterable.resolve(context, RAISE)
        if values is None or values is MISSING:
            return []
        try:
            iterator = iter(values)
        except TypeError as e:
            raise AnnotatedError(e, self.iterable.at, 'here')
        try:
            values = list(iterator)
        except Exception as e:
            raise AnnotatedError(e, self.iterable.at, 'while iterating this')
        if self.is_reversed:
            values.reverse()
        return values

    def unpack(self, item):
        try:
            iterator = iter(item)
        except TypeError:
            raise TupleUnpackError(
                at=self.names_at, expected_count=len(self.names),
                actual_count=1, actual_at=self.iterable.at,
            )
        try:
            values = list(iterator)
        except Exception as e:
            raise AnnotatedError(e, self.iterable.at, 'while iterating this')
        if len(values) != len(self.names):
            raise TupleUnpackError(
                at=self.names_at, expected_count=len(self.names),
                actual_count=len(values), actual_at=self.iterable.at,
            )
        return dict(zip(self.names, values))

    def render(self, context):
        values = self.resolve_values(context)
        if not values:
            return self.nodelist_empty.render(context)

        nodelist = []
        with context.push_loop(len(values)) as forloop:
            for i, item in enumerate(values):
                forloop.count = i
                if len(self.names) > 1:
                    for name, value in self.unpack(item).items():
                        context[name] = value
                else:
                    context[self.names[0]] = item
                nodelist.append(self.nodelist_loop.render(context))
        return mark_safe(''.join(nodelist))


@dataclass(frozen=True)
class LoadNode:
    at: Tuple[int, int]

    def render(self, context):
        return ''


def current_app(request):
    if request is None:
        return None
    try:
        return request.current_app
    except AttributeError:
        try:
            return request.resolver_match.namespace
        except AttributeError:
            return None


@dataclass(frozen=True)
class UrlNode:
    at: Tuple[int, int]
    view_name: object
    args: Tuple[object, ...]
    kwargs: Tuple[Tuple[str, object], ...]
    variable: Optional[str] = None

    def __repr__(self):
        return "<%s view_name='%s' args=%s kwargs=%s as=%s>" % (
            self.__class__.__qualname__,
            self.view_name,
            repr(self.args),
            repr(self.kwargs),
            repr(self.variable),
        )

    def render(self, context):
        view_name = resolve_argument(self.view_name, context)
        args = [resolve_argument(arg, context) for arg in self.args]
        kwargs = {
            key: resolve_argument(value, context)
            for key, value in self.kwargs
        }
        try:
            url = reverse(
                view_name, args=args, kwargs=kwargs,
                current_app=current_app(context.request),
            )
        except NoReverseMatch:
            if self.variable is None:
                raise
            logger.debug(
                "NoReverseMatch for '%s' in template '%s'.",
                view_name, context.template_name, exc_info=True,
            )
            return ''

        if self.variable:
            context[self.variable] = url
            return ''
        return render_value_in_context(url, context)


@dataclass(frozen=True)
class SimpleTagNode:
    at: Tuple[int, int]
    tag: object
    args: Tuple[object, ...]
    kwargs: Tuple[Tuple[str, object], ...]
    target_var: Optional[str] = None

    def get_resolved_arguments(self, context):
        resolved_args = [resolve_argument(arg, context) for arg in self.args]
        if self.tag.takes_context:
            resolved_args = [context] + resolved_args
        resolved_kwargs = {
            key: resolve_argument(value, context)
            for key, value in self.kwargs
        }
        return resolved_args, resolved_kwargs

    def render(self, context):
        resolved_args, resolved_kwargs = self.get_resolved_arguments(context)
        try:
            output = self.tag.func(*resolved_args, **resolved_kwargs)
        except Exception as e:
            raise AnnotatedError(e, self.at, 'here')
        if self.target_var is not None:
            context[self.target_var] = output
            return ''
        return render_value_in_context(output, context)
