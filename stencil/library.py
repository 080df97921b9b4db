import inspect
import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import Optional

from django.template.library import InvalidTemplateLibrary

logger = logging.getLogger('stencil.template')


def import_library(name):
    """
    加载模板标签模块，返回模块中的 register 实例
    该实例中保存着模块中声明的 Tags 和 Filters 的处理函数

    Load a Library object from a template tag module.
    """
    logger.debug("Loading template library '%s'.", name)
    try:
        module = import_module(name)
    except ImportError as e:
        raise InvalidTemplateLibrary(
            "Invalid template library specified. ImportError raised when "
            "trying to load '%s': %s" % (name, e)
        )
    try:
        return module.register
    except AttributeError:
        raise InvalidTemplateLibrary(
            "Module  %s does not have a variable named 'register'" % name,
        )


@dataclass(frozen=True)
class SimpleTag:
    """
    A tag registered with ``Library.simple_tag``.

    The signature fields are those of ``inspect.getfullargspec`` with
    ``context`` already removed from ``params`` when the tag takes it.
    """
    name: str
    func: object = field(compare=False)
    takes_context: bool
    params: tuple
    varargs: Optional[str]
    varkw: Optional[str]
    defaults: Optional[tuple]
    kwonly: tuple
    kwonly_defaults: Optional[dict] = field(compare=False)


@dataclass(frozen=True)
class UnsupportedTag:
    """A compiled Django tag, which only Django's own parser can run."""
    name: str


def _closure(compile_function):
    code = getattr(compile_function, '__code__', None)
    if code is None or code.co_name != 'compile_func':
        return None
    nonlocals = inspect.getclosurevars(compile_function).nonlocals
    # inclusion_tag and simple_block_tag close over these as well.
    if 'filename' in nonlocals or 'end_name' in nonlocals:
        return None
    if 'func' not in nonlocals or 'takes_context' not in nonlocals:
        return None
    return nonlocals


def load_tag(name, compile_function):
    """
    Describe the tag ``name`` of a library: a :class:`SimpleTag` when it was
    registered with ``Library.simple_tag``, an :class:`UnsupportedTag`
    otherwise.

    ``Library.simple_tag`` keeps the decorated function and its
    ``takes_context`` flag in the closure of the compile function it
    registers.
    """
    nonlocals = _closure(compile_function)
    if nonlocals is None:
        return UnsupportedTag(name)
    func = nonlocals['func']
    params, varargs, varkw, defaults, kwonly, kwonly_defaults, _ = (
        inspect.getfullargspec(inspect.unwrap(func))
    )
    takes_context = bool(nonlocals['takes_context'])
    if takes_context and params and params[0] == 'context':
        params = params[1:]
    return SimpleTag(
        name=name,
        func=func,
        takes_context=takes_context,
        params=tuple(params),
        varargs=varargs,
        varkw=varkw,
        defaults=defaults,
        kwonly=tuple(kwonly),
        kwonly_defaults=kwonly_defaults,
    )


def missing_context(tag):
    """Whether ``tag`` takes the context but doesn't name it ``context``."""
    if not tag.takes_context:
        return False
    func = inspect.unwrap(tag.func)
    params = inspect.getfullargspec(func).args
    return not params or params[0] != 'context'
