"""
Errors raised while lexing, parsing and rendering templates.

Every error carries one or more labelled spans into the original template
source. A span is a ``(start, length)`` pair. The errors are plain values: how
they are shown to a user is decided by :mod:`stencil.diagnostics`, and how they
are handed to Django is decided by :func:`to_django_exception`.

The taxonomy has three families:

* :class:`LexerError` -- raised by the core lexer and the tag sub-lexers.
* :class:`ParseError` -- raised by the parser while assembling the tree.
* :class:`RenderError` -- raised while rendering against a context.
"""
from collections import namedtuple

from django.template.base import VariableDoesNotExist as DjangoVariableDoesNotExist
from django.template.exceptions import TemplateSyntaxError

Label = namedtuple('Label', ['at', 'text'])


class TemplateError(Exception):
    """
    Base class of every span-carrying template error.

    Subclasses set ``message`` (a ``str.format`` template filled from the
    keyword arguments given to the constructor) and ``label``. Errors with
    more than one span override ``get_labels()``.
    """
    message = ''
    label = 'here'
    help = None

    def __init__(self, at=None, **params):
        self.at = tuple(at) if at is not None else None
        self.params = params
        for key, value in params.items():
            setattr(self, key, value)
        super().__init__(self.get_message())

    def get_message(self):
        return self.message.format(**self.params)

    def get_labels(self):
        if self.at is None:
            return []
        return [Label(self.at, self.label)]

    def get_help(self):
        return self.help

    def __eq__(self, other):
        return (
            type(self) is type(other) and
            self.at == other.at and
            self.params == other.params
        )

    def __hash__(self):
        return hash((type(self), self.at))

    def __repr__(self):
        return '<%s at=%r %r>' % (self.__class__.__qualname__, self.at, self.get_message())


# Lexical errors

class LexerError(TemplateError):
    pass


class IncompleteString(LexerError):
    message = 'Expected a complete string literal'


class IncompleteTranslatedString(LexerError):
    message = 'Expected a complete translation string'


class MissingTranslatedString(LexerError):
    message = 'Expected a string literal within translation'


class InvalidVariableName(LexerError):
    message = 'Expected a valid variable name'


class InvalidRemainder(LexerError):
    message = 'Could not parse the remainder'


class LeadingUnderscore(LexerError):
    message = 'Variables and attributes may not begin with underscores'


class InvalidFilterName(LexerError):
    message = 'Expected a valid filter name'


class InvalidTagName(LexerError):
    message = 'Invalid block tag name'


class IncompleteKeywordArgument(LexerError):
    message = 'Incomplete keyword argument'


class InvalidForName(LexerError):
    message = 'Invalid variable name {name} in for loop:'
    label = 'invalid variable name'


class MissingForExpression(LexerError):
    message = "Expected an expression after the 'in' keyword:"
    label = 'after this keyword'


class UnexpectedForExpression(LexerError):
    message = 'Unexpected expression in for loop:'
    label = 'unexpected expression'


class MissingComma(LexerError):
    message = 'Unexpected expression in for loop. Did you miss a comma when unpacking?'
    label = 'unexpected expression'


class MissingIn(LexerError):
    message = "Expected the 'in' keyword or a variable name:"
    label = 'after this name'


class InvalidAutoescapeArgument(LexerError):
    message = "'autoescape' argument should be 'on' or 'off'."


class MissingAutoescapeArgument(LexerError):
    message = "'autoescape' tag missing an 'on' or 'off' argument."


class UnexpectedAutoescapeArgument(LexerError):
    message = "'autoescape' tag requires exactly one argument."


# Syntactic errors

class ParseError(TemplateError):
    pass


class EmptyTag(ParseError):
    message = 'Empty block tag'


class EmptyVariable(ParseError):
    message = 'Empty variable tag'


class MissingArgument(ParseError):
    message = 'Expected an argument'


class UnexpectedArgument(ParseError):
    message = 'Unexpected argument'


class InvalidNumber(ParseError):
    message = 'Invalid numeric literal'


class InvalidFilter(ParseError):
    message = "Invalid filter: '{name}'"


class MixedArgsKwargs(ParseError):
    message = 'Cannot mix arguments and keyword arguments'


class NumericUrlName(ParseError):
    message = "'url' view name must be a string or variable, not a number"


class UrlTagNoArguments(ParseError):
    message = "'url' takes at least one argument, a URL pattern name"


class UnexpectedTag(ParseError):
    message = 'Unexpected tag {name}'
    label = 'unexpected tag'


class WrongEndTag(ParseError):
    message = 'Unexpected tag {name}, expected {expected}'

    def get_labels(self):
        return [Label(self.start_at, 'start tag'), Label(self.at, 'unexpected tag')]


class MissingEndTag(ParseError):
    message = "Unclosed '{name}' tag. Looking for one of: {expected}"
    label = 'started here'


class InvalidVerbatimTag(ParseError):
    message = "'verbatim' must be separated from its name by a single space"


class MissingTagLibrary(ParseError):
    message = "'{name}' is not a registered tag library."

    def get_help(self):
        return 'Must be one of:\n%s' % '\n'.join(self.libraries)


class MissingFilterTag(ParseError):
    message = "'{name}' is not a valid tag or filter in tag library '{library}'"

    def get_labels(self):
        return [Label(self.at, 'tag or filter'), Label(self.library_at, 'library')]


class MissingBooleanExpression(ParseError):
    message = 'Missing boolean expression'


class UnexpectedEndExpression(ParseError):
    message = 'Unexpected end of expression'
    label = 'after this'


class InvalidIfPosition(ParseError):
    message = "Not expecting '{token}' in this position"


class UnusedExpression(ParseError):
    message = "Unused expression '{expression}' in if tag"


class MissingVariableName(ParseError):
    message = 'Expected at least one variable name in for loop:'
    label = 'in this tag'


class MissingVariableBeforeIn(ParseError):
    message = "Expected a variable name before the 'in' keyword:"
    label = 'before this keyword'


class MissingUnpackVariable(ParseError):
    message = 'Expected another variable when unpacking in for loop:'
    label = 'after this variable'


class NotIterable(ParseError):
    message = '{literal} is not iterable'


class UnexpectedPositionalArgument(ParseError):
    message = 'Unexpected positional argument'


class PositionalAfterKeyword(ParseError):
    message = 'Unexpected positional argument after keyword argument'

    def get_labels(self):
        return [
            Label(self.kwarg_at, 'after this keyword argument'),
            Label(self.at, 'this positional argument'),
        ]


class UnexpectedKeywordArgument(ParseError):
    message = 'Unexpected keyword argument'


class DuplicateKeywordArgument(ParseError):
    message = "'{name}' received multiple values for keyword argument '{kwarg}'"

    def get_labels(self):
        return [Label(self.first_at, 'first'), Label(self.at, 'second')]


class MissingArguments(ParseError):
    message = "'{name}' did not receive value(s) for the argument(s): {missing}"


class MissingContextArgument(ParseError):
    message = (
        "'{name}' is decorated with takes_context=True so it must have a "
        "first argument of 'context'"
    )
    label = 'loaded here'


class UnsupportedTag(ParseError):
    message = "'{name}' is not a simple tag and cannot be used here"


# Render errors

class RenderError(TemplateError):
    exception_class = ValueError


class VariableDoesNotExist(RenderError):
    message = 'Failed lookup for key [{key}] in {object}'

    def get_labels(self):
        labels = []
        if self.object_at is not None:
            labels.append(Label(self.object_at, self.object))
        labels.append(Label(self.at, 'key'))
        return labels


class ArgumentDoesNotExist(RenderError):
    message = 'Failed lookup for key [{key}] in {object}'
    label = 'key'


class TupleUnpackError(RenderError):
    message = 'Need {expected_count} values to unpack; got {actual_count}.'

    def get_labels(self):
        return [Label(self.at, 'unpacked here'), Label(self.actual_at, 'from here')]


class InvalidArgumentInteger(RenderError):
    message = "Couldn't convert argument ({argument}) to integer"
    label = 'argument'
    exception_class = ValueError


class InvalidArgumentFloat(RenderError):
    message = "Couldn't convert float ({argument}) to integer"

    @property
    def exception_class(self):
        if self.argument == 'nan':
            return ValueError
        return OverflowError


class IntegerOverflow(RenderError):
    message = 'Integer {argument} is too large'
    exception_class = OverflowError


class AnnotatedError(RenderError):
    """
    An exception raised by user code, labelled with the template span that
    was being rendered when it happened.

    At the Django boundary the original exception is re-raised with the
    snippet as its message, so its type is preserved.
    """
    message = '{exception}'

    def __init__(self, exception, at, label):
        super().__init__(at=at, exception=exception)
        self.label = label


class _Message(str):
    # KeyError shows repr(args[0]) from __str__.
    def __repr__(self):
        return str(self)


def to_django_exception(error, diagnostic):
    """
    Return the exception Django code expects for ``error``, carrying the
    rendered ``diagnostic`` snippet as its message.
    """
    if isinstance(error, (LexerError, ParseError)):
        return TemplateSyntaxError(diagnostic)
    if isinstance(error, (VariableDoesNotExist, ArgumentDoesNotExist)):
        # Django formats the message with ``msg % params``.
        return DjangoVariableDoesNotExist(diagnostic.replace('%', '%%'))
    if isinstance(error, AnnotatedError):
        exception = error.exception
        exception.args = (_Message(diagnostic),)
        return exception
    return error.exception_class(diagnostic)
