"""
Parser and evaluator for the conditions of ``if`` and ``elif`` tags.

The expression is parsed by precedence climbing over the binding powers Django
uses, lowest first: ``or``, ``and``, the operand of a prefix ``not``, ``in``
and ``not in``, then ``is``, ``is not`` and the comparisons. Evaluation
follows ``django.template.smartif``: an operator whose operands raise
evaluates to ``False``.
"""
import logging
from collections import namedtuple
from dataclasses import dataclass

from .content import MISSING
from .elements import IGNORE
from .exceptions import (
    InvalidIfPosition, MissingBooleanExpression, UnexpectedEndExpression,
    UnusedExpression,
)

logger = logging.getLogger('stencil.template')

NOT_OPERAND = 8

BINDING_POWERS = {
    'or': 6,
    'and': 7,
    'in': 9,
    'not in': 9,
    'is': 10,
    'is not': 10,
    '==': 10,
    '!=': 10,
    '>': 10,
    '>=': 10,
    '<': 10,
    '<=': 10,
}

WORD_OPERATORS = {'and', 'or', 'not', 'in', 'is'}

# ``value`` is the operator symbol for operators and the parsed element for
# operands.
IfToken = namedtuple('IfToken', ['at', 'value', 'is_operator'])


@dataclass(frozen=True)
class Operand:
    """A single value in a condition."""
    element: object

    def eval(self, context):
        try:
            value = self.element.resolve(context, IGNORE)
        except Exception:
            logger.debug(
                "Exception while evaluating if condition in template '%s'.",
                context.template_name, exc_info=True,
            )
            return None
        if value is MISSING:
            return None
        return value


@dataclass(frozen=True)
class Not:
    operand: object

    def eval(self, context):
        try:
            return not self.operand.eval(context)
        except Exception:
            return False


@dataclass(frozen=True)
class Infix:
    left: object
    right: object

    def eval(self, context):
        try:
            return self.func(context, self.left, self.right)
        except Exception:
            # Templates shouldn't throw exceptions when rendering.
            logger.debug(
                "Exception while evaluating if condition in template '%s'.",
                context.template_name, exc_info=True,
            )
            return False


class Or(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) or y.eval(context))


class And(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) and y.eval(context))


class In(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) in y.eval(context))


class NotIn(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) not in y.eval(context))


class Is(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) is y.eval(context))


class IsNot(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) is not y.eval(context))


class Equal(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) == y.eval(context))


class NotEqual(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) != y.eval(context))


class GreaterThan(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) > y.eval(context))


class GreaterThanEqual(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) >= y.eval(context))


class LessThan(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) < y.eval(context))


class LessThanEqual(Infix):
    func = staticmethod(lambda context, x, y: x.eval(context) <= y.eval(context))


INFIX_NODES = {
    'or': Or,
    'and': And,
    'in': In,
    'not in': NotIn,
    'is': Is,
    'is not': IsNot,
    '==': Equal,
    '!=': NotEqual,
    '>': GreaterThan,
    '>=': GreaterThanEqual,
    '<': LessThan,
    '<=': LessThanEqual,
}


def combine_operators(tokens, source):
    """
    Turn the word operators among ``tokens`` into operator tokens, joining
    ``not in`` and ``is not`` into one token each.

    ``tokens`` holds ``(at, value, is_operator)`` triples as lexed, where a
    word such as ``and`` still looks like an operand.
    """
    combined = []
    for at, value, is_operator in tokens:
        if is_operator:
            combined.append(IfToken(at, value, is_operator))
            continue
        word = source[at[0]:at[0] + at[1]]
        if word not in WORD_OPERATORS:
            combined.append(IfToken(at, value, False))
            continue
        previous = combined[-1] if combined else None
        if previous is not None and previous.is_operator and (
            (previous.value == 'not' and word == 'in') or
            (previous.value == 'is' and word == 'not')
        ):
            start = previous.at[0]
            combined[-1] = IfToken(
                (start, at[0] + at[1] - start), '%s %s' % (previous.value, word), True,
            )
        else:
            combined.append(IfToken(at, word, True))
    return combined


class IfParser:
    """
    Build a condition tree from a list of :class:`IfToken`.

    ``at`` is the span of the whole tag, reported when the condition is empty.
    """

    def __init__(self, tokens, at, source):
        self.tokens = tokens
        self.at = at
        self.source = source
        self.position = 0

    def next_token(self, previous):
        if self.position >= len(self.tokens):
            raise UnexpectedEndExpression(at=previous.at)
        token = self.tokens[self.position]
        self.position += 1
        return token

    def parse(self):
        if not self.tokens:
            raise MissingBooleanExpression(at=self.at)
        condition = self.expression(None, 0)
        if self.position < len(self.tokens):
            self.unexpected(self.tokens[self.position])
        return condition

    def unexpected(self, token):
        if token.is_operator:
            raise InvalidIfPosition(at=token.at, token=token.value)
        start, length = token.at
        raise UnusedExpression(
            at=token.at, expression=self.source[start:start + length],
        )

    def expression(self, previous, binding_power):
        token = self.next_token(previous)
        if not token.is_operator:
            left = Operand(token.value)
        elif token.value == 'not':
            left = Not(self.expression(token, NOT_OPERAND))
        else:
            raise InvalidIfPosition(at=token.at, token=token.value)

        while self.position < len(self.tokens):
            operator = self.tokens[self.position]
            if not operator.is_operator or operator.value not in BINDING_POWERS:
                self.unexpected(operator)
            if BINDING_POWERS[operator.value] <= binding_power:
                break
            self.position += 1
            right = self.expression(operator, BINDING_POWERS[operator.value])
            left = INFIX_NODES[operator.value](left, right)
        return left
