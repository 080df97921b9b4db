"""
Compile template source into a tree of nodes.

The parser pulls tokens from the core lexer and hands the body of each tag to
the sub-lexer for that tag. Block tags are matched the way Django's own parser
matches them: the tag parser calls :meth:`Parser.parse` with the names that
may close the block, and picks the closing token back up with
:meth:`Parser.next_token`.
"""
from collections import namedtuple

from django.utils.safestring import mark_safe
from django.utils.text import unescape_string_literal

from .elements import (
    Filter, Float, ForVariable, Int, Text, TranslatedText, Variable,
)
from .exceptions import (
    EmptyTag, EmptyVariable, InvalidFilter, InvalidNumber, InvalidVerbatimTag,
    MissingArgument, MissingArguments, MissingBooleanExpression,
    MissingContextArgument, MissingEndTag, MissingFilterTag, MissingTagLibrary,
    MissingUnpackVariable, MissingVariableBeforeIn, MissingVariableName,
    MixedArgsKwargs,
    DuplicateKeywordArgument, NotIterable, NumericUrlName,
    PositionalAfterKeyword, UnexpectedArgument, UnexpectedKeywordArgument,
    UnexpectedPositionalArgument, UnexpectedTag, UnsupportedTag,
    UrlTagNoArguments, WrongEndTag,
)
from .filters import Arity, BuiltinFilter, ExternalFilter, filter_arity, register
from .lexer.autoescape import lex_autoescape_argument
from .lexer.common import ArgumentType
from .lexer.core import START_TAG_LEN, TokenType, lex
from .lexer.forloop import ForLexer
from .lexer.ifcondition import IfConditionLexer, IfConditionTokenType
from .lexer.load import lex_load
from .lexer.tag import lex_tag
from .lexer.url import UrlLexer
from .lexer.variable import Argument, lex_variable
from .library import UnsupportedTag as UnsupportedTagType, load_tag, missing_context
from .nodes import (
    AutoescapeNode, ForNode, IfNode, LoadNode, NodeList, SimpleTagNode,
    TextNode, TranslatedTextNode, UrlNode, VariableNode,
)
from .smartif import IfParser, combine_operators

LOOP_VARIANTS = ('counter', 'counter0', 'revcounter', 'revcounter0', 'first', 'last')

OPERATOR_TYPES = {
    IfConditionTokenType.EQUAL,
    IfConditionTokenType.NOT_EQUAL,
    IfConditionTokenType.LESS_THAN,
    IfConditionTokenType.GREATER_THAN,
    IfConditionTokenType.LESS_THAN_EQUAL,
    IfConditionTokenType.GREATER_THAN_EQUAL,
}

# A block tag token after the sub-lexer for its name has run.
BlockToken = namedtuple('BlockToken', ['name', 'at', 'parts'])


class Parser:
    """
    Parse ``source`` into a :class:`~stencil.nodes.NodeList`.

    ``libraries`` maps the names usable with ``{% load %}`` to Django
    ``Library`` instances.
    """

    def __init__(self, source, libraries=None):
        self.source = source
        self.tokens = list(reversed(lex(source)))
        if libraries is None:
            libraries = {}
        self.libraries = libraries
        # Filter functions and (tag, load span) pairs pulled in by ``load``.
        self.filters = {}
        self.tags = {}
        # The open block tags, used to report unclosed blocks.
        self.command_stack = []
        self.loop_depth = 0
        self.builtin_tags = {
            'autoescape': self.parse_autoescape,
            'for': self.parse_for,
            'if': self.parse_if,
            'load': self.parse_load,
            'url': self.parse_url,
            'verbatim': self.parse_verbatim,
        }

    def text(self, at):
        start, length = at
        return self.source[start:start + length]

    def next_token(self):
        return self.tokens.pop()

    def prepend_token(self, token):
        self.tokens.append(token)

    def parse(self, parse_until=None):
        """
        Compile tokens into nodes until one of the tag names in
        ``parse_until`` is reached. The closing token is pushed back for the
        caller to read with :meth:`next_block`.
        """
        if parse_until is None:
            parse_until = ()
        nodelist = []
        while self.tokens:
            token = self.next_token()
            if token.token_type is TokenType.TEXT:
                nodelist.append(TextNode(token.at, token.content(self.source)))
            elif token.token_type is TokenType.COMMENT:
                continue
            elif token.token_type is TokenType.VARIABLE:
                nodelist.append(self.parse_variable_node(token))
            else:
                block = self.lex_block(token)
                if block.name in parse_until:
                    self.prepend_token(token)
                    return NodeList(nodelist)
                nodelist.append(self.parse_block(block, parse_until))
        if parse_until:
            self.unclosed_block_tag(parse_until)
        return NodeList(nodelist)

    def next_block(self):
        return self.lex_block(self.next_token())

    def lex_block(self, token):
        lexed = lex_tag(token.content(self.source), token.at[0] + START_TAG_LEN)
        if lexed is None:
            raise EmptyTag(at=token.at)
        tag, parts = lexed
        return BlockToken(self.text(tag.at), token.at, parts)

    def parse_block(self, block, parse_until):
        compile_func = self.builtin_tags.get(block.name)
        if compile_func is not None:
            return compile_func(block)
        if block.name in self.tags:
            tag, load_at = self.tags[block.name]
            return self.parse_simple_tag(block, tag, load_at)
        self.invalid_block_tag(block, parse_until)

    def invalid_block_tag(self, block, parse_until):
        if parse_until:
            raise WrongEndTag(
                at=block.at, name=block.name,
                expected=', '.join(parse_until),
                start_at=self.command_stack[-1][1],
            )
        raise UnexpectedTag(at=block.at, name=block.name)

    def unclosed_block_tag(self, parse_until):
        command, at = self.command_stack.pop()
        raise MissingEndTag(at=at, name=command, expected=', '.join(parse_until))

    def parse_body(self, block, parse_until):
        self.command_stack.append((block.name, block.at))
        nodelist = self.parse(parse_until)
        self.command_stack.pop()
        return nodelist, self.next_block()

    # Variables and tag arguments

    def parse_variable_node(self, token):
        element = self.parse_variable(
            token.content(self.source), token.at, token.at[0] + START_TAG_LEN,
        )
        if isinstance(element, TranslatedText):
            return TranslatedTextNode(token.at, element.value)
        return VariableNode(token.at, element)

    def parse_variable(self, content, at, start):
        """Build the left-folded filter chain of a variable expression."""
        lexed = lex_variable(content, start)
        if lexed is None:
            raise EmptyVariable(at=at)
        head, filter_lexer = lexed
        element = self.parse_argument(head)
        for filter_token in filter_lexer:
            argument = filter_token.argument
            if argument is not None:
                argument = self.parse_argument(argument)
            bound = self.parse_filter(filter_token, argument)
            element = Filter(filter_token.at, element, bound)
        return element

    def parse_filter(self, filter_token, argument):
        name = filter_token.content(self.source)
        if name in self.filters:
            function = self.filters[name]
            self.check_arity(filter_arity(function), filter_token, argument)
            return ExternalFilter(name, function, argument)
        if name in register:
            self.check_arity(register.arities[name], filter_token, argument)
            return BuiltinFilter(name, argument)
        raise InvalidFilter(at=filter_token.at, name=name)

    def check_arity(self, arity, filter_token, argument):
        if arity is Arity.REQUIRED and argument is None:
            raise MissingArgument(at=filter_token.at)
        if arity is Arity.FORBIDDEN and argument is not None:
            raise UnexpectedArgument(at=argument.at)

    def parse_argument(self, argument):
        """Turn a lexed :class:`~stencil.lexer.variable.Argument` into an element."""
        argument_type = argument.argument_type
        if argument_type is ArgumentType.NUMERIC:
            return self.parse_number(argument.at)
        if argument_type is ArgumentType.TEXT:
            value = unescape_string_literal(self.text(argument.at))
            return Text(argument.content_at(), mark_safe(value))
        if argument_type is ArgumentType.TRANSLATED_TEXT:
            start, length = argument.at
            quoted = self.source[start + 2:start + length - 1]
            value = unescape_string_literal(quoted)
            return TranslatedText(argument.content_at(), mark_safe(value))
        return self.parse_path(argument.at)

    def parse_number(self, at):
        content = self.text(at)
        try:
            return Int(at, int(content))
        except ValueError:
            pass
        try:
            return Float(at, float(content))
        except ValueError:
            raise InvalidNumber(at=at)

    def parse_path(self, at):
        lookups = tuple(self.text(at).split('.'))
        if not self.loop_depth or lookups[0] != 'forloop':
            return Variable(at, lookups)
        rest = list(lookups[1:])
        parent_count = 0
        while rest and rest[0] == 'parentloop':
            parent_count += 1
            rest.pop(0)
        variant = None
        if rest and rest[0] in LOOP_VARIANTS:
            variant = rest.pop(0)
        return ForVariable(at, variant, parent_count, tuple(rest))

    def parse_expression(self, argument_type, at):
        """
        Parse an operand lexed by a tag sub-lexer. Variables there carry
        their filter chain, which is lexed again here.
        """
        if argument_type is ArgumentType.VARIABLE:
            return self.parse_variable(self.text(at), at, at[0])
        return self.parse_argument(Argument(argument_type, at))

    # Built-in tags

    def parse_autoescape(self, block):
        argument = lex_autoescape_argument(self.source, block.parts)
        nodelist, _ = self.parse_body(block, ('endautoescape',))
        return AutoescapeNode(block.at, argument.enabled, nodelist)

    def parse_if(self, block):
        condition = self.parse_condition(block)
        truthy, end = self.parse_body(block, ('elif', 'else', 'endif'))
        if end.name == 'elif':
            falsey = NodeList([self.parse_if(end)])
        elif end.name == 'else':
            falsey, _ = self.parse_body(end, ('endif',))
        else:
            falsey = NodeList()
        return IfNode(block.at, condition, truthy, falsey)

    def parse_condition(self, block):
        tokens = []
        for token in IfConditionLexer(self.source, block.parts):
            if token.token_type in OPERATOR_TYPES:
                tokens.append((token.at, token.token_type.value, True))
            else:
                argument_type = ArgumentType(token.token_type.value)
                element = self.parse_expression(argument_type, token.at)
                tokens.append((token.at, element, False))
        if not tokens:
            raise MissingBooleanExpression(at=block.at)
        tokens = combine_operators(tokens, self.source)
        return IfParser(tokens, block.at, self.source).parse()

    def parse_for(self, block):
        lexer = ForLexer(self.source, block.parts)
        names = []
        for name_token in lexer.lex_variable_names():
            if self.text(name_token.at) == 'in':
                if names:
                    raise MissingUnpackVariable(at=names[-1])
                raise MissingVariableBeforeIn(at=name_token.at)
            names.append(name_token.at)
        if not names:
            raise MissingVariableName(at=block.at)
        lexer.lex_in()
        expression = lexer.lex_expression()
        is_reversed = lexer.lex_reversed()

        if expression.token_type is ArgumentType.NUMERIC:
            raise NotIterable(at=expression.at, literal=self.text(expression.at))
        iterable = self.parse_expression(expression.token_type, expression.at)

        first_start = names[0][0]
        last_start, last_length = names[-1]
        names_at = (first_start, last_start + last_length - first_start)

        self.loop_depth += 1
        try:
            nodelist_loop, end = self.parse_body(block, ('empty', 'endfor'))
        finally:
            self.loop_depth -= 1
        if end.name == 'empty':
            nodelist_empty, _ = self.parse_body(end, ('endfor',))
        else:
            nodelist_empty = NodeList()
        return ForNode(
            block.at, tuple(self.text(at) for at in names), names_at, iterable,
            is_reversed, nodelist_loop, nodelist_empty,
        )

    def parse_load(self, block):
        tokens = list(lex_load(self.source, block.parts))
        bits = [self.text(token.at) for token in tokens]
        if len(bits) >= 3 and bits[-2] == 'from':
            library_token = tokens[-1]
            library = self.find_library(bits[-1], library_token.at)
            for token, name in zip(tokens[:-2], bits[:-2]):
                found = False
                if name in library.filters:
                    self.filters[name] = library.filters[name]
                    found = True
                if name in library.tags:
                    self.tags[name] = (load_tag(name, library.tags[name]), token.at)
                    found = True
                if not found:
                    raise MissingFilterTag(
                        at=token.at, name=name, library=bits[-1],
                        library_at=library_token.at,
                    )
        else:
            for token, name in zip(tokens, bits):
                library = self.find_library(name, token.at)
                self.filters.update(library.filters)
                for tag_name, compile_function in library.tags.items():
                    self.tags[tag_name] = (load_tag(tag_name, compile_function), token.at)
        return LoadNode(block.at)

    def find_library(self, name, at):
        try:
            return self.libraries[name]
        except KeyError:
            raise MissingTagLibrary(at=at, name=name, libraries=sorted(self.libraries))

    def split_target_var(self, tokens):
        """Strip a trailing ``as name`` from ``tokens``."""
        if len(tokens) < 2:
            return tokens, None
        keyword, target = tokens[-2], tokens[-1]
        for token in (keyword, target):
            if token.token_type is not ArgumentType.VARIABLE or token.kwarg is not None:
                return tokens, None
        if self.text(keyword.at) != 'as' or not self.text(target.at).isidentifier():
            return tokens, None
        return tokens[:-2], self.text(target.at)

    def parse_url(self, block):
        tokens = list(UrlLexer(self.source, block.parts))
        if not tokens:
            raise UrlTagNoArguments(at=block.at)
        view_token, tokens = tokens[0], tokens[1:]
        if view_token.token_type is ArgumentType.NUMERIC:
            raise NumericUrlName(at=view_token.at)
        view_name = self.parse_expression(view_token.token_type, view_token.at)

        tokens, variable = self.split_target_var(tokens)
        args = []
        kwargs = []
        for token in tokens:
            element = self.parse_expression(token.token_type, token.at)
            if token.kwarg is None:
                args.append(element)
            else:
                kwargs.append((token.kwarg_name(self.source), element))
        if args and kwargs:
            raise MixedArgsKwargs(at=block.at)
        return UrlNode(block.at, view_name, tuple(args), tuple(kwargs), variable)

    def parse_verbatim(self, block):
        # Only these forms switch the lexer into verbatim mode.
        content = self.text(block.at)[START_TAG_LEN:-START_TAG_LEN].strip()
        if content != 'verbatim' and not content.startswith('verbatim '):
            raise InvalidVerbatimTag(at=block.at)
        start, length = block.at
        at = (start + length, 0)
        text = ''
        while self.tokens:
            token = self.next_token()
            # The lexer passes everything up to the matching end tag as text.
            if token.token_type is TokenType.TAG:
                return TextNode(at, text)
            at = token.at
            text = token.content(self.source)
        raise MissingEndTag(at=block.at, name='verbatim', expected='endverbatim')

    # Simple tags from loaded libraries

    def parse_simple_tag(self, block, tag, load_at):
        """
        Check the arguments of a simple tag against its signature, in the way
        ``django.template.library.parse_bits`` does.
        """
        if isinstance(tag, UnsupportedTagType):
            raise UnsupportedTag(at=block.at, name=tag.name)
        if missing_context(tag):
            raise MissingContextArgument(at=load_at, name=tag.name)

        tokens, target_var = self.split_target_var(list(UrlLexer(self.source, block.parts)))
        args = []
        kwargs = {}
        kwarg_spans = {}
        unhandled_params = list(tag.params)
        unhandled_kwargs = [
            kwarg for kwarg in tag.kwonly
            if not tag.kwonly_defaults or kwarg not in tag.kwonly_defaults
        ]
        for token in tokens:
            element = self.parse_expression(token.token_type, token.at)
            if token.kwarg is not None:
                param = token.kwarg_name(self.source)
                kwarg_start = token.kwarg[0]
                kwarg_at = (kwarg_start, token.at[0] + token.at[1] - kwarg_start)
                if param not in tag.params and param not in tag.kwonly and tag.varkw is None:
                    raise UnexpectedKeywordArgument(at=kwarg_at)
                if param in kwargs:
                    raise DuplicateKeywordArgument(
                        at=kwarg_at, name=tag.name, kwarg=param,
                        first_at=kwarg_spans[param],
                    )
                kwargs[param] = element
                kwarg_spans[param] = kwarg_at
                if param in unhandled_params:
                    unhandled_params.remove(param)
                elif param in unhandled_kwargs:
                    unhandled_kwargs.remove(param)
            else:
                if kwargs:
                    raise PositionalAfterKeyword(
                        at=token.at, kwarg_at=list(kwarg_spans.values())[-1],
                    )
                if unhandled_params:
                    unhandled_params.pop(0)
                elif tag.varargs is None:
                    raise UnexpectedPositionalArgument(at=token.at)
                args.append(element)
        if tag.defaults is not None:
            # The last params are handled by their defaults.
            unhandled_params = unhandled_params[:len(unhandled_params) - len(tag.defaults)]
        if unhandled_params or unhandled_kwargs:
            raise MissingArguments(
                at=block.parts.at, name=tag.name,
                missing=', '.join("'%s'" % p for p in unhandled_params + unhandled_kwargs),
            )
        return SimpleTagNode(block.at, tag, tuple(args), tuple(kwargs.items()), target_var)


def parse(source, libraries=None):
    return Parser(source, libraries).parse()
