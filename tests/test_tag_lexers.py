import pytest

from stencil.exceptions import (
    IncompleteKeywordArgument, IncompleteString, InvalidAutoescapeArgument,
    InvalidFilterName, InvalidForName, InvalidRemainder, InvalidTagName,
    InvalidVariableName, LeadingUnderscore, MissingAutoescapeArgument,
    MissingComma, MissingForExpression, MissingIn, MissingTranslatedString,
    UnexpectedAutoescapeArgument, UnexpectedForExpression,
)
from stencil.lexer.autoescape import AutoescapeToken, lex_autoescape_argument
from stencil.lexer.common import ArgumentType
from stencil.lexer.forloop import ForLexer, ForVariableNameToken, ForVariableToken
from stencil.lexer.ifcondition import (
    IfConditionLexer, IfConditionToken, IfConditionTokenType,
)
from stencil.lexer.load import LoadToken, lex_load
from stencil.lexer.tag import TagParts, TagToken, lex_tag
from stencil.lexer.url import UrlLexer, UrlToken
from stencil.lexer.variable import Argument, FilterToken, lex_variable


class TestTag:

    def test_tag(self):
        assert lex_tag(' url "foo" ', 2) == (TagToken((3, 3)), TagParts((7, 5)))

    def test_tag_without_parts(self):
        assert lex_tag(' endif ', 2) == (TagToken((3, 5)), TagParts((8, 0)))

    def test_empty(self):
        assert lex_tag('   ', 2) is None

    def test_invalid_name(self):
        with pytest.raises(InvalidTagName) as exc_info:
            lex_tag(" url'foo' ", 2)
        assert exc_info.value.at == (3, 8)


class TestVariable:

    def lex(self, source):
        head, filters = lex_variable(source[2:-2], 2)
        return head, list(filters)

    def test_variable(self):
        assert self.lex('{{ foo.bar }}') == (Argument(ArgumentType.VARIABLE, (3, 7)), [])

    def test_empty(self):
        assert lex_variable('   ', 2) is None

    def test_filter_with_text_argument(self):
        head, filters = self.lex("{{ foo.bar|default:'x' }}")
        assert head == Argument(ArgumentType.VARIABLE, (3, 7))
        assert filters == [FilterToken((11, 7), Argument(ArgumentType.TEXT, (19, 3)))]
        assert filters[0].argument.content_at() == (20, 1)

    def test_filter_chain(self):
        head, filters = self.lex('{{ foo|lower|default:bar }}')
        assert filters == [
            FilterToken((7, 5), None),
            FilterToken((13, 7), Argument(ArgumentType.VARIABLE, (21, 3))),
        ]

    def test_translated_head(self):
        source = '{{ _("hi") }}'
        head, filters = self.lex(source)
        assert head == Argument(ArgumentType.TRANSLATED_TEXT, (3, 7))
        assert head.content(source) == 'hi'
        assert filters == []

    def test_numeric_argument(self):
        _, filters = self.lex('{{ foo|bar:9.9.9 }}')
        assert filters == [FilterToken((7, 3), Argument(ArgumentType.NUMERIC, (11, 5)))]

    def test_negative_exponent_is_cut(self):
        with pytest.raises(InvalidRemainder) as exc_info:
            self.lex('{{ x|add:5.2e-3 }}')
        assert exc_info.value.at == (13, 2)

    def test_leading_underscore_variable(self):
        with pytest.raises(InvalidVariableName) as exc_info:
            self.lex('{{ _foo }}')
        assert exc_info.value.at == (3, 4)

    def test_underscore_attribute(self):
        with pytest.raises(InvalidVariableName) as exc_info:
            self.lex('{{ foo._bar }}')
        assert exc_info.value.at == (7, 4)

    def test_leading_underscore_argument(self):
        with pytest.raises(LeadingUnderscore) as exc_info:
            self.lex('{{ x|default:_y }}')
        assert exc_info.value.at == (13, 2)

    def test_invalid_filter_name(self):
        with pytest.raises(InvalidFilterName) as exc_info:
            self.lex('{{ x|1abc }}')
        assert exc_info.value.at == (5, 4)

    def test_incomplete_string(self):
        with pytest.raises(IncompleteString):
            self.lex("{{ 'foo }}")

    def test_missing_translated_string(self):
        with pytest.raises(MissingTranslatedString):
            self.lex('{{ _(foo) }}')


class TestFor:

    def test_names_expression_reversed(self):
        source = '{% for x, y in items reversed %}'
        lexer = ForLexer(source, TagParts((7, 22)))
        assert list(lexer.lex_variable_names()) == [
            ForVariableNameToken((7, 1)),
            ForVariableNameToken((10, 1)),
        ]
        lexer.lex_in()
        assert lexer.lex_expression() == ForVariableToken((15, 5), ArgumentType.VARIABLE)
        assert lexer.lex_reversed() is True

    def test_not_reversed(self):
        source = '{% for x in "ab" %}'
        lexer = ForLexer(source, TagParts((7, 9)))
        list(lexer.lex_variable_names())
        lexer.lex_in()
        assert lexer.lex_expression() == ForVariableToken((12, 4), ArgumentType.TEXT)
        assert lexer.lex_reversed() is False

    def test_missing_in(self):
        lexer = ForLexer('{% for x %}', TagParts((7, 1)))
        list(lexer.lex_variable_names())
        with pytest.raises(MissingIn) as exc_info:
            lexer.lex_in()
        assert exc_info.value.at == (7, 1)

    def test_missing_comma(self):
        lexer = ForLexer('{% for x y in z %}', TagParts((7, 8)))
        list(lexer.lex_variable_names())
        with pytest.raises(MissingComma) as exc_info:
            lexer.lex_in()
        assert exc_info.value.at == (9, 1)

    def test_missing_expression(self):
        lexer = ForLexer('{% for x in %}', TagParts((7, 4)))
        list(lexer.lex_variable_names())
        lexer.lex_in()
        with pytest.raises(MissingForExpression) as exc_info:
            lexer.lex_expression()
        assert exc_info.value.at == (9, 2)

    def test_unexpected_expression(self):
        lexer = ForLexer('{% for x in y z %}', TagParts((7, 8)))
        list(lexer.lex_variable_names())
        lexer.lex_in()
        lexer.lex_expression()
        with pytest.raises(UnexpectedForExpression) as exc_info:
            lexer.lex_reversed()
        assert exc_info.value.at == (14, 1)

    def test_invalid_name(self):
        lexer = ForLexer('{% for "x" in y %}', TagParts((7, 8)))
        with pytest.raises(InvalidForName) as exc_info:
            list(lexer.lex_variable_names())
        assert exc_info.value.at == (7, 3)
        assert exc_info.value.name == '"x"'


class TestIfCondition:

    def test_condition(self):
        source = '{% if a == "b" and not c %}'
        tokens = list(IfConditionLexer(source, TagParts((6, 18))))
        assert tokens == [
            IfConditionToken((6, 1), IfConditionTokenType.VARIABLE),
            IfConditionToken((8, 2), IfConditionTokenType.EQUAL),
            IfConditionToken((11, 3), IfConditionTokenType.TEXT),
            IfConditionToken((15, 3), IfConditionTokenType.VARIABLE),
            IfConditionToken((19, 3), IfConditionTokenType.VARIABLE),
            IfConditionToken((23, 1), IfConditionTokenType.VARIABLE),
        ]

    def test_numeric_and_comparison(self):
        source = '{% if 1 <= x %}'
        tokens = list(IfConditionLexer(source, TagParts((6, 6))))
        assert tokens == [
            IfConditionToken((6, 1), IfConditionTokenType.NUMERIC),
            IfConditionToken((8, 2), IfConditionTokenType.LESS_THAN_EQUAL),
            IfConditionToken((11, 1), IfConditionTokenType.VARIABLE),
        ]

    def test_invalid_remainder(self):
        source = "{% if 'a'b %}"
        with pytest.raises(InvalidRemainder) as exc_info:
            list(IfConditionLexer(source, TagParts((6, 4))))
        assert exc_info.value.at == (9, 1)


class TestUrl:

    def test_arguments(self):
        source = "{% url 'home' name=user.name|lower as x %}"
        tokens = list(UrlLexer(source, TagParts((7, 32))))
        assert tokens == [
            UrlToken((7, 6), ArgumentType.TEXT, None),
            UrlToken((19, 15), ArgumentType.VARIABLE, (14, 4)),
            UrlToken((35, 2), ArgumentType.VARIABLE, None),
            UrlToken((38, 1), ArgumentType.VARIABLE, None),
        ]
        assert tokens[0].content(source) == 'home'
        assert tokens[1].kwarg_name(source) == 'name'

    def test_incomplete_keyword_argument(self):
        source = "{% url 'home' name= %}"
        with pytest.raises(IncompleteKeywordArgument) as exc_info:
            list(UrlLexer(source, TagParts((7, 12))))
        assert exc_info.value.at == (14, 5)

    def test_invalid_remainder(self):
        source = "{% url 'home'x %}"
        with pytest.raises(InvalidRemainder) as exc_info:
            list(UrlLexer(source, TagParts((7, 7))))
        assert exc_info.value.at == (13, 1)


def test_load():
    source = '{% load a b from lib %}'
    assert list(lex_load(source, TagParts((8, 12)))) == [
        LoadToken((8, 1)),
        LoadToken((10, 1)),
        LoadToken((12, 4)),
        LoadToken((17, 3)),
    ]


class TestAutoescape:

    def test_on(self):
        source = '{% autoescape on %}'
        assert lex_autoescape_argument(source, TagParts((14, 2))) == AutoescapeToken((14, 2), True)

    def test_off(self):
        source = '{% autoescape off %}'
        assert lex_autoescape_argument(source, TagParts((14, 3))) == AutoescapeToken((14, 3), False)

    def test_missing(self):
        with pytest.raises(MissingAutoescapeArgument):
            lex_autoescape_argument('{% autoescape %}', TagParts((13, 0)))

    def test_invalid(self):
        with pytest.raises(InvalidAutoescapeArgument):
            lex_autoescape_argument('{% autoescape maybe %}', TagParts((14, 5)))

    def test_unexpected(self):
        with pytest.raises(UnexpectedAutoescapeArgument):
            lex_autoescape_argument('{% autoescape on off %}', TagParts((14, 6)))
