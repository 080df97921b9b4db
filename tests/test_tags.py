import pytest
from django.template import TemplateSyntaxError
from django.test import RequestFactory
from django.urls import NoReverseMatch


class TestAutoescape:

    def test_off(self, assert_render):
        template = '{% autoescape off %}{{ x }}{% endautoescape %}{{ x }}'
        assert_render(template=template, context={'x': '<b>'}, expected='<b>&lt;b&gt;')

    def test_nested(self, assert_render):
        template = (
            '{% autoescape off %}{% autoescape on %}{{ x }}{% endautoescape %}'
            '{{ x }}{% endautoescape %}'
        )
        assert_render(template=template, context={'x': '&'}, expected='&amp;&')

    def test_missing_end_tag(self, assert_parse_error):
        message = """\
  × Unclosed 'autoescape' tag. Looking for one of: endautoescape
   ╭────
 1 │ {% autoescape off %}
   · ──────────┬─────────
   ·           ╰── started here
   ╰────
"""
        assert_parse_error(
            template='{% autoescape off %}',
            django_message=None,
            message=message,
        )


class TestIf:

    @pytest.mark.parametrize('context,expected', [
        ({'a': 2, 'b': True}, 'yes'),
        ({'a': 2, 'b': False}, 'no'),
        ({'a': 0, 'b': True}, 'no'),
    ])
    def test_and(self, assert_render, context, expected):
        template = '{% if a > 1 and b %}yes{% else %}no{% endif %}'
        assert_render(template=template, context=context, expected=expected)

    @pytest.mark.parametrize('x,expected', [(1, 'one'), (2, 'two'), (3, 'many')])
    def test_elif(self, assert_render, x, expected):
        template = '{% if x == 1 %}one{% elif x == 2 %}two{% else %}many{% endif %}'
        assert_render(template=template, context={'x': x}, expected=expected)

    def test_in(self, assert_render):
        template = '{% if x in items %}in{% endif %}{% if y not in items %}out{% endif %}'
        context = {'x': 'a', 'y': 'b', 'items': ['a']}
        assert_render(template=template, context=context, expected='inout')

    def test_incomparable_values_are_false(self, assert_render):
        template = '{% if a > b %}yes{% else %}no{% endif %}'
        assert_render(template=template, context={'a': 1, 'b': 'x'}, expected='no')

    def test_missing_is_none(self, assert_render):
        template = '{% if x is None %}none{% endif %}'
        assert_render(template=template, context={}, expected='none')

    def test_is_not(self, assert_render):
        template = '{% if x is not None %}zero{% endif %}'
        assert_render(template=template, context={'x': 0}, expected='zero')

    def test_not(self, assert_render):
        template = '{% if not x %}empty{% endif %}'
        assert_render(template=template, context={'x': []}, expected='empty')

    def test_precedence(self, assert_render):
        template = '{% if a or b and c %}yes{% else %}no{% endif %}'
        context = {'a': True, 'b': False, 'c': False}
        assert_render(template=template, context=context, expected='yes')

    def test_filter_in_condition(self, assert_render):
        template = "{% if x|lower == 'a' %}yes{% endif %}"
        assert_render(template=template, context={'x': 'A'}, expected='yes')

    def test_literals(self, assert_render):
        template = "{% if 1 < 2.5 and 'a' != 'b' %}yes{% endif %}"
        assert_render(template=template, context={}, expected='yes')

    def test_missing_condition(self, assert_parse_error):
        message = """\
  × Missing boolean expression
   ╭────
 1 │ {% if %}{% endif %}
   · ────┬───
   ·     ╰── here
   ╰────
"""
        assert_parse_error(
            template='{% if %}{% endif %}',
            django_message='Unexpected end of expression in if tag.',
            message=message,
        )

    def test_wrong_end_tag(self, assert_parse_error):
        message = """\
  × Unexpected tag endfor, expected elif, else, endif
   ╭────
 1 │ {% if x %}{% endfor %}
   · ─────┬──────────┬─────
   ·      │          ╰── unexpected tag
   ·      ╰── start tag
   ╰────
"""
        assert_parse_error(
            template='{% if x %}{% endfor %}',
            django_message=None,
            message=message,
        )


class TestFor:

    def test_for(self, assert_render):
        template = '{% for x in y %}{{ x }}{% endfor %}'
        assert_render(template=template, context={'y': [1, 2, 'foo']}, expected='12foo')

    def test_reversed(self, assert_render):
        template = '{% for x in y reversed %}{{ x }}{% endfor %}'
        assert_render(template=template, context={'y': [1, 2, 3]}, expected='321')

    def test_text(self, assert_render):
        template = "{% for x in 'abc' %}{{ x }}-{% endfor %}"
        assert_render(template=template, context={}, expected='a-b-c-')

    @pytest.mark.parametrize('context', [{}, {'y': None}, {'y': []}])
    def test_empty(self, assert_render, context):
        template = '{% for x in y %}{{ x }}{% empty %}none{% endfor %}'
        assert_render(template=template, context=context, expected='none')

    def test_counters(self, assert_render):
        template = (
            "{% for x in 'abc' %}{{ forloop.counter }}{{ forloop.counter0 }}"
            '{{ forloop.revcounter }}{{ forloop.revcounter0 }}'
            '{{ forloop.first }}{{ forloop.last }},{% endfor %}'
        )
        expected = '1032TrueFalse,2121FalseFalse,3210FalseTrue,'
        assert_render(template=template, context={}, expected=expected)

    def test_parentloop(self, assert_render):
        template = (
            "{% for x in 'ab' %}{% for y in 'cd' %}"
            '{{ forloop.parentloop.counter }}{{ forloop.counter }},'
            '{% endfor %}{% endfor %}'
        )
        assert_render(template=template, context={}, expected='11,12,21,22,')

    def test_forloop_dict(self, assert_render):
        template = (
            "{% autoescape off %}{% for x in 'a' %}{{ forloop }}"
            '{% endfor %}{% endautoescape %}'
        )
        expected = (
            "{'parentloop': {}, 'counter0': 0, 'counter': 1, 'revcounter': 1, "
            "'revcounter0': 0, 'first': True, 'last': True}"
        )
        assert_render(template=template, context={}, expected=expected)

    def test_forloop_outside_loop(self, assert_render):
        assert_render(template='{{ forloop.counter }}', context={}, expected='')

    def test_forloop_variable_outside_loop(self, assert_render):
        context = {'forloop': {'counter': 'mine'}}
        assert_render(template='{{ forloop.counter }}', context=context, expected='mine')

    def test_unpack(self, assert_render):
        template = '{% for x, y in items %}{{ x }}-{{ y }},{% endfor %}'
        context = {'items': [(1, 2), (3, 4)]}
        assert_render(template=template, context=context, expected='1-2,3-4,')

    def test_unpack_dict_items(self, assert_render):
        template = '{% for key, value in data.items %}{{ key }}={{ value }};{% endfor %}'
        context = {'data': {'a': 1, 'b': 2}}
        assert_render(template=template, context=context, expected='a=1;b=2;')

    def test_loop_variable_does_not_leak(self, assert_render):
        template = '{% for x in y %}{% endfor %}{{ x }}'
        assert_render(template=template, context={'y': [1]}, expected='')

    def test_loop_variable_shadows(self, assert_render):
        template = '{% for x in y %}{{ x }}{% endfor %}{{ x }}'
        assert_render(template=template, context={'x': 'outer', 'y': [1]}, expected='1outer')

    def test_unpack_error(self, assert_render_error):
        message = """\
  × Need 2 values to unpack; got 3.
   ╭────
 1 │ {% for x, y in items %}{% endfor %}
   ·        ──┬─    ──┬──
   ·          │       ╰── from here
   ·          ╰── unpacked here
   ╰────
"""
        assert_render_error(
            template='{% for x, y in items %}{% endfor %}',
            context={'items': [(1, 2, 3)]},
            exception=ValueError,
            django_message=None,
            message=message,
        )

    def test_not_iterable(self, assert_render_error):
        message = """\
  × 'int' object is not iterable
   ╭────
 1 │ {% for x in y %}{% endfor %}
   ·             ┬
   ·             ╰── here
   ╰────
"""
        assert_render_error(
            template='{% for x in y %}{% endfor %}',
            context={'y': 1},
            exception=TypeError,
            django_message="'int' object is not iterable",
            message=message,
        )

    def test_missing_attribute_raises(self, stencil):
        template = stencil('{% for x in y.z %}{% endfor %}')
        with pytest.raises(Exception, match=r'Failed lookup for key \[z\]'):
            template.render({'y': {}})

    def test_numeric_literal(self, stencil):
        with pytest.raises(TemplateSyntaxError, match='1 is not iterable'):
            stencil('{% for x in 1 %}{% endfor %}')


class TestUrl:

    def test_url(self, assert_render):
        assert_render(template="{% url 'home' %}", context={}, expected='/')

    def test_args(self, assert_render):
        template = "{% url 'bio' 'lily' %}"
        assert_render(template=template, context={}, expected='/bio/lily/')

    def test_kwargs(self, assert_render):
        template = "{% url 'bio' username=name %}"
        assert_render(template=template, context={'name': 'lily'}, expected='/bio/lily/')

    def test_variable_view_name(self, assert_render):
        template = '{% url view name %}'
        context = {'view': 'bio', 'name': 'lily'}
        assert_render(template=template, context=context, expected='/bio/lily/')

    def test_as(self, assert_render):
        template = "{% url 'home' as link %}[{{ link }}]"
        assert_render(template=template, context={}, expected='[/]')

    def test_as_no_reverse_match_does_not_bind(self, stencil):
        template = stencil("{% url 'nope' as link %}[{{ link|default:'unbound' }}]")
        assert template.render({}) == '[unbound]'

    def test_as_no_reverse_match_keeps_existing_value(self, stencil):
        template = stencil("{% url 'nope' as link %}[{{ link }}]")
        assert template.render({'link': 'kept'}) == '[kept]'

    def test_no_reverse_match(self, stencil, django_template):
        with pytest.raises(NoReverseMatch):
            django_template("{% url 'nope' %}").render({})
        with pytest.raises(NoReverseMatch):
            stencil("{% url 'nope' %}").render({})

    def test_as_inside_loop_does_not_leak(self, assert_render):
        template = "{% for x in 'ab' %}{% url 'home' as link %}{% endfor %}[{{ link }}]"
        assert_render(template=template, context={}, expected='[]')

    def test_default_namespace(self, assert_render):
        template = "{% url 'users:user' 'lily' %}"
        assert_render(template=template, context={}, expected='/users/lily/')

    def test_current_app(self, assert_render):
        request = RequestFactory().get('/')
        request.current_app = 'members'
        template = "{% url 'users:user' 'lily' %}"
        assert_render(template=template, context={}, expected='/members/lily/', request=request)

    def test_no_arguments(self, assert_parse_error):
        message = """\
  × 'url' takes at least one argument, a URL pattern name
   ╭────
 1 │ {% url %}
   · ────┬────
   ·     ╰── here
   ╰────
"""
        assert_parse_error(
            template='{% url %}',
            django_message="'url' takes at least one argument, a URL pattern name.",
            message=message,
        )


class TestLoad:

    def test_load_library(self, assert_render):
        template = '{% load custom_filters %}{{ x|cut:"a" }}'
        assert_render(template=template, context={'x': 'a-a'}, expected='-')

    def test_load_from(self, assert_render):
        template = '{% load square from more_filters %}{{ 3|square }}'
        assert_render(template=template, context={}, expected='9')

    def test_load_renders_nothing(self, assert_render):
        assert_render(template='a{% load more_filters %}b', context={}, expected='ab')

    def test_missing_library(self, stencil):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            stencil('{% load nope %}')
        message = str(exc_info.value)
        assert message.startswith("""\
  × 'nope' is not a registered tag library.
   ╭────
 1 │ {% load nope %}
   ·         ──┬─
   ·           ╰── here
   ╰────
  help: Must be one of:
""")
        assert '        custom_tags\n' in message

    def test_missing_filter(self, assert_parse_error):
        message = """\
  × 'nope' is not a valid tag or filter in tag library 'more_filters'
   ╭────
 1 │ {% load nope from more_filters %}
   ·         ──┬─      ──────┬─────
   ·           │             ╰── library
   ·           ╰── tag or filter
   ╰────
"""
        assert_parse_error(
            template='{% load nope from more_filters %}',
            django_message=(
                "'nope' is not a valid tag or filter in tag library 'more_filters'"
            ),
            message=message,
        )


class TestVerbatim:

    def test_verbatim(self, assert_render):
        template = '{% verbatim %}{{ x }}{% if %}{% endverbatim %}'
        assert_render(template=template, context={'x': 1}, expected='{{ x }}{% if %}')

    def test_named(self, assert_render):
        template = '{% verbatim a %}{% endverbatim %}{% endverbatim a %}'
        assert_render(template=template, context={}, expected='{% endverbatim %}')

    def test_name_needs_a_space(self, stencil):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            stencil('{% verbatim\ta %}{{ x }}{% endverbatim\ta %}')
        assert str(exc_info.value) == """\
  × 'verbatim' must be separated from its name by a single space
   ╭────
 1 │ {% verbatim\ta %}{{ x }}{% endverbatim\ta %}
   · ────────┬───────
   ·         ╰── here
   ╰────
"""


def test_comment(assert_render):
    assert_render(template='a{# {{ x }} #}b', context={'x': 1}, expected='ab')


def test_unexpected_tag(assert_parse_error):
    message = """\
  × Unexpected tag endfor
   ╭────
 1 │ {% endfor %}
   · ──────┬─────
   ·       ╰── unexpected tag
   ╰────
"""
    assert_parse_error(
        template='{% endfor %}',
        django_message=None,
        message=message,
    )
