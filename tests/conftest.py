import pytest
from django.template import TemplateSyntaxError, engines


@pytest.fixture
def stencil():
    return engines['stencil'].from_string


@pytest.fixture
def django_template():
    return engines['django'].from_string


@pytest.fixture
def assert_render(stencil, django_template):
    def assert_render(template, context, expected, request=None):
        assert django_template(template).render(context, request) == expected
        assert stencil(template).render(context, request) == expected

    return assert_render


@pytest.fixture
def assert_parse_error(stencil, django_template):
    """
    Both engines refuse ``template``. ``django_message`` may be ``None``
    where only the annotated message is checked.
    """
    def assert_parse_error(template, django_message, message):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            django_template(template)
        if django_message is not None:
            assert str(exc_info.value) == django_message

        with pytest.raises(TemplateSyntaxError) as exc_info:
            stencil(template)
        assert str(exc_info.value) == message

    return assert_parse_error


@pytest.fixture
def assert_render_error(stencil, django_template):
    def assert_render_error(template, context, exception, django_message, message):
        with pytest.raises(exception) as exc_info:
            django_template(template).render(context)
        if django_message is not None:
            assert str(exc_info.value) == django_message

        with pytest.raises(exception) as exc_info:
            stencil(template).render(context)
        assert str(exc_info.value) == message

    return assert_render_error
