from django.template.base import UNKNOWN_SOURCE, Origin

from .context import make_context
from .diagnostics import render_diagnostic
from .exceptions import TemplateError, to_django_exception
from .parser import Parser


class Template:
    """
    一个编译完成的模板
    实例化时即完成解析，语法错误在此时抛出；渲染可以重复执行多次

    A compiled template. Syntax errors are raised when it is created, as a
    ``TemplateSyntaxError`` carrying an annotated snippet of the source.
    """
    def __init__(self, template_string, origin=None, name=None, engine=None):
        if engine is None:
            from .engine import Engine
            engine = Engine()
        if origin is None:
            origin = Origin(UNKNOWN_SOURCE)
        self.name = name
        self.origin = origin
        self.engine = engine
        self.source = str(template_string)  # May be lazy.
        self.nodelist = self.compile_nodelist()

    def __repr__(self):
        return '<%s template_string="%s...">' % (
            self.__class__.__qualname__,
            self.source[:20].replace('\n', ''),
        )

    def compile_nodelist(self):
        """Parse and compile the template source into a nodelist."""
        parser = Parser(self.source, self.engine.template_libraries)
        try:
            return parser.parse()
        except TemplateError as e:
            raise self.django_exception(e) from None

    def django_exception(self, error):
        diagnostic = render_diagnostic(self.source, error, self.name)
        return to_django_exception(error, diagnostic)

    def render(self, context=None, request=None):
        """
        渲染模板
        context 为 dict 或 None，request 为可选的 HttpRequest，``url`` 标签会用它确定 current_app
        """
        context = make_context(context, request, autoescape=self.engine.autoescape)
        with context.bind_template(self):
            try:
                return self.nodelist.render(context)
            except TemplateError as e:
                raise self.django_exception(e) from None
