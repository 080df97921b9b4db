"""
类型：Engine
作用：保存模板引擎的配置，并根据模板字符串或模板名称创建 Template 实例

有什么：
1. 可以通过 load 标签加载的 Library 实例，即模块中的 register
2. 模板加载器，查找模板文件的工作交给 Django 的 loaders 完成
能做什么：
1. 根据模板字符串，返回 Template 实例
2. 根据模板文件名称，返回 Template 实例
"""

from django.core.exceptions import ImproperlyConfigured
from django.template.exceptions import TemplateDoesNotExist
from django.utils.functional import cached_property
from django.utils.module_loading import import_string

from .library import import_library
from .template import Template


class Engine:
    """
    属性：
    1. dirs: list 模板文件存放的路径
    2. app_dirs: boolean 是否查找安装应用中的 templates 目录
    3. autoescape: boolean 是否进行 HTML 转义
    4. debug: boolean 是否调试状态
    5. loaders: 加载器配置，与 Django 的 OPTIONS['loaders'] 格式相同
    6. file_charset: str 模板文件的字符集
    7. libraries: dict 名称 -> 模块路径，{% load %} 可以加载的标签库
    """

    def __init__(self, dirs=None, app_dirs=False, autoescape=True, debug=False,
                 libraries=None, loaders=None, file_charset='utf-8'):
        if dirs is None:
            dirs = []
        if loaders is None:
            loaders = ['django.template.loaders.filesystem.Loader']
            if app_dirs:
                loaders += ['django.template.loaders.app_directories.Loader']
            if not debug:
                loaders = [('django.template.loaders.cached.Loader', loaders)]
        else:
            if app_dirs:
                raise ImproperlyConfigured(
                    "app_dirs must not be set when loaders is defined.")
        if libraries is None:
            libraries = {}

        self.dirs = dirs
        self.app_dirs = app_dirs
        self.autoescape = autoescape
        self.debug = debug
        self.loaders = loaders
        self.file_charset = file_charset
        self.libraries = libraries
        self.template_libraries = self.get_template_libraries(libraries)
        # Fail early on a broken loader configuration.
        self.template_loaders

    def get_template_libraries(self, libraries):
        loaded = {}
        for name, path in libraries.items():
            loaded[name] = import_library(path)
        return loaded

    @cached_property
    def template_loaders(self):
        return self.get_template_loaders(self.loaders)

    def get_template_loaders(self, template_loaders):
        loaders = []
        for template_loader in template_loaders:
            loader = self.find_template_loader(template_loader)
            if loader is not None:
                loaders.append(loader)
        return loaders

    def find_template_loader(self, loader):
        if isinstance(loader, (tuple, list)):
            if not loader:
                raise ImproperlyConfigured(
                    "Invalid template loader: %r. Configuration is empty" % (loader,))
            loader_name, *args = loader
            if not isinstance(loader_name, str):
                raise ImproperlyConfigured(
                    "Invalid template loader: %r. First element of tuple "
                    "configuration must be a Loader class name" % (loader,))
        elif isinstance(loader, str):
            loader_name, args = loader, []
        elif isinstance(loader, dict):
            raise ImproperlyConfigured(
                "Invalid template loader: %r. Missing second element in "
                "tuple configuration" % (loader,))
        else:
            raise ImproperlyConfigured(
                "Invalid template loader: %r. '%s' object is not iterable"
                % (loader, type(loader).__name__))

        try:
            loader_class = import_string(loader_name)
        except ImportError:
            raise ImproperlyConfigured("Invalid template loader class: %s" % loader_name)
        if loader_name == 'django.template.loaders.cached.Loader' and not args:
            raise ImproperlyConfigured(
                "%s requires a list/tuple of loaders" % loader_name)
        return loader_class(self, *args)

    def find_template(self, name):
        """
        依次询问每个加载器可能的模板来源，返回第一个能读取到的内容
        Django 的 loader.get_template() 会编译出 Django 自己的 Template，所以这里只使用加载器的查找和读取
        """
        tried = []
        for loader in self.template_loaders:
            for origin in loader.get_template_sources(name):
                try:
                    contents = loader.get_contents(origin)
                except TemplateDoesNotExist:
                    tried.append((origin, 'Source does not exist'))
                    continue
                return contents, origin
        raise TemplateDoesNotExist(name, tried=tried)

    def from_string(self, template_code):
        """Return a compiled Template object for the given template code."""
        return Template(template_code, engine=self)

    def get_template(self, template_name):
        """Return a compiled Template object for the given template name."""
        contents, origin = self.find_template(template_name)
        return Template(contents, origin, template_name, engine=self)
