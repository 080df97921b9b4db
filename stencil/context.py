from contextlib import contextmanager


class ContextPopException(Exception):
    "pop() has been called more times than push()"
    pass


class ContextDict(dict):
    """
    压入 Context 的一层变量
    使用 with 语句时，退出语句块后自动从 Context 中弹出这一层
    """
    def __init__(self, context, *args, **kwargs):
        super().__init__(*args, **kwargs)
        context.dicts.append(self)
        self.context = context

    def __enter__(self):
        return self

    def __exit__(self, *args, **kwargs):
        self.context.pop()


class ForLoop:
    """
    The counters of one running ``{% for %}`` tag.

    ``count`` is the zero-based index of the current iteration and ``len`` the
    number of items being looped over.
    """
    __slots__ = ('count', 'len')

    def __init__(self, len):
        self.count = 0
        self.len = len

    @property
    def counter0(self):
        return self.count

    @property
    def counter(self):
        return self.count + 1

    @property
    def revcounter(self):
        return self.len - self.count

    @property
    def revcounter0(self):
        return self.len - self.count - 1

    @property
    def first(self):
        return self.count == 0

    @property
    def last(self):
        return self.count + 1 == self.len

    def as_dict(self, parentloop):
        return {
            'parentloop': parentloop,
            'counter0': self.counter0,
            'counter': self.counter,
            'revcounter': self.revcounter,
            'revcounter0': self.revcounter0,
            'first': self.first,
            'last': self.last,
        }


class BaseContext:
    """
    管理上下文变量的基类
    dicts[0] 一定是内置变量 {'True': True, 'False': False, 'None': None}
    越靠后的元素优先级越高

    引擎渲染时只用到 push、pop 和取值赋值。set_upward、setdefault、update、
    flatten、删除和比较等字典式方法留给 takes_context 的简单标签，
    它们拿到的就是这个 Context
    """
    def __init__(self, dict_=None):
        self._reset_dicts(dict_)

    def _reset_dicts(self, value=None):
        builtins = {'True': True, 'False': False, 'None': None}
        self.dicts = [builtins]
        if value is not None:
            self.dicts.append(value)

    def __repr__(self):
        return repr(self.dicts)

    def __iter__(self):
        return reversed(self.dicts)

    def push(self, *args, **kwargs):
        dicts = []
        for d in args:
            if isinstance(d, BaseContext):
                dicts += d.dicts[1:]
            else:
                dicts.append(d)
        return ContextDict(self, *dicts, **kwargs)

    def pop(self):
        if len(self.dicts) == 1:
            raise ContextPopException
        return self.dicts.pop()

    def __setitem__(self, key, value):
        "Set a variable in the current context"
        self.dicts[-1][key] = value

    def set_upward(self, key, value):
        """
        Set a variable in one of the higher contexts if it exists there,
        otherwise in the current context.
        """
        context = self.dicts[-1]
        for d in reversed(self.dicts):
            if key in d:
                context = d
                break
        context[key] = value

    def __getitem__(self, key):
        "Get a variable's value, starting at the current context and going upward"
        for d in reversed(self.dicts):
            if key in d:
                return d[key]
        raise KeyError(key)

    def __delitem__(self, key):
        "Delete a variable from the current context"
        del self.dicts[-1][key]

    def __contains__(self, key):
        return any(key in d for d in self.dicts)

    def get(self, key, otherwise=None):
        for d in reversed(self.dicts):
            if key in d:
                return d[key]
        return otherwise

    def setdefault(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            self[key] = default
        return default

    def flatten(self):
        """
        Return self.dicts as one dictionary.
        """
        flat = {}
        for d in self.dicts:
            flat.update(d)
        return flat

    def __eq__(self, other):
        """
        Compare two contexts by comparing theirs 'dicts' attributes.
        """
        return (
            isinstance(other, BaseContext) and
            self.flatten() == other.flatten()
        )


class Context(BaseContext):
    """
    一次渲染使用的变量上下文
    除了变量栈以外，还保存自动转义开关、正在执行的 for 循环计数和 request 对象
    """
    def __init__(self, dict_=None, autoescape=True, request=None):
        self.autoescape = autoescape
        self.request = request
        self.loops = []
        self.template_name = 'unknown'
        self.template = None
        super().__init__(dict_)

    @contextmanager
    def bind_template(self, template):
        if self.template is not None:
            raise RuntimeError("Context is already bound to a template")
        self.template = template
        self.template_name = template.name or 'unknown'
        try:
            yield
        finally:
            self.template = None

    def update(self, other_dict):
        "Push other_dict to the stack of dictionaries in the Context"
        if not hasattr(other_dict, '__getitem__'):
            raise TypeError('other_dict must be a mapping (dictionary-like) object.')
        if isinstance(other_dict, BaseContext):
            other_dict = other_dict.dicts[1:].pop()
        return ContextDict(self, other_dict)

    @contextmanager
    def push_loop(self, length):
        """
        进入一层 for 循环
        同时压入一层变量，循环变量和循环内 ``as`` 绑定的变量在循环结束后失效
        """
        forloop = ForLoop(length)
        self.loops.append(forloop)
        try:
            with self.push():
                yield forloop
        finally:
            self.loops.pop()

    def get_loop(self, depth):
        """The loop ``depth`` levels out from the innermost, or ``None``."""
        index = len(self.loops) - depth - 1
        if index < 0:
            return None
        return self.loops[index]

    def loop_as_dict(self, depth):
        forloop = {}
        for loop in self.loops[:len(self.loops) - depth]:
            forloop = loop.as_dict(forloop)
        return forloop


def make_context(context, request=None, **kwargs):
    """
    基于传入的 dict 和 HttpRequest 创建 Context 实例
    Create a suitable Context from a plain dict and optionally an HttpRequest.
    """
    if context is not None and not isinstance(context, dict):
        raise TypeError('context must be a dict rather than %s.' % context.__class__.__name__)
    return Context(context, request=request, **kwargs)
