from .engine import Engine
from .template import Template

__all__ = ('Engine', 'Template')
