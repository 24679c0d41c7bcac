"""Rendering and emission of generated client modules."""

from ottergen.codegen.codegen import Codegen, find_method, render_method_source
from ottergen.codegen.emitter import CodeEmitter, FileEmitter, StringEmitter
from ottergen.codegen.renderer import PythonRenderer

__all__ = [
    'Codegen',
    'CodeEmitter',
    'FileEmitter',
    'PythonRenderer',
    'StringEmitter',
    'find_method',
    'render_method_source',
]
