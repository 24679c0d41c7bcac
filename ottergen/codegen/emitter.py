"""Code emitter interfaces and implementations for code generation output.

This module provides the CodeEmitter interface and concrete implementations
for emitting generated code to files or to strings.
"""

import ast
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import black
from upath import UPath

from ottergen.exceptions import OutputError

__all__ = ['CodeEmitter', 'FileEmitter', 'StringEmitter', 'module_source']

logger = logging.getLogger(__name__)


def module_source(
    body: list[ast.stmt],
    name: str,
    docstring: str | None = None,
    format_code: bool = False,
) -> str:
    """Unparse a module body, validating its syntax.

    Raises:
        SyntaxError: If the generated code is not valid Python.
    """
    if docstring:
        body = [ast.Expr(value=ast.Constant(value=docstring))] + body

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    source = ast.unparse(module)

    try:
        compile(source, f'{name}.py', 'exec')
    except SyntaxError as e:
        raise SyntaxError(f'Generated code for {name} has invalid syntax: {e}')

    if format_code:
        source = black.format_str(source, mode=black.Mode())
    return source


class CodeEmitter(ABC):
    """Abstract base class for code emitters.

    A CodeEmitter takes generated AST nodes and outputs them somewhere,
    handling formatting and validation on the way.
    """

    @abstractmethod
    def emit_module(
        self,
        body: list[ast.stmt],
        name: str,
        docstring: str | None = None,
    ) -> str:
        """Emit a complete Python module.

        Args:
            body: List of AST statements forming the module body.
            name: The module name (used for file naming or identification).
            docstring: Optional module-level docstring.

        Returns:
            The path to the emitted file or the code string, depending
            on the implementation.
        """
        pass


class FileEmitter(CodeEmitter):
    """Emits generated code to Python files on disk."""

    def __init__(
        self,
        output_dir: str | Path | UPath,
        format_code: bool = True,
        create_init: bool = True,
    ):
        """Initialize the file emitter.

        Args:
            output_dir: Directory where files will be written.
            format_code: Whether to format code with black.
            create_init: Whether to create an __init__.py file next to the module.
        """
        self.output_dir = UPath(output_dir)
        self.format_code = format_code
        self.create_init = create_init

    def emit_module(
        self,
        body: list[ast.stmt],
        name: str,
        docstring: str | None = None,
    ) -> str:
        source = module_source(body, name, docstring, self.format_code)
        path = self._write_file(f'{name}.py', source)

        init_file = self.output_dir / '__init__.py'
        if self.create_init and not init_file.exists():
            self._write_file('__init__.py', '')
        return path

    def _write_file(self, filename: str, content: str) -> str:
        file_path = self.output_dir / filename
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise OutputError(str(file_path), cause=e)

        logger.info(f'Wrote {file_path}')
        return str(file_path)


class StringEmitter(CodeEmitter):
    """Emits generated code as strings.

    This emitter is useful for testing or when you need to inspect
    the generated code before writing it.
    """

    def __init__(self, format_code: bool = False):
        self.format_code = format_code
        self._modules: dict[str, str] = {}

    def emit_module(
        self,
        body: list[ast.stmt],
        name: str,
        docstring: str | None = None,
    ) -> str:
        source = module_source(body, name, docstring, self.format_code)
        self._modules[name] = source
        return source

    def get_module(self, name: str) -> str | None:
        return self._modules.get(name)
