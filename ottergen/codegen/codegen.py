"""Client module generation.

This module provides the Codegen class that orchestrates generation of a
client module from a package description: loading the description,
synthesizing every method body, rendering it to Python and emitting the
module.
"""

import ast
import logging

from upath import UPath

from ottergen.codegen.ast_utils import (
    ImportCollector,
    _all,
    _argument,
    _assign,
    _attr,
    _call,
    _func,
    _name,
)
from ottergen.codegen.emitter import CodeEmitter, FileEmitter
from ottergen.codegen.renderer import PythonRenderer
from ottergen.config import DocumentConfig
from ottergen.exceptions import MethodGenerationError, SynthesisError
from ottergen.loader import DescriptionLoader
from ottergen.model import Client, Method, Package
from ottergen.synth import synthesize_method
from ottergen.utils import to_snake_case

__all__ = ['Codegen', 'find_method', 'render_method_source']

logger = logging.getLogger(__name__)

GENERATED_HEADER = (
    'This file is automatically generated by ottergen.\n\nDO NOT EDIT'
)

BACKEND_ATTR = 'backend'


def find_method(package: Package, name: str) -> tuple[Client, Method]:
    """Find a method by ``Client.method`` or bare method name.

    Raises:
        KeyError: If no such method exists.
    """
    client_name, _, method_name = name.rpartition('.')
    for client in package.clients:
        if client_name and client.name != client_name:
            continue
        for method in client.methods:
            if method.name == method_name:
                return client, method
    raise KeyError(name)


def render_method_source(package: Package, name: str) -> str:
    """Render one method of a package to Python source."""
    _, method = find_method(package, name)
    renderer = PythonRenderer()
    fn = renderer.render_method(method, synthesize_method(method, package.decls))
    return ast.unparse(ast.fix_missing_locations(fn))


class Codegen:
    """Generates a client module from a package description.

    Example:
        >>> config = DocumentConfig(source='./petstore.yaml', output='./client')
        >>> Codegen(config).generate()
    """

    def __init__(
        self,
        config: DocumentConfig,
        loader: DescriptionLoader | None = None,
        emitter: CodeEmitter | None = None,
        format_code: bool = True,
    ):
        self.config = config
        self.package: Package | None = None
        self._loader = loader or DescriptionLoader()
        self._emitter = emitter or FileEmitter(
            UPath(config.output), format_code=format_code
        )

    def _load_package(self) -> None:
        self.package = self._loader.load(self.config.source)

    @property
    def module_name(self) -> str:
        return self.config.module_file.removesuffix('.py')

    @property
    def base_url_name(self) -> str:
        prefix = to_snake_case(self.config.client_prefix).upper()
        return f'{prefix}_BASE_URL' if prefix else 'BASE_URL'

    @property
    def root_client_name(self) -> str:
        return f'{self.config.client_prefix}Client'

    def _generate_method(
        self, renderer: PythonRenderer, client: Client, method: Method
    ) -> ast.FunctionDef:
        try:
            body = synthesize_method(method, self.package.decls)
        except SynthesisError as e:
            # A defect in the description aborts the whole package
            raise MethodGenerationError(method.name, client.name, cause=e) from e
        return renderer.render_method(method, body)

    def _init_fn(self, body: list[ast.stmt]) -> ast.FunctionDef:
        return _func(
            name='__init__',
            args=[_argument('self'), _argument(BACKEND_ATTR)],
            body=body,
            returns=ast.Constant(value=None),
        )

    def _client_class(
        self, renderer: PythonRenderer, client: Client
    ) -> ast.ClassDef:
        body: list[ast.stmt] = []
        if client.comment:
            body.append(ast.Expr(value=ast.Constant(value=client.comment.strip())))

        body.append(
            self._init_fn([_assign(_attr('self', BACKEND_ATTR), _name(BACKEND_ATTR))])
        )
        for method in client.methods:
            body.append(self._generate_method(renderer, client, method))
            logger.debug(f'Generated {client.name}.{method.name}')

        return ast.ClassDef(
            name=client.name,
            bases=[],
            keywords=[],
            body=body,
            decorator_list=[],
            type_params=[],
        )

    def _root_client_class(self, clients: tuple[Client, ...]) -> ast.ClassDef:
        assigns: list[ast.stmt] = [
            _assign(_attr('self', BACKEND_ATTR), _name(BACKEND_ATTR))
        ]
        for client in clients:
            assigns.append(
                _assign(
                    _attr('self', to_snake_case(client.name)),
                    _call(_name(client.name), [_name(BACKEND_ATTR)]),
                )
            )

        return ast.ClassDef(
            name=self.root_client_name,
            bases=[],
            keywords=[],
            body=[
                ast.Expr(value=ast.Constant(value='Entry point bundling every API client.')),
                self._init_fn(assigns),
            ],
            decorator_list=[],
            type_params=[],
        )

    def build_module(self, package: Package) -> list[ast.stmt]:
        """Build the statements of the client module for ``package``.

        Raises:
            MethodGenerationError: If any method cannot be synthesized.
        """
        self.package = package
        renderer = PythonRenderer()

        classes = [self._client_class(renderer, client) for client in package.clients]
        classes.append(self._root_client_class(package.clients))

        imports = ImportCollector()
        imports.add_imports(renderer.imports)
        if self.config.types_module:
            for name in renderer.used_names:
                imports.add_import(self.config.types_module, name)

        body: list[ast.stmt] = []
        if imports.has_imports():
            body.extend(imports.to_ast())

        exports = [c.name for c in classes]
        base_url = self.config.base_url or package.base_url
        if self.config.emit_base_url:
            exports.insert(0, self.base_url_name)
        body.append(_all(exports))

        if self.config.emit_base_url:
            body.append(_assign(_name(self.base_url_name), ast.Constant(value=base_url)))

        body.extend(classes)
        return body

    def generate(self) -> str:
        """Load the description and write the client module.

        Returns:
            The path or source returned by the emitter.
        """
        self._load_package()
        body = self.build_module(self.package)
        result = self._emitter.emit_module(
            body, self.module_name, docstring=GENERATED_HEADER
        )
        logger.info(
            f'Generated {sum(len(c.methods) for c in self.package.clients)} methods '
            f'for package {self.package.name!r}'
        )
        return result
