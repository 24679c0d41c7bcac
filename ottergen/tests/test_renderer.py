"""Tests for rendering synthesized methods to Python.

Rendered methods are compiled and executed against the fakes in
``fixtures`` to check the behavior of the generated code end to end.
"""

import ast

import pytest

from ottergen.codegen.renderer import PythonRenderer
from ottergen.model import (
    ErrorConstructor,
    IdentType,
    Method,
    Package,
    PointerType,
    SliceType,
)
from ottergen.synth import synthesize_method
from ottergen.synth.ir import ErrorCase, ErrorSelector

from .fixtures import (
    PETSTORE_PACKAGE,
    RUNTIME_NAMESPACE,
    APIError,
    BadRequestError,
    ConflictError,
    FakeBackend,
    FakeClient,
    ListPetsOpts,
    NotFoundError,
    Pet,
    PetID,
    PetIter,
)


@pytest.fixture
def package() -> Package:
    return Package.model_validate(PETSTORE_PACKAGE)


def _method(package: Package, name: str):
    for client in package.clients:
        for method in client.methods:
            if method.name == name:
                return method
    raise KeyError(name)


def _compile(node: ast.stmt):
    module = ast.Module(body=[node], type_ignores=[])
    source = ast.unparse(ast.fix_missing_locations(module))
    namespace = dict(RUNTIME_NAMESPACE)
    exec(compile(source, '<generated>', 'exec'), namespace)
    return namespace[node.name]


def _render(package: Package, name: str):
    method = _method(package, name)
    fn = PythonRenderer().render_method(method, synthesize_method(method, package.decls))
    return _compile(fn)


class TestAnnotations:
    """Tests for PythonRenderer.annotation()."""

    def test_builtin_names(self):
        renderer = PythonRenderer()
        assert ast.unparse(renderer.annotation(IdentType(name='int64'))) == 'int'
        assert ast.unparse(renderer.annotation(IdentType(name='string'))) == 'str'
        assert renderer.used_names == set()

    def test_named_types_recorded(self):
        renderer = PythonRenderer()
        annotation = renderer.annotation(PointerType(type=SliceType(type='Pet')))
        assert ast.unparse(annotation) == 'list[Pet] | None'
        assert renderer.used_names == {'Pet'}

    def test_signature(self, package):
        method = _method(package, 'list_pets')
        fn = PythonRenderer().render_method(method, synthesize_method(method, package.decls))
        source = ast.unparse(ast.fix_missing_locations(fn))
        assert source.startswith(
            'def list_pets(self, ctx, kind: str, opts: ListPetsOpts | None=None) -> PetIter:'
        )

    def test_comment_becomes_docstring(self, package):
        method = _method(package, 'get_pet')
        fn = PythonRenderer().render_method(method, synthesize_method(method, package.decls))
        assert ast.get_docstring(fn) == 'Fetch a single pet.'


class TestPointerReturn:
    """Tests for a method returning a pointer and an error."""

    def test_success(self, package):
        pet = Pet()
        backend = FakeBackend(result=pet)
        get_pet = _render(package, 'get_pet')

        result, err = get_pet(FakeClient(backend), 'ctx', PetID('p-1'))

        assert result is pet
        assert err is None
        request = backend.requests[0]
        assert request.method == 'GET'
        assert request.path == '/pets/p-1'
        assert request.query is None
        assert request.body is None
        _, _, result_type, _ = backend.dispatched[0]
        assert result_type is Pet

    def test_marshal_failure_skips_request(self, package):
        backend = FakeBackend()
        get_pet = _render(package, 'get_pet')

        result, err = get_pet(FakeClient(backend), 'ctx', PetID('bad', fail=True))

        assert result is None
        assert isinstance(err, ValueError)
        assert backend.requests == []

    def test_dispatch_error(self, package):
        failure = NotFoundError()
        backend = FakeBackend(result=Pet(), do_error=failure)
        get_pet = _render(package, 'get_pet')

        result, err = get_pet(FakeClient(backend), 'ctx', PetID('p-1'))

        assert result is None
        assert err is failure

    def test_single_code_selector(self, package):
        backend = FakeBackend()
        get_pet = _render(package, 'get_pet')
        get_pet(FakeClient(backend), 'ctx', PetID('p-1'))

        select_error = backend.dispatched[0][3]
        assert isinstance(select_error(404), NotFoundError)
        # The single-code selector never falls back to the default
        assert select_error(500) is None


class TestBodyAndHeaders:
    """Tests for body and header transmission."""

    def test_body_and_header(self, package):
        pet = Pet()
        backend = FakeBackend(result=pet)
        create_pet = _render(package, 'create_pet')

        result, err = create_pet(FakeClient(backend), 'ctx', 'req-7', pet)

        assert (result, err) == (pet, None)
        request = backend.requests[0]
        assert request.method == 'POST'
        assert request.body is pet
        assert request.headers == {'X-Request-ID': 'req-7'}

    def test_new_request_failure(self, package):
        failure = RuntimeError('bad url')
        backend = FakeBackend(request_error=failure)
        create_pet = _render(package, 'create_pet')

        assert create_pet(FakeClient(backend), 'ctx', 'req-7', Pet()) == (None, failure)
        assert backend.dispatched == []

    @pytest.mark.parametrize(
        'code, error_type',
        [
            (400, BadRequestError),
            (409, ConflictError),
            (422, BadRequestError),
            (500, APIError),
        ],
    )
    def test_multi_code_selector(self, package, code, error_type):
        backend = FakeBackend()
        create_pet = _render(package, 'create_pet')
        create_pet(FakeClient(backend), 'ctx', 'req-7', Pet())

        select_error = backend.dispatched[0][3]
        assert type(select_error(code)) is error_type


class TestQuery:
    """Tests for required and optional query parameters."""

    def test_required_scalars(self, package):
        backend = FakeBackend(result=42)
        inventory = _render(package, 'inventory')

        result, err = inventory(FakeClient(backend), 'ctx', True, 9.5)

        assert (result, err) == (42, None)
        assert backend.requests[0].query == {'in_stock': ['true'], 'min_price': ['9.5']}
        assert backend.dispatched[0][2] is int
        assert backend.dispatched[0][3] is None

    def test_value_error_returns_zero(self, package):
        failure = APIError()
        backend = FakeBackend(do_error=failure)
        inventory = _render(package, 'inventory')

        assert inventory(FakeClient(backend), 'ctx', False, 1.0) == (0, failure)
        assert backend.requests[0].query['in_stock'] == ['false']

    def test_options_omitted(self, package):
        backend = FakeBackend(result=['page'])
        list_pets = _render(package, 'list_pets')

        iterator = list_pets(FakeClient(backend), 'ctx', 'dog')

        assert isinstance(iterator, PetIter)
        assert backend.requests[0].query == {'kind': ['dog']}

    def test_options_present_fields_only(self, package):
        backend = FakeBackend()
        list_pets = _render(package, 'list_pets')

        list_pets(FakeClient(backend), 'ctx', 'dog', ListPetsOpts(limit=10))

        assert backend.requests[0].query == {'kind': ['dog'], 'limit': ['10']}

    def test_multi_values_added_in_order(self, package):
        backend = FakeBackend()
        list_pets = _render(package, 'list_pets')

        list_pets(FakeClient(backend), 'ctx', 'cat', ListPetsOpts(tags=['a', 'b']))

        assert backend.requests[0].query == {'kind': ['cat'], 'tag': ['a', 'b']}


class TestIteratorReturn:
    """Tests for a method returning an iterator."""

    def test_initial_state(self, package):
        backend = FakeBackend(result=['first page'])
        list_pets = _render(package, 'list_pets')

        iterator = list_pets(FakeClient(backend), 'ctx', 'dog')

        assert iterator.i == -1
        assert iterator.first is True
        assert iterator.page == ['first page']
        assert iterator.err is None

    def test_page_type_passed_to_dispatch(self, package):
        backend = FakeBackend(result=[Pet()])
        list_pets = _render(package, 'list_pets')

        list_pets(FakeClient(backend), 'ctx', 'dog')

        assert backend.dispatched[0][2] == list[Pet]

    def test_error_stored_on_iterator(self, package):
        failure = APIError()
        backend = FakeBackend(do_error=failure)
        list_pets = _render(package, 'list_pets')

        iterator = list_pets(FakeClient(backend), 'ctx', 'dog')

        assert iterator.err is failure

    def test_request_error_stored_on_iterator(self, package):
        failure = RuntimeError('bad url')
        backend = FakeBackend(request_error=failure)
        list_pets = _render(package, 'list_pets')

        iterator = list_pets(FakeClient(backend), 'ctx', 'dog')

        assert iterator.err is failure
        assert backend.dispatched == []


class TestNoResult:
    """Tests for a method returning only an error."""

    def test_success(self, package):
        backend = FakeBackend()
        delete_pet = _render(package, 'delete_pet')

        assert delete_pet(FakeClient(backend), 'ctx', 12) is None
        assert backend.requests[0].path == '/pets/12'
        assert backend.requests[0].method == 'DELETE'

    def test_error(self, package):
        failure = APIError()
        backend = FakeBackend(do_error=failure)
        delete_pet = _render(package, 'delete_pet')

        assert delete_pet(FakeClient(backend), 'ctx', 12) is failure


class TestSelector:
    """Tests for PythonRenderer.selector()."""

    def _select(self, selector: ErrorSelector):
        return _compile(PythonRenderer().selector(selector))

    def test_default_only(self):
        select_error = self._select(ErrorSelector((), ErrorConstructor(type='APIError')))
        assert type(select_error(418)) is APIError

    def test_empty_default(self):
        select_error = self._select(ErrorSelector(()))
        assert select_error(418) is None

    def test_arguments_passed(self):
        selector = ErrorSelector(
            (
                ErrorCase((404, 410), ErrorConstructor(type='NotFoundError')),
                ErrorCase((503,), ErrorConstructor(type='APIError', arguments={'retryable': True})),
            ),
            ErrorConstructor(type='APIError', arguments={'retryable': False}),
        )
        select_error = self._select(selector)

        assert type(select_error(410)) is NotFoundError
        assert select_error(503).retryable is True
        assert select_error(500).retryable is False

    def test_merged_codes_use_membership(self):
        renderer = PythonRenderer()
        selector = ErrorSelector((ErrorCase((404, 405), ErrorConstructor(type='NotFoundError')),))
        source = ast.unparse(ast.fix_missing_locations(renderer.selector(selector)))
        assert 'code in (404, 405)' in source
        assert renderer.used_names == {'NotFoundError'}


class TestFloatFormatting:
    """Tests for float values in query and path positions."""

    @pytest.mark.parametrize(
        'value, expected',
        [
            (9.5, '9.5'),
            (1.0, '1'),
            (0.1, '0.1'),
            (1e16, '10000000000000000'),
            (1e-05, '0.00001'),
            (-2.5, '-2.5'),
        ],
    )
    def test_fixed_notation(self, package, value, expected):
        backend = FakeBackend()
        inventory = _render(package, 'inventory')

        inventory(FakeClient(backend), 'ctx', True, value)

        assert backend.requests[0].query['min_price'] == [expected]

    def test_decimal_import_recorded(self, package):
        method = _method(package, 'inventory')
        renderer = PythonRenderer()
        renderer.render_method(method, synthesize_method(method, package.decls))
        assert renderer.imports == {'decimal': {'Decimal'}}


class TestParamNameCollisions:
    """Params named like locals of the generated body."""

    def _render_single(self, **data):
        method = Method.model_validate(
            {'name': 'search', 'http_method': 'GET', 'path': '/search', **data}
        )
        fn = PythonRenderer().render_method(method, synthesize_method(method))
        return _compile(fn)

    def test_query_param_named_q(self):
        backend = FakeBackend()
        search = self._render_single(
            params=[{'name': 'q', 'kind': 'query', 'type': 'string'}]
        )

        search(FakeClient(backend), 'ctx', 'dogs')

        assert backend.requests[0].query == {'q': ['dogs']}

    def test_header_param_named_err(self):
        backend = FakeBackend()
        search = self._render_single(
            params=[{'name': 'err', 'kind': 'header', 'type': 'string'}]
        )

        search(FakeClient(backend), 'ctx', 'x')

        assert backend.requests[0].headers == {'err': 'x'}

    def test_params_named_ctx_and_p(self):
        backend = FakeBackend()
        search = self._render_single(
            path='/search/{p}',
            params=[
                {'name': 'p', 'kind': 'path', 'type': 'string'},
                {'name': 'ctx', 'kind': 'query', 'type': 'int'},
            ],
        )

        search(FakeClient(backend), 'context', 'cats', 3)

        request = backend.requests[0]
        assert request.path == '/search/cats'
        assert request.query == {'ctx': ['3']}
        assert backend.dispatched[0][0] == 'context'
