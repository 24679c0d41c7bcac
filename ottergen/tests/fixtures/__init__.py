"""Test fixtures for OtterGen tests.

This module provides sample package descriptions and small stand-ins for
the runtime collaborators generated code talks to (backend, requests,
marshalable types, typed errors), so rendered methods can be executed.
"""

import dataclasses
from decimal import Decimal

# Minimal package with no clients
MINIMAL_PACKAGE = {'name': 'minimal'}

# Petstore-like package exercising every parameter kind and return shape
PETSTORE_PACKAGE = {
    'name': 'petstore',
    'base_url': 'https://petstore.example.com/v1',
    'type_decls': [
        {
            'name': 'ListPetsOpts',
            'comment': 'Optional filters for listing pets.',
            'type': {
                'kind': 'struct',
                'fields': [
                    {
                        'name': 'limit',
                        'kind': 'query',
                        'type': {'kind': 'pointer', 'type': 'int'},
                    },
                    {
                        'name': 'tags',
                        'kind': 'query',
                        'orig': 'tag',
                        'collection': 'multi',
                        'type': {
                            'kind': 'pointer',
                            'type': {'kind': 'slice', 'type': 'string'},
                        },
                    },
                ],
            },
        },
        {'name': 'Pet', 'type': {'kind': 'struct'}},
    ],
    'clients': [
        {
            'name': 'PetsClient',
            'comment': 'Operations on pets.',
            'methods': [
                {
                    'name': 'get_pet',
                    'comment': 'Fetch a single pet.',
                    'http_method': 'get',
                    'path': '/pets/{petId}',
                    'params': [
                        {
                            'name': 'pet_id',
                            'kind': 'path',
                            'type': {'kind': 'ident', 'name': 'PetID', 'marshal': True},
                        }
                    ],
                    'returns': [{'kind': 'pointer', 'type': 'Pet'}, 'error'],
                    'errors': {
                        '404': 'NotFoundError',
                        '-1': {'type': 'APIError', 'arguments': {'retryable': False}},
                    },
                },
                {
                    'name': 'list_pets',
                    'http_method': 'GET',
                    'path': '/pets',
                    'params': [
                        {'name': 'kind', 'kind': 'query', 'type': 'string'},
                        {
                            'name': 'opts',
                            'kind': 'opts',
                            'type': {'kind': 'pointer', 'type': 'ListPetsOpts'},
                        },
                    ],
                    'returns': [
                        {
                            'kind': 'iter',
                            'type': {'kind': 'pointer', 'type': 'PetIter'},
                            'page': {'kind': 'slice', 'type': 'Pet'},
                        }
                    ],
                },
                {
                    'name': 'create_pet',
                    'http_method': 'POST',
                    'path': '/pets',
                    'params': [
                        {
                            'name': 'request_id',
                            'kind': 'header',
                            'orig': 'X-Request-ID',
                            'type': 'string',
                        },
                        {
                            'name': 'pet',
                            'kind': 'body',
                            'type': {'kind': 'pointer', 'type': 'Pet'},
                        },
                    ],
                    'returns': [{'kind': 'pointer', 'type': 'Pet'}],
                    'errors': {
                        'codes': {
                            400: 'BadRequestError',
                            422: 'BadRequestError',
                            409: 'ConflictError',
                        },
                        'default': 'APIError',
                    },
                },
                {
                    'name': 'delete_pet',
                    'http_method': 'delete',
                    'path': '/pets/{petId}',
                    'params': [{'name': 'pet_id', 'kind': 'path', 'type': 'int'}],
                },
            ],
        },
        {
            'name': 'StoreClient',
            'methods': [
                {
                    'name': 'inventory',
                    'http_method': 'GET',
                    'path': '/store/inventory',
                    'params': [
                        {'name': 'in_stock', 'kind': 'query', 'type': 'bool'},
                        {'name': 'min_price', 'kind': 'query', 'type': 'float64'},
                    ],
                    'returns': ['int'],
                }
            ],
        },
    ],
}


class PetID:
    """A path value with a text-marshal operation."""

    def __init__(self, value: str, fail: bool = False):
        self.value = value
        self.fail = fail

    def marshal_text(self):
        if self.fail:
            return None, ValueError(f'cannot marshal {self.value}')
        return self.value.encode(), None


class Pet:
    pass


class APIError(Exception):
    def __init__(self, retryable: bool = True):
        super().__init__('api error')
        self.retryable = retryable


class NotFoundError(APIError):
    pass


class BadRequestError(APIError):
    pass


class ConflictError(APIError):
    pass


@dataclasses.dataclass
class ListPetsOpts:
    limit: int | None = None
    tags: list[str] | None = None


@dataclasses.dataclass
class PetIter:
    i: int
    first: bool
    page: object = None
    err: Exception | None = None


@dataclasses.dataclass
class FakeRequest:
    method: str
    path: str
    query: dict | None
    body: object
    headers: dict = dataclasses.field(default_factory=dict)


class FakeBackend:
    """Records requests and returns canned results.

    Like a real backend, nothing is decoded when dispatch is given no result
    type.
    """

    def __init__(self, result=None, request_error=None, do_error=None):
        self.result = result
        self.request_error = request_error
        self.do_error = do_error
        self.requests: list[FakeRequest] = []
        self.dispatched: list[tuple] = []

    def new_request(self, method, path, query, body):
        if self.request_error is not None:
            return None, self.request_error
        request = FakeRequest(method, path, query, body)
        self.requests.append(request)
        return request, None

    def do(self, ctx, request, result_type, select_error):
        self.dispatched.append((ctx, request, result_type, select_error))
        if result_type is None:
            return None, self.do_error
        return self.result, self.do_error


class FakeClient:
    def __init__(self, backend: FakeBackend):
        self.backend = backend


RUNTIME_NAMESPACE = {
    'Decimal': Decimal,
    'PetID': PetID,
    'Pet': Pet,
    'APIError': APIError,
    'NotFoundError': NotFoundError,
    'BadRequestError': BadRequestError,
    'ConflictError': ConflictError,
    'ListPetsOpts': ListPetsOpts,
    'PetIter': PetIter,
}
