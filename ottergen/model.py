"""API description model consumed by the method synthesizer.

The models here describe a generated client package: its named types,
its clients and, for every client method, the HTTP verb, the path template,
where each parameter is transmitted and how HTTP status codes map to typed
errors. They are produced by an external description parser (or loaded from
a YAML/JSON description file) and are never mutated during generation.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    field_validator,
    model_validator,
)

__all__ = [
    'ParamKind',
    'Collection',
    'IdentType',
    'PointerType',
    'SliceType',
    'StructType',
    'IterType',
    'Type',
    'Param',
    'StructField',
    'ErrorConstructor',
    'Errors',
    'DEFAULT_ERROR_KEY',
    'Receiver',
    'Method',
    'TypeDecl',
    'Client',
    'Package',
    'type_name',
    'is_marshaler',
]

# Legacy sentinel for the fallback constructor in flat error mappings.
DEFAULT_ERROR_KEY = -1

ERROR_TYPE_NAME = 'error'


class _Frozen(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)


class ParamKind(str, Enum):
    """Where a parameter is transmitted."""

    PATH = 'path'
    QUERY = 'query'
    HEADER = 'header'
    BODY = 'body'
    OPTS = 'opts'


class Collection(str, Enum):
    """How a sequence value is encoded."""

    NONE = 'none'
    MULTI = 'multi'


class IdentType(_Frozen):
    """A named type. ``marshal`` marks types with a text-marshal operation."""

    kind: Literal['ident'] = 'ident'
    name: str
    marshal: bool = False


class PointerType(_Frozen):
    kind: Literal['pointer'] = 'pointer'
    type: 'Type'


class SliceType(_Frozen):
    kind: Literal['slice'] = 'slice'
    type: 'Type'


class StructType(_Frozen):
    kind: Literal['struct'] = 'struct'
    fields: tuple['StructField', ...] = ()


class IterType(_Frozen):
    """Iterator return.

    ``type`` is the iterator state type and ``page`` the type each response
    is decoded into before it is bound to the iterator's ``page`` field.
    """

    kind: Literal['iter'] = 'iter'
    type: 'Type'
    page: 'Type | None' = None


def _coerce_type(value: Any) -> Any:
    # 'Pet' is shorthand for {'kind': 'ident', 'name': 'Pet'}
    if isinstance(value, str):
        return {'kind': 'ident', 'name': value}
    return value


Type = Annotated[
    Union[IdentType, PointerType, SliceType, StructType, IterType],
    Discriminator('kind'),
    BeforeValidator(_coerce_type),
]


class Param(_Frozen):
    """A method parameter.

    Attributes:
        name: The argument identifier in the generated signature.
        kind: Where the value is transmitted.
        type: The argument type.
        orig: The wire name when it differs from ``name``.
        collection: Whether a sequence value is sent as repeated entries.
    """

    name: str
    kind: ParamKind
    type: Type
    orig: str | None = None
    collection: Collection = Collection.NONE

    @property
    def wire_name(self) -> str:
        return self.orig or self.name


class StructField(Param):
    """A member of an options struct. Its type is an optional wrapper."""

    pass


class ErrorConstructor(_Frozen):
    """Reference to a typed error and the arguments it is built with.

    Two constructors are equal when they build the same error type with the
    same arguments. Arguments are given as a mapping and kept as keyword pairs
    sorted by name, so constructors hash.
    """

    type: str
    arguments: tuple[tuple[str, Any], ...] = ()

    @field_validator('arguments', mode='before')
    @classmethod
    def _sorted_pairs(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return tuple(sorted(value.items()))
        return value

    @model_validator(mode='before')
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {'type': data}
        return data


class Errors(_Frozen):
    """Status code to typed error mapping with an optional fallback.

    A flat mapping keyed by status code is accepted as input; its ``-1`` key
    becomes ``default``.
    """

    codes: dict[int, ErrorConstructor] = Field(default_factory=dict)
    default: ErrorConstructor | None = None

    @model_validator(mode='before')
    @classmethod
    def _from_flat_mapping(cls, data: Any) -> Any:
        if not isinstance(data, dict) or 'codes' in data or 'default' in data:
            return data

        codes = {}
        default = None
        for key, value in data.items():
            if int(key) == DEFAULT_ERROR_KEY:
                default = value
            else:
                codes[int(key)] = value
        return {'codes': codes, 'default': default}

    def __bool__(self) -> bool:
        return bool(self.codes) or self.default is not None


class Receiver(_Frozen):
    id: str = 'self'
    type: str = ''


class Method(_Frozen):
    """A client method to synthesize.

    ``returns`` lists the result types only; the error slot is implied. An
    iterator return stands alone and carries its own error state.
    """

    name: str
    receiver: Receiver = Field(default_factory=Receiver)
    http_method: str
    path: str
    params: tuple[Param, ...] = ()
    returns: tuple[Type, ...] = ()
    comment: str = ''
    errors: Errors = Field(default_factory=Errors)

    @field_validator('http_method')
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator('returns')
    @classmethod
    def _strip_error_slot(cls, value: tuple) -> tuple:
        if value and type_name(value[-1]) == ERROR_TYPE_NAME:
            return value[:-1]
        return value

    @model_validator(mode='after')
    def _check_invariants(self) -> 'Method':
        for i, ret in enumerate(self.returns):
            if isinstance(ret, IterType) and (i != 0 or len(self.returns) > 1):
                raise ValueError('an iterator return cannot be combined with other returns')

        kinds = [p.kind for p in self.params]
        if kinds.count(ParamKind.BODY) > 1:
            raise ValueError('a method takes at most one body parameter')
        if kinds.count(ParamKind.OPTS) > 1:
            raise ValueError('a method takes at most one options parameter')
        return self


class TypeDecl(_Frozen):
    name: str
    type: Type
    comment: str = ''


class Client(_Frozen):
    name: str
    comment: str = ''
    methods: tuple[Method, ...] = ()


class Package(_Frozen):
    """A generated client package."""

    name: str
    base_url: str = ''
    type_decls: tuple[TypeDecl, ...] = ()
    clients: tuple[Client, ...] = ()

    @property
    def decls(self) -> dict[str, 'Type']:
        return {d.name: d.type for d in self.type_decls}


def type_name(typ: 'Type') -> str:
    """Name of an identifier type, looking through pointers."""
    if isinstance(typ, IdentType):
        return typ.name
    if isinstance(typ, PointerType):
        return type_name(typ.type)
    return ''


def is_marshaler(typ: 'Type') -> bool:
    return isinstance(typ, IdentType) and typ.marshal


PointerType.model_rebuild()
SliceType.model_rebuild()
StructType.model_rebuild()
IterType.model_rebuild()
Param.model_rebuild()
StructField.model_rebuild()
