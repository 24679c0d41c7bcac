"""Intermediate representation of a synthesized method body.

The synthesizer produces a flat sequence of statement nodes per method.
Nodes are immutable and compare by value, so the same method description
always yields an equal sequence. The IR is independent of the target
language; a renderer turns it into source code.
"""

import dataclasses
from collections.abc import Iterator
from enum import Enum
from typing import Union

from ottergen.model import ErrorConstructor, Type

__all__ = [
    'Formatter',
    'Name',
    'Attr',
    'Lit',
    'Nil',
    'Zero',
    'AddressOf',
    'Deref',
    'Stringify',
    'BytesToString',
    'FormatPath',
    'IterState',
    'ErrorCase',
    'ErrorSelector',
    'Expr',
    'Assign',
    'DeclareVar',
    'MarshalText',
    'ReturnIfError',
    'DeclareQuery',
    'InitQuery',
    'QuerySet',
    'QueryAdd',
    'ForEach',
    'IfNotNil',
    'NewRequest',
    'SetHeader',
    'Dispatch',
    'Return',
    'Stmt',
    'walk',
]


class Formatter(str, Enum):
    """Conversion used to turn a scalar into its string form."""

    INT = 'int'
    FLOAT = 'float'
    BOOL = 'bool'


# =============================================================================
# Expressions
# =============================================================================


@dataclasses.dataclass(frozen=True)
class Name:
    id: str


@dataclasses.dataclass(frozen=True)
class Attr:
    value: 'Expr'
    attr: str


@dataclasses.dataclass(frozen=True)
class Lit:
    value: str | int | float | bool


@dataclasses.dataclass(frozen=True)
class Nil:
    pass


@dataclasses.dataclass(frozen=True)
class Zero:
    """The zero value of a non-nullable type."""

    type: Type


@dataclasses.dataclass(frozen=True)
class AddressOf:
    value: 'Expr'


@dataclasses.dataclass(frozen=True)
class Deref:
    value: 'Expr'


@dataclasses.dataclass(frozen=True)
class Stringify:
    value: 'Expr'
    formatter: Formatter


@dataclasses.dataclass(frozen=True)
class BytesToString:
    value: 'Expr'


@dataclasses.dataclass(frozen=True)
class FormatPath:
    """Positional substitution of ``args`` into the slots of ``template``."""

    template: str
    args: tuple['Expr', ...]


@dataclasses.dataclass(frozen=True)
class IterState:
    """A fresh iterator positioned before its first page."""

    type: Type
    cursor: int = -1
    first: bool = True


@dataclasses.dataclass(frozen=True)
class ErrorCase:
    codes: tuple[int, ...]
    error: ErrorConstructor


@dataclasses.dataclass(frozen=True)
class ErrorSelector:
    """Maps a status code to a typed error.

    Cases are tried in order; ``default`` (or null) is used when none match.
    """

    cases: tuple[ErrorCase, ...]
    default: ErrorConstructor | None = None


Expr = Union[
    Name,
    Attr,
    Lit,
    Nil,
    Zero,
    AddressOf,
    Deref,
    Stringify,
    BytesToString,
    FormatPath,
    IterState,
    ErrorSelector,
]


# =============================================================================
# Statements
# =============================================================================


@dataclasses.dataclass(frozen=True)
class Assign:
    target: Expr
    value: Expr


@dataclasses.dataclass(frozen=True)
class DeclareVar:
    """Declare ``name`` holding the zero value of ``type``."""

    name: str
    type: Type


@dataclasses.dataclass(frozen=True)
class MarshalText:
    """``target, error = value.MarshalText()``"""

    target: str
    value: Expr
    error: Expr


@dataclasses.dataclass(frozen=True)
class ReturnIfError:
    error: Expr
    values: tuple[Expr, ...]


@dataclasses.dataclass(frozen=True)
class DeclareQuery:
    """Declare a query collection without allocating it."""

    name: str


@dataclasses.dataclass(frozen=True)
class InitQuery:
    """Allocate an empty query collection."""

    name: str


@dataclasses.dataclass(frozen=True)
class QuerySet:
    """Replace all values under ``key`` with ``value``."""

    query: str
    key: str
    value: Expr


@dataclasses.dataclass(frozen=True)
class QueryAdd:
    """Append ``value`` under ``key``, keeping earlier values."""

    query: str
    key: str
    value: Expr


@dataclasses.dataclass(frozen=True)
class ForEach:
    item: str
    iterable: Expr
    body: tuple['Stmt', ...]


@dataclasses.dataclass(frozen=True)
class IfNotNil:
    value: Expr
    body: tuple['Stmt', ...]


@dataclasses.dataclass(frozen=True)
class NewRequest:
    request: str
    error: Expr
    backend: Expr
    method: str
    path: Expr
    query: Expr
    body: Expr


@dataclasses.dataclass(frozen=True)
class SetHeader:
    request: str
    key: str
    value: Expr


@dataclasses.dataclass(frozen=True)
class Dispatch:
    """Send the request and bind the decoded response into ``target``."""

    error: Expr
    backend: Expr
    context: str
    request: str
    target: Expr
    result_type: Type | None
    selector: ErrorSelector | None


@dataclasses.dataclass(frozen=True)
class Return:
    values: tuple[Expr, ...]


Stmt = Union[
    Assign,
    DeclareVar,
    MarshalText,
    ReturnIfError,
    DeclareQuery,
    InitQuery,
    QuerySet,
    QueryAdd,
    ForEach,
    IfNotNil,
    NewRequest,
    SetHeader,
    Dispatch,
    Return,
]


def walk(body: 'list[Stmt] | tuple[Stmt, ...]') -> Iterator['Stmt']:
    """Yield every statement in ``body``, descending into nested blocks."""
    for stmt in body:
        yield stmt
        if isinstance(stmt, (ForEach, IfNotNil)):
            yield from walk(stmt.body)
