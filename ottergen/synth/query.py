"""Query string construction for required and optional parameters."""

from ottergen.exceptions import SynthesisError
from ottergen.model import (
    Collection,
    Param,
    ParamKind,
    PointerType,
    SliceType,
    StructField,
    Type,
    is_marshaler,
)
from ottergen.synth.ir import (
    Attr,
    BytesToString,
    DeclareQuery,
    Deref,
    Expr,
    ForEach,
    IfNotNil,
    InitQuery,
    MarshalText,
    Name,
    Nil,
    QueryAdd,
    QuerySet,
    ReturnIfError,
    Stmt,
)
from ottergen.synth.stringify import string_for

__all__ = ['BYTES_VAR', 'ITEM_VAR', 'QUERY_VAR', 'build_query', 'merge_optional_query']

QUERY_VAR = 'q'

ITEM_VAR = 'v'
BYTES_VAR = 'b'


def _set_value(
    key: str,
    typ: Type,
    value: Expr,
    marshal_value: Expr,
    marshal_target: str,
    error: Expr,
    error_return: tuple[Expr, ...],
    add: bool = False,
) -> list[Stmt]:
    op = QueryAdd if add else QuerySet
    if is_marshaler(typ):
        return [
            MarshalText(marshal_target, marshal_value, error),
            ReturnIfError(error, error_return),
            op(QUERY_VAR, key, BytesToString(Name(marshal_target))),
        ]
    return [op(QUERY_VAR, key, string_for(typ, value))]


def _add_each(
    key: str,
    typ: Type,
    iterable: Expr,
    error: Expr,
    error_return: tuple[Expr, ...],
) -> ForEach:
    if not isinstance(typ, SliceType):
        raise SynthesisError(f'multi collection for {key!r} requires a slice type')

    item = Name(ITEM_VAR)
    body = _set_value(
        key, typ.type, item, item, BYTES_VAR, error, error_return, add=True
    )
    return ForEach(ITEM_VAR, iterable, tuple(body))


def build_query(
    params: list[Param], error: Expr, error_return: tuple[Expr, ...]
) -> list[Stmt]:
    """Build the statements that fill the query collection from required params.

    The collection is allocated by the first statement. Multi-valued params
    add one entry per element under the same wire name, in iteration order.

    Raises:
        SynthesisError: For a collection format other than none or multi.
    """
    if not params:
        return []

    stmts: list[Stmt] = [InitQuery(QUERY_VAR)]
    for param in params:
        ref = Name(param.name)
        if param.collection == Collection.NONE:
            stmts.extend(
                _set_value(
                    param.wire_name,
                    param.type,
                    ref,
                    ref,
                    f'{param.name}_bytes',
                    error,
                    error_return,
                )
            )
        elif param.collection == Collection.MULTI:
            stmts.append(
                _add_each(param.wire_name, param.type, ref, error, error_return)
            )
        else:
            raise SynthesisError(f'unhandled collection format: {param.collection}')
    return stmts


def merge_optional_query(
    opts: str | None,
    fields: list[StructField],
    query_defined: bool,
    error: Expr,
    error_return: tuple[Expr, ...],
) -> tuple[list[Stmt], Expr]:
    """Merge the set fields of an options struct into the query collection.

    Everything is guarded by a check that the options argument is present,
    and every field by a check that it is set, since the struct may be absent
    as a whole independently of which of its fields are set.

    Args:
        opts: Name of the options argument.
        fields: The optional query fields of the options struct.
        query_defined: Whether required query params already allocated the collection.
        error: Where a marshal failure is stored.
        error_return: Values returned when marshalling fails.

    Returns:
        The statements and the query expression to pass to the request
        (null when no query collection exists).

    Raises:
        SynthesisError: For a non-query field or an unknown collection format.
    """
    if not fields:
        return [], Name(QUERY_VAR) if query_defined else Nil()

    stmts: list[Stmt] = []
    body: list[Stmt] = []
    if not query_defined:
        stmts.append(DeclareQuery(QUERY_VAR))
        body.append(InitQuery(QUERY_VAR))

    for field in fields:
        if field.kind != ParamKind.QUERY:
            raise SynthesisError('unhandled location for optional arg', field.name)

        typ = field.type.type if isinstance(field.type, PointerType) else field.type
        ref = Attr(Name(opts), field.name)
        if field.collection == Collection.NONE:
            checked = _set_value(
                field.wire_name, typ, Deref(ref), ref, BYTES_VAR, error, error_return
            )
        elif field.collection == Collection.MULTI:
            checked = [_add_each(field.wire_name, typ, Deref(ref), error, error_return)]
        else:
            raise SynthesisError(f'unhandled collection format: {field.collection}')
        body.append(IfNotNil(ref, tuple(checked)))

    stmts.append(IfNotNil(Name(opts), tuple(body)))
    return stmts, Name(QUERY_VAR)
