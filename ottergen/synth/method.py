"""Assembly of a complete method body.

The assembler classifies the parameters of a method by where they are
transmitted, works out how results are returned, and composes the output of
the path, query, header and error selector builders into one statement
sequence:

    path -> query -> optional query -> new request -> headers -> dispatch -> return
"""

import dataclasses
import logging

from ottergen.exceptions import SynthesisError
from ottergen.model import (
    IdentType,
    IterType,
    Method,
    Param,
    ParamKind,
    PointerType,
    SliceType,
    StructField,
    StructType,
    Type,
)
from ottergen.synth.headers import build_headers
from ottergen.synth.ir import (
    AddressOf,
    Assign,
    Attr,
    DeclareVar,
    Dispatch,
    Expr,
    IterState,
    Name,
    NewRequest,
    Nil,
    Return,
    ReturnIfError,
    Stmt,
    Zero,
)
from ottergen.synth.path import PATH_VAR, build_path
from ottergen.synth.query import (
    BYTES_VAR,
    ITEM_VAR,
    QUERY_VAR,
    build_query,
    merge_optional_query,
)
from ottergen.synth.selector import build_error_selector
from ottergen.utils import safe_identifier

__all__ = [
    'CONTEXT_VAR',
    'REQUEST_VAR',
    'RESPONSE_VAR',
    'ERROR_VAR',
    'ITERATOR_VAR',
    'RESERVED_NAMES',
    'SELECTOR_FN',
    'ClassifiedParams',
    'ReturnShape',
    'classify_params',
    'options_fields',
    'param_locals',
    'return_shape',
    'synthesize_method',
]

logger = logging.getLogger(__name__)

CONTEXT_VAR = 'ctx'
REQUEST_VAR = 'req'
RESPONSE_VAR = 'resp'
ERROR_VAR = 'err'
ITERATOR_VAR = 'iterator'
SELECTOR_FN = 'select_error'

# Locals of the generated body and the helpers it calls
RESERVED_NAMES = frozenset(
    {
        CONTEXT_VAR,
        REQUEST_VAR,
        RESPONSE_VAR,
        ERROR_VAR,
        ITERATOR_VAR,
        SELECTOR_FN,
        PATH_VAR,
        QUERY_VAR,
        ITEM_VAR,
        BYTES_VAR,
        'Decimal',
        'format',
        'repr',
        'str',
        '_',
    }
)


@dataclasses.dataclass
class ClassifiedParams:
    path: list[Param] = dataclasses.field(default_factory=list)
    query: list[Param] = dataclasses.field(default_factory=list)
    header: list[Param] = dataclasses.field(default_factory=list)
    body: Expr = dataclasses.field(default_factory=Nil)
    opts: str | None = None
    opt_fields: list[StructField] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class ReturnShape:
    """How a method hands back its result and its errors.

    Attributes:
        error: Where request, marshal and dispatch failures are stored.
        error_values: Values returned on failure.
        success_values: Values returned on success.
        target: Where dispatch binds the decoded response.
        result_type: The type dispatch decodes into, if any.
        prelude: Statements emitted before anything else.
        response: Declaration of the response variable, emitted before dispatch.
        iterator: Whether the iterator carries the error state itself.
    """

    error: Expr
    error_values: tuple[Expr, ...]
    success_values: tuple[Expr, ...]
    target: Expr = dataclasses.field(default_factory=Nil)
    result_type: Type | None = None
    prelude: tuple[Stmt, ...] = ()
    response: Stmt | None = None
    iterator: bool = False


def options_fields(param: Param, decls: dict[str, Type]) -> list[StructField]:
    """Resolve the fields of the struct referenced by an options param.

    Raises:
        SynthesisError: If the struct cannot be resolved or holds a non-query field.
    """
    typ = param.type.type if isinstance(param.type, PointerType) else param.type
    if isinstance(typ, IdentType):
        if typ.name not in decls:
            raise SynthesisError(f'unknown options type {typ.name!r}', param.name)
        typ = decls[typ.name]
        if isinstance(typ, PointerType):
            typ = typ.type

    if not isinstance(typ, StructType):
        raise SynthesisError('options param must reference a struct', param.name)

    for field in typ.fields:
        if field.kind != ParamKind.QUERY:
            raise SynthesisError('unhandled location for optional arg', field.name)
    return list(typ.fields)


def param_locals(method: Method) -> dict[str, str]:
    """Map each param name to the local it is bound to in the generated body.

    A name that collides with a local of the body, the receiver, a helper the
    body calls or the marshal buffer of another param gets trailing
    underscores until it is free.
    """
    taken = set(RESERVED_NAMES) | {method.receiver.id}
    names: dict[str, str] = {}
    for param in method.params:
        local = safe_identifier(param.name)
        while local in taken or f'{local}_bytes' in taken:
            local += '_'
        taken.update((local, f'{local}_bytes'))
        names[param.name] = local
    return names


def _bind_locals(method: Method) -> list[Param]:
    names = param_locals(method)
    params = []
    for param in method.params:
        local = names[param.name]
        if local != param.name:
            param = param.model_copy(update={'name': local, 'orig': param.wire_name})
        params.append(param)
    return params


def classify_params(
    params: 'tuple[Param, ...] | list[Param]', decls: dict[str, Type]
) -> ClassifiedParams:
    """Sort params into buckets by where they are transmitted.

    Raises:
        SynthesisError: For an unrecognized kind, or a repeated body or options param.
    """
    classified = ClassifiedParams()
    for param in params:
        if param.kind == ParamKind.PATH:
            classified.path.append(param)
        elif param.kind == ParamKind.QUERY:
            classified.query.append(param)
        elif param.kind == ParamKind.HEADER:
            classified.header.append(param)
        elif param.kind == ParamKind.BODY:
            if not isinstance(classified.body, Nil):
                raise SynthesisError('more than one body param', param.name)
            classified.body = Name(param.name)
        elif param.kind == ParamKind.OPTS:
            if classified.opts is not None:
                raise SynthesisError('more than one options param', param.name)
            classified.opts = param.name
            classified.opt_fields = options_fields(param, decls)
        else:
            raise SynthesisError(f'unrecognized parameter kind: {param.kind}', param.name)
    return classified


def _zero(typ: Type) -> Expr:
    if isinstance(typ, (PointerType, SliceType, IterType)):
        return Nil()
    return Zero(typ)


def return_shape(returns: 'tuple[Type, ...] | list[Type]') -> ReturnShape:
    """Work out the return shape from the result types of a method.

    Raises:
        SynthesisError: For more than one result type, or an iterator
            without a page type.
    """
    err = Name(ERROR_VAR)
    if not returns:
        return ReturnShape(error=err, error_values=(err,), success_values=(Nil(),))

    if len(returns) > 1:
        raise SynthesisError(f'unsupported return shape with {len(returns)} results')

    ret = returns[0]
    if isinstance(ret, IterType):
        if ret.page is None:
            raise SynthesisError('iterator return requires a page type')
        state = ret.type.type if isinstance(ret.type, PointerType) else ret.type
        iterator = Name(ITERATOR_VAR)
        return ReturnShape(
            error=Attr(iterator, 'err'),
            error_values=(AddressOf(iterator),),
            success_values=(AddressOf(iterator),),
            target=AddressOf(Attr(iterator, 'page')),
            result_type=ret.page,
            prelude=(Assign(iterator, IterState(state)),),
            iterator=True,
        )

    resp = Name(RESPONSE_VAR)
    if isinstance(ret, PointerType):
        return ReturnShape(
            error=err,
            error_values=(Nil(), err),
            success_values=(AddressOf(resp), Nil()),
            target=AddressOf(resp),
            result_type=ret.type,
            response=DeclareVar(RESPONSE_VAR, ret.type),
        )

    return ReturnShape(
        error=err,
        error_values=(_zero(ret), err),
        success_values=(resp, Nil()),
        target=resp,
        result_type=ret,
        response=DeclareVar(RESPONSE_VAR, ret),
    )


def synthesize_method(
    method: Method, decls: dict[str, Type] | None = None
) -> list[Stmt]:
    """Synthesize the body of a client method.

    Args:
        method: The method description.
        decls: Named types of the package, used to resolve options structs.

    Returns:
        The ordered statements of the method body.

    Raises:
        SynthesisError: If the description holds something unsupported.
    """
    classified = classify_params(_bind_locals(method), decls or {})
    shape = return_shape(method.returns)
    backend = Attr(Name(method.receiver.id), 'backend')
    error, error_values = shape.error, shape.error_values

    body: list[Stmt] = list(shape.prelude)
    body.extend(build_path(method.path, classified.path, error, error_values))
    body.extend(build_query(classified.query, error, error_values))

    merged, query = merge_optional_query(
        classified.opts,
        classified.opt_fields,
        bool(classified.query),
        error,
        error_values,
    )
    body.extend(merged)

    body.append(
        NewRequest(
            request=REQUEST_VAR,
            error=error,
            backend=backend,
            method=method.http_method,
            path=Name(PATH_VAR),
            query=query,
            body=classified.body,
        )
    )
    body.append(ReturnIfError(error, error_values))
    body.extend(build_headers(REQUEST_VAR, classified.header, error, error_values))

    if shape.response is not None:
        body.append(shape.response)
    body.append(
        Dispatch(
            error=error,
            backend=backend,
            context=CONTEXT_VAR,
            request=REQUEST_VAR,
            target=shape.target,
            result_type=shape.result_type,
            selector=build_error_selector(method.errors),
        )
    )
    if not shape.iterator:
        body.append(ReturnIfError(error, error_values))
    body.append(Return(shape.success_values))

    logger.debug(f'Synthesized {method.name}: {len(body)} statements')
    return body
