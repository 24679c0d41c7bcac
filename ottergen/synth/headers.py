"""Header assignment on the constructed request."""

from ottergen.exceptions import SynthesisError
from ottergen.model import Collection, Param, is_marshaler
from ottergen.synth.ir import (
    BytesToString,
    Expr,
    MarshalText,
    Name,
    ReturnIfError,
    SetHeader,
    Stmt,
)
from ottergen.synth.stringify import string_for

__all__ = ['build_headers']


def build_headers(
    request: str,
    params: list[Param],
    error: Expr,
    error_return: tuple[Expr, ...],
) -> list[Stmt]:
    """Set each header param on ``request`` in declaration order.

    Raises:
        SynthesisError: For any collection format other than none.
    """
    stmts: list[Stmt] = []
    for param in params:
        if param.collection != Collection.NONE:
            raise SynthesisError(
                f'unhandled collection format for header: {param.collection}',
                param.name,
            )

        if is_marshaler(param.type):
            target = f'{param.name}_bytes'
            stmts.append(MarshalText(target, Name(param.name), error))
            stmts.append(ReturnIfError(error, error_return))
            stmts.append(
                SetHeader(request, param.wire_name, BytesToString(Name(target)))
            )
        else:
            stmts.append(
                SetHeader(
                    request, param.wire_name, string_for(param.type, Name(param.name))
                )
            )
    return stmts
