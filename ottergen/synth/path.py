"""Request path construction from a template and path parameters."""

import re

from ottergen.exceptions import SynthesisError
from ottergen.model import Param, is_marshaler
from ottergen.synth.ir import (
    Assign,
    BytesToString,
    Expr,
    FormatPath,
    Lit,
    MarshalText,
    Name,
    ReturnIfError,
    Stmt,
)
from ottergen.synth.stringify import string_for

__all__ = ['PATH_VAR', 'SLOT_PATTERN', 'build_path']

PATH_VAR = 'p'

SLOT_PATTERN = re.compile(r'\{([^}]*)\}')


def build_path(
    template: str,
    params: list[Param],
    error: Expr,
    error_return: tuple[Expr, ...],
) -> list[Stmt]:
    """Build the statements that compute the request path into ``p``.

    Args:
        template: Path with one ``{...}`` slot per path parameter.
        params: Path parameters in slot order.
        error: Where a marshal failure is stored.
        error_return: Values returned when marshalling fails.

    Returns:
        Statements ending with the assignment of the path variable.

    Raises:
        SynthesisError: If the number of slots differs from the number of params.
    """
    if not params:
        return [Assign(Name(PATH_VAR), Lit(template))]

    slots = SLOT_PATTERN.findall(template)
    if len(slots) != len(params):
        raise SynthesisError(
            f'path {template!r} has {len(slots)} slots but {len(params)} path params'
        )

    stmts: list[Stmt] = []
    args: list[Expr] = []
    for param in params:
        if is_marshaler(param.type):
            target = f'{param.name}_bytes'
            stmts.append(MarshalText(target, Name(param.name), error))
            stmts.append(ReturnIfError(error, error_return))
            args.append(BytesToString(Name(target)))
        else:
            args.append(string_for(param.type, Name(param.name)))

    stmts.append(Assign(Name(PATH_VAR), FormatPath(template, tuple(args))))
    return stmts
