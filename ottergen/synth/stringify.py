"""Conversion of scalar values to their string form."""

from ottergen.exceptions import SynthesisError
from ottergen.model import IdentType, Type
from ottergen.synth.ir import Expr, Formatter, Stringify

__all__ = ['string_for']

_FORMATTERS = {
    'int': Formatter.INT,
    'int32': Formatter.INT,
    'int64': Formatter.INT,
    'integer': Formatter.INT,
    'float64': Formatter.FLOAT,
    'float': Formatter.FLOAT,
    'double': Formatter.FLOAT,
    'number': Formatter.FLOAT,
    'bool': Formatter.BOOL,
    'boolean': Formatter.BOOL,
}


def string_for(typ: Type, value: Expr) -> Expr:
    """Build an expression producing the string form of ``value``.

    Integers are formatted in base 10, floats with the shortest decimal that
    round-trips and booleans as ``true``/``false``. Any other identifier type
    is assumed to already be a string and ``value`` is returned unchanged.

    Raises:
        SynthesisError: If ``typ`` is not an identifier type.
    """
    if not isinstance(typ, IdentType):
        raise SynthesisError(f'unknown type for string conversion: {typ.kind}')

    formatter = _FORMATTERS.get(typ.name)
    if formatter is None:
        return value
    return Stringify(value, formatter)
