"""Status code to typed error selection."""

from ottergen.model import Errors
from ottergen.synth.ir import ErrorCase, ErrorSelector

__all__ = ['build_error_selector']


def build_error_selector(errors: Errors) -> ErrorSelector | None:
    """Build the error selector passed to dispatch.

    Codes are sorted ascending and runs of adjacent codes that build an equal
    error are merged into one case. Codes that share an error but are not
    adjacent after sorting stay in separate cases.

    A single specific code never falls back to the default error, even when
    one is given; only the multi-code selector consults it.

    Returns:
        The selector, or None when the mapping is empty.
    """
    if not errors:
        return None

    codes = sorted(errors.codes)

    if not codes:
        return ErrorSelector(cases=(), default=errors.default)

    if len(codes) == 1:
        code = codes[0]
        return ErrorSelector(cases=(ErrorCase((code,), errors.codes[code]),))

    cases: list[ErrorCase] = []
    last = errors.codes[codes[0]]
    group = [codes[0]]
    for code in codes[1:]:
        error = errors.codes[code]
        if error == last:
            group.append(code)
            continue

        cases.append(ErrorCase(tuple(group), last))
        last = error
        group = [code]
    cases.append(ErrorCase(tuple(group), last))

    return ErrorSelector(cases=tuple(cases), default=errors.default)
