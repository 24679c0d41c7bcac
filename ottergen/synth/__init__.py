"""Synthesis of client method bodies.

This package turns a method description into an ordered sequence of IR
statements: request path, query and header construction, dispatch through
the backend, typed error selection and result shaping.
"""

from ottergen.synth.headers import build_headers
from ottergen.synth.method import (
    ClassifiedParams,
    ReturnShape,
    classify_params,
    return_shape,
    synthesize_method,
)
from ottergen.synth.path import build_path
from ottergen.synth.query import build_query, merge_optional_query
from ottergen.synth.selector import build_error_selector
from ottergen.synth.stringify import string_for

__all__ = [
    'ClassifiedParams',
    'ReturnShape',
    'build_error_selector',
    'build_headers',
    'build_path',
    'build_query',
    'classify_params',
    'merge_optional_query',
    'return_shape',
    'string_for',
    'synthesize_method',
]
