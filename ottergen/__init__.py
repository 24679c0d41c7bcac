"""OtterGen - Synthesize REST API client methods from method descriptions.

OtterGen takes a structured description of an API client package (its
clients, their methods, where every parameter is transmitted and which
typed error each status code maps to) and synthesizes the body of every
client method: path, query and header construction, dispatch through a
backend, typed error selection and result shaping.

Quick Start:
    >>> from ottergen import Codegen, DocumentConfig
    >>>
    >>> config = DocumentConfig(source='./petstore.yaml', output='./client')
    >>> Codegen(config).generate()

CLI Usage:
    $ ottergen generate --config ottergen.yaml
    $ ottergen inspect ./petstore.yaml PetsClient.list_pets
    $ ottergen init
"""

from ottergen.codegen import Codegen, PythonRenderer
from ottergen.config import CodegenConfig, DocumentConfig, get_config
from ottergen.exceptions import (
    CodeGenerationError,
    ConfigurationError,
    DescriptionError,
    DescriptionLoadError,
    DescriptionValidationError,
    MethodGenerationError,
    OtterGenError,
    OutputError,
    SynthesisError,
)
from ottergen.loader import DescriptionLoader
from ottergen.synth import synthesize_method

__all__ = [
    # Main classes
    'Codegen',
    'DescriptionLoader',
    'PythonRenderer',
    'synthesize_method',
    # Configuration
    'CodegenConfig',
    'DocumentConfig',
    'get_config',
    # Exceptions
    'OtterGenError',
    'DescriptionError',
    'DescriptionLoadError',
    'DescriptionValidationError',
    'CodeGenerationError',
    'SynthesisError',
    'MethodGenerationError',
    'ConfigurationError',
    'OutputError',
]

__version__ = '0.1.0'
