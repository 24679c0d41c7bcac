"""Custom exceptions for OtterGen.

This module defines a hierarchy of exceptions used throughout the OtterGen library
to provide clear, actionable error messages for different failure scenarios.
"""


class OtterGenError(Exception):
    """Base exception for all OtterGen errors.

    All exceptions raised by OtterGen inherit from this class, making it easy
    to catch all OtterGen-related errors with a single except clause.

    Example:
        try:
            codegen.generate()
        except OtterGenError as e:
            print(f"OtterGen error: {e}")
    """

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class DescriptionError(OtterGenError):
    """Base exception for API description errors."""

    pass


class DescriptionLoadError(DescriptionError):
    """Failed to load an API description from a source.

    Attributes:
        source: The source path or URL that failed to load.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        message = f"Failed to load description from '{source}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class DescriptionValidationError(DescriptionError):
    """The loaded description does not match the method model.

    Attributes:
        source: The source path or URL of the invalid description.
        errors: List of validation error messages.
    """

    def __init__(self, source: str, errors: list[str] | None = None):
        self.source = source
        self.errors = errors or []
        message = f"Description validation failed for '{source}'"
        if errors:
            message += f': {"; ".join(errors)}'
        super().__init__(message)


class CodeGenerationError(OtterGenError):
    """Error during code generation.

    Attributes:
        context: Additional context about what was being generated.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self, message: str, context: str | None = None, cause: Exception | None = None
    ):
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f'{message} (while generating {context})'
        if cause:
            full_message += f': {cause}'
        super().__init__(full_message)


class SynthesisError(CodeGenerationError):
    """The method model contains something the synthesizer cannot handle.

    Raised for an unrecognized parameter kind, an unsupported collection
    format, a non-query field in an options struct, or a non-scalar type
    passed to string conversion. These indicate a defect in whatever produced
    the model, so generation of the whole package is aborted.

    Attributes:
        reason: What was not handled.
    """

    def __init__(self, reason: str, context: str | None = None):
        self.reason = reason
        super().__init__(reason, context=context)


class MethodGenerationError(CodeGenerationError):
    """Error generating a client method.

    Attributes:
        method: The name of the method.
        client: The name of the client the method belongs to.
    """

    def __init__(
        self,
        method: str,
        client: str | None = None,
        cause: Exception | None = None,
    ):
        self.method = method
        self.client = client
        qualified = f'{client}.{method}' if client else method
        message = f"Failed to generate method '{qualified}'"
        super().__init__(message, cause=cause)


class ConfigurationError(OtterGenError):
    """Error in configuration.

    Attributes:
        config_path: The path to the configuration file, if applicable.
        field: The specific configuration field that is invalid.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        full_message = message
        if config_path:
            full_message = f"{message} in '{config_path}'"
        if field:
            full_message += f' (field: {field})'
        super().__init__(full_message)


class OutputError(OtterGenError):
    """Error writing generated output.

    Attributes:
        output_path: The path where output was being written.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        message = f"Failed to write output to '{output_path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)
