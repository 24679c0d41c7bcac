import json
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ottergen.exceptions import ConfigurationError

DEFAULT_FILENAMES = ['ottergen.yaml', 'ottergen.yml', 'ottergen.json']

_ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}')


class DocumentConfig(BaseModel):
    """Represents a single package description to be processed."""

    source: str = Field(..., description='Path or URL to the API description.')

    output: str = Field(..., description='Output directory for the generated code.')

    module_file: str = Field(
        'client.py', description='File name for the generated client module.'
    )

    types_module: str | None = Field(
        None,
        description='Import path of the module declaring the named types used by the client.',
    )

    client_prefix: str = Field(
        '', description='Prefix for the root client class and the base URL constant.'
    )

    base_url: str | None = Field(
        None, description='Overrides the base URL given in the description.'
    )

    emit_base_url: bool = Field(
        True, description='Whether to emit the base URL constant.'
    )


class CodegenConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='OTTERGEN_')

    documents: list[DocumentConfig] = Field(
        ..., description='List of package descriptions to process.'
    )

    format_code: bool = Field(
        True, description='Whether to format generated code with black.'
    )


def _expand_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in a string."""

    def replace(match: re.Match) -> str:
        name, default = match.group(1), match.group(2)
        return os.environ.get(name, default if default is not None else match.group(0))

    return _ENV_VAR_PATTERN.sub(replace, value)


def _expand_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return _expand_env_vars(data)
    if isinstance(data, dict):
        return {k: _expand_env_vars_recursive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars_recursive(v) for v in data]
    return data


def load_yaml(path: str | Path) -> dict:
    return yaml.safe_load(Path(path).read_text())


def load_json(path: str | Path) -> dict:
    return json.loads(Path(path).read_text())


def _load_file(path: Path) -> dict:
    if path.suffix.lower() == '.json':
        return load_json(path)
    return load_yaml(path)


def _validate(data: dict, path: Path) -> CodegenConfig:
    try:
        return CodegenConfig.model_validate(_expand_env_vars_recursive(data))
    except ValidationError as e:
        raise ConfigurationError(f'Invalid configuration: {e}', config_path=str(path))


def create_default_config() -> dict:
    """Return a starter configuration for ``ottergen init``."""
    return {
        'documents': [
            {
                'source': './api.yaml',
                'output': './client',
                'module_file': 'client.py',
                'types_module': '.models',
            }
        ],
        'format_code': True,
    }


def get_config(path: str | None = None) -> CodegenConfig:
    """Load configuration from a file or from the current directory.

    Looks for ``ottergen.yaml``, ``ottergen.yml`` or ``ottergen.json`` and then
    for a ``[tool.ottergen]`` table in ``pyproject.toml``.

    Raises:
        ConfigurationError: If no configuration is found or it is invalid.
    """
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError('Config file not found', config_path=path)
        return _validate(_load_file(config_path), config_path)

    cwd = Path(os.getcwd())

    for filename in DEFAULT_FILENAMES:
        config_path = cwd / filename
        if config_path.exists():
            return _validate(_load_file(config_path), config_path)

    config_path = cwd / 'pyproject.toml'

    if config_path.exists():
        import tomllib

        pyproject = tomllib.loads(config_path.read_text())
        tools = pyproject.get('tool', {})

        if 'ottergen' in tools:
            return _validate(tools['ottergen'], config_path)

    raise ConfigurationError('config not found')
