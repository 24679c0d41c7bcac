"""Loading of API package descriptions.

A package description is the YAML or JSON form of the ``Package`` model:
named types, clients and their methods. It is normally produced by an API
description parser; this module reads it from a local file or a URL.
"""

import json
import logging
from pathlib import Path
from urllib.parse import urlparse

import httpx
import yaml
from pydantic import ValidationError

from ottergen.exceptions import DescriptionLoadError, DescriptionValidationError
from ottergen.model import Package

__all__ = ['DescriptionLoader']

logger = logging.getLogger(__name__)


class DescriptionLoader:
    """Loads package descriptions from URLs or file paths.

    Example:
        >>> loader = DescriptionLoader()
        >>> package = loader.load('./petstore.yaml')
        >>> # or
        >>> package = loader.load('https://example.com/petstore.json')
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        base_path: str | Path | None = None,
    ):
        """Initialize the loader.

        Args:
            http_client: Optional HTTP client to use for URL requests.
            base_path: Base path for resolving relative file paths.
                      Defaults to current working directory.
        """
        self._http_client = http_client
        self._base_path = Path(base_path) if base_path else Path.cwd()

    def load(self, source: str) -> Package:
        """Load and validate a package description.

        Raises:
            DescriptionLoadError: If the source cannot be read or parsed.
            DescriptionValidationError: If the content is not a valid description.
        """
        if self._is_url(source):
            content = self._load_from_url(source)
        else:
            content = self._load_from_file(source)

        return self.validate(content, source)

    def validate(self, content: dict, source: str = '<memory>') -> Package:
        try:
            package = Package.model_validate(content)
        except ValidationError as e:
            errors = [
                f'{".".join(str(part) for part in err["loc"])}: {err["msg"]}'
                for err in e.errors()
            ]
            raise DescriptionValidationError(source, errors)

        logger.debug(
            f'Loaded package {package.name!r} with {len(package.clients)} clients from {source}'
        )
        return package

    def _is_url(self, text: str) -> bool:
        try:
            result = urlparse(text)
            return result.scheme in ('http', 'https')
        except ValueError:
            return False

    def _load_from_url(self, url: str) -> dict:
        try:
            if self._http_client:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, follow_redirects=True, timeout=30.0)

            response.raise_for_status()
            content_type = response.headers.get('content-type', '')
            content = response.text

            if 'yaml' in content_type or url.endswith(('.yaml', '.yml')):
                return yaml.safe_load(content)
            else:
                return json.loads(content)

        except httpx.HTTPError as e:
            raise DescriptionLoadError(url, cause=e)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DescriptionLoadError(url, cause=e)

    def _load_from_file(self, file_path: str) -> dict:
        path = Path(file_path)
        if not path.is_absolute():
            path = self._base_path / path

        if not path.exists():
            raise DescriptionLoadError(
                str(file_path), cause=FileNotFoundError(f'File not found: {path}')
            )

        try:
            content = path.read_text(encoding='utf-8')
            if path.suffix.lower() in ('.yaml', '.yml'):
                return yaml.safe_load(content)
            else:
                return json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DescriptionLoadError(str(file_path), cause=e)
        except OSError as e:
            raise DescriptionLoadError(str(file_path), cause=e)
