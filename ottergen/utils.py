import keyword
import re
import unicodedata

__all__ = ('remove_accents', 'safe_identifier', 'to_snake_case')


def remove_accents(input_str: str) -> str:
    nfkd_form = unicodedata.normalize('NFKD', input_str)
    return ''.join(c for c in nfkd_form if not unicodedata.combining(c))


def safe_identifier(name: str) -> str:
    """Make a description name usable as a Python identifier.

    - Replace spaces and hyphens with underscores
    - Remove other invalid characters
    - Ensure it doesn't start with a digit
    - Suffix Python keywords with an underscore
    """
    if not name:
        raise ValueError('Name cannot be empty')

    sanitized = re.sub(r'[-\s]+', '_', remove_accents(name))
    sanitized = re.sub(r'[^A-Za-z0-9_]', '', sanitized)

    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized
    if keyword.iskeyword(sanitized):
        sanitized = f'{sanitized}_'
    return sanitized


def to_snake_case(name: str) -> str:
    """Convert a PascalCase or camelCase name to snake_case."""
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    return safe_identifier(name.lower())
