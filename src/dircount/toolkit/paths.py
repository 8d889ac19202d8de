import posixpath
import re

from dircount.exceptions import InvalidIdentifier

ROOT_DIRECTORY = "/"

# Unquoted PostgreSQL identifiers, limited to the default NAMEDATALEN.
_IDENTIFIER_REGEX = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def normalize_object_name(name: str) -> str:
    """
    Returns the object name as an absolute POSIX path without duplicate or
    trailing separators.
    """

    if not name or not name.strip("/"):
        raise ValueError(f"Invalid object name: '{name}'")

    return posixpath.normpath("/" + name.lstrip("/"))


def parent_directory(name: str) -> str:
    """
    Returns the grouping key of an object, i.e. the directory containing it.

    >>> parent_directory("/a/b/c.txt")
    '/a/b'
    >>> parent_directory("c.txt")
    '/'
    """

    return posixpath.dirname(normalize_object_name(name))


def validate_identifier(identifier: str) -> str:
    if not isinstance(identifier, str) or not _IDENTIFIER_REGEX.match(identifier):
        raise InvalidIdentifier(f"Invalid SQL identifier: {identifier!r}")

    return identifier
