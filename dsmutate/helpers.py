from __future__ import annotations

import re


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (table/column name) is safe for SQL interpolation.

    Restricted to alphanumeric + underscore, which every SQL backend the store
    runs on accepts unquoted. Identifiers MUST still be trusted
    (hardcoded or validated at application boundaries, not user input).

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier contains unsafe characters or is invalid

    Example:
        >>> validate_identifier("entities", "table_name")
        'entities'
        >>> validate_identifier("'; DROP TABLE--", "table_name")
        ValueError: Invalid table_name "'; DROP TABLE--": ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    return name
