"""Index contract for vertex keys."""

from collections.abc import Hashable

type Index = Hashable
"""Any hashable value usable as a vertex key (str, int, tuple, bytes, ...)."""


def validate_index(value: object) -> Index:
    """Check that a value can be used as a vertex key.

    Args:
        value: The candidate key.

    Returns:
        The value unchanged.

    Raises:
        TypeError: If the value is not hashable.

    """
    try:
        hash(value)
    except TypeError as e:
        msg = f"Vertex index must be hashable, got {type(value).__name__}: {value!r}"
        raise TypeError(msg) from e
    return value
