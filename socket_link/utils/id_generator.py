"""
Hierarchical id generation

A CounterIdGenerator is a monotonic counter rendered in a fixed radix. Ids are
nested by passing the parent id as prefix, e.g. service id -> connection id ->
request id ("host.18c2f.0" -> "host.18c2f.0.a").
"""

import string

_DIGITS = string.digits + string.ascii_lowercase


def to_radix(value: int, radix: int) -> str:
    """Render a non-negative integer in the given radix (2..36)

    Args:
        value: Integer to render
        radix: Base to render in

    Returns:
        str: Lowercase digits, most significant first
    """
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, radix)
        digits.append(_DIGITS[remainder])
    return "".join(reversed(digits))


class CounterIdGenerator:
    """Monotonic counter producing string ids.

    Every call returns the current count (rendered in ``radix``) and then
    increments it, so the first id is ``"0"``.
    """

    def __init__(self, radix: int = 10):
        if not 2 <= radix <= 36:
            raise ValueError(f"radix must be between 2 and 36, got {radix}")
        self._radix = radix
        self._count = 0

    @property
    def count(self) -> int:
        """Number of ids produced so far"""
        return self._count

    @property
    def radix(self) -> int:
        return self._radix

    def __call__(self, prefix: str = "", join: str = ".") -> str:
        value = to_radix(self._count, self._radix)
        self._count += 1
        return f"{prefix}{join}{value}" if prefix else value

    def __repr__(self) -> str:
        return f"CounterIdGenerator(radix={self._radix}, count={self._count})"
