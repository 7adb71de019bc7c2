from __future__ import annotations

from typing import Iterable, Optional


class CountingError(ValueError):
    """Base error for counting operations. Pages show ``str(e)`` to the operator."""


class NotFound(CountingError):
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} not found: {key}")


class InvalidTransition(CountingError):
    """
    Raised when an operation needs a specific status and the record is elsewhere.
    The state is left untouched.
    """

    def __init__(
        self,
        entity: str,
        key: str,
        action: str,
        current: str,
        expected: Optional[Iterable[str]] = None,
    ):
        self.entity = entity
        self.key = key
        self.action = action
        self.current = current
        self.expected = tuple(expected or ())

        msg = f"Cannot {action} {entity} {key}: status is {current}"
        if self.expected:
            msg += f" (requires {' or '.join(self.expected)})"
        super().__init__(msg + ".")
