"""Custom exception types for the inidict error-handling taxonomy.

Defines three exception classes:

- ``InvalidArgumentError`` — a required argument is missing or malformed.
- ``AllocationFailureError`` — the dictionary could not obtain storage.
- ``PolicyViolationError`` — the value policy forbids the operation.

Missing keys are not errors of this taxonomy; those are ``KeyError``.
"""

from __future__ import annotations

from typing import Any


class InvalidArgumentError(ValueError):
    """An argument required by the operation is missing or invalid.

    Args:
        argument: Name of the offending argument (e.g. ``"key"``).
        message: Human-readable description of the problem.

    Attributes:
        argument: Name of the offending argument.
    """

    def __init__(self, argument: str, message: str | None = None) -> None:
        super().__init__(message or f"invalid argument {argument!r}")
        self.argument = argument


class AllocationFailureError(MemoryError):
    """Storage for the dictionary could not be obtained.

    Raised by creation and growth. Growth failures leave the dictionary
    in its pre-growth state. Must be raised with exception chaining
    (``raise AllocationFailureError(...) from exc``).

    Args:
        capacity: Number of entries that was requested.

    Attributes:
        capacity: Number of entries that was requested.
    """

    def __init__(self, capacity: int) -> None:
        super().__init__(f"cannot allocate storage for {capacity} entries")
        self.capacity = capacity


class PolicyViolationError(TypeError):
    """The dictionary's value policy forbids the attempted operation.

    Messages name the policy (e.g. ``"string"``, ``"dict"``) and the reason.

    Args:
        policy: Name of the policy that rejected the operation.
        reason: Optional explanation appended to the message.

    Attributes:
        policy: Name of the policy that rejected the operation.
    """

    def __init__(self, policy: str, reason: Any = None) -> None:
        message = policy if reason is None else f"{policy}: {reason}"
        super().__init__(message)
        self.policy = policy
