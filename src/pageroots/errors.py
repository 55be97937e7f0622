"""
Error types for glob root resolution.

Two kinds of failure exist. `UsageError` is a misconfiguration the user can fix
(an unresolvable package, a malformed package name, a deprecated manifest field).
`InternalError` means an invariant of the resolution algorithm itself was violated.
Neither is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PagerootsError(Exception):
    """Base application error."""


class UsageError(PagerootsError):
    """Configuration the user needs to change."""


class InternalError(PagerootsError):
    """Invariant violation; indicates a bug rather than a misconfiguration."""


class CheckKind(str, Enum):
    OK = "ok"
    USAGE = "usage"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Check:
    """
    Result of a named invariant check. Lets callers and tests tell a bug
    (`INTERNAL`) from a misconfiguration (`USAGE`) without matching on messages.
    """

    kind: CheckKind
    message: str = ""

    @classmethod
    def ok(cls) -> Check:
        return cls(CheckKind.OK)

    @classmethod
    def usage(cls, message: str) -> Check:
        return cls(CheckKind.USAGE, message)

    @classmethod
    def internal(cls, message: str) -> Check:
        return cls(CheckKind.INTERNAL, message)

    @property
    def passed(self) -> bool:
        return self.kind is CheckKind.OK

    def raise_for_failure(self) -> None:
        if self.kind is CheckKind.USAGE:
            raise UsageError(self.message)
        if self.kind is CheckKind.INTERNAL:
            raise InternalError(self.message)


def assert_usage(condition: object, message: str) -> None:
    if not condition:
        raise UsageError(message)


def assert_internal(condition: object, message: str = "Internal invariant violated") -> None:
    if not condition:
        raise InternalError(message)
