"""
Success-or-failure values returned by every capability call.

Failures carry a reason from a closed taxonomy. ``compose`` and ``chain``
thread a value through dependent steps and stop at the first failure.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, assert_never, cast

T = TypeVar("T")
U = TypeVar("U")


class ServiceFailureReason(str, Enum):
    """Closed set of failure reasons shared by all capability services."""

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNEXPECTED = "UNEXPECTED"


@dataclass(frozen=True, slots=True)
class ServiceFailure:
    reason: ServiceFailureReason
    messages: tuple[str, ...] = ()

    @property
    def detail(self) -> str | None:
        return ", ".join(self.messages) if self.messages else None


@dataclass(frozen=True, slots=True)
class ServiceResult(Generic[T]):
    """Either a content value or a tagged failure, never both."""

    content: T | None = None
    failure: ServiceFailure | None = field(default=None)

    @classmethod
    def success(cls, content: T | None = None) -> ServiceResult[T]:
        return cls(content=content)

    @classmethod
    def failed_with(cls, reason: ServiceFailureReason, *messages: str) -> ServiceResult[T]:
        return cls(failure=ServiceFailure(reason=reason, messages=tuple(messages)))

    @classmethod
    def not_found(cls, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(ServiceFailureReason.NOT_FOUND, *messages)

    @classmethod
    def conflict(cls, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(ServiceFailureReason.CONFLICT, *messages)

    @classmethod
    def bad_request(cls, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(ServiceFailureReason.BAD_REQUEST, *messages)

    @classmethod
    def unauthorized(cls, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(ServiceFailureReason.UNAUTHORIZED, *messages)

    @classmethod
    def unexpected(cls, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(ServiceFailureReason.UNEXPECTED, *messages)

    @classmethod
    def from_http_status(cls, status_code: int, *messages: str) -> ServiceResult[T]:
        return cls.failed_with(reason_for_http_status(status_code), *messages)

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def failed(self) -> bool:
        return self.failure is not None

    @property
    def reason(self) -> ServiceFailureReason | None:
        return self.failure.reason if self.failure else None

    @property
    def failure_detail(self) -> str | None:
        return self.failure.detail if self.failure else None

    def _propagate(self) -> ServiceResult[U]:
        # A failed result carries no content, so it is valid for any U.
        return cast(ServiceResult[U], self)

    def map(self, fn: Callable[[T], U]) -> ServiceResult[U]:
        """Transform the content of a successful result."""
        if self.failed:
            return self._propagate()
        return ServiceResult.success(fn(cast(T, self.content)))

    async def compose(
        self, fn: Callable[[T], Awaitable[ServiceResult[U]]]
    ) -> ServiceResult[U]:
        """Run the next dependent step only when this result succeeded."""
        if self.failed:
            return self._propagate()
        return await fn(cast(T, self.content))


async def chain(
    first: Awaitable[ServiceResult[Any]],
    *steps: Callable[[Any], Awaitable[ServiceResult[Any]]],
) -> ServiceResult[Any]:
    """
    Await ``first`` and feed each successful content into the next step.

    Later steps are never invoked once a step has failed; the first failure
    is returned unchanged.
    """
    result = await first
    for step in steps:
        result = await result.compose(step)
    return result


def reason_for_http_status(status_code: int) -> ServiceFailureReason:
    """Map a remote HTTP error status onto the failure taxonomy."""
    if status_code in (400, 422):
        return ServiceFailureReason.BAD_REQUEST
    if status_code in (401, 403):
        return ServiceFailureReason.UNAUTHORIZED
    if status_code == 404:
        return ServiceFailureReason.NOT_FOUND
    if status_code == 409:
        return ServiceFailureReason.CONFLICT
    return ServiceFailureReason.UNEXPECTED


def http_status_for_reason(reason: ServiceFailureReason) -> int:
    """Map a failure reason to the HTTP status returned to callers."""
    match reason:
        case ServiceFailureReason.NOT_FOUND:
            return 404
        case ServiceFailureReason.CONFLICT:
            return 409
        case ServiceFailureReason.BAD_REQUEST:
            return 400
        case ServiceFailureReason.UNAUTHORIZED:
            return 401
        case ServiceFailureReason.UNEXPECTED:
            return 500
        case _:
            # Type checkers flag this line when a new reason is left unmapped.
            assert_never(reason)
