"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Approval workflow.

Operations gated by an approval policy are not executed directly. Instead an
approval request is created for them (``client.request_approval``), reviewers
approve or deny it, and the outcome of the operation is fetched once the
request is approved. ``PendingApproval`` is the handle for one such request;
the ``wait_for_approval`` drivers poll it until it leaves ``PENDING``.

Handle methods work with both clients: with ``SdkmsClient`` they return the
value, with ``AsyncSdkmsClient`` they return an awaitable.
"""

from __future__ import annotations

import asyncio
import functools
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Type, TypeVar, Union
from uuid import UUID

from sdkms.api.approval_requests import ApprovableResult, ApprovalStatus
from sdkms.config.settings import ApprovalConfig
from sdkms.exceptions import (
    APPROVAL_REQUIRED_MESSAGE,
    ApprovalCancelledError,
    ApprovalDeniedError,
    ApprovalMatcher,
    ApprovalTimeoutError,
    EncoderError,
    ForbiddenError,
    SdkmsError,
    error_from_status,
)
from sdkms.logging_config import get_logger, log_approval_transition
from sdkms.operations import Operation, PathParams, QueryParams

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationSucceeded(Generic[T]):
    """The approved operation ran and returned ``value``."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class OperationFailed:
    """The approved operation ran and failed with ``error``."""

    error: SdkmsError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


ApprovalOutcome = Union[OperationSucceeded, OperationFailed]


@dataclass(frozen=True)
class PendingApproval(Generic[T]):
    """Handle to an approval request for one operation.

    Attributes:
        request_id: ID of the approval request.
        operation: Operation descriptor whose output type the result decodes as.
    """

    request_id: UUID
    operation: Type[Operation]

    def get(self, client):
        """Fetch the full approval request record."""
        return client.get_approval_request(self.request_id)

    def status(self, client):
        """Fetch the current ``ApprovalStatus``."""
        return client._map_result(self.get(client), lambda record: record.status)

    def result(self, client):
        """Fetch the outcome of the approved operation.

        Raising means the result query itself failed. A returned
        ``OperationFailed`` means the query succeeded and the operation
        behind it failed.
        """
        return client._map_result(
            client.get_approval_request_result(self.request_id), self.decode_result
        )

    def decode_result(self, result: ApprovableResult) -> ApprovalOutcome:
        if result.is_ok():
            try:
                return OperationSucceeded(self.operation.decode_output(result.body))
            except EncoderError as e:
                return OperationFailed(e)

        if not isinstance(result.body, str):
            raise EncoderError(
                f"approval request {self.request_id} result has status {result.status} "
                f"and a non-string error body"
            )
        return OperationFailed(error_from_status(result.status, result.body))


@dataclass(frozen=True)
class ApprovalPolicy:
    """How the approval drivers poll and which 403 messages trigger approval.

    Attributes:
        poll_interval: Seconds between status checks.
        max_attempts: Maximum number of status checks, None for unbounded.
        timeout: Seconds to wait overall, None for unbounded.
        matcher: Expected 403 message, or a predicate over it.
    """

    poll_interval: float = 10.0
    max_attempts: Optional[int] = None
    timeout: Optional[float] = None
    matcher: ApprovalMatcher = APPROVAL_REQUIRED_MESSAGE

    @classmethod
    def from_config(cls, config: ApprovalConfig) -> "ApprovalPolicy":
        return cls(
            poll_interval=config.poll_interval_seconds,
            max_attempts=config.max_attempts,
            timeout=config.timeout_seconds,
            matcher=config.required_message,
        )

    def deadline(self, clock: Callable[[], float] = time.monotonic) -> Optional[float]:
        if self.timeout is None:
            return None
        return clock() + self.timeout


def _next_delay(
    pending: PendingApproval,
    attempts: int,
    poll_interval: float,
    max_attempts: Optional[int],
    deadline: Optional[float],
    clock: Callable[[], float],
) -> float:
    if max_attempts is not None and attempts >= max_attempts:
        raise ApprovalTimeoutError(pending.request_id, attempts)
    if deadline is None:
        return poll_interval
    remaining = deadline - clock()
    if remaining <= 0:
        raise ApprovalTimeoutError(pending.request_id, attempts)
    return min(poll_interval, remaining)


def wait_for_approval(
    client,
    pending: PendingApproval,
    poll_interval: float = 10.0,
    max_attempts: Optional[int] = None,
    deadline: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    sleep: Optional[Callable[[float], Any]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> ApprovalStatus:
    """
    Poll an approval request until it leaves ``PENDING``.

    Args:
        client: ``SdkmsClient`` used for the status checks.
        pending: Handle returned by ``request_approval``.
        poll_interval: Seconds between status checks.
        max_attempts: Maximum number of status checks.
        deadline: Give up once ``clock()`` reaches this value.
        cancel_event: Stop polling as soon as the event is set.
        sleep: Sleep function; defaults to waiting on ``cancel_event`` or ``time.sleep``.
        clock: Monotonic clock the deadline refers to.

    Returns:
        The terminal status.

    Raises:
        ApprovalTimeoutError: If the attempt or time budget runs out.
        ApprovalCancelledError: If ``cancel_event`` is set.
    """
    if sleep is None:
        sleep = cancel_event.wait if cancel_event is not None else time.sleep

    attempts = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise ApprovalCancelledError(pending.request_id)

        status = pending.status(client)
        attempts += 1
        if status is not ApprovalStatus.PENDING:
            log_approval_transition(logger, str(pending.request_id), status.value, attempts)
            return status

        sleep(_next_delay(pending, attempts, poll_interval, max_attempts, deadline, clock))


async def _sleep_until_cancelled(cancel_event: asyncio.Event, delay: float) -> None:
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


async def async_wait_for_approval(
    client,
    pending: PendingApproval,
    poll_interval: float = 10.0,
    max_attempts: Optional[int] = None,
    deadline: Optional[float] = None,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[Callable[[float], Any]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> ApprovalStatus:
    """Asyncio counterpart of ``wait_for_approval`` for ``AsyncSdkmsClient``."""
    if sleep is None:
        if cancel_event is not None:
            sleep = functools.partial(_sleep_until_cancelled, cancel_event)
        else:
            sleep = asyncio.sleep

    attempts = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise ApprovalCancelledError(pending.request_id)

        status = await pending.status(client)
        attempts += 1
        if status is not ApprovalStatus.PENDING:
            log_approval_transition(logger, str(pending.request_id), status.value, attempts)
            return status

        await sleep(_next_delay(pending, attempts, poll_interval, max_attempts, deadline, clock))


def _needs_approval(error: ForbiddenError, policy: ApprovalPolicy) -> bool:
    if not error.requires_approval(policy.matcher):
        return False
    logger.info("approval_required", error=error.message)
    return True


def call_with_approval_fallback(
    client,
    operation: Type[Operation],
    body: Any = None,
    path_params: PathParams = None,
    query_params: Optional[QueryParams] = None,
    description: Optional[str] = None,
    policy: Optional[ApprovalPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
    sleep: Optional[Callable[[float], Any]] = None,
):
    """
    Run an operation, going through an approval request if the service requires one.

    The direct call is tried first. When it fails with a 403 whose message
    matches the policy, an approval request is created, polled until it is
    resolved and the operation's outcome is returned.

    Raises:
        ApprovalDeniedError: If a reviewer denies the request.
        SdkmsError: Any error of the direct call or of the approved operation.
    """
    policy = policy or ApprovalPolicy()
    try:
        return client.execute(operation, body, path_params, query_params)
    except ForbiddenError as e:
        if not _needs_approval(e, policy):
            raise

    pending = client.request_approval(
        operation, body, path_params, query_params, description=description
    )
    status = wait_for_approval(
        client,
        pending,
        poll_interval=policy.poll_interval,
        max_attempts=policy.max_attempts,
        deadline=policy.deadline(),
        cancel_event=cancel_event,
        sleep=sleep,
    )
    if status is ApprovalStatus.DENIED:
        raise ApprovalDeniedError(pending.request_id)
    return pending.result(client).unwrap()


async def async_call_with_approval_fallback(
    client,
    operation: Type[Operation],
    body: Any = None,
    path_params: PathParams = None,
    query_params: Optional[QueryParams] = None,
    description: Optional[str] = None,
    policy: Optional[ApprovalPolicy] = None,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[Callable[[float], Any]] = None,
):
    """Asyncio counterpart of ``call_with_approval_fallback``."""
    policy = policy or ApprovalPolicy()
    try:
        return await client.execute(operation, body, path_params, query_params)
    except ForbiddenError as e:
        if not _needs_approval(e, policy):
            raise

    pending = await client.request_approval(
        operation, body, path_params, query_params, description=description
    )
    status = await async_wait_for_approval(
        client,
        pending,
        poll_interval=policy.poll_interval,
        max_attempts=policy.max_attempts,
        deadline=policy.deadline(),
        cancel_event=cancel_event,
        sleep=sleep,
    )
    if status is ApprovalStatus.DENIED:
        raise ApprovalDeniedError(pending.request_id)
    outcome = await pending.result(client)
    return outcome.unwrap()
