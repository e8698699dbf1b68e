"""
Long-running operation polling.

Submissions that answer ``202`` carry an ``Operation-Location``; the poller
GETs that URL until the operation reports ``Succeeded`` or ``Failed``.

- ``Poller.poll`` is a single, stateless attempt.
- ``Poller.wait`` drives the loop: the first poll happens after
  ``policy.interval(0)`` and, after ``n`` non-terminal polls, the next one
  after ``policy.interval(n) = min(initial * factor**n, max_interval)``.
  Transient attempt errors (network, 5xx, 429, unparseable body) are tolerated
  until ``max_consecutive_errors`` happen in a row.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from oxford.core.config import Settings, get_settings
from oxford.core.errors import (
    OperationFailed,
    OxfordError,
    ParseError,
    PollCancelled,
    PollTimeout,
    is_transient,
)
from oxford.core.logger import get_logger
from oxford.schemas.operation import OperationHandle, OperationState, OperationStatus, parse_state
from oxford.services.classifier import classify
from oxford.services.dispatcher import Dispatcher

log = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


class BackoffPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial: float = Field(default=1.0, gt=0)
    factor: float = Field(default=1.8, ge=1.0)
    max_interval: float = Field(default=30.0, gt=0)
    # None disables the overall budget
    max_wait: Optional[float] = Field(default=1800.0, gt=0)

    def interval(self, n: int) -> float:
        return min(self.initial * self.factor**n, self.max_interval)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BackoffPolicy":
        s = settings or get_settings()
        return cls(
            initial=s.POLL_INITIAL_INTERVAL,
            factor=s.POLL_BACKOFF_FACTOR,
            max_interval=s.POLL_MAX_INTERVAL,
            max_wait=s.POLL_MAX_WAIT,
        )


def _decode_result(value: Any) -> Any:
    # video operations return their JSON result as a string
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def status_from_body(body: Any) -> OperationStatus:
    if not isinstance(body, dict):
        raise ParseError("Operation status body is not a JSON object", raw=body)
    state = parse_state(body.get("status"))
    if state is None:
        raise ParseError(f"Unknown operation status {body.get('status')!r}", raw=body)

    result = None
    for key in ("processingResult", "recognitionResult", "recognitionResults"):
        if body.get(key) is not None:
            result = _decode_result(body[key])
            break

    message = body.get("message")
    if message is None and isinstance(body.get("error"), dict):
        message = body["error"].get("message")

    return OperationStatus(
        state=state,
        result=result,
        resource_location=body.get("resourceLocation"),
        message=message,
        created=body.get("createdDateTime"),
        last_action=body.get("lastActionDateTime"),
        raw=body,
    )


class Poller:
    def __init__(
        self,
        dispatcher: Dispatcher,
        policy: Optional[BackoffPolicy] = None,
        max_consecutive_errors: int = 3,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._dispatcher = dispatcher
        self.policy = policy or BackoffPolicy()
        self.max_consecutive_errors = max(1, max_consecutive_errors)
        self._sleep = sleep
        self._clock = clock

    async def poll(self, handle: OperationHandle) -> OperationStatus:
        """One status check. Raises ``ApiError``/``ParseError``/``TransportError``."""
        raw = await self._dispatcher.request("GET", handle.poll_url)
        outcome = classify(raw)
        payload = outcome.unwrap()
        if raw.status_code == 202 and not isinstance(payload, dict):
            # some result endpoints answer 202 with no body while still working
            return OperationStatus(state=OperationState.RUNNING)
        return status_from_body(payload)

    async def _pause(self, delay: float, cancel: Optional[asyncio.Event]) -> None:
        if cancel is None:
            await self._sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return

    async def wait(
        self,
        handle: OperationHandle,
        policy: Optional[BackoffPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
        raise_on_failure: bool = True,
    ) -> OperationStatus:
        """Poll ``handle`` until it reaches a terminal state.

        Raises ``PollTimeout`` when the next wait would exceed
        ``policy.max_wait``, ``PollCancelled`` once ``cancel`` is set, and
        ``OperationFailed`` for a ``Failed`` operation unless
        ``raise_on_failure`` is off. The remote job itself keeps running in
        the timeout and cancel cases.
        """
        policy = policy or self.policy
        started = self._clock()
        polls = 0
        errors = 0

        while True:
            delay = policy.interval(polls)
            elapsed = self._clock() - started
            if policy.max_wait is not None and elapsed + delay > policy.max_wait:
                log.warning("Giving up on %s after %.1fs", handle.poll_url, elapsed)
                raise PollTimeout(handle.poll_url, elapsed)

            await self._pause(delay, cancel)
            if cancel is not None and cancel.is_set():
                log.info("Polling of %s cancelled", handle.poll_url)
                raise PollCancelled(handle.poll_url)

            try:
                status = await self.poll(handle)
            except OxfordError as e:
                if not is_transient(e):
                    raise
                errors += 1
                if errors >= self.max_consecutive_errors:
                    log.error("Polling %s failed %d times in a row: %s", handle.poll_url, errors, e)
                    raise
                log.warning("Transient poll error %d/%d for %s: %s", errors, self.max_consecutive_errors, handle.poll_url, e)
                polls += 1
                continue

            errors = 0
            if status.done:
                log.info("Operation %s finished: %s", handle.poll_url, status.state.value)
                if status.state is OperationState.FAILED and raise_on_failure:
                    raise OperationFailed(handle.poll_url, status.message, raw=status.raw)
                return status

            polls += 1
            log.debug("Operation %s still running (poll %d)", handle.poll_url, polls)
