"""Bounded, strictly sequential retry loop.

Two entry points share the same loop:

- ``retry`` re-runs an action while an ``on_error`` classifier says the
  failure is recoverable.
- ``retry_with_repair`` threads an explicit payload through the attempts.
  On failure a ``repair`` callback inspects the error and the payload that
  produced it, and returns either ``Repairable(next_payload)`` to try again
  with a corrected payload, or ``Fatal(error)`` to stop.

Attempts never overlap; the repaired payload of attempt N is the input of
attempt N+1.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P")


@dataclass(frozen=True)
class Repairable(Generic[P]):
    """The failed attempt can be retried with ``payload``."""

    payload: P


@dataclass(frozen=True)
class Fatal:
    """The failed attempt must not be retried; ``error`` is raised."""

    error: BaseException


RepairOutcome = Union[Repairable, Fatal]


def retry_with_repair(
    action: Callable[[P], T],
    payload: P,
    repair: Callable[[Exception, P], RepairOutcome],
    *,
    max_attempts: Optional[int] = None,
    delay: float = 0.0,
    context: str = "retry",
) -> T:
    """Run ``action(payload)`` until it succeeds, repairing the payload between attempts.

    Args:
        action: Callable performing one attempt.
        payload: Input of the first attempt.
        repair: Classifies a failure and produces the next payload.
        max_attempts: Upper bound on attempts; None or a negative value means
            the loop is bounded only by ``repair`` returning ``Fatal``.
        delay: Seconds to wait between attempts.
        context: Tag used in log records.

    Returns:
        The result of the first successful attempt.

    Raises:
        The last error once attempts are exhausted or the failure is fatal.
    """
    attempts = 0
    while True:
        attempts += 1
        try:
            return action(payload)
        except Exception as error:  # pylint: disable=broad-exception-caught
            exhausted = max_attempts is not None and 0 <= max_attempts <= attempts
            if exhausted:
                raise

            outcome = repair(error, payload)
            if isinstance(outcome, Fatal):
                if outcome.error is error:
                    raise
                raise outcome.error from error
            payload = outcome.payload

            if is_debug_enabled(logger):
                logger.debug(
                    "Retrying after recoverable error",
                    extra=extra_context(
                        event="retry",
                        component="retry",
                        action=context,
                        attempt=attempts,
                        error=type(error).__name__,
                    ),
                )

        if delay > 0:
            time.sleep(delay)


def retry(
    action: Callable[[], T],
    *,
    max_attempts: Optional[int] = None,
    delay: float = 0.0,
    on_error: Optional[Callable[[Exception], Optional[bool]]] = None,
    context: str = "retry",
) -> T:
    """Run ``action`` until it succeeds or a failure is classified as fatal.

    ``on_error`` returning True or None marks the failure as recoverable;
    without a classifier every failure is recoverable.
    """

    def _classify(error: Exception, _: None) -> RepairOutcome:
        handled = on_error(error) if on_error is not None else True
        if handled or handled is None:
            return Repairable(None)
        return Fatal(error)

    return retry_with_repair(
        lambda _: action(),
        None,
        _classify,
        max_attempts=max_attempts,
        delay=delay,
        context=context,
    )
