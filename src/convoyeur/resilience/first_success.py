"""
First-success combinator.

Tries candidate operations in order and returns the first result.
Failures are collected so the caller can report every attempt.
"""

import logging
from typing import Awaitable, Callable, Generic, List, Sequence, Tuple, TypeVar

from convoyeur.domain.exceptions import ConvoyeurException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AllStrategiesFailedError(ConvoyeurException):
    """Every candidate failed."""

    def __init__(self, label: str, failures: List[Tuple[str, Exception]]):
        self.label = label
        self.failures = failures
        summary = "; ".join(f"{name}: {error}" for name, error in failures)
        super().__init__(
            f"All {label} attempts failed ({summary or 'no candidates'})",
            details={"failures": [(name, str(e)) for name, e in failures]},
        )


class Attempt(Generic[T]):
    """Named zero-argument coroutine factory."""

    def __init__(self, name: str, factory: Callable[[], Awaitable[T]]):
        self.name = name
        self.factory = factory

    def __repr__(self) -> str:
        return f"Attempt({self.name!r})"


async def first_success(
    attempts: Sequence[Attempt[T]],
    label: str = "operation",
    accept: Callable[[T], bool] = lambda _: True,
) -> Tuple[str, T]:
    """
    Run attempts in order until one succeeds.

    Args:
        attempts: Candidates, tried strictly in order
        label: Name used in logs and in the aggregated error
        accept: Predicate a result must satisfy to count as success

    Returns:
        (name of the winning attempt, its result)

    Raises:
        AllStrategiesFailedError: If no attempt succeeded
    """
    failures: List[Tuple[str, Exception]] = []

    for attempt in attempts:
        try:
            result = await attempt.factory()
        except Exception as e:
            logger.debug(f"{label}: {attempt.name} failed: {e}")
            failures.append((attempt.name, e))
            continue

        if not accept(result):
            failures.append(
                (attempt.name, ValueError(f"Rejected result: {result!r}"))
            )
            continue

        return attempt.name, result

    raise AllStrategiesFailedError(label, failures)
