"""
Resilience patterns.
"""

from convoyeur.resilience.first_success import (
    AllStrategiesFailedError,
    Attempt,
    first_success,
)
from convoyeur.resilience.retry import Retry, RetryConfig, RetryError

__all__ = [
    "AllStrategiesFailedError",
    "Attempt",
    "first_success",
    "Retry",
    "RetryConfig",
    "RetryError",
]
