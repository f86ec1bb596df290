"""Backoff strategies for retry policies.

Pure delay calculation for the n-th recoverable failure:
- ExponentialBackoff: Exponential growth with a ceiling
- LinearBackoff: Linear growth with a ceiling
- ConstantBackoff: Fixed delay

All strategies are deterministic: the same attempt number always yields the
same delay, so policies built on them stay pure functions of their history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.
    
    Attempt numbers are 0-indexed (first recoverable failure = attempt 0).
    """
    
    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds for given attempt number.
        
        Args:
            attempt: 0-indexed count of earlier recoverable failures
            
        Returns:
            Delay in seconds before the next attempt
        """
        ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with ceiling.
    
    Delay = min(base * (multiplier ^ attempt), max_delay)
    
    Attributes:
        base: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        multiplier: Exponential growth factor (default: 2.0)
    """
    
    base: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    
    def delay(self, attempt: int) -> float:
        try:
            d = self.base * (self.multiplier ** attempt)
        except OverflowError:
            return self.max_delay
        return min(d, self.max_delay)


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Linear backoff with ceiling.
    
    Delay = min(base + (increment * attempt), max_delay)
    """
    
    base: float = 1.0
    increment: float = 1.0
    max_delay: float = 30.0
    
    def delay(self, attempt: int) -> float:
        return min(self.base + (self.increment * attempt), self.max_delay)


@dataclass(frozen=True, slots=True)
class ConstantBackoff:
    """Fixed delay between attempts."""
    
    delay_seconds: float = 1.0
    
    def delay(self, attempt: int) -> float:
        return self.delay_seconds
