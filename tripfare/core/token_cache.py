"""Bearer token held in memory until shortly before it expires.

Concurrent refreshes are tolerated: the worst case is one extra token request.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class TokenCache:
    value: Optional[str] = None
    expires_at: float = 0.0
    skew: float = 60.0
    clock: Callable[[], float] = time.time

    def get(self) -> Optional[str]:
        if self.value and self.clock() < self.expires_at - self.skew:
            return self.value
        return None

    def store(self, value: str, expires_in: float) -> None:
        self.value = value
        self.expires_at = self.clock() + expires_in

    def clear(self) -> None:
        self.value = None
        self.expires_at = 0.0
