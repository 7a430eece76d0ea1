from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserPair:
    """Unordered pair of user ids, stored as (low, high)."""

    low: int
    high: int

    @classmethod
    def of(cls, user_a: int, user_b: int) -> UserPair:
        if user_a <= user_b:
            return cls(user_a, user_b)
        return cls(user_b, user_a)

    @property
    def is_self_pair(self) -> bool:
        return self.low == self.high

    def as_tuple(self) -> tuple[int, int]:
        return self.low, self.high
