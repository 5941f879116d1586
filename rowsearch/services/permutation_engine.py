from __future__ import annotations

from typing import MutableSequence, Sequence

NO_HINT = -1


class PermutationSpaceExhausted(RuntimeError):
    pass


class PermutationEngine:
    # advance() skips every permutation sharing the prefix through the hinted
    # failure position.

    def __init__(self, domain: Sequence[int]):
        symbols = sorted(domain)
        if not symbols:
            raise ValueError("Permutation domain must not be empty.")
        if symbols != list(range(symbols[0], symbols[0] + len(symbols))):
            raise ValueError("Permutation domain must be a contiguous range of distinct integers.")
        if symbols[0] < 0:
            raise ValueError("Permutation domain must not contain negative symbols.")
        self.size = len(symbols)
        self.low = symbols[0]
        self.high = symbols[-1]
        # pool[s] is True while s sits at or right of the critical index and
        # has not been placed yet.
        self._pool = [False] * (self.high + 1)

    @property
    def domain(self) -> list[int]:
        return list(range(self.low, self.high + 1))

    def identity(self) -> list[int]:
        return self.domain

    def is_permutation(self, candidate: Sequence[int]) -> bool:
        return len(candidate) == self.size and sorted(candidate) == self.domain

    def advance(self, permutation: MutableSequence[int], hint: int = NO_HINT) -> int:
        size = self.size
        pool = self._pool
        for symbol in range(self.low, self.high + 1):
            pool[symbol] = False
        pool[permutation[size - 1]] = True

        critical = None
        if 0 <= hint < size - 1:
            critical = self._increment_at(permutation, hint)
            if critical is None:
                critical = self._rightmost_ascent(permutation, hint)
        else:
            critical = self._rightmost_ascent(permutation, size - 1)

        if critical is None:
            raise PermutationSpaceExhausted(f"No permutation follows {list(permutation)}.")

        self._refill(permutation, critical)
        return NO_HINT

    def _take_next_above(self, value: int) -> int | None:
        pool = self._pool
        for symbol in range(value + 1, self.high + 1):
            if pool[symbol]:
                pool[symbol] = False
                return symbol
        return None

    def _increment_at(self, permutation: MutableSequence[int], position: int) -> int | None:
        pool = self._pool
        for index in range(position, self.size - 1):
            pool[permutation[index]] = True
        replacement = self._take_next_above(permutation[position])
        if replacement is None:
            return None
        permutation[position] = replacement
        return position

    def _rightmost_ascent(self, permutation: MutableSequence[int], stop: int) -> int | None:
        # Positions from ``stop`` rightwards are already pooled, and
        # permutation[stop] is the largest symbol among them, so an ascent at
        # i is exactly "some pooled symbol exceeds permutation[i]".
        pool = self._pool
        for index in range(stop - 1, -1, -1):
            pool[permutation[index]] = True
            if permutation[index] < permutation[index + 1]:
                permutation[index] = self._take_next_above(permutation[index])
                return index
        return None

    def _refill(self, permutation: MutableSequence[int], critical: int) -> None:
        pool = self._pool
        position = critical + 1
        for symbol in range(self.low, self.high + 1):
            if pool[symbol]:
                permutation[position] = symbol
                position += 1
