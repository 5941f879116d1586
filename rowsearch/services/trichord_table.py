from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

PITCH_CLASS_COUNT = 12
TRICHORD_CLASS_COUNT = 12

# Class id -> (prime form, Forte name).
TRICHORD_PRIME_FORMS = {
    1: ((0, 1, 2), "3-1"),
    2: ((0, 1, 3), "3-2"),
    3: ((0, 1, 4), "3-3"),
    4: ((0, 1, 5), "3-4"),
    5: ((0, 1, 6), "3-5"),
    6: ((0, 2, 4), "3-6"),
    7: ((0, 2, 5), "3-7"),
    8: ((0, 2, 6), "3-8"),
    9: ((0, 2, 7), "3-9"),
    10: ((0, 3, 6), "3-10"),
    11: ((0, 3, 7), "3-11"),
    12: ((0, 4, 8), "3-12"),
}

# Adjacent interval pairs (first, second) spelling each trichord class.
TRICHORD_INTERVAL_PAIRS = {
    1: [(2, 11), (11, 2), (1, 10), (11, 11), (1, 1), (10, 1)],
    2: [
        (3, 11), (3, 10), (10, 3), (2, 9), (1, 9), (11, 10),
        (10, 11), (9, 2), (2, 1), (11, 3), (9, 1), (1, 2),
    ],
    3: [
        (3, 8), (11, 4), (8, 1), (9, 4), (4, 9), (3, 1),
        (4, 11), (11, 9), (1, 8), (8, 3), (9, 11), (1, 3),
    ],
    4: [
        (8, 5), (11, 8), (8, 11), (1, 4), (4, 7), (1, 7),
        (7, 1), (5, 8), (7, 4), (5, 11), (4, 1), (11, 5),
    ],
    5: [
        (6, 7), (7, 11), (6, 11), (5, 1), (7, 6), (1, 6),
        (1, 5), (5, 6), (11, 7), (11, 6), (6, 1), (6, 5),
    ],
    6: [(4, 10), (2, 2), (10, 10), (8, 2), (2, 8), (10, 4)],
    7: [
        (7, 2), (3, 7), (10, 9), (2, 7), (2, 3), (3, 2),
        (9, 10), (5, 10), (9, 5), (10, 5), (5, 9), (7, 3),
    ],
    8: [
        (8, 6), (4, 6), (6, 2), (6, 4), (4, 2), (6, 8),
        (8, 10), (2, 4), (10, 8), (2, 6), (10, 6), (6, 10),
    ],
    9: [(7, 10), (2, 5), (5, 2), (5, 5), (10, 7), (7, 7)],
    10: [(3, 6), (3, 3), (6, 9), (9, 9), (6, 3), (9, 6)],
    11: [
        (9, 7), (3, 5), (8, 7), (3, 4), (4, 3), (4, 5),
        (7, 8), (8, 9), (9, 8), (5, 3), (7, 9), (5, 4),
    ],
    12: [(8, 8), (4, 4)],
}


@dataclass(frozen=True)
class TrichordTable:
    # classes[a][b]: class id of interval a followed by b; 0 where no row can
    # produce the pair.
    classes: tuple[tuple[int, ...], ...]

    @classmethod
    def build(cls) -> "TrichordTable":
        grid = [[0] * PITCH_CLASS_COUNT for _ in range(PITCH_CLASS_COUNT)]
        for class_id, pairs in TRICHORD_INTERVAL_PAIRS.items():
            for first, second in pairs:
                if grid[first][second]:
                    raise ValueError(f"Interval pair ({first}, {second}) is assigned to more than one trichord class.")
                grid[first][second] = class_id
        return cls(classes=tuple(tuple(row) for row in grid))

    def lookup(self, first: int, second: int) -> int:
        if not (0 <= first < PITCH_CLASS_COUNT and 0 <= second < PITCH_CLASS_COUNT):
            raise ValueError(f"Intervals ({first}, {second}) must lie between 0 and {PITCH_CLASS_COUNT - 1}.")
        class_id = self.classes[first][second]
        if not class_id:
            raise ValueError(f"Intervals ({first}, {second}) do not spell a trichord of three distinct pitch classes.")
        return class_id

    def populated_pairs(self) -> list[tuple[int, int]]:
        return [
            (first, second)
            for first in range(PITCH_CLASS_COUNT)
            for second in range(PITCH_CLASS_COUNT)
            if self.classes[first][second]
        ]


def trichord_prime_form(pitch_classes: Iterable[int]) -> tuple[int, ...]:
    pcs = {pc % PITCH_CLASS_COUNT for pc in pitch_classes}
    if len(pcs) != 3:
        raise ValueError("A trichord needs three distinct pitch classes.")
    # For three-note sets the lexicographically smallest zero-based form over
    # all transpositions and inversions is the prime form.
    candidates = []
    for source in (pcs, {(-pc) % PITCH_CLASS_COUNT for pc in pcs}):
        for root in source:
            candidates.append(tuple(sorted((pc - root) % PITCH_CLASS_COUNT for pc in source)))
    return min(candidates)


def trichord_class_id(pitch_classes: Iterable[int]) -> int:
    prime = trichord_prime_form(pitch_classes)
    for class_id, (form, _name) in TRICHORD_PRIME_FORMS.items():
        if form == prime:
            return class_id
    raise ValueError(f"Unknown trichord prime form {prime}.")  # pragma: no cover
