from __future__ import annotations

from typing import Sequence

from rowsearch.services.trichord_table import PITCH_CLASS_COUNT, TRICHORD_CLASS_COUNT, TrichordTable

VALID = -1
TRITONE = 6
TEN_TRICHORD_COUNT = 10


def partial_sums(generator: Sequence[int]) -> list[int]:
    sums: list[int] = []
    total = 0
    for step in generator:
        total = (total + step) % PITCH_CLASS_COUNT
        sums.append(total)
    return sums


def realize_row(generator: Sequence[int]) -> list[int]:
    """Twelve-tone row produced by transposing pitch class 0 through each interval of ``generator``."""
    return [0, *partial_sums(generator)]


def row_intervals(row: Sequence[int], cyclic: bool = False) -> list[int]:
    size = len(row)
    count = size if cyclic else size - 1
    return [(row[(k + 1) % size] - row[k]) % PITCH_CLASS_COUNT for k in range(count)]


def imbricated_trichord_classes(
    row: Sequence[int], table: TrichordTable, cyclic: bool = False, count: int | None = None
) -> list[int]:
    intervals = row_intervals(row, cyclic=cyclic)
    available = len(intervals) if cyclic else len(intervals) - 1
    limit = available if count is None else min(count, available)
    return [table.lookup(intervals[k], intervals[(k + 1) % len(intervals)]) for k in range(limit)]


def interval_sum_failure_index(permutation: Sequence[int]) -> int:
    # A zero or early tritone fails at once; a repeated sum only after the full
    # scan, reported as len(permutation).
    seen = [False] * PITCH_CLASS_COUNT
    last = len(permutation) - 1
    repeated = False
    total = 0
    for index, step in enumerate(permutation):
        total = (total + step) % PITCH_CLASS_COUNT
        if total == 0:
            return index
        if total == TRITONE and index < last:
            return index
        if seen[total]:
            repeated = True
        seen[total] = True
    return len(permutation) if repeated else VALID


def _first_repeated_trichord(permutation: Sequence[int], intervals: list[int], table: TrichordTable, count: int) -> int:
    size = len(permutation)
    span = len(intervals)
    seen = [False] * (TRICHORD_CLASS_COUNT + 1)
    grid = table.classes
    for k in range(count):
        class_id = grid[intervals[k]][intervals[(k + 1) % span]]
        if seen[class_id]:
            # The trichord at k ends on pitch k + 2; a repeat that only shows
            # up across the wraparound forces a full backtrack.
            return k + 2 if k < size - 2 else size
        seen[class_id] = True
    return VALID


def all_trichord_failure_index(permutation: Sequence[int], table: TrichordTable) -> int:
    size = len(permutation)
    intervals = [(permutation[(k + 1) % size] - permutation[k]) % PITCH_CLASS_COUNT for k in range(size)]
    return _first_repeated_trichord(permutation, intervals, table, size)


def ten_trichord_failure_index(permutation: Sequence[int], table: TrichordTable) -> int:
    intervals = [(permutation[k + 1] - permutation[k]) % PITCH_CLASS_COUNT for k in range(len(permutation) - 1)]
    return _first_repeated_trichord(permutation, intervals, table, TEN_TRICHORD_COUNT)
