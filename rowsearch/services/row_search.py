from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from threading import Lock
from typing import Callable, Sequence

from rowsearch.logging_utils import clear_run_context, elapsed_ms, log_event, new_run_id, set_run_context
from rowsearch.services.permutation_engine import PermutationEngine, PermutationSpaceExhausted
from rowsearch.services.predicates import (
    TEN_TRICHORD_COUNT,
    VALID,
    all_trichord_failure_index,
    imbricated_trichord_classes,
    interval_sum_failure_index,
    partial_sums,
    realize_row,
    ten_trichord_failure_index,
)
from rowsearch.services.trichord_table import TrichordTable

logger = logging.getLogger(__name__)

Predicate = Callable[[Sequence[int]], int]
Bound = Callable[[Sequence[int]], bool]

SYMMETRY_LIMIT = 6


class SearchInvariantError(RuntimeError):
    pass


# Transposition/inversion symmetry: one representative of each class lies
# below these bounds, so the walk stops as soon as a bound fails.
def eleven_interval_bound(permutation: Sequence[int]) -> bool:
    return permutation[0] < SYMMETRY_LIMIT


def all_trichord_bound(permutation: Sequence[int]) -> bool:
    return permutation[1] < SYMMETRY_LIMIT


def ten_trichord_bound(permutation: Sequence[int]) -> bool:
    return permutation[1] < SYMMETRY_LIMIT or permutation[2] < SYMMETRY_LIMIT


@dataclass(frozen=True)
class RowVariant:
    name: str
    result_key: str
    default_filename: str
    description: str
    domain: tuple[int, ...]
    symmetry_bound: Bound
    failure_index: Callable[..., int]
    uses_trichord_table: bool = False
    cyclic: bool = False
    trichord_count: int | None = None

    @property
    def row_length(self) -> int:
        return len(self.domain)

    def build_predicate(self, table: TrichordTable) -> Predicate:
        if self.uses_trichord_table:
            return partial(self.failure_index, table=table)
        return self.failure_index


VARIANTS: dict[str, RowVariant] = {
    "eleven-interval": RowVariant(
        name="eleven-interval",
        result_key="elevenIntervalRowGenerators",
        default_filename="eleven_interval_row_generators.json",
        description="Interval sequences whose running sums mod 12 are distinct, nonzero and reach the tritone only at the end.",
        domain=tuple(range(1, 12)),
        symmetry_bound=eleven_interval_bound,
        failure_index=interval_sum_failure_index,
    ),
    "all-trichord": RowVariant(
        name="all-trichord",
        result_key="allTrichordRows",
        default_filename="all_trichord_rows.json",
        description="Rows whose twelve cyclic imbricated trichords cover all twelve trichord classes.",
        domain=tuple(range(12)),
        symmetry_bound=all_trichord_bound,
        failure_index=all_trichord_failure_index,
        uses_trichord_table=True,
        cyclic=True,
    ),
    "ten-trichord": RowVariant(
        name="ten-trichord",
        result_key="tenTrichordRows",
        default_filename="ten_trichord_rows.json",
        description="Rows whose first ten linear imbricated trichords belong to ten different classes.",
        domain=tuple(range(12)),
        symmetry_bound=ten_trichord_bound,
        failure_index=ten_trichord_failure_index,
        uses_trichord_table=True,
        trichord_count=TEN_TRICHORD_COUNT,
    ),
}


def get_variant(name: str) -> RowVariant:
    try:
        return VARIANTS[name]
    except KeyError:
        choices = ", ".join(VARIANTS)
        raise ValueError(f"Unknown row variant '{name}'. Choose one of: {choices}.") from None


@dataclass
class SearchOutcome:
    rows: list[tuple[int, ...]]
    candidates_tested: int
    exhausted: bool = False


@dataclass
class SearchResult:
    variant: RowVariant
    rows: list[tuple[int, ...]]
    candidates_tested: int
    duration_ms: int
    run_id: str
    prefix: tuple[int, ...] = ()

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass
class RowCheck:
    variant: RowVariant
    row: list[int]
    failure_index: int
    partial_sums: list[int] = field(default_factory=list)
    trichord_classes: list[int] = field(default_factory=list)
    realized_row: list[int] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.failure_index == VALID


def search_permutations(
    engine: PermutationEngine,
    predicate: Predicate,
    bound: Bound,
    start: Sequence[int] | None = None,
    include_start: bool = False,
) -> SearchOutcome:
    permutation = list(start) if start is not None else engine.identity()
    if not engine.is_permutation(permutation):
        raise ValueError(f"Start {permutation} is not a permutation of {engine.domain}.")

    rows: list[tuple[int, ...]] = []
    tested = 0
    exhausted = False
    try:
        if not include_start:
            engine.advance(permutation)
        while bound(permutation):
            hint = predicate(permutation)
            tested += 1
            if hint == VALID:
                rows.append(tuple(permutation))
            engine.advance(permutation, hint)
    except PermutationSpaceExhausted:
        exhausted = True
        log_event(logger, "permutation_space_exhausted", level=logging.DEBUG, candidates_tested=tested)

    _verify_rows(engine, rows)
    return SearchOutcome(rows=rows, candidates_tested=tested, exhausted=exhausted)


def _verify_rows(engine: PermutationEngine, rows: list[tuple[int, ...]]) -> None:
    previous: tuple[int, ...] | None = None
    for row in rows:
        if not engine.is_permutation(row):
            raise SearchInvariantError(f"Collected row {list(row)} is not a permutation of {engine.domain}.")
        if previous is not None and row <= previous:
            raise SearchInvariantError(f"Collected row {list(row)} does not follow {list(previous)} in lexicographic order.")
        previous = row


def prefix_start(engine: PermutationEngine, prefix: Sequence[int]) -> list[int]:
    head = list(prefix)
    if len(head) >= engine.size:
        raise ValueError(f"Prefix must be shorter than the row length {engine.size}.")
    if len(set(head)) != len(head):
        raise ValueError("Prefix must not repeat a symbol.")
    outside = [symbol for symbol in head if not engine.low <= symbol <= engine.high]
    if outside:
        raise ValueError(f"Prefix symbols {outside} are outside {engine.low}..{engine.high}.")
    return head + [symbol for symbol in engine.domain if symbol not in head]


def _prefix_bound(prefix: Sequence[int], bound: Bound) -> Bound:
    head = list(prefix)
    width = len(head)

    def within(permutation: Sequence[int]) -> bool:
        return list(permutation[:width]) == head and bound(permutation)

    return within


def run_variant_search(
    variant_name: str,
    table: TrichordTable | None = None,
    prefix: Sequence[int] = (),
) -> SearchResult:
    variant = get_variant(variant_name)
    engine = PermutationEngine(variant.domain)
    predicate = variant.build_predicate(table if table is not None else TrichordTable.build())
    prefix = tuple(prefix)

    if prefix:
        start = prefix_start(engine, prefix)
        bound = _prefix_bound(prefix, variant.symmetry_bound)
    else:
        start = None
        bound = variant.symmetry_bound

    run_id = new_run_id()
    set_run_context(run_id=run_id, variant=variant.name)
    started = time.perf_counter()
    try:
        log_event(logger, "row_search_started", prefix=list(prefix), row_length=variant.row_length)
        outcome = search_permutations(engine, predicate, bound, start=start, include_start=bool(prefix))
        duration = elapsed_ms(started)
        log_event(
            logger,
            "row_search_completed",
            rows_found=len(outcome.rows),
            candidates_tested=outcome.candidates_tested,
            exhausted=outcome.exhausted,
            duration_ms=duration,
        )
    finally:
        clear_run_context()

    return SearchResult(
        variant=variant,
        rows=outcome.rows,
        candidates_tested=outcome.candidates_tested,
        duration_ms=duration,
        run_id=run_id,
        prefix=prefix,
    )


def check_row(variant_name: str, row: Sequence[int], table: TrichordTable | None = None) -> RowCheck:
    variant = get_variant(variant_name)
    candidate = list(row)
    if sorted(candidate) != list(variant.domain):
        raise ValueError(
            f"Row must use each of {variant.domain[0]}..{variant.domain[-1]} exactly once for the {variant.name} variant."
        )
    table = table if table is not None else TrichordTable.build()
    check = RowCheck(
        variant=variant,
        row=candidate,
        failure_index=variant.build_predicate(table)(candidate),
    )
    if variant.uses_trichord_table:
        check.trichord_classes = imbricated_trichord_classes(
            candidate, table, cyclic=variant.cyclic, count=variant.trichord_count
        )
        check.realized_row = candidate
    else:
        check.partial_sums = partial_sums(candidate)
        check.realized_row = realize_row(candidate)
    return check


class RowSearchService:
    def __init__(self, table: TrichordTable | None = None):
        self.table = table if table is not None else TrichordTable.build()
        self._cache: dict[tuple[str, tuple[int, ...]], SearchResult] = {}
        self._cache_lock = Lock()

    def search(self, variant_name: str, prefix: Sequence[int] = (), use_cache: bool = True) -> tuple[SearchResult, bool]:
        cache_key = (variant_name, tuple(prefix))
        if use_cache:
            with self._cache_lock:
                cached = self._cache.get(cache_key)
            if cached is not None:
                log_event(logger, "row_search_cache_hit", variant=variant_name, prefix=list(prefix), rows_found=cached.count)
                return cached, True

        result = run_variant_search(variant_name, table=self.table, prefix=prefix)
        if use_cache:
            with self._cache_lock:
                self._cache[cache_key] = result
            log_event(logger, "row_search_cache_store", variant=variant_name, prefix=list(prefix), rows_found=result.count)
        return result, False

    def check(self, variant_name: str, row: Sequence[int]) -> RowCheck:
        return check_row(variant_name, row, table=self.table)

    def clear(self) -> None:
        with self._cache_lock:
            self._cache.clear()


search_service = RowSearchService()
