from itertools import permutations

import pytest

from rowsearch.services.permutation_engine import NO_HINT, PermutationEngine
from rowsearch.services.predicates import (
    VALID,
    all_trichord_failure_index,
    imbricated_trichord_classes,
    interval_sum_failure_index,
    partial_sums,
    ten_trichord_failure_index,
)
from rowsearch.services.row_search import (
    VARIANTS,
    RowSearchService,
    SearchInvariantError,
    all_trichord_bound,
    check_row,
    eleven_interval_bound,
    get_variant,
    run_variant_search,
    search_permutations,
    ten_trichord_bound,
)
from rowsearch.services.trichord_table import TrichordTable

ALL_INTERVAL_GENERATOR = (1, 10, 3, 8, 5, 6, 7, 4, 9, 2, 11)


@pytest.fixture(scope="module")
def table():
    return TrichordTable.build()


def _no_adjacent_steps(permutation):
    for index in range(1, len(permutation)):
        if abs(permutation[index] - permutation[index - 1]) == 1:
            return index
    return VALID


def _distinct_running_sums_mod_five(permutation):
    seen = set()
    repeated = False
    total = 0
    for index, step in enumerate(permutation):
        total = (total + step) % 5
        if total == 0:
            return index
        if total in seen:
            repeated = True
        seen.add(total)
    return len(permutation) if repeated else VALID


def _brute_force(prefix, domain, predicate):
    rest = [symbol for symbol in domain if symbol not in prefix]
    candidates = (tuple(prefix) + tail for tail in permutations(rest))
    return [candidate for candidate in candidates if predicate(candidate) == VALID]


def _always(_permutation):
    return True


@pytest.mark.parametrize(
    ("domain", "predicate"),
    [(range(4), _no_adjacent_steps), (range(5), _no_adjacent_steps), (range(1, 5), _distinct_running_sums_mod_five)],
)
def test_pruned_search_matches_brute_force_on_small_domains(domain, predicate):
    engine = PermutationEngine(domain)
    identity = tuple(domain)

    outcome = search_permutations(engine, predicate, _always)

    expected = [p for p in permutations(domain) if p != identity and predicate(p) == VALID]
    assert outcome.rows == expected
    assert outcome.exhausted is True


def test_toy_search_finds_known_rows():
    outcome = search_permutations(PermutationEngine(range(4)), _no_adjacent_steps, _always)

    assert outcome.rows == [(1, 3, 0, 2), (2, 0, 3, 1)]


def test_first_tested_candidate_is_successor_of_identity():
    tested = []

    def recorder(permutation):
        tested.append(tuple(permutation))
        return VALID

    search_permutations(PermutationEngine(range(1, 12)), recorder, lambda _p: len(tested) < 3)

    assert tested[0] == (1, 2, 3, 4, 5, 6, 7, 8, 9, 11, 10)
    assert tuple(range(1, 12)) not in tested


def test_search_stops_at_bound_without_testing_the_violating_permutation():
    tested = []

    def recorder(permutation):
        tested.append(tuple(permutation))
        return 0

    outcome = search_permutations(PermutationEngine(range(4)), recorder, lambda p: p[0] < 2)

    assert [candidate[0] for candidate in tested] == [0, 1]
    assert outcome.rows == []
    assert outcome.exhausted is False


def test_symmetry_bounds_are_literal():
    assert eleven_interval_bound([5, 1, 2])
    assert not eleven_interval_bound([6, 1, 2])
    assert all_trichord_bound([0, 5, 1])
    assert not all_trichord_bound([0, 6, 1])
    assert ten_trichord_bound([0, 6, 5])
    assert ten_trichord_bound([0, 7, 1])
    assert not ten_trichord_bound([0, 6, 7])


def test_each_variant_uses_its_own_symmetry_bound():
    assert VARIANTS["eleven-interval"].symmetry_bound is eleven_interval_bound
    assert VARIANTS["all-trichord"].symmetry_bound is all_trichord_bound
    assert VARIANTS["ten-trichord"].symmetry_bound is ten_trichord_bound


def test_ten_trichord_search_reaches_rows_with_second_pitch_six(table):
    # Rows starting 0, 6 lie past p[1] < 6 and are kept only through p[2] < 6.
    result = run_variant_search("ten-trichord", table=table, prefix=(0, 6))

    assert result.count == 1442
    assert all(row[2] < 6 for row in result.rows)
    assert run_variant_search("all-trichord", table=table, prefix=(0, 6)).rows == []


def test_eleven_interval_prefix_search_matches_brute_force():
    prefix = (1, 10, 3)

    result = run_variant_search("eleven-interval", prefix=prefix)

    assert result.rows == _brute_force(prefix, range(1, 12), interval_sum_failure_index)
    assert ALL_INTERVAL_GENERATOR in result.rows
    assert tuple(range(1, 12)) not in result.rows
    for row in result.rows:
        sums = partial_sums(row)
        assert len(set(sums)) == 11
        assert 0 not in sums
        assert 6 not in sums[:10]


def test_all_trichord_prefix_search_matches_brute_force(table):
    prefix = (0, 1, 3, 7)

    result = run_variant_search("all-trichord", table=table, prefix=prefix)

    assert result.rows == _brute_force(prefix, range(12), lambda row: all_trichord_failure_index(row, table))
    for row in result.rows:
        assert sorted(imbricated_trichord_classes(row, table, cyclic=True)) == list(range(1, 13))


def test_ten_trichord_prefix_search_matches_brute_force(table):
    prefix = (0, 1, 3, 7)

    result = run_variant_search("ten-trichord", table=table, prefix=prefix)

    assert result.rows == _brute_force(prefix, range(12), lambda row: ten_trichord_failure_index(row, table))
    for row in result.rows:
        assert len(set(imbricated_trichord_classes(row, table, count=10))) == 10


def test_repeated_runs_are_identical(table):
    first = run_variant_search("ten-trichord", table=table, prefix=(0, 2, 7, 1))
    second = run_variant_search("ten-trichord", table=table, prefix=(0, 2, 7, 1))

    assert first.rows == second.rows
    assert first.candidates_tested == second.candidates_tested
    assert first.run_id != second.run_id


def test_prefix_outside_symmetry_bound_yields_empty_result():
    result = run_variant_search("eleven-interval", prefix=(7,))

    assert result.rows == []
    assert result.candidates_tested == 0


@pytest.mark.parametrize("prefix", [(1, 1), (0,), (12,), tuple(range(1, 12))])
def test_invalid_prefix_is_rejected(prefix):
    with pytest.raises(ValueError):
        run_variant_search("eleven-interval", prefix=prefix)


def test_unknown_variant_is_rejected():
    with pytest.raises(ValueError, match="Choose one of"):
        get_variant("all-hexachord")


def test_registry_describes_each_variant():
    assert {name: variant.result_key for name, variant in VARIANTS.items()} == {
        "eleven-interval": "elevenIntervalRowGenerators",
        "all-trichord": "allTrichordRows",
        "ten-trichord": "tenTrichordRows",
    }
    assert VARIANTS["eleven-interval"].row_length == 11
    assert VARIANTS["all-trichord"].row_length == 12


def test_collected_rows_must_be_permutations():
    class CollapsingEngine(PermutationEngine):
        def advance(self, permutation, hint=NO_HINT):
            permutation[1] = permutation[0]
            return NO_HINT

    tested = []

    def recorder(permutation):
        tested.append(tuple(permutation))
        return VALID

    with pytest.raises(SearchInvariantError):
        search_permutations(CollapsingEngine(range(3)), recorder, lambda _p: len(tested) < 1)


def test_check_row_reports_generator_details():
    check = check_row("eleven-interval", list(ALL_INTERVAL_GENERATOR))

    assert check.valid is True
    assert check.partial_sums == [1, 11, 2, 10, 3, 9, 4, 8, 5, 7, 6]
    assert check.realized_row == [0, 1, 11, 2, 10, 3, 9, 4, 8, 5, 7, 6]


def test_check_row_reports_trichord_classes(table):
    check = check_row("all-trichord", list(range(12)), table=table)

    assert check.valid is False
    assert check.failure_index == 3
    assert check.trichord_classes == [1] * 12


def test_check_row_rejects_non_permutations():
    with pytest.raises(ValueError, match="exactly once"):
        check_row("ten-trichord", [0] * 12)


def test_service_caches_search_results(table):
    service = RowSearchService(table=table)

    first, first_hit = service.search("eleven-interval", (1, 10, 3))
    second, second_hit = service.search("eleven-interval", (1, 10, 3))
    third, third_hit = service.search("eleven-interval", (1, 10, 3), use_cache=False)

    assert (first_hit, second_hit, third_hit) == (False, True, False)
    assert second is first
    assert third.rows == first.rows
