import logging

import pytest

from bignum_arith import product
from result_cache import ResultCache
from strategy_orchestrator import (
    STRATEGY_IRREDUCIBLE,
    STRATEGY_PRIME,
    STRATEGY_SMALL_PRIMES,
    FactorizationResult,
    OrchestratorStage,
    StrategyOrchestrator,
)
from universe_config import UniverseConfig

SEMIPRIME = 1000003 * 1000033
TRIPLE = 1000003 * 1000033 * 1000037


@pytest.fixture(scope="module")
def orchestrator():
    return StrategyOrchestrator()


@pytest.mark.parametrize(
    "n, factors",
    [
        (1, []),
        (0, []),
        (2, [2]),
        (4, [2, 2]),
        (77, [7, 11]),
        (561, [3, 11, 17]),
        (10201, [101, 101]),
        (10403, [101, 103]),
        (SEMIPRIME, [1000003, 1000033]),
        (TRIPLE, [1000003, 1000033, 1000037]),
        (2**64 + 1, [274177, 67280421310721]),
    ],
)
def test_known_factorizations(orchestrator, n, factors):
    res = orchestrator.factorize(n)
    assert list(res.factors) == factors
    assert res.is_confirmed


def test_ten_to_the_thirty(orchestrator):
    res = orchestrator.factorize(10**30)
    assert list(res.factors) == [2] * 30 + [5] * 30
    assert res.strategy == STRATEGY_SMALL_PRIMES
    assert res.strategy != STRATEGY_PRIME
    assert res.confidence == 1.0


def test_primes_are_returned_whole(orchestrator):
    for p in (2, 97, 104729, 2**61 - 1, 2**127 - 1):
        res = orchestrator.factorize(p)
        assert list(res.factors) == [p]
        assert res.confidence == 1.0
        assert res.strategy == STRATEGY_PRIME


def test_degenerate_values(orchestrator):
    res = orchestrator.factorize(1)
    assert res.is_degenerate
    assert res.factors == ()
    assert res.confidence == 1.0


def test_product_invariant_over_range(orchestrator):
    for n in range(2, 3000):
        res = orchestrator.factorize(n)
        assert product(res.factors) == n
        assert list(res.factors) == sorted(res.factors)
        assert all(orchestrator.is_prime(f) for f in res.factors)


def test_split_strategy_is_reported():
    orch = StrategyOrchestrator(UniverseConfig(strategies=("pollard-rho",)))
    res = orch.factorize(SEMIPRIME)
    assert res.strategy == "pollard-rho"
    assert res.iterations > 0


def test_small_prime_cofactor_then_search():
    orch = StrategyOrchestrator(UniverseConfig(strategies=("pollard-rho",)))
    res = orch.factorize(6 * SEMIPRIME)
    assert list(res.factors) == [2, 3, 1000003, 1000033]
    assert res.strategy == "pollard-rho"


def test_without_strategies_composites_stay_irreducible():
    orch = StrategyOrchestrator(UniverseConfig(strategies=()))
    res = orch.factorize(SEMIPRIME)
    assert list(res.factors) == [SEMIPRIME]
    assert res.strategy == STRATEGY_IRREDUCIBLE
    assert res.confidence == pytest.approx(0.4)
    assert not res.is_confirmed
    # Small primes and primality still work without any heuristic.
    assert list(orch.factorize(561).factors) == [3, 11, 17]
    assert list(orch.factorize(104729).factors) == [104729]


def test_irreducible_leaf_keeps_confirmed_siblings():
    orch = StrategyOrchestrator(UniverseConfig(strategies=()))
    res = orch.factorize(2 * SEMIPRIME)
    assert list(res.factors) == [2, SEMIPRIME]
    assert res.strategy == STRATEGY_IRREDUCIBLE
    assert 0.4 < res.confidence < 1.0


class _Liar:
    name = "liar"

    def iteration_cap(self, n):
        return 1

    def propose(self, n, hints):
        hints.meter.tick()
        return n + 1


class _Identity(_Liar):
    name = "identity"

    def propose(self, n, hints):
        return n


def test_unverified_candidates_are_rejected():
    orch = StrategyOrchestrator(strategies=(_Liar(), _Identity()))
    res = orch.factorize(SEMIPRIME)
    assert list(res.factors) == [SEMIPRIME]
    assert res.strategy == STRATEGY_IRREDUCIBLE
    assert res.iterations == 1


def test_budget_truncation_is_not_cached():
    cfg = UniverseConfig(strategies=("trial-division",), max_total_iterations=10)
    orch = StrategyOrchestrator(cfg)
    res = orch.factorize(SEMIPRIME)
    assert res.strategy == STRATEGY_IRREDUCIBLE
    assert res.iterations <= 10
    assert orch.cache.stats().sizes["factorizations"] == 0


def test_budget_large_enough_gives_full_answer():
    cfg = UniverseConfig(strategies=("pollard-rho",), max_total_iterations=1 << 20)
    orch = StrategyOrchestrator(cfg)
    res = orch.factorize(TRIPLE)
    assert list(res.factors) == [1000003, 1000033, 1000037]
    assert res.iterations <= 1 << 20


@pytest.mark.parametrize("n", [77, 561, 10**30, SEMIPRIME, TRIPLE, 2**64 + 1])
def test_idempotent_with_and_without_cache(n):
    cached = StrategyOrchestrator(UniverseConfig(cache_enabled=True))
    uncached = StrategyOrchestrator(UniverseConfig(cache_enabled=False))
    first = cached.factorize(n)
    again = cached.factorize(n)
    plain = uncached.factorize(n)
    assert first == again == plain
    assert isinstance(first, FactorizationResult)


def test_prepopulated_cache_does_not_change_results():
    shared = ResultCache()
    warm = StrategyOrchestrator(cache=shared)
    warm.factorize(1000003 * 1000033)
    reused = StrategyOrchestrator(cache=shared).factorize(TRIPLE)
    fresh = StrategyOrchestrator(UniverseConfig(cache_enabled=False)).factorize(TRIPLE)
    assert reused.factors == fresh.factors
    assert reused.confidence == fresh.confidence


def test_cached_children_respect_bounded_budget():
    cfg = UniverseConfig(strategies=("trial-division",), max_total_iterations=700)
    n = 1009 * 1013 * 1021 * 1031
    fresh = StrategyOrchestrator(cfg).factorize(n)
    assert list(fresh.factors) == [1009, 1013, 1021 * 1031]
    warm = StrategyOrchestrator(cfg)
    warm.factorize(1013 * 1021 * 1031)
    res = warm.factorize(n)
    assert res.factors == fresh.factors
    assert res.strategy == fresh.strategy
    assert res.iterations <= 700


def test_cached_result_is_reused_when_it_fits_the_budget():
    cfg = UniverseConfig(strategies=("trial-division",), max_total_iterations=1 << 20)
    orch = StrategyOrchestrator(cfg)
    first = orch.factorize(1013 * 1021 * 1031)
    hits = orch.cache.stats().hits
    assert orch.factorize(1013 * 1021 * 1031) == first
    assert orch.cache.stats().hits > hits


def test_parallel_split_matches_serial():
    serial = StrategyOrchestrator(UniverseConfig(cache_enabled=False)).factorize(TRIPLE * 7)
    parallel = StrategyOrchestrator(UniverseConfig(cache_enabled=False, parallel_workers=2)).factorize(TRIPLE * 7)
    assert parallel.factors == serial.factors == (7, 1000003, 1000033, 1000037)
    assert parallel.confidence == 1.0


def test_stages_are_logged(caplog):
    orch = StrategyOrchestrator(UniverseConfig(cache_enabled=False))
    with caplog.at_level(logging.DEBUG, logger="strategy_orchestrator"):
        orch.factorize(SEMIPRIME)
    text = caplog.text
    for stage in (OrchestratorStage.PRIMALITY_CHECK, OrchestratorStage.STRATEGY_SEARCH, OrchestratorStage.MERGE):
        assert f"[{stage.value}]" in text
    assert "factorize n=%s" % SEMIPRIME in text


def test_split_agreement_is_only_computed_for_debug(caplog, monkeypatch):
    orch = StrategyOrchestrator(UniverseConfig(cache_enabled=False))
    calls = []

    def agreement(n, d, c):
        calls.append((n, d, c))
        return 1.0

    monkeypatch.setattr(orch.analyzer, "artifact_agreement", agreement)
    with caplog.at_level(logging.INFO, logger="strategy_orchestrator"):
        orch.factorize(SEMIPRIME)
    assert calls == []
    with caplog.at_level(logging.DEBUG, logger="strategy_orchestrator"):
        orch.factorize(SEMIPRIME)
    assert calls and calls[0][0] == SEMIPRIME
    assert "artifact agreement 1.000" in caplog.text


def test_result_as_dict(orchestrator):
    d = orchestrator.factorize(77).as_dict()
    assert d["factors"] == [7, 11]
    assert d["confirmed"] is True
    assert set(d["signals"]) == {"reconstruction", "prime_leaves", "search_completion"}
