#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Strategy orchestrator: the factorization state machine.

    START -> PRIMALITY_CHECK -> (prime: DONE)
          -> SMALL_PRIME_STRIP -> (fully reduced: DONE)
          -> STRATEGY_SEARCH -> RECURSE(d, m / d) -> MERGE -> CACHE -> DONE

Redlines:
  - A divisor is trusted only after 1 < d < m, m % d == 0 and d * (m // d) == m.
  - product(factors) == n before any result leaves this module, otherwise
    FactorizationInvariantError (internal fault, never a search outcome).
  - "irreducible-by-heuristics" is NOT a primality claim; its confidence is < 1.0.
  - The global iteration budget is threaded by value through the call tree.
    Results computed while the budget ran dry are never cached, and a cached
    result is reused only when its iterations fit the caller's budget.
  - Heuristic strategies are optional: disabling any subset only changes speed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from bignum_arith import checked_divmod, isqrt, product, valuation
from carry_analyzer import CarryAnalyzer
from confidence_model import ConfidenceSignals, combine_confidence
from field_substrate import FieldPattern, FieldSubstrate
from primality_oracle import PrimalityOracle
from resonance_engine import ResonanceEngine
from result_cache import ResultCache
from search_strategies import IterationMeter, SearchHints, SearchStrategy, build_strategies
from universe_config import UniverseConfig
from universe_errors import FactorizationInvariantError

_logger = logging.getLogger(__name__)

STRATEGY_DEGENERATE = "degenerate"
STRATEGY_PRIME = "prime"
STRATEGY_SMALL_PRIMES = "small-primes"
STRATEGY_IRREDUCIBLE = "irreducible-by-heuristics"
STRATEGY_INVALID_INPUT = "invalid-input"


class OrchestratorStage(str, Enum):
    START = "start"
    PRIMALITY_CHECK = "primality-check"
    SMALL_PRIME_STRIP = "small-prime-strip"
    STRATEGY_SEARCH = "strategy-search"
    RECURSE = "recurse"
    MERGE = "merge"
    CACHE = "cache"
    DONE = "done"


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class FactorizationResult:
    value: int
    factors: Tuple[int, ...]
    confidence: float
    strategy: str
    iterations: int = 0
    signals: ConfidenceSignals = field(default_factory=ConfidenceSignals)

    @property
    def is_degenerate(self) -> bool:
        return self.strategy in (STRATEGY_DEGENERATE, STRATEGY_INVALID_INPUT)

    @property
    def is_confirmed(self) -> bool:
        """Every factor certified prime by the oracle (vacuously true for n < 2)."""
        return self.confidence >= 1.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "value": int(self.value),
            "factors": [int(f) for f in self.factors],
            "confidence": float(self.confidence),
            "strategy": str(self.strategy),
            "iterations": int(self.iterations),
            "signals": self.signals.as_dict(),
            "confirmed": bool(self.is_confirmed),
        }


def degenerate_result(value: int, strategy: str = STRATEGY_DEGENERATE) -> FactorizationResult:
    """n < 2 (confidence 1.0: the empty list is exact) or rejected input (confidence 0.0)."""
    if strategy == STRATEGY_INVALID_INPUT:
        return FactorizationResult(
            value=int(value),
            factors=(),
            confidence=0.0,
            strategy=strategy,
            signals=ConfidenceSignals(reconstruction=0.0, prime_leaves=0.0, search_completion=0.0),
        )
    return FactorizationResult(value=int(value), factors=(), confidence=1.0, strategy=strategy)


@dataclass(frozen=True)
class _Node:
    """A finished sub-factorization plus whether the global budget truncated it."""

    result: FactorizationResult
    truncated: bool


# =============================================================================
# Orchestrator
# =============================================================================


class StrategyOrchestrator:
    def __init__(
        self,
        config: Optional[UniverseConfig] = None,
        substrate: Optional[FieldSubstrate] = None,
        cache: Optional[ResultCache] = None,
        strategies: Optional[Tuple[SearchStrategy, ...]] = None,
    ):
        self.config = config if config is not None else UniverseConfig()
        self.substrate = substrate if substrate is not None else FieldSubstrate()
        self.engine = ResonanceEngine(self.substrate)
        self.analyzer = CarryAnalyzer(self.substrate)
        self.oracle = PrimalityOracle(self.config.sieve_limit, self.config.mr_extra_rounds)
        self.cache = cache if cache is not None else ResultCache(enabled=self.config.cache_enabled)
        self.strategies = strategies if strategies is not None else build_strategies(self.config)
        self._small_primes = self.oracle.primes_up_to(self.config.small_prime_bound)

    # ------------------------------------------------------------------
    # Cached primitives
    # ------------------------------------------------------------------

    def pattern_of(self, n: int) -> FieldPattern:
        return self.cache.get_or_compute("patterns", int(n), lambda: self.substrate.pattern(n))

    def resonance_of(self, n: int) -> float:
        return self.cache.get_or_compute("resonances", int(n), lambda: self.engine.resonance(n))

    def is_prime(self, n: int) -> bool:
        return self.cache.get_or_compute("primality", int(n), lambda: self.oracle.is_prime(n))

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def factorize(self, n: int) -> FactorizationResult:
        n = int(n)
        budget = None if self.config.budget_unbounded else int(self.config.max_total_iterations)
        node = self._factor(n, budget, top=True)
        res = node.result
        _logger.info(
            "factorize n=%s -> %s strategy=%s confidence=%.3f iterations=%s%s",
            n,
            list(res.factors),
            res.strategy,
            res.confidence,
            res.iterations,
            " (budget exhausted)" if node.truncated else "",
        )
        return res

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _stage(self, stage: OrchestratorStage, n: int) -> None:
        _logger.debug("[%s] n=%s", stage.value, n)

    def _finish(self, n: int, factors: List[int], strategy: str, iterations: int) -> FactorizationResult:
        factors = sorted(int(f) for f in factors)
        self._stage(OrchestratorStage.MERGE, n)
        if product(factors) != n:
            raise FactorizationInvariantError(
                f"factors {factors} do not multiply back to {n}",
                analysis={"value": n, "factors": factors, "strategy": strategy, "product": product(factors)},
            )
        signals = ConfidenceSignals.from_leaves(n, factors, [self.is_prime(f) for f in factors])
        return FactorizationResult(
            value=n,
            factors=tuple(factors),
            confidence=combine_confidence(signals),
            strategy=strategy,
            iterations=int(iterations),
            signals=signals,
        )

    def _store(self, node: _Node) -> _Node:
        self._stage(OrchestratorStage.CACHE, node.result.value)
        if node.truncated:
            return node
        stored = self.cache.put("factorizations", node.result.value, node.result)
        self._stage(OrchestratorStage.DONE, node.result.value)
        return _Node(result=stored, truncated=False)

    def _factor(self, n: int, budget: Optional[int], top: bool = False) -> _Node:
        self._stage(OrchestratorStage.START, n)
        if n < 2:
            return _Node(result=degenerate_result(n), truncated=False)

        cached = self.cache.get("factorizations", n)
        # A cached answer is only reusable when it fits the budget this call has.
        if cached is not None and (budget is None or cached.iterations <= budget):
            return _Node(result=cached, truncated=False)

        self._stage(OrchestratorStage.PRIMALITY_CHECK, n)
        if self.is_prime(n):
            return self._store(_Node(result=self._finish(n, [n], STRATEGY_PRIME, 0), truncated=False))

        self._stage(OrchestratorStage.SMALL_PRIME_STRIP, n)
        small, m = self._strip_small_primes(n)
        if m == 1 or self.is_prime(m):
            factors = small + ([m] if m > 1 else [])
            return self._store(_Node(result=self._finish(n, factors, STRATEGY_SMALL_PRIMES, 0), truncated=False))

        self._stage(OrchestratorStage.STRATEGY_SEARCH, m)
        divisor, name, used, truncated = self._search(m, budget)
        if divisor is None:
            factors = small + [m]
            result = self._finish(n, factors, STRATEGY_IRREDUCIBLE, used)
            return self._store(_Node(result=result, truncated=truncated))

        self._stage(OrchestratorStage.RECURSE, m)
        remaining = None if budget is None else budget - used
        left, right = self._recurse(divisor, m // divisor, remaining, parallel=top)
        factors = small + list(left.result.factors) + list(right.result.factors)
        iterations = used + left.result.iterations + right.result.iterations
        result = self._finish(n, factors, name, iterations)
        return self._store(_Node(result=result, truncated=truncated or left.truncated or right.truncated))

    def _strip_small_primes(self, n: int) -> Tuple[List[int], int]:
        found: List[int] = []
        m = n
        for p in self._small_primes:
            if p * p > m:
                break
            if m % p == 0:
                v, m = valuation(m, p)
                found.extend([p] * v)
        # After an early break m has no factor up to isqrt(m), so it is 1 or a prime.
        return found, m

    def hints_for(self, m: int) -> SearchHints:
        pattern = self.pattern_of(m)
        constraints = self.analyzer.infer_constraints(pattern)
        return SearchHints(
            pattern=pattern,
            resonance=self.resonance_of(m),
            constraints=constraints,
            residue_table=self.engine.residue_table(),
            admissible=self.analyzer.admissible_residues(m, constraints),
            sqrt=isqrt(m),
            meter=IterationMeter(0),
        )

    def _verified(self, m: int, d: Optional[int]) -> bool:
        if d is None or isinstance(d, bool) or not isinstance(d, int):
            return False
        if not (1 < d < m):
            return False
        q, r = checked_divmod(m, d)
        return r == 0 and d * q == m

    def _search(self, m: int, budget: Optional[int]) -> Tuple[Optional[int], str, int, bool]:
        """Run the enabled strategies in order. Returns (divisor, strategy, iterations, truncated)."""
        base = self.hints_for(m)
        used = 0
        for strategy in self.strategies:
            cap = int(strategy.iteration_cap(m))
            if budget is None:
                limit = cap
                budget_bound = False
            else:
                left = budget - used
                if left <= 0:
                    _logger.debug("global budget exhausted before %s on n=%s", strategy.name, m)
                    return None, STRATEGY_IRREDUCIBLE, used, True
                limit = min(cap, left)
                budget_bound = left < cap
            meter = IterationMeter(limit)
            candidate = strategy.propose(m, replace(base, meter=meter))
            used += meter.count
            if self._verified(m, candidate):
                if _logger.isEnabledFor(logging.DEBUG):
                    _logger.debug(
                        "%s split n=%s at d=%s after %s iterations (artifact agreement %.3f)",
                        strategy.name,
                        m,
                        candidate,
                        meter.count,
                        self.analyzer.artifact_agreement(m, candidate, m // candidate),
                    )
                return int(candidate), strategy.name, used, False
            if candidate is not None:
                _logger.debug("%s proposed %r for n=%s; rejected", strategy.name, candidate, m)
            if budget_bound and meter.exhausted:
                return None, STRATEGY_IRREDUCIBLE, used, True
            _logger.debug("%s found nothing for n=%s (%s iterations)", strategy.name, m, meter.count)
        return None, STRATEGY_IRREDUCIBLE, used, False

    def _recurse(self, d: int, c: int, remaining: Optional[int], parallel: bool) -> Tuple[_Node, _Node]:
        workers = int(self.config.parallel_workers)
        if parallel and workers > 1:
            half = None if remaining is None else remaining // 2
            other = None if remaining is None else remaining - half
            with ThreadPoolExecutor(max_workers=min(2, workers)) as pool:
                fut_left = pool.submit(self._factor, d, half)
                fut_right = pool.submit(self._factor, c, other)
                return fut_left.result(), fut_right.result()
        left = self._factor(d, remaining)
        rest = None if remaining is None else max(0, remaining - left.result.iterations)
        right = self._factor(c, rest)
        return left, right
