#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MathUniverse: public facade of the field-resonance factorization core.

    get_field_pattern(value)    -> FieldPattern
    get_field_constants()       -> FieldConstants
    calculate_resonance(value)  -> float > 0
    is_prime(value)             -> bool (authoritative)
    factorize(value)            -> FactorizationResult
    describe_landmark(value)    -> page / cycle location and Lagrange type
    clear_cache(), cache_stats()

Values are ints or decimal digit strings. Input is validated here and only here:
  - factorize    : invalid input -> degenerate result, strategy "invalid-input"
  - is_prime     : invalid input -> False
  - pattern / resonance / landmark : invalid input -> InvalidInputError

Smoke / CLI:
    python math_universe.py                 # acceptance scenarios
    python math_universe.py 77 561 1000036000099 --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from bignum_arith import coerce_value
from field_substrate import FieldConstants, FieldPattern, FieldSubstrate
from page_topology import detect_lagrange_type, locate
from result_cache import CacheStats, ResultCache
from strategy_orchestrator import (
    STRATEGY_INVALID_INPUT,
    STRATEGY_PRIME,
    FactorizationResult,
    StrategyOrchestrator,
    degenerate_result,
)
from universe_config import UniverseConfig
from universe_errors import InvalidInputError, MathUniverseError

_logger = logging.getLogger(__name__)


class MathUniverse:
    def __init__(self, config: Optional[UniverseConfig] = None, substrate: Optional[FieldSubstrate] = None):
        self.config = config if config is not None else UniverseConfig.from_env()
        self._orchestrator = StrategyOrchestrator(
            config=self.config,
            substrate=substrate,
            cache=ResultCache(enabled=self.config.cache_enabled),
        )

    @property
    def orchestrator(self) -> StrategyOrchestrator:
        return self._orchestrator

    def get_field_pattern(self, value: Any) -> FieldPattern:
        return self._orchestrator.pattern_of(coerce_value(value))

    def get_field_constants(self) -> FieldConstants:
        return self._orchestrator.substrate.constants()

    def calculate_resonance(self, value: Any) -> float:
        return self._orchestrator.resonance_of(coerce_value(value))

    def is_prime(self, value: Any) -> bool:
        try:
            n = coerce_value(value)
        except InvalidInputError as e:
            _logger.debug("is_prime: rejected input %r (%s)", value, e)
            return False
        return self._orchestrator.is_prime(n)

    def factorize(self, value: Any) -> FactorizationResult:
        try:
            n = coerce_value(value)
        except InvalidInputError as e:
            _logger.warning("factorize: rejected input %r (%s)", value, e)
            return degenerate_result(0, STRATEGY_INVALID_INPUT)
        return self._orchestrator.factorize(n)

    def describe_landmark(self, value: Any) -> Dict[str, Any]:
        """Descriptive only: where the value sits on the page/cycle grid and its Lagrange type."""
        n = coerce_value(value)
        loc = locate(n)
        kind = detect_lagrange_type(n, self._orchestrator.engine)
        return {
            "value": n,
            "page": loc.page,
            "offset": loc.offset,
            "cycle": loc.cycle,
            "phase": loc.phase,
            "lagrange": kind.value if kind is not None else None,
            "signature": self._orchestrator.engine.signature(n),
        }

    def clear_cache(self) -> None:
        self._orchestrator.cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._orchestrator.cache.stats()


# =============================================================================
# Smoke entry point
# =============================================================================


def _configure_smoke_logging(quiet: bool = False) -> None:
    """Install a default handler only if the host application has none."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(levelname)s] %(name)s: %(message)s",
        )
    root.setLevel(logging.WARNING if quiet else logging.INFO)


def _run_acceptance_smoke(universe: MathUniverse) -> List[str]:
    """Fixed scenarios; returns a list of failures (empty on success)."""
    failures: List[str] = []

    def expect(label: str, ok: bool) -> None:
        if not ok:
            failures.append(label)
        _logger.info("%s %s", "ACCEPT" if ok else "REJECT", label)

    expect("factorize(77) == [7, 11]", list(universe.factorize(77).factors) == [7, 11])
    big = universe.factorize(10**30)
    expect(
        "factorize(10**30) -> 2^30 * 5^30, not prime",
        list(big.factors) == [2] * 30 + [5] * 30 and big.strategy != STRATEGY_PRIME,
    )
    expect("is_prime(104729)", universe.is_prime(104729))
    expect("factorize(561) == [3, 11, 17]", list(universe.factorize(561).factors) == [3, 11, 17])
    expect("factorize(2) == [2]", list(universe.factorize(2).factors) == [2])
    expect("factorize(1) == []", list(universe.factorize(1).factors) == [])
    expect(
        "pattern periodicity 255/256/257",
        str(universe.get_field_pattern(255)) == "11111111"
        and universe.get_field_pattern(256) == universe.get_field_pattern(0)
        and universe.get_field_pattern(257) == universe.get_field_pattern(1),
    )
    semiprime = 1000003 * 1000033
    res = universe.factorize(semiprime)
    expect(f"factorize({semiprime}) == [1000003, 1000033]", list(res.factors) == [1000003, 1000033])
    return failures


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Field-resonance factorization core (deterministic heuristics)")
    parser.add_argument("values", nargs="*", help="non-negative decimal integers; none runs the acceptance smoke")
    parser.add_argument("--json", action="store_true", help="print one JSON object per value")
    parser.add_argument("--quiet", action="store_true", help="suppress INFO logs")
    args = parser.parse_args(argv)

    _configure_smoke_logging(quiet=args.quiet)
    try:
        universe = MathUniverse()
        if not args.values:
            _logger.info("math_universe smoke: START")
            failures = _run_acceptance_smoke(universe)
            _logger.info("cache: %s", universe.cache_stats().as_dict())
            if failures:
                _logger.error("math_universe smoke: FAILED %s", failures)
                return 2
            _logger.info("math_universe smoke: PASS")
            return 0
        for raw in args.values:
            res = universe.factorize(raw)
            if args.json:
                print(json.dumps({"input": raw, **res.as_dict()}, sort_keys=True))
            else:
                print(
                    f"[RESULT] n={res.value} factors={list(res.factors)} "
                    f"strategy={res.strategy} confidence={res.confidence:.3f}"
                )
        return 0
    except MathUniverseError as ex:
        print(f"[FATAL] {ex}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
