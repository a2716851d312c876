#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Confidence of a factorization as one weighted average of named signals.

  reconstruction     1.0 iff product(factors) == n
  prime_leaves       share of factor bits certified prime by the oracle
  search_completion  1.0 unless some leaf ended irreducible-by-heuristics

    confidence = 0.4 * reconstruction + 0.4 * prime_leaves + 0.2 * search_completion

A fully confirmed factorization scores exactly 1.0. A single unconfirmed leaf
lowers both prime_leaves and search_completion, so it always scores below 1.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

CONFIDENCE_WEIGHTS: Dict[str, float] = {
    "reconstruction": 0.4,
    "prime_leaves": 0.4,
    "search_completion": 0.2,
}


@dataclass(frozen=True)
class ConfidenceSignals:
    reconstruction: float = 1.0
    prime_leaves: float = 1.0
    search_completion: float = 1.0

    def __post_init__(self) -> None:
        for name in CONFIDENCE_WEIGHTS:
            v = float(getattr(self, name))
            if not (0.0 <= v <= 1.0):
                raise ValueError(f"confidence signal {name} must lie in [0, 1], got {v!r}")
            object.__setattr__(self, name, v)

    @classmethod
    def from_leaves(cls, value: int, factors: Iterable[int], confirmed: Iterable[bool]) -> "ConfidenceSignals":
        fs: Tuple[int, ...] = tuple(int(f) for f in factors)
        flags: Tuple[bool, ...] = tuple(bool(c) for c in confirmed)
        prod = 1
        for f in fs:
            prod *= f
        total_bits = sum(f.bit_length() for f in fs)
        prime_bits = sum(f.bit_length() for f, ok in zip(fs, flags) if ok)
        return cls(
            reconstruction=1.0 if prod == int(value) else 0.0,
            prime_leaves=(prime_bits / total_bits) if total_bits else 1.0,
            search_completion=1.0 if all(flags) else 0.0,
        )

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in CONFIDENCE_WEIGHTS}


def combine_confidence(signals: ConfidenceSignals) -> float:
    if all(getattr(signals, name) == 1.0 for name in CONFIDENCE_WEIGHTS):
        return 1.0
    score = sum(w * getattr(signals, name) for name, w in CONFIDENCE_WEIGHTS.items())
    # Only the all-ones case may reach 1.0.
    return min(float(score), 0.999)
