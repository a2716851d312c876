#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bounded divisor-search strategies.

Each strategy is a plain value with a `name`, an `iteration_cap(n)` and
`propose(n, hints) -> Optional[int]`. A strategy either returns a candidate
divisor or None; running out of iterations is NOT an error, it just means
"nothing found". Candidates are unverified: the orchestrator checks
1 < d < n and n % d == 0 before trusting any of them.

Order of increasing cost (fixed, see universe_config.STRATEGY_ORDER):

    artifact-guided      odd candidates whose residue pair satisfies the bit constraints
    resonance-proximity  candidates below isqrt(n) whose resonance product matches R(n)
    structural-landmark  integer roots, page and cycle boundaries
    pollard-rho          Brent cycle detection with fixed increments
    trial-division       6k +- 1 wheel up to isqrt(n), hard cap

Redlines:
  - Every loop ticks the IterationMeter; a strategy never outruns its limit.
  - Deterministic: no clocks, no unseeded randomness.
  - Even n always yields 2 (carry constraints assume odd n).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import chain
from typing import Iterator, Optional, Protocol, Sequence, Tuple

import numpy as np

from bignum_arith import gcd, is_perfect_square
from carry_analyzer import BitConstraints, complement_residues
from field_substrate import FIELD_PERIOD, FieldPattern
from page_topology import iter_periodic_landmarks, iter_root_landmarks
from universe_config import STRATEGY_ORDER, UniverseConfig

_logger = logging.getLogger(__name__)

# Brent increments tried in order; each restarts the walk from x0.
RHO_INCREMENTS: Tuple[int, ...] = (1, 3, 5, 7, 11, 13, 17, 19)
RHO_START = 2
RHO_BATCH = 128


# =============================================================================
# Budget and hints
# =============================================================================


class IterationMeter:
    """
    Cooperative iteration counter.

    limit=None means unbounded. tick() returns False once the limit is reached
    and from then on never advances the count.
    """

    def __init__(self, limit: Optional[int] = None):
        if limit is not None and limit < 0:
            raise ValueError(f"iteration limit must be >= 0, got {limit}")
        self.limit = None if limit is None else int(limit)
        self.count = 0

    def tick(self) -> bool:
        if self.limit is not None and self.count >= self.limit:
            return False
        self.count += 1
        return True

    @property
    def exhausted(self) -> bool:
        return self.limit is not None and self.count >= self.limit


@dataclass(frozen=True)
class SearchHints:
    pattern: FieldPattern
    resonance: float
    constraints: BitConstraints
    residue_table: np.ndarray
    admissible: np.ndarray
    sqrt: int
    meter: IterationMeter


class SearchStrategy(Protocol):
    name: str

    def iteration_cap(self, n: int) -> int:
        ...

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        ...


def _even_candidate(n: int, hints: SearchHints) -> Optional[int]:
    if n > 2 and n % 2 == 0 and hints.meter.tick():
        return 2
    return None


def _residue_walk(lo: int, hi: int, residues: Sequence[int], descending: bool = False) -> Iterator[int]:
    """Values d in [lo, hi] with d mod 256 in residues, ascending or descending."""
    rs = sorted(int(r) for r in residues)
    if lo > hi or not rs:
        return
    if not descending:
        base = lo - lo % FIELD_PERIOD
        while base <= hi:
            for r in rs:
                d = base + r
                if d < lo:
                    continue
                if d > hi:
                    return
                yield d
            base += FIELD_PERIOD
    else:
        rs.reverse()
        base = hi - hi % FIELD_PERIOD
        while base + FIELD_PERIOD > lo:
            for r in rs:
                d = base + r
                if d > hi:
                    continue
                if d < lo:
                    return
                yield d
            base -= FIELD_PERIOD


# =============================================================================
# Strategies
# =============================================================================


class ArtifactGuidedSearch:
    """Ascending odd candidates d <= min(window, isqrt(n)) with hints.admissible[d mod 256]."""

    name = "artifact-guided"

    def __init__(self, window: int, cap: int):
        self.window = int(window)
        self.cap = int(cap)

    def iteration_cap(self, n: int) -> int:
        return self.cap

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        if n % 2 == 0:
            return _even_candidate(n, hints)
        residues = np.flatnonzero(hints.admissible)
        for d in _residue_walk(3, min(self.window, hints.sqrt), residues):
            if not hints.meter.tick():
                return None
            if n % d == 0:
                return d
        return None


class ResonanceProximitySearch:
    """
    Descending walk from isqrt(n) over candidates d whose residue pair (d, c)
    with c = n * d^-1 mod 256 satisfies |R(d) * R(c) - R(n)| / R(n) <= tolerance.
    """

    name = "resonance-proximity"

    def __init__(self, window: int, cap: int, tolerance: float):
        self.window = int(window)
        self.cap = int(cap)
        self.tolerance = float(tolerance)

    def iteration_cap(self, n: int) -> int:
        return self.cap

    def matching_residues(self, n: int, hints: SearchHints) -> np.ndarray:
        odd, comp = complement_residues(n)
        table = hints.residue_table
        target = float(hints.resonance)
        err = np.abs(table[odd] * table[comp] - target) / target
        return odd[err <= self.tolerance]

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        if n % 2 == 0:
            return _even_candidate(n, hints)
        residues = self.matching_residues(n, hints)
        hi = hints.sqrt
        lo = max(3, hi - self.window)
        for d in _residue_walk(lo, hi, residues, descending=True):
            if not hints.meter.tick():
                return None
            if n % d == 0:
                return d
        return None


class StructuralLandmarkSearch:
    """Integer k-th roots (+-1) first, then page/cycle boundaries up to isqrt(n)."""

    name = "structural-landmark"

    def __init__(self, pages: int, max_degree: int = 64):
        self.pages = int(pages)
        self.max_degree = int(max_degree)

    def iteration_cap(self, n: int) -> int:
        # Enough for every landmark; the meter only bounds the global budget here.
        return 3 * self.max_degree + 6 * self.pages + 6

    def candidates(self, n: int, hints: SearchHints) -> Iterator[int]:
        """Root landmarks, then unseen periodic landmarks; generated on demand."""
        seen = set()
        for c in chain(iter_root_landmarks(n, self.max_degree), iter_periodic_landmarks(hints.sqrt, self.pages)):
            if c not in seen:
                seen.add(c)
                yield c

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        if n % 2 == 0:
            return _even_candidate(n, hints)
        square, root = is_perfect_square(n)
        if square and root > 1:
            return root if hints.meter.tick() else None
        landmarks = self.candidates(n, hints)
        # Tick before pulling: every root solve is paid for.
        while hints.meter.tick():
            c = next(landmarks, None)
            if c is None:
                return None
            if 1 < c < n and n % c == 0:
                return c
        return None


class PollardRhoSearch:
    """
    Brent's variant of Pollard rho over x -> x^2 + c mod n.

    Increments come from RHO_INCREMENTS in order, all walks start at RHO_START.
    The cap scales with bits^2 and is clamped to [cap_min, cap_max].
    """

    name = "pollard-rho"

    def __init__(self, cap_min: int, cap_max: int):
        self.cap_min = int(cap_min)
        self.cap_max = int(cap_max)

    def iteration_cap(self, n: int) -> int:
        bits = max(1, int(n).bit_length())
        return max(self.cap_min, min(self.cap_max, bits * bits * 256))

    def _brent(self, n: int, c: int, meter: IterationMeter) -> Optional[int]:
        y, r, q, g = RHO_START, 1, 1, 1
        x = ys = y
        while g == 1:
            x = y
            for _ in range(r):
                if not meter.tick():
                    return None
                y = (y * y + c) % n
            k = 0
            while k < r and g == 1:
                ys = y
                for _ in range(min(RHO_BATCH, r - k)):
                    if not meter.tick():
                        return None
                    y = (y * y + c) % n
                    q = q * abs(x - y) % n
                g = gcd(q, n)
                k += RHO_BATCH
            r *= 2
        if g == n:
            # Batched product collapsed; replay the last batch one step at a time.
            g = 1
            while g == 1:
                if not meter.tick():
                    return None
                ys = (ys * ys + c) % n
                g = gcd(abs(x - ys), n)
        if 1 < g < n:
            return int(g)
        return None

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        if n % 2 == 0:
            return _even_candidate(n, hints)
        if n < 4:
            return None
        for c in RHO_INCREMENTS:
            d = self._brent(n, c, hints.meter)
            if d is not None:
                return d
            if hints.meter.exhausted:
                return None
            _logger.debug("pollard-rho: increment %s failed for n=%s", c, n)
        return None


def wheel_candidates(start: int, limit: int) -> Iterator[int]:
    """3 (if above start) then 6k-1, 6k+1 values in (start, limit], ascending."""
    if start < 3 <= limit:
        yield 3
    k = max(1, (start + 1) // 6)
    while True:
        for d in (6 * k - 1, 6 * k + 1):
            if d <= start:
                continue
            if d > limit:
                return
            yield d
        k += 1


class TrialDivisionSearch:
    """Wheel trial division above the small-prime table. Complete below the cap."""

    name = "trial-division"

    def __init__(self, start: int, cap: int):
        self.start = int(start)
        self.cap = int(cap)

    def iteration_cap(self, n: int) -> int:
        return self.cap

    def propose(self, n: int, hints: SearchHints) -> Optional[int]:
        if n % 2 == 0:
            return _even_candidate(n, hints)
        for d in wheel_candidates(self.start, hints.sqrt):
            if not hints.meter.tick():
                return None
            if n % d == 0:
                return d
        return None


# =============================================================================
# Assembly
# =============================================================================


def build_strategies(config: UniverseConfig) -> Tuple[SearchStrategy, ...]:
    """Enabled strategies in STRATEGY_ORDER."""
    available = {
        "artifact-guided": lambda: ArtifactGuidedSearch(config.artifact_window, config.artifact_cap),
        "resonance-proximity": lambda: ResonanceProximitySearch(
            config.resonance_window, config.resonance_cap, config.resonance_tolerance
        ),
        "structural-landmark": lambda: StructuralLandmarkSearch(config.landmark_pages),
        "pollard-rho": lambda: PollardRhoSearch(config.rho_cap_min, config.rho_cap_max),
        "trial-division": lambda: TrialDivisionSearch(config.small_prime_bound, config.trial_cap),
    }
    return tuple(available[name]() for name in STRATEGY_ORDER if name in config.strategies)
