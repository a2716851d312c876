#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Page topology: fixed periodic windows over the integers.

  - page  : 48 consecutive values (48 and 49 are the first values with resonance 1.0
            besides 0 and 1, via alpha_4 * alpha_5 == 1)
  - cycle : 256 consecutive values (one full field-pattern period)

Landmarks (page/cycle boundaries, primary Lagrange points, integer roots) are
plausible divisor locations for the structural-landmark strategy. They have
no proven number-theoretic basis.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Set

from bignum_arith import iroot
from field_substrate import FIELD_PERIOD, field_pattern
from resonance_engine import RESONANCE_WELLS, ResonanceEngine

PAGE_SIZE = 48
CYCLE_SIZE = FIELD_PERIOD

# Residues with resonance exactly 1.0 under the default constants.
PRIMARY_LAGRANGE_POINTS = (0, 1, 48, 49)

_BOUNDARY_OFFSETS = (-1, 0, 1)


class LagrangeType(str, Enum):
    PRIMARY = "primary"
    TRIBONACCI = "tribonacci"
    GOLDEN = "golden"
    DEEP = "deep"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class PageLocation:
    page: int
    offset: int
    cycle: int
    phase: int


def locate(value: int) -> PageLocation:
    v = int(value)
    return PageLocation(
        page=v // PAGE_SIZE,
        offset=v % PAGE_SIZE,
        cycle=v // CYCLE_SIZE,
        phase=v % CYCLE_SIZE,
    )


def detect_lagrange_type(value: int, engine: ResonanceEngine) -> Optional[LagrangeType]:
    r = engine.resonance(value)
    pattern = field_pattern(value)
    if abs(r - 1.0) < 1e-15:
        return LagrangeType.PRIMARY
    if pattern[1] and not pattern[2] and r > 1.5:
        return LagrangeType.TRIBONACCI
    if pattern[2] and not pattern[1] and r > 1.4:
        return LagrangeType.GOLDEN
    if pattern[7]:
        return LagrangeType.DEEP
    # Unity is already PRIMARY, so only the remaining wells matter here.
    if any(abs(r - w) < 0.01 for w in RESONANCE_WELLS if w != 1.0):
        return LagrangeType.SECONDARY
    return None


def iter_root_landmarks(n: int, max_degree: int = 64) -> Iterator[int]:
    """
    floor(n^(1/k)) and its neighbours, k = 2..min(max_degree, bits), deduplicated.

    Lazy: each k-th root is solved only when the consumer asks for the next value.
    """
    seen: Set[int] = set()
    top = min(int(max_degree), max(2, int(n).bit_length()))
    for k in range(2, top + 1):
        r = iroot(int(n), k)
        if r < 2:
            return
        for c in (r, r + 1, r - 1):
            if c > 1 and c not in seen:
                seen.add(c)
                yield c


def root_landmarks(n: int, max_degree: int = 64) -> List[int]:
    return list(iter_root_landmarks(n, max_degree))


def _boundary_stream(step: int, max_value: int) -> Iterator[int]:
    for base in range(step, max_value + 2, step):
        for off in _BOUNDARY_OFFSETS:
            c = base + off
            if 2 <= c <= max_value:
                yield c


def iter_periodic_landmarks(limit: int, pages: int) -> Iterator[int]:
    """
    Ascending page/cycle boundary landmarks in [2, limit], at most `pages` pages deep.

    Page boundaries 48k-1, 48k, 48k+1 cover the primary Lagrange points 48k and 48k+1;
    cycle boundaries 256k-1, 256k, 256k+1 are added where they fall inside the range.
    """
    max_value = min(int(limit), int(pages) * PAGE_SIZE + 1)
    last = None
    for c in heapq.merge(_boundary_stream(PAGE_SIZE, max_value), _boundary_stream(CYCLE_SIZE, max_value)):
        if c != last:
            last = c
            yield c


def periodic_landmarks(limit: int, pages: int) -> List[int]:
    return list(iter_periodic_landmarks(limit, pages))
