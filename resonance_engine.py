#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Resonance: scalar heuristic score of a field pattern.

    Res(n) = prod_{i=0..7} alpha_i ^ b_i(n)

Because every alpha_i > 0 the score is always positive, and because it only
sees the pattern it is periodic with period 256. All 256 residue scores are
precomputed once, so resonance(n) is a table lookup and bit-for-bit identical
for any two values sharing a pattern.

The signature / classification helpers are descriptive. None of them is a
primality signal usable on a correctness path.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from field_substrate import FIELD_COUNT, FIELD_PERIOD, FieldPattern, FieldSubstrate, field_pattern
from universe_errors import FieldConfigurationError

_logger = logging.getLogger(__name__)

RESONANCE_WELLS: Tuple[float, ...] = (
    0.5,
    1.0,
    1.618033989,
    math.pi,
    2 * math.pi,
)

# Upper bounds (exclusive) of each class, checked in order after the special cases.
_CLASS_BOUNDS: Tuple[Tuple[float, str], ...] = (
    (0.1, "ultra-low"),
    (0.5, "very-low"),
    (1.0, "low"),
    (2.0, "moderate"),
    (5.0, "high"),
    (10.0, "very-high"),
)


def classify_resonance(resonance: float) -> str:
    if resonance == 0:
        return "void"
    if abs(resonance - 1.0) < 0.001:
        return "unity"
    for bound, label in _CLASS_BOUNDS:
        if resonance < bound:
            return label
    return "ultra-high"


def is_at_resonance_well(resonance: float, tolerance: float = 0.01) -> bool:
    return any(abs(resonance - well) < tolerance for well in RESONANCE_WELLS)


@dataclass(frozen=True)
class ResonanceSignature:
    primary: float
    classification: str
    is_well: bool
    active_field_count: int


@dataclass(frozen=True)
class ResonanceMinimum:
    """Discrete landscape around n. Advisory only."""

    value: int
    resonance: float
    is_local_minimum: bool
    discrete_laplacian: float
    neighbors: Tuple[Tuple[int, float], ...]


def _residue_bit_matrix() -> np.ndarray:
    residues = np.arange(FIELD_PERIOD, dtype=np.uint8).reshape(-1, 1)
    return np.unpackbits(residues, axis=1, bitorder="little").astype(bool)


class ResonanceEngine:
    """Resonance lookups over a fixed substrate."""

    def __init__(self, substrate: Optional[FieldSubstrate] = None):
        self.substrate = substrate if substrate is not None else FieldSubstrate()
        consts = self.substrate.constants().as_array()
        bits = _residue_bit_matrix()
        table = np.prod(np.where(bits, consts.reshape(1, FIELD_COUNT), 1.0), axis=1)
        if not np.all(table > 0.0) or not np.all(np.isfinite(table)):
            # Only reachable with an extreme custom table that under/overflows float64.
            raise FieldConfigurationError("resonance table left the positive finite range")
        table.setflags(write=False)
        self._table = table
        _logger.debug("resonance table ready: min=%s max=%s", float(table.min()), float(table.max()))

    def residue_table(self) -> np.ndarray:
        """Read-only float64 vector, index r -> resonance of residue r."""
        return self._table

    def resonance(self, value: int) -> float:
        return float(self._table[field_pattern(value).to_byte()])

    def resonance_of_pattern(self, pattern: FieldPattern) -> float:
        return float(self._table[pattern.to_byte()])

    def signature(self, value: int) -> ResonanceSignature:
        pattern = field_pattern(value)
        r = self.resonance_of_pattern(pattern)
        return ResonanceSignature(
            primary=r,
            classification=classify_resonance(r),
            is_well=is_at_resonance_well(r),
            active_field_count=pattern.active_count(),
        )

    def evidence(self, value: int) -> List[str]:
        pattern = field_pattern(value)
        consts = self.substrate.constants()
        lines = [
            f"Field {self.substrate.field_name(i)} active: alpha_{i} = {consts[i]}"
            for i in pattern.active_indices()
        ]
        lines.append(f"Total resonance: {self.resonance_of_pattern(pattern)}")
        return lines

    def local_minimum(self, value: int) -> ResonanceMinimum:
        """
        Compare Res(n) with Res(n-1), Res(n+1).

        n <= 1 has no meaningful landscape and reports not-a-minimum.
        """
        r = self.resonance(value)
        if value <= 1:
            return ResonanceMinimum(
                value=int(value), resonance=r, is_local_minimum=False, discrete_laplacian=0.0, neighbors=()
            )
        r_prev = self.resonance(value - 1)
        r_next = self.resonance(value + 1)
        return ResonanceMinimum(
            value=int(value),
            resonance=r,
            is_local_minimum=bool(r < r_prev and r < r_next),
            discrete_laplacian=float(r_next - 2.0 * r + r_prev),
            neighbors=((int(value) - 1, r_prev), (int(value), r), (int(value) + 1, r_next)),
        )
