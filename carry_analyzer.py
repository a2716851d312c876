#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Carry analysis: how a product's fingerprint departs from its operands'.

For an ordered pair (a, b) with p = a*b the naive expectation for bit i is
pattern(a)[i] XOR pattern(b)[i]. Each bit is classified as

    VANISHING     a_i and b_i and not p_i
    EMERGENT      not a_i and not b_i and p_i
    PRESERVED     (a_i XOR b_i) == p_i            (and not one of the above)
    INTERFERENCE  any other mismatch

The four kinds are disjoint and cover all eight (a_i, b_i, p_i) cases.
Records are search hints. Two different factor pairs can produce the same
artifact set; nothing here claims completeness or uniqueness.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from bignum_arith import modinv
from field_substrate import FIELD_COUNT, FIELD_PERIOD, FieldPattern, FieldSubstrate, field_pattern

_logger = logging.getLogger(__name__)

# Low fields that tend to disappear in products, and high fields that tend to appear.
VANISHING_HYPOTHESIS_FIELDS: Tuple[int, ...] = (0, 1, 2, 3)
EMERGENT_HYPOTHESIS_FIELDS: Tuple[int, ...] = (6, 7)


class ArtifactKind(str, Enum):
    PRESERVED = "preserved"
    VANISHING = "vanishing"
    EMERGENT = "emergent"
    INTERFERENCE = "interference"


def classify_bit(a_bit: bool, b_bit: bool, p_bit: bool) -> ArtifactKind:
    if a_bit and b_bit and not p_bit:
        return ArtifactKind.VANISHING
    if not a_bit and not b_bit and p_bit:
        return ArtifactKind.EMERGENT
    if (a_bit != b_bit) == p_bit:
        return ArtifactKind.PRESERVED
    return ArtifactKind.INTERFERENCE


@dataclass(frozen=True)
class ArtifactRecord:
    a: int
    b: int
    product: int
    bit: int
    kind: ArtifactKind
    expected: bool
    actual: bool
    carry_in: int


@dataclass(frozen=True)
class CarryTrace:
    """
    Schoolbook binary multiplication restricted to the low 8 bits.

    column_sums[k] = sum_{i+j=k} a_i * b_j
    carries_in[k]  = carry entering column k
    bits[k]        = (column_sums[k] + carries_in[k]) mod 2  ==  bit k of a*b
    """

    column_sums: Tuple[int, ...]
    carries_in: Tuple[int, ...]
    bits: Tuple[bool, ...]

    def to_byte(self) -> int:
        return int(sum(1 << k for k, b in enumerate(self.bits) if b))


@dataclass(frozen=True)
class BitConstraints:
    """
    Hypothesised artifacts of an unknown factorisation n = d * c.

    vanishing: bits where both d and c are expected to carry the field
    emergent:  bits where neither d nor c is expected to carry the field

    The hypotheses are alternatives, not a conjunction: a pair is admitted when it
    realises any one of them. Requiring all of them at once rejects true factor
    pairs (101 * 103 realises vanishing bit 2 and emergent bit 7 but not vanishing
    bit 3), so the filter is the union.
    """

    vanishing: Tuple[int, ...] = ()
    emergent: Tuple[int, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.vanishing and not self.emergent

    def admits(self, d_pattern: FieldPattern, c_pattern: FieldPattern) -> bool:
        """True when the pair realises any single hypothesised artifact (or there are none)."""
        if self.empty:
            return True
        if any(d_pattern[i] and c_pattern[i] for i in self.vanishing):
            return True
        return any(not d_pattern[i] and not c_pattern[i] for i in self.emergent)


def carry_trace(a: int, b: int) -> CarryTrace:
    ra = int(a) & (FIELD_PERIOD - 1)
    rb = int(b) & (FIELD_PERIOD - 1)
    a_bits = [(ra >> i) & 1 for i in range(FIELD_COUNT)]
    b_bits = [(rb >> j) & 1 for j in range(FIELD_COUNT)]
    sums = [0] * FIELD_COUNT
    for i in range(FIELD_COUNT):
        if not a_bits[i]:
            continue
        for j in range(FIELD_COUNT - i):
            sums[i + j] += b_bits[j]
    carries: List[int] = []
    bits: List[bool] = []
    carry = 0
    for k in range(FIELD_COUNT):
        carries.append(carry)
        total = sums[k] + carry
        bits.append(bool(total & 1))
        carry = total >> 1
    return CarryTrace(column_sums=tuple(sums), carries_in=tuple(carries), bits=tuple(bits))


def _odd_inverse_table() -> np.ndarray:
    inv = np.zeros(FIELD_PERIOD, dtype=np.int64)
    for r in range(1, FIELD_PERIOD, 2):
        inv[r] = modinv(r, FIELD_PERIOD)
    inv.setflags(write=False)
    return inv


_ODD_INVERSES = _odd_inverse_table()
_BIT_MATRIX = np.unpackbits(
    np.arange(FIELD_PERIOD, dtype=np.uint8).reshape(-1, 1), axis=1, bitorder="little"
).astype(bool)


def complement_residue(n: int, d_residue: int) -> Optional[int]:
    """
    Residue of n / d mod 256, known from residues alone when d is odd.

    Returns None for even d (2 is not invertible mod 256).
    """
    if d_residue % 2 == 0:
        return None
    return int((int(n) * int(_ODD_INVERSES[d_residue % FIELD_PERIOD])) % FIELD_PERIOD)


def complement_residues(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised complement: (odd residues 1, 3, ..., 255; their complements n * r^-1 mod 256)."""
    odd = np.arange(1, FIELD_PERIOD, 2)
    comp = (int(n) % FIELD_PERIOD * _ODD_INVERSES[odd]) % FIELD_PERIOD
    return odd, comp


class CarryAnalyzer:
    def __init__(self, substrate: Optional[FieldSubstrate] = None):
        self.substrate = substrate if substrate is not None else FieldSubstrate()

    def artifacts(self, a: int, b: int) -> List[ArtifactRecord]:
        p = int(a) * int(b)
        pa, pb, pp = field_pattern(a), field_pattern(b), field_pattern(p)
        trace = carry_trace(a, b)
        records: List[ArtifactRecord] = []
        for i in range(FIELD_COUNT):
            records.append(
                ArtifactRecord(
                    a=int(a),
                    b=int(b),
                    product=p,
                    bit=i,
                    kind=classify_bit(pa[i], pb[i], pp[i]),
                    expected=bool(pa[i] != pb[i]),
                    actual=bool(pp[i]),
                    carry_in=int(trace.carries_in[i]),
                )
            )
        return records

    def carry_pattern(self, a: int, b: int) -> FieldPattern:
        """Bitwise mismatch between the XOR expectation and the product pattern."""
        pa, pb, pp = field_pattern(a), field_pattern(b), field_pattern(int(a) * int(b))
        return FieldPattern(tuple((pa[i] != pb[i]) != pp[i] for i in range(FIELD_COUNT)))

    def carry_trace(self, a: int, b: int) -> CarryTrace:
        return carry_trace(a, b)

    def infer_constraints(self, pattern: FieldPattern) -> BitConstraints:
        return BitConstraints(
            vanishing=tuple(i for i in VANISHING_HYPOTHESIS_FIELDS if not pattern[i]),
            emergent=tuple(i for i in EMERGENT_HYPOTHESIS_FIELDS if pattern[i]),
        )

    def admissible_residues(self, n: int, constraints: BitConstraints) -> np.ndarray:
        """
        Boolean mask over residues 0..255: odd residues r whose complement residue
        n * r^-1 (mod 256) forms an admitted pair. Same union as
        BitConstraints.admits: one satisfied constraint is enough. Only meaningful
        for odd n.
        """
        mask = np.zeros(FIELD_PERIOD, dtype=bool)
        if int(n) % 2 == 0:
            return mask
        odd, comp = complement_residues(n)
        if constraints.empty:
            mask[odd] = True
            return mask
        d_bits = _BIT_MATRIX[odd]
        c_bits = _BIT_MATRIX[comp]
        ok = np.zeros(odd.shape[0], dtype=bool)
        for i in constraints.vanishing:
            ok |= d_bits[:, i] & c_bits[:, i]
        for i in constraints.emergent:
            ok |= ~d_bits[:, i] & ~c_bits[:, i]
        mask[odd[ok]] = True
        _logger.debug("admissible residues for n=%s: %s of 128", n, int(ok.sum()))
        return mask

    def artifact_agreement(self, n: int, d: int, c: int) -> float:
        """
        Score in [0, 1]: full credit for each realised vanishing/emergent bit,
        half credit for plain preservation or common absence.
        """
        pn, pd, pc = field_pattern(n), field_pattern(d), field_pattern(c)
        score = 0.0
        for i in range(FIELD_COUNT):
            if pd[i] and pc[i] and not pn[i]:
                score += 1.0
            elif not pd[i] and not pc[i] and pn[i]:
                score += 1.0
            elif (pd[i] or pc[i]) and pn[i]:
                score += 0.5
            elif not pd[i] and not pc[i] and not pn[i]:
                score += 0.5
        return score / FIELD_COUNT
