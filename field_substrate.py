#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Field substrate: the 8-bit periodic fingerprint of a value.

    b_i(n) = floor(n / 2^i) mod 2,   i = 0..7

The pattern depends only on n mod 256 (periodicity invariant), never on the
magnitude of n. Each bit position carries one field constant; the constants
are fixed for the lifetime of the substrate and only tune heuristic search.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from universe_errors import FieldConfigurationError, FieldIndexError, InvalidInputError

_logger = logging.getLogger(__name__)

FIELD_COUNT = 8
FIELD_PERIOD = 1 << FIELD_COUNT

DEFAULT_FIELD_CONSTANTS: Tuple[float, ...] = (
    1.0,                    # I: identity
    1.8392867552141612,     # T: tribonacci constant
    1.618033988749895,      # phi: golden ratio
    0.5,                    # 1/2
    0.15915494309189535,    # 1/(2 pi)
    6.283185307179586,      # 2 pi; alpha_4 * alpha_5 == 1
    0.199612,               # theta: 4 * 7 * 7129 / 10^6
    0.014134725,            # zeta: imaginary part of the first zeta zero / 1000
)

FIELD_NAMES: Tuple[str, ...] = ("I", "T", "φ", "½", "1/2π", "2π", "θ", "ζ")

FIELD_DESCRIPTIONS: Tuple[str, ...] = (
    "Identity: unity and existence",
    "Tribonacci: recursion and growth",
    "Golden ratio: harmony and proportion",
    "Half: duality and reflection",
    "Inverse frequency: wavelength space",
    "Frequency: cyclic nature",
    "Phase: interference patterns",
    "Zeta: deep structure",
)


def _check_index(i: int) -> int:
    if isinstance(i, bool) or not isinstance(i, int) or not (0 <= i < FIELD_COUNT):
        raise FieldIndexError(f"field index must be int in [0, {FIELD_COUNT}), got {i!r}")
    return int(i)


# =============================================================================
# Value types
# =============================================================================


@dataclass(frozen=True)
class FieldPattern:
    """Fixed-width (8) ordered boolean vector, bit 0 first."""

    bits: Tuple[bool, ...]

    def __post_init__(self) -> None:
        bits = tuple(self.bits)
        if len(bits) != FIELD_COUNT:
            raise FieldConfigurationError(f"pattern must have {FIELD_COUNT} bits, got {len(bits)}")
        if any(not isinstance(b, (bool, np.bool_)) for b in bits):
            raise FieldConfigurationError(f"pattern bits must be bool, got {bits!r}")
        object.__setattr__(self, "bits", tuple(bool(b) for b in bits))

    @classmethod
    def from_byte(cls, byte: int) -> "FieldPattern":
        if isinstance(byte, bool) or not isinstance(byte, int) or not (0 <= byte < FIELD_PERIOD):
            raise FieldConfigurationError(f"byte must be int in [0, 255], got {byte!r}")
        raw = np.unpackbits(np.array([byte], dtype=np.uint8), bitorder="little")
        return cls(tuple(bool(b) for b in raw))

    def to_byte(self) -> int:
        return int(sum(1 << i for i, b in enumerate(self.bits) if b))

    def as_array(self) -> np.ndarray:
        arr = np.array(self.bits, dtype=bool)
        arr.setflags(write=False)
        return arr

    def active_indices(self) -> Tuple[int, ...]:
        return tuple(i for i, b in enumerate(self.bits) if b)

    def active_count(self) -> int:
        return int(sum(self.bits))

    def __getitem__(self, i: int) -> bool:
        return self.bits[_check_index(i)]

    def __iter__(self) -> Iterator[bool]:
        return iter(self.bits)

    def __len__(self) -> int:
        return FIELD_COUNT

    def __str__(self) -> str:
        return "".join("1" if b else "0" for b in self.bits)


@dataclass(frozen=True)
class FieldConstants:
    """Ordered table of 8 positive finite reals, fixed at construction."""

    values: Tuple[float, ...] = DEFAULT_FIELD_CONSTANTS

    def __post_init__(self) -> None:
        vals = tuple(self.values)
        if len(vals) != FIELD_COUNT:
            raise FieldConfigurationError(f"need exactly {FIELD_COUNT} field constants, got {len(vals)}")
        out: List[float] = []
        for i, v in enumerate(vals):
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise FieldConfigurationError(f"constant alpha_{i} must be a real number, got {v!r}")
            fv = float(v)
            if not math.isfinite(fv) or fv <= 0.0:
                raise FieldConfigurationError(f"constant alpha_{i} must be positive and finite, got {v!r}")
            out.append(fv)
        object.__setattr__(self, "values", tuple(out))

    def as_array(self) -> np.ndarray:
        arr = np.array(self.values, dtype=np.float64)
        arr.setflags(write=False)
        return arr

    def __getitem__(self, i: int) -> float:
        return self.values[_check_index(i)]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __len__(self) -> int:
        return FIELD_COUNT

    @property
    def is_default(self) -> bool:
        return self.values == DEFAULT_FIELD_CONSTANTS


# =============================================================================
# Substrate
# =============================================================================


def field_pattern(value: int) -> FieldPattern:
    """Pattern of value mod 256. Pure; magnitude is irrelevant."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidInputError(f"field pattern needs a non-negative int, got {value!r}", raw=value)
    return FieldPattern.from_byte(int(value) & (FIELD_PERIOD - 1))


class FieldSubstrate:
    """
    Layer 0: value -> FieldPattern, plus the fixed constants table.

    Construction validates the table; the default table additionally has to
    satisfy its two exact relations (see verify_consistency).
    """

    def __init__(self, constants: Sequence[float] = DEFAULT_FIELD_CONSTANTS):
        self._constants = constants if isinstance(constants, FieldConstants) else FieldConstants(tuple(constants))
        self.verify_consistency()

    def pattern(self, value: int) -> FieldPattern:
        return field_pattern(value)

    def constants(self) -> FieldConstants:
        return self._constants

    def is_field_active(self, value: int, index: int) -> bool:
        return self.pattern(value)[_check_index(index)]

    def active_fields(self, value: int) -> Tuple[int, ...]:
        return self.pattern(value).active_indices()

    def field_name(self, index: int) -> str:
        return FIELD_NAMES[_check_index(index)]

    def field_description(self, index: int) -> str:
        return FIELD_DESCRIPTIONS[_check_index(index)]

    def verify_consistency(self) -> bool:
        """
        Table checks. The generic ones are enforced by FieldConstants itself;
        the default table also pins alpha_4 * alpha_5 == 1 and the phase encoding.
        """
        c = self._constants
        if not c.is_default:
            return True
        perfect = c[4] * c[5]
        if abs(perfect - 1.0) > 1e-15:
            raise FieldConfigurationError(f"field invariant violated: alpha_4 * alpha_5 = {perfect!r}, expected 1.0")
        phase = (4 * 7 * 7129) / 1_000_000
        if abs(c[6] - phase) > 1e-15:
            raise FieldConfigurationError(f"phase field incorrect: {c[6]!r} vs {phase!r}")
        _logger.debug("field constants verified: %s", list(c.values))
        return True
