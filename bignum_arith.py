#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exact arbitrary-precision integer helpers.

Everything here is integer-only (no float contamination) and total on its
documented domain. Calls outside the domain (division by zero, gcd(0, 0),
non-positive modulus, non-invertible element) raise InvalidOperationError,
which is distinct from a search that simply found nothing.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, Iterable, Tuple

from universe_errors import InvalidInputError, InvalidOperationError

# CPython refuses int(str) above this many digits unless the limit is raised;
# longer digit strings are folded in chunks instead.
_INT_STR_CHUNK = 4000


# =============================================================================
# Value coercion (boundary only)
# =============================================================================


def _digits_to_int(digits: str) -> int:
    if len(digits) <= _INT_STR_CHUNK:
        return int(digits, 10)
    acc = 0
    for start in range(0, len(digits), _INT_STR_CHUNK):
        chunk = digits[start:start + _INT_STR_CHUNK]
        acc = acc * (10 ** len(chunk)) + int(chunk, 10)
    return acc


def coerce_value(raw: Any) -> int:
    """
    Normalise an external value to a non-negative Python int.

    Accepted:
      - int (bool excluded)
      - decimal digit string, optional surrounding whitespace and leading '+'

    Rejected with InvalidInputError:
      - negatives, float (forbidden outright), Fraction, other types,
        empty strings, strings with non-digit characters.
    """
    if isinstance(raw, bool):
        raise InvalidInputError(f"bool is not a value: {raw!r}", raw=raw)
    if isinstance(raw, int):
        if raw < 0:
            raise InvalidInputError(f"value must be non-negative, got {raw}", raw=raw)
        return int(raw)
    if isinstance(raw, float):
        raise InvalidInputError(f"float is forbidden (integers only): {raw!r}", raw=raw)
    if isinstance(raw, Fraction):
        raise InvalidInputError(f"non-integral value: {raw!r}", raw=raw)
    if isinstance(raw, str):
        s = raw.strip()
        if s.startswith("+"):
            s = s[1:]
        if s.startswith("-"):
            raise InvalidInputError(f"value must be non-negative, got {raw!r}", raw=raw)
        if not s or not s.isascii() or not s.isdigit():
            raise InvalidInputError(f"expected a decimal digit string, got {raw!r}", raw=raw)
        return _digits_to_int(s)
    raise InvalidInputError(f"value must be int or digit string, got {type(raw).__name__}", raw=raw)


# =============================================================================
# Guarded arithmetic
# =============================================================================


def checked_mod(a: int, m: int) -> int:
    """a mod m with an explicit zero-divisor guard."""
    if m == 0:
        raise InvalidOperationError(f"modulo by zero: {a} mod 0")
    return int(a % m)


def checked_divmod(a: int, b: int) -> Tuple[int, int]:
    if b == 0:
        raise InvalidOperationError("division by zero")
    q, r = divmod(int(a), int(b))
    return int(q), int(r)


def gcd(a: int, b: int) -> int:
    """
    Non-negative gcd.

    gcd(0, 0) has no meaningful value as a divisor and is refused.
    """
    if a == 0 and b == 0:
        raise InvalidOperationError("gcd(0, 0) is undefined")
    return int(math.gcd(int(a), int(b)))


def egcd(a: int, b: int) -> Tuple[int, int, int]:
    """Extended gcd: returns (g, x, y) s.t. a*x + b*y = g."""
    old_r, r = a, b
    old_x, x = 1, 0
    old_y, y = 0, 1
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_x, x = x, old_x - q * x
        old_y, y = y, old_y - q * y
    if old_r < 0:
        old_r, old_x, old_y = -old_r, -old_x, -old_y
    return old_r, old_x, old_y


def modinv(a: int, m: int) -> int:
    """Modular inverse a^{-1} mod m, fails hard if gcd(a, m) != 1."""
    if m <= 0:
        raise InvalidOperationError(f"modulus must be positive, got m={m}")
    g, x, _y = egcd(a % m, m)
    if g != 1:
        raise InvalidOperationError(f"no modular inverse: gcd({a}, {m}) = {g} != 1")
    return x % m


def modpow(base: int, exponent: int, modulus: int) -> int:
    """base^exponent mod modulus, exponent >= 0, modulus >= 1."""
    if modulus <= 0:
        raise InvalidOperationError(f"modulus must be positive, got {modulus}")
    if exponent < 0:
        raise InvalidOperationError(f"negative exponent: {exponent}")
    return int(pow(int(base), int(exponent), int(modulus)))


def isqrt(n: int) -> int:
    if n < 0:
        raise InvalidOperationError(f"isqrt of negative value {n}")
    return int(math.isqrt(int(n)))


def is_perfect_square(x: int) -> Tuple[bool, int]:
    if x < 0:
        return False, 0
    r = math.isqrt(x)
    return (r * r == x), r


def iroot(n: int, k: int) -> int:
    """floor(n ** (1/k)) in exact integer arithmetic (Newton iteration)."""
    if k < 1:
        raise InvalidOperationError(f"root degree must be >= 1, got {k}")
    if n < 0:
        raise InvalidOperationError(f"iroot of negative value {n}")
    if n < 2 or k == 1:
        return int(n)
    if k == 2:
        return int(math.isqrt(n))
    # Start from a power of two above the root so Newton decreases monotonically.
    x = 1 << ((n.bit_length() + k - 1) // k)
    while True:
        y = ((k - 1) * x + n // (x ** (k - 1))) // k
        if y >= x:
            break
        x = y
    while x ** k > n:
        x -= 1
    while (x + 1) ** k <= n:
        x += 1
    return int(x)


def valuation(n: int, p: int) -> Tuple[int, int]:
    """
    p-adic valuation with cofactor: returns (v, m) with n = p^v * m, p not dividing m.
    """
    if p < 2:
        raise InvalidOperationError(f"valuation base must be >= 2, got {p}")
    if n == 0:
        raise InvalidOperationError("v_p(0) is undefined")
    x = abs(int(n))
    v = 0
    while x % p == 0:
        x //= p
        v += 1
    return int(v), int(x)


def product(values: Iterable[int]) -> int:
    acc = 1
    for v in values:
        acc *= int(v)
    return int(acc)
