from fractions import Fraction

import pytest

from bignum_arith import (
    checked_divmod,
    checked_mod,
    coerce_value,
    egcd,
    gcd,
    iroot,
    is_perfect_square,
    isqrt,
    modinv,
    modpow,
    product,
    valuation,
)
from universe_errors import InvalidInputError, InvalidOperationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0, 0),
        (77, 77),
        ("77", 77),
        ("  +104729 ", 104729),
        ("000123", 123),
        (10**40, 10**40),
    ],
)
def test_coerce_value_accepts(raw, expected):
    assert coerce_value(raw) == expected


def test_coerce_value_long_digit_string():
    digits = "1" * 5000
    assert coerce_value(digits) == (10**5000 - 1) // 9


@pytest.mark.parametrize("raw", [-1, "-5", 3.0, Fraction(7, 2), True, "", "12a", "1e5", None, [1], "٣"])
def test_coerce_value_rejects(raw):
    with pytest.raises(InvalidInputError):
        coerce_value(raw)


def test_guarded_division():
    assert checked_mod(17, 5) == 2
    assert checked_divmod(17, 5) == (3, 2)
    with pytest.raises(InvalidOperationError):
        checked_mod(5, 0)
    with pytest.raises(InvalidOperationError):
        checked_divmod(5, 0)


def test_gcd_family():
    assert gcd(84, 36) == 12
    assert gcd(0, 9) == 9
    with pytest.raises(InvalidOperationError):
        gcd(0, 0)
    g, x, y = egcd(240, 46)
    assert g == 2 and 240 * x + 46 * y == 2
    assert egcd(-4, 6)[0] == 2


def test_modinv_and_modpow():
    assert modinv(3, 7) == 5
    assert (modinv(7, 256) * 7) % 256 == 1
    with pytest.raises(InvalidOperationError):
        modinv(2, 4)
    with pytest.raises(InvalidOperationError):
        modinv(3, 0)
    assert modpow(2, 10, 1000) == 24
    with pytest.raises(InvalidOperationError):
        modpow(2, -1, 7)


def test_roots():
    assert isqrt(10**30) == 10**15
    assert is_perfect_square(1000003**2) == (True, 1000003)
    assert is_perfect_square(10403)[0] is False
    assert iroot(10**30, 3) == 10**10
    assert iroot(10**30 - 1, 3) == 10**10 - 1
    assert iroot(2**64, 64) == 2
    assert iroot(7, 1) == 7
    with pytest.raises(InvalidOperationError):
        iroot(10, 0)
    with pytest.raises(InvalidOperationError):
        isqrt(-1)


def test_valuation_and_product():
    assert valuation(48, 2) == (4, 3)
    assert valuation(10**30, 5) == (30, 2**30)
    with pytest.raises(InvalidOperationError):
        valuation(0, 3)
    assert product([]) == 1
    assert product([3, 11, 17]) == 561
