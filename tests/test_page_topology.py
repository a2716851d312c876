from itertools import islice

import pytest

import page_topology
from bignum_arith import iroot
from page_topology import (
    PRIMARY_LAGRANGE_POINTS,
    LagrangeType,
    detect_lagrange_type,
    iter_periodic_landmarks,
    iter_root_landmarks,
    locate,
    periodic_landmarks,
    root_landmarks,
)
from resonance_engine import ResonanceEngine


@pytest.fixture(scope="module")
def engine():
    return ResonanceEngine()


def test_locate():
    loc = locate(300)
    assert (loc.page, loc.offset, loc.cycle, loc.phase) == (6, 12, 1, 44)


@pytest.mark.parametrize(
    "value, kind",
    [
        (0, LagrangeType.PRIMARY),
        (49, LagrangeType.PRIMARY),
        (2, LagrangeType.TRIBONACCI),
        (4, LagrangeType.GOLDEN),
        (128, LagrangeType.DEEP),
        (8, LagrangeType.SECONDARY),
        (16, None),
    ],
)
def test_detect_lagrange_type(engine, value, kind):
    assert detect_lagrange_type(value, engine) is kind


def test_primary_points_have_unit_resonance(engine):
    for v in PRIMARY_LAGRANGE_POINTS:
        assert detect_lagrange_type(v, engine) is LagrangeType.PRIMARY
        assert detect_lagrange_type(v + 256, engine) is LagrangeType.PRIMARY


def test_root_landmarks():
    assert root_landmarks(10**6, max_degree=3) == [1000, 1001, 999, 100, 101, 99]
    assert root_landmarks(3) == []
    marks = root_landmarks(2**64 + 1)
    assert 2**32 in marks and 2**16 in marks and 2 in marks
    assert len(marks) == len(set(marks))


def test_periodic_landmarks():
    assert periodic_landmarks(100, pages=256) == [47, 48, 49, 95, 96, 97]
    assert periodic_landmarks(100, pages=1) == [47, 48, 49]
    marks = periodic_landmarks(10**9, pages=16)
    assert marks == sorted(set(marks))
    assert 255 in marks and 257 in marks
    assert max(marks) <= 16 * 48 + 1
    assert periodic_landmarks(1, pages=10) == []


def test_landmark_iterators_are_lazy(monkeypatch):
    calls = []
    real_iroot = page_topology.iroot
    monkeypatch.setattr(page_topology, "iroot", lambda n, k: calls.append(k) or real_iroot(n, k))
    marks = iter_root_landmarks(2**4000 + 1)
    assert calls == []
    assert list(islice(marks, 4)) == [2**2000, 2**2000 + 1, 2**2000 - 1, iroot(2**4000 + 1, 3)]
    assert calls == [2, 3]
    assert list(islice(iter_periodic_landmarks(10**9, pages=16), 3)) == [47, 48, 49]
    assert list(iter_periodic_landmarks(10**9, pages=16)) == periodic_landmarks(10**9, pages=16)
