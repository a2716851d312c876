import math

import pytest

from field_substrate import DEFAULT_FIELD_CONSTANTS, FieldPattern, FieldSubstrate
from resonance_engine import ResonanceEngine, classify_resonance, is_at_resonance_well


@pytest.fixture(scope="module")
def engine():
    return ResonanceEngine()


def test_zero_pattern_has_unit_resonance(engine):
    assert engine.resonance(0) == 1.0
    assert engine.resonance(256) == 1.0


def test_single_field_resonance_equals_constant(engine):
    for i, alpha in enumerate(DEFAULT_FIELD_CONSTANTS):
        assert engine.resonance(1 << i) == pytest.approx(alpha)


def test_resonance_is_product_of_active_constants(engine):
    # 77 -> fields 0, 2, 3, 6
    expected = 1.0 * 1.618033988749895 * 0.5 * 0.199612
    assert engine.resonance(77) == pytest.approx(expected, rel=1e-12)


def test_resonance_positive_and_pure_function_of_pattern(engine):
    table = engine.residue_table()
    assert table.shape == (256,)
    assert (table > 0).all()
    for v in (3, 77, 200, 255, 10**20 + 7):
        assert engine.resonance(v) == engine.resonance(v % 256)
        assert engine.resonance(v) == engine.resonance_of_pattern(FieldPattern.from_byte(v % 256))


def test_residue_table_is_read_only(engine):
    with pytest.raises(ValueError):
        engine.residue_table()[0] = 2.0


def test_perfect_resonance_points(engine):
    assert engine.resonance(48) == pytest.approx(1.0, abs=1e-15)
    assert engine.resonance(49) == pytest.approx(1.0, abs=1e-15)


@pytest.mark.parametrize(
    "value, label",
    [
        (0.0, "void"),
        (1.0, "unity"),
        (0.05, "ultra-low"),
        (0.3, "very-low"),
        (0.8, "low"),
        (1.5, "moderate"),
        (3.0, "high"),
        (7.0, "very-high"),
        (20.0, "ultra-high"),
    ],
)
def test_classify_resonance(value, label):
    assert classify_resonance(value) == label


def test_resonance_wells():
    assert is_at_resonance_well(math.pi + 0.001)
    assert is_at_resonance_well(0.5)
    assert not is_at_resonance_well(2.0)


def test_signature_and_evidence(engine):
    sig = engine.signature(6)
    assert sig.active_field_count == 2
    assert sig.primary == pytest.approx(1.8392867552141612 * 1.618033988749895)
    assert sig.classification == "high"
    lines = engine.evidence(6)
    assert len(lines) == 3
    assert lines[-1].startswith("Total resonance:")


def test_local_minimum(engine):
    # alpha_0 == 1 makes every even value tie with its successor under the default table.
    assert not engine.local_minimum(128).is_local_minimum
    doubling = ResonanceEngine(FieldSubstrate((2.0,) * 8))
    low = doubling.local_minimum(128)
    assert low.is_local_minimum
    assert low.discrete_laplacian == pytest.approx(2.0 ** 7 - 2 * 2.0 + 2.0 ** 2)
    assert [v for v, _ in low.neighbors] == [127, 128, 129]
    assert not engine.local_minimum(1).is_local_minimum


def test_custom_constants_table():
    eng = ResonanceEngine(FieldSubstrate((2.0,) * 8))
    assert eng.resonance(255) == pytest.approx(256.0)
    assert eng.resonance(3) == pytest.approx(4.0)
