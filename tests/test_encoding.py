"""
Tests for the 64-bit quote field encoder
"""

import pytest

from oraclezk.circuit.encoding import encode64, message_bits, message_element, pack_message
from oraclezk.circuit.r1cs import ConstraintSystem

pytestmark = pytest.mark.encoding


@pytest.fixture(scope="module")
def encoder():
    cs = ConstraintSystem("encode")
    x = cs.input("x")
    with cs.scope("encoding"):
        bits = encode64(cs, x, "price")
    for i, b in enumerate(bits):
        cs.expose(f"bit{i}", b)
    return cs


def test_max_value_fits(encoder):
    w = encoder.solve({"x": 2**64 - 1})
    assert w.satisfied
    assert set(w.outputs().values()) == {1}


def test_overflow_rejected(encoder):
    violations = encoder.check(encoder.solve({"x": 2**64}))
    assert violations
    assert all(v.group == "encoding" for v in violations)
    assert any("price recomposition" == v.label for v in violations)


def test_little_endian_order(encoder):
    out = encoder.solve({"x": 0b101}).outputs()
    assert [out[f"bit{i}"] for i in range(4)] == [1, 0, 1, 0]


def test_message_is_price_then_confidence():
    cs = ConstraintSystem()
    p, c = cs.input("p"), cs.input("c")
    bits = message_bits(encode64(cs, p), encode64(cs, c))
    assert len(bits) == 128
    cs.expose("m", message_element(bits))
    out = cs.solve({"p": 100, "c": 5}).outputs()
    assert out["m"] == pack_message(100, 5) == 100 + (5 << 64)


def test_pack_message_range():
    with pytest.raises(ValueError):
        pack_message(2**64, 0)
    with pytest.raises(ValueError):
        pack_message(0, -1)
