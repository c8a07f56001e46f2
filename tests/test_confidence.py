"""
Tests for the confidence interval calculator
"""

import pytest

from oraclezk.circuit.confidence import confidence_interval, reference_confidence
from oraclezk.circuit.r1cs import ConstraintSystem

pytestmark = pytest.mark.confidence


@pytest.fixture(scope="module")
def calculator():
    cs = ConstraintSystem("confidence")
    p25, p50, p75 = cs.input("p25"), cs.input("p50"), cs.input("p75")
    cs.expose("confidence", confidence_interval(cs, p25, p50, p75, 66))
    return cs


@pytest.mark.parametrize("p25,p50,p75,expected", [
    (10, 20, 50, 30),
    (10, 20, 25, 10),
    (10, 20, 30, 10),
    (7, 7, 7, 0),
    (0, 2**65, 2**65, 2**65),
])
def test_wider_half_interval(calculator, p25, p50, p75, expected):
    w = calculator.solve({"p25": p25, "p50": p50, "p75": p75})
    assert w.satisfied
    assert w.outputs()["confidence"] == expected
    assert reference_confidence(p25, p50, p75) == expected


def test_inverted_percentiles_rejected(calculator):
    violations = calculator.solve({"p25": 20, "p50": 10, "p75": 30}).violations()
    assert any("lower half-interval" in v.label for v in violations)
