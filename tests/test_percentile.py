"""
Tests for nearest-rank percentile selection and constrained sorting
"""

import pytest

from oraclezk.circuit.percentile import nearest_rank, percentiles, sort_values
from oraclezk.circuit.r1cs import ConstraintSystem

pytestmark = pytest.mark.percentile

PAD = 255


@pytest.fixture(scope="module")
def engine():
    cs = ConstraintSystem("percentile")
    values = cs.input("values", 4)
    count = cs.input("count")
    with cs.scope("aggregation"):
        p25, p50, p75 = percentiles(cs, values, count, 8)
    cs.expose("p25", p25)
    cs.expose("p50", p50)
    cs.expose("p75", p75)
    return cs


@pytest.mark.parametrize("q,m,expected", [
    (25, 4, 0), (50, 4, 1), (75, 4, 2),
    (50, 3, 1), (25, 1, 0), (75, 1, 0),
    (50, 6, 2), (75, 6, 4), (25, 6, 1),
    (50, 0, 0),
])
def test_nearest_rank(q, m, expected):
    assert nearest_rank(q, m) == expected


def test_four_values(engine):
    w = engine.solve({"values": [10, 20, 30, 40], "count": 4})
    assert w.satisfied
    assert w.outputs() == {"p25": 10, "p50": 20, "p75": 30}


def test_padding_is_never_selected(engine):
    w = engine.solve({"values": [10, 20, PAD, PAD], "count": 2})
    assert w.satisfied
    assert w.outputs() == {"p25": 10, "p50": 10, "p75": 20}


def test_single_value(engine):
    w = engine.solve({"values": [42, PAD, PAD, PAD], "count": 1})
    assert w.outputs() == {"p25": 42, "p50": 42, "p75": 42}
    assert w.satisfied


def test_empty_outputs_zero(engine):
    w = engine.solve({"values": [PAD] * 4, "count": 0})
    assert w.satisfied
    assert w.outputs() == {"p25": 0, "p50": 0, "p75": 0}


def test_unsorted_input_rejected(engine):
    violations = engine.check(engine.solve({"values": [20, 10, 30, 40], "count": 4}))
    assert violations
    assert all("input order" in v.label for v in violations)


def test_count_beyond_array_rejected(engine):
    assert not engine.solve({"values": [10, 20, 30, 40], "count": 7}).satisfied


def test_sort_values_constrains_permutation():
    cs = ConstraintSystem()
    values = cs.input("values", 4)
    out = sort_values(cs, values, 8)
    for i, v in enumerate(out):
        cs.expose(f"s{i}", v)
    w = cs.solve({"values": [30, 10, 40, 10]})
    assert w.satisfied
    assert [w.outputs()[f"s{i}"] for i in range(4)] == [10, 10, 30, 40]

    assert len([c for c in cs.constraints if " column " in c.label]) == 4
