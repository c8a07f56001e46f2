"""
Tests for the timestamp consistency (staleness) check
"""

import pytest

from oraclezk.circuit.encoding import encode64
from oraclezk.circuit.field import SENTINEL
from oraclezk.circuit.r1cs import ConstraintSystem
from oraclezk.circuit.timestamps import check_timestamps
from oraclezk.circuit.wellformed import active_flags

pytestmark = pytest.mark.staleness

CAP = 4
THRESHOLD = 10
S = SENTINEL


@pytest.fixture(scope="module")
def staleness():
    cs = ConstraintSystem("staleness")
    n = cs.input("N")
    ts = cs.input("timestamps", CAP)
    flags = active_flags(cs, n, CAP)
    masked = [cs.mul(f, t) for f, t in zip(flags, ts)]
    for m in masked:
        encode64(cs, m)
    with cs.scope("staleness"):
        cs.expose("median", check_timestamps(cs, masked, flags, n, THRESHOLD))
    return cs


def _run(cs, timestamps):
    n = len(timestamps)
    return cs.solve({"N": n, "timestamps": list(timestamps) + [S] * (CAP - n)})


def test_fresh_batch_accepted(staleness):
    w = _run(staleness, [100, 100, 100, 95])
    assert w.satisfied
    assert w.outputs()["median"] == 100


def test_window_lower_bound_is_exclusive(staleness):
    assert _run(staleness, [100, 100, 100, 91]).satisfied
    violations = _run(staleness, [100, 100, 100, 90]).violations()
    assert {(v.group, v.index) for v in violations} == {("staleness", 3)}


def test_entry_after_median_rejected(staleness):
    violations = _run(staleness, [100, 100, 101, 100]).violations()
    assert {(v.group, v.index) for v in violations} == {("staleness", 2)}


def test_even_count_uses_lower_median(staleness):
    w = _run(staleness, [95, 100, 105, 100])
    assert w.outputs()["median"] == 100
    assert {v.index for v in w.violations()} == {2}


def test_odd_count_with_padding(staleness):
    w = _run(staleness, [100, 99, 100])
    assert w.satisfied
    assert w.outputs()["median"] == 100


def test_single_and_empty_batches(staleness):
    w = _run(staleness, [123])
    assert w.satisfied
    assert w.outputs()["median"] == 123
    assert _run(staleness, []).satisfied


def test_threshold_must_be_positive():
    cs = ConstraintSystem()
    with pytest.raises(ValueError):
        check_timestamps(cs, [], [], 0, 0)
