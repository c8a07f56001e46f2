"""
End-to-end tests for the aggregate circuit
"""

import pytest

from oraclezk.circuit.aggregate import OUTPUTS, build_circuit
from oraclezk.circuit.field import SENTINEL
from oraclezk.errors import ConstraintViolation, WitnessError
from oraclezk.schemas.circuit import CircuitParams
from oraclezk.schemas.witness import WitnessInput
from oraclezk.witness import build_witness, padding_signature_bits, reference_outputs

pytestmark = [pytest.mark.e2e, pytest.mark.slow]

PARAMS = CircuitParams(max_publishers=2, timestamp_threshold=10)


@pytest.fixture(scope="module")
def circuit():
    return build_circuit(PARAMS)


def _groups(exc):
    return {(v.group, v.index) for v in exc.value.violations}


def test_layout(circuit):
    info = circuit.info()
    assert info["public_outputs"] == list(OUTPUTS)
    assert list(info["constraints_by_group"]) == [
        "well-formedness", "encoding", "signature", "staleness", "sortedness", "aggregation",
    ]
    assert build_circuit(PARAMS) is circuit


def test_single_publisher_passthrough(circuit, make_quote):
    q = make_quote(0, 100, 5, 1_000)
    witness = build_witness([q], PARAMS, fee=7, price_model=[(0, 0, 1)] * 3)
    assert circuit.check(witness) == []
    out = circuit.prove(witness)
    assert out.as_list() == [100, 100, 100, 0, 7]


def test_two_publishers_default_model(circuit, make_quote):
    quotes = [make_quote(0, 100, 5, 1_000), make_quote(1, 102, 1, 1_000)]
    witness = build_witness(quotes, PARAMS, fee=3)
    out = circuit.prove(witness)
    # derived: 95 100 101 102 103 105 -> p25 idx 1, p50 idx 2, p75 idx 4
    assert (out.p25, out.p50, out.p75) == (100, 101, 103)
    assert out.confidence == 2
    assert out == reference_outputs(quotes, witness.price_model[:6], fee=3)


def test_empty_batch_outputs_zero(circuit):
    witness = build_witness([], PARAMS, fee=11)
    assert circuit.prove(witness).as_list() == [0, 0, 0, 0, 11]


def test_tampered_price_fails_signature(circuit, make_quote):
    quotes = [make_quote(0, 100, 5, 1_000), make_quote(1, 102, 1, 1_000)]
    witness = build_witness(quotes, PARAMS)
    witness.prices[0] = 99
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(witness)
    assert ("signature", 0) in _groups(exc)
    assert not any(g == "signature" and i == 1 for g, i in _groups(exc))


def test_swapped_signatures_fail(circuit, make_quote):
    quotes = [make_quote(0, 100, 5, 1_000), make_quote(1, 102, 1, 1_000)]
    witness = build_witness(quotes, PARAMS)
    witness.a.reverse()
    witness.r.reverse()
    witness.s.reverse()
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(witness)
    assert {("signature", 0), ("signature", 1)} <= _groups(exc)


def test_stale_timestamp_rejected(circuit, make_quote):
    quotes = [make_quote(0, 100, 5, 1_000), make_quote(1, 102, 1, 980)]
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(build_witness(quotes, PARAMS))
    # lower median is 980; the 1000 entry lies after it
    assert ("staleness", 0) in _groups(exc)


def test_misplaced_padding_rejected(circuit, make_quote):
    witness = build_witness([make_quote(0, 100, 5, 1_000)], PARAMS)
    witness.timestamps[1] = 1_000
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(witness)
    assert exc.value.first.group == "well-formedness"
    assert exc.value.first.index == 1


def test_padding_slot_needs_sentinel_signature_marker(circuit, make_quote):
    witness = build_witness([make_quote(0, 100, 5, 1_000)], PARAMS)
    assert witness.s[1] == padding_signature_bits()[2]
    witness.s[1][0] = 0
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(witness)
    assert ("well-formedness", 1) in _groups(exc)


def test_unsorted_model_rejected(circuit, make_quote):
    quotes = [make_quote(0, 100, 5, 1_000)]
    witness = build_witness(quotes, PARAMS, price_model=[(0, 0, 2), (0, 0, 1), (0, 0, 0)])
    # derived = [105, 100, 95, pad, pad, pad]
    with pytest.raises(ConstraintViolation) as exc:
        circuit.prove(witness)
    assert exc.value.first.group == "sortedness"
    assert set(exc.value.groups) <= {"sortedness", "aggregation"}
    sortedness = [v for v in exc.value.violations if v.group == "sortedness"]
    assert all(v.label.startswith("derived order ") for v in sortedness)
    assert {v.label.split()[2] for v in sortedness} == {"0<=1", "1<=2"}


def test_capacity_mismatch(circuit, make_quote):
    other = build_witness([make_quote(0, 100, 5, 1_000)], CircuitParams(max_publishers=3))
    with pytest.raises(WitnessError):
        circuit.prove(other)


def test_json_witness_roundtrip(circuit, make_quote):
    witness = build_witness([make_quote(2, 500, 20, 7)], PARAMS, fee=1)
    payload = witness.to_json_dict()
    assert payload["prices"][1] == str(SENTINEL)
    assert circuit.prove(payload) == circuit.prove(WitnessInput.model_validate(payload))
