"""
Tests for Baby Jubjub arithmetic, MiMC7 and EdDSA signature verification
"""

import pytest

from oraclezk.circuit import babyjub, eddsa
from oraclezk.circuit.encoding import encode64, message_bits
from oraclezk.circuit.field import P, SENTINEL
from oraclezk.circuit.mimc import mimc7, mimc7_gadget, multi_mimc7, round_constants
from oraclezk.circuit.r1cs import ConstraintSystem

pytestmark = pytest.mark.eddsa


def test_base_point_generates_prime_subgroup():
    assert babyjub.on_curve(babyjub.BASE8)
    assert babyjub.in_subgroup(babyjub.BASE8)
    assert babyjub.mul(babyjub.BASE8, babyjub.SUBORDER) == babyjub.IDENTITY
    assert babyjub.SUBORDER * 8 == babyjub.ORDER


def test_pack_unpack_roundtrip(publisher_keys):
    for key in publisher_keys:
        packed = key.packed
        assert packed >> 256 == 0
        assert babyjub.unpack(packed) == key.public


def test_unpack_rejects_off_curve():
    # roughly half of all y values have no x on the curve
    candidates = [babyjub.unpack(y) for y in range(2, 40)]
    assert any(c is None for c in candidates)
    assert babyjub.unpack(P) is None


def test_mimc_constants_and_gadget_agree():
    c = round_constants()
    assert len(c) == 91 and c[0] == 0
    assert all(0 <= x < P for x in c)

    cs = ConstraintSystem()
    x, k = cs.input("x"), cs.input("k")
    cs.expose("h", mimc7_gadget(cs, x, k))
    assert len(cs.constraints) == 91 * 4
    w = cs.solve({"x": 12345, "k": 678})
    assert w.satisfied
    assert w.outputs()["h"] == mimc7(12345, 678)


def test_multi_mimc_depends_on_order():
    assert multi_mimc7([1, 2, 3]) != multi_mimc7([3, 2, 1])


def test_sign_and_verify(publisher_keys):
    key = publisher_keys[0]
    sig = eddsa.sign(key, 100, 5)
    assert sig.s < babyjub.SUBORDER
    assert eddsa.verify(sig, 100, 5)
    assert not eddsa.verify(sig, 101, 5)
    assert not eddsa.verify(sig, 100, 6)
    other = eddsa.sign(publisher_keys[1], 100, 5)
    assert not eddsa.verify(eddsa.Signature(other.a, sig.r, sig.s), 100, 5)


def test_malleated_scalar_rejected(publisher_keys):
    sig = eddsa.sign(publisher_keys[0], 100, 5)
    assert not eddsa.verify(eddsa.Signature(sig.a, sig.r, sig.s + babyjub.SUBORDER), 100, 5)


def test_keygen_is_deterministic():
    assert eddsa.keygen(b"alice") == eddsa.keygen(b"alice")
    assert eddsa.keygen(b"alice") != eddsa.keygen(b"bob")
    with pytest.raises(ValueError):
        eddsa.keypair_from_secret(babyjub.SUBORDER)


@pytest.fixture(scope="module")
def verifier():
    cs = ConstraintSystem("verify")
    a = cs.input("A", 256)
    r = cs.input("R", 256)
    s = cs.input("S", 256)
    price, conf, enabled = cs.input("price"), cs.input("conf"), cs.input("enabled")
    msg = message_bits(encode64(cs, price), encode64(cs, conf))
    with cs.scope("signature", 0):
        eddsa.verify_gadget(cs, a, r, s, msg, enabled)
    return cs


def _inputs(sig, price, conf, enabled=1):
    a, r, s = sig.bits()
    return {"A": a, "R": r, "S": s, "price": price, "conf": conf, "enabled": enabled}


@pytest.mark.slow
def test_valid_signature_accepted(verifier, publisher_keys):
    sig = eddsa.sign(publisher_keys[0], 100, 5)
    assert verifier.check(verifier.solve(_inputs(sig, 100, 5))) == []


@pytest.mark.slow
def test_wrong_message_rejected(verifier, publisher_keys):
    sig = eddsa.sign(publisher_keys[0], 100, 5)
    violations = verifier.check(verifier.solve(_inputs(sig, 101, 5)))
    assert violations
    assert {v.group for v in violations} == {"signature"}
    assert any(v.label.startswith("final equality") for v in violations)


@pytest.mark.slow
def test_flipped_scalar_bit_rejected(verifier, publisher_keys):
    sig = eddsa.sign(publisher_keys[1], 100, 5)
    inputs = _inputs(sig, 100, 5)
    inputs["S"][3] ^= 1
    violations = verifier.check(verifier.solve(inputs))
    assert violations
    assert all(v.index == 0 for v in violations)


@pytest.mark.slow
def test_flipped_key_bit_rejected(verifier, publisher_keys):
    sig = eddsa.sign(publisher_keys[2], 100, 5)
    inputs = _inputs(sig, 100, 5)
    inputs["A"][0] ^= 1
    assert verifier.check(verifier.solve(inputs))


@pytest.mark.slow
def test_non_boolean_bit_rejected(verifier, publisher_keys):
    sig = eddsa.sign(publisher_keys[0], 100, 5)
    inputs = _inputs(sig, 100, 5)
    inputs["R"][7] = 2
    violations = verifier.check(verifier.solve(inputs))
    assert any(v.label == "R bit 7 boolean" for v in violations)


@pytest.mark.slow
def test_disabled_slot_accepts_padding(verifier):
    zeros = [0] * 256
    inputs = {"A": zeros, "R": list(zeros), "S": [SENTINEL] + [0] * 255,
              "price": 0, "conf": 0, "enabled": 0}
    assert verifier.check(verifier.solve(inputs)) == []
