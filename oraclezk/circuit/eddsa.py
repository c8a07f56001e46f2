"""
EdDSA over Baby Jubjub with the MiMC7 challenge hash

A publisher with secret scalar ``sk`` and public key ``A = sk * B8`` signs
the message ``M = price + conf * 2^64`` as:

    r = H(sk, M) mod l,   R = r * B8
    h = MultiMiMC7(R.x, R.y, A.x, A.y, M)
    S = (r + 8 * h * sk) mod l

and a verifier accepts iff ``S < l`` and ``S * B8 == R + h * (8 * A)``.
The nonce hash ``H`` is SHA-256 and never enters the circuit.
"""

import hashlib
from dataclasses import dataclass
from typing import Sequence

from . import babyjub
from .encoding import MESSAGE_BITS, message_element, pack_message
from .field import int_to_bits
from .gadgets import assert_bits_less_than, mask_bits, to_bits_strict
from .mimc import multi_mimc7, multi_mimc7_gadget
from .r1cs import ConstraintSystem, LinearCombination, Signal

SIGNATURE_BITS = 256


@dataclass(frozen=True)
class KeyPair:
    secret: int
    public: babyjub.Point

    @property
    def packed(self) -> int:
        return babyjub.pack(self.public)


@dataclass(frozen=True)
class Signature:
    """Packed A, R and scalar S, each a 256-bit integer"""
    a: int
    r: int
    s: int

    def bits(self):
        return (int_to_bits(self.a, SIGNATURE_BITS),
                int_to_bits(self.r, SIGNATURE_BITS),
                int_to_bits(self.s, SIGNATURE_BITS))


def keypair_from_secret(secret: int) -> KeyPair:
    secret %= babyjub.SUBORDER
    if secret == 0:
        raise ValueError("secret scalar must be non-zero modulo the subgroup order")
    return KeyPair(secret, babyjub.mul(babyjub.BASE8, secret))


def keygen(seed: bytes) -> KeyPair:
    """Deterministic key pair derived from a seed"""
    secret = int.from_bytes(hashlib.sha256(b"oraclezk.key" + seed).digest(), "big") % babyjub.SUBORDER
    return keypair_from_secret(secret or 1)


def challenge(r_point: babyjub.Point, a_point: babyjub.Point, message: int) -> int:
    return multi_mimc7([r_point[0], r_point[1], a_point[0], a_point[1], message])


def sign(key: KeyPair, price: int, confidence: int) -> Signature:
    m = pack_message(price, confidence)
    nonce_seed = key.secret.to_bytes(32, "big") + m.to_bytes(32, "big")
    r = int.from_bytes(hashlib.sha256(b"oraclezk.nonce" + nonce_seed).digest(), "big") % babyjub.SUBORDER
    r = r or 1
    r_point = babyjub.mul(babyjub.BASE8, r)
    h = challenge(r_point, key.public, m)
    s = (r + 8 * h * key.secret) % babyjub.SUBORDER
    return Signature(key.packed, babyjub.pack(r_point), s)


def verify(signature: Signature, price: int, confidence: int) -> bool:
    a_point = babyjub.unpack(signature.a)
    r_point = babyjub.unpack(signature.r)
    if a_point is None or r_point is None or signature.s >= babyjub.SUBORDER:
        return False
    a8 = babyjub.mul(a_point, 8)
    if a8[0] == 0:
        return False
    h = challenge(r_point, a_point, pack_message(price, confidence))
    left = babyjub.mul(babyjub.BASE8, signature.s)
    right = babyjub.add(r_point, babyjub.mul(a8, h))
    return left == right


def verify_gadget(cs: ConstraintSystem,
                  a_bits: Sequence[Signal],
                  r_bits: Sequence[Signal],
                  s_bits: Sequence[Signal],
                  msg_bits: Sequence[Signal],
                  enabled: Signal) -> None:
    """
    Constrain one signature over ``msg_bits`` when ``enabled`` is 1

    The signature bits are masked by ``enabled`` here, so a disabled slot
    may carry arbitrary raw bits and still satisfy every constraint.
    """
    if len(msg_bits) != MESSAGE_BITS:
        raise ValueError(f"message must be {MESSAGE_BITS} bits")
    enabled = LinearCombination.coerce(enabled)
    a_bits = mask_bits(cs, a_bits, enabled, "A bit")
    r_bits = mask_bits(cs, r_bits, enabled, "R bit")
    s_bits = mask_bits(cs, s_bits, enabled, "S bit")

    a_point = babyjub.decompress(cs, a_bits, enabled, "A decompress")
    r_point = babyjub.decompress(cs, r_bits, enabled, "R decompress")

    cs.assert_zero(s_bits[254], "S bit 254 clear")
    cs.assert_zero(s_bits[255], "S bit 255 clear")
    assert_bits_less_than(cs, s_bits[:254], babyjub.SUBORDER, "S below subgroup order")

    h = multi_mimc7_gadget(cs, [r_point[0], r_point[1], a_point[0], a_point[1],
                                message_element(msg_bits)])
    h_bits = to_bits_strict(cs, h, "challenge bits")

    a8 = babyjub.assert_not_small_order(cs, a_point, enabled, "A small order")
    right = babyjub.point_add(cs, r_point, babyjub.mul_any(cs, h_bits, a8, "h*8A"), "R + h*8A")
    left = babyjub.mul_fixed_base(cs, s_bits[:babyjub.SUBORDER.bit_length()], "S*B8")

    cs.enforce(enabled, left[0] - right[0], 0, "final equality x")
    cs.enforce(enabled, left[1] - right[1], 0, "final equality y")
