"""
Baby Jubjub twisted Edwards curve over the BN254 scalar field

Curve: a*x^2 + y^2 = 1 + d*x^2*y^2 with a = 168700, d = 168696. The
group order is 8*l; B8 generates the prime-order subgroup of order l.

Points are (x, y) tuples of ints off-circuit and tuples of linear
combinations in-circuit. The addition law is complete for this curve, so
no exceptional cases are handled in either form.
"""

from typing import List, Optional, Sequence, Tuple

from .field import HALF, P, div, inv, is_negative, sqrt
from .gadgets import (
    assert_bits_less_than, bits_greater_than, from_bits, is_zero, select, to_bits_strict,
)
from .r1cs import ConstraintSystem, LinearCombination, Signal

A = 168700
D = 168696

ORDER = 21888242871839275222246405745257275088614511777268538073601725287587578984328
SUBORDER = ORDER >> 3

IDENTITY = (0, 1)
BASE8 = (
    5299619240641551281634865583518297030282874472190772894086521144482721001553,
    16950150798460657717958625567821834550301663161624707787222815936182638968203,
)

Point = Tuple[int, int]
CircuitPoint = Tuple[LinearCombination, LinearCombination]


# -- off-circuit ------------------------------------------------------------

def add(p1: Point, p2: Point) -> Point:
    x1, y1 = p1
    x2, y2 = p2
    t = D * x1 * x2 * y1 * y2 % P
    x3 = div(x1 * y2 + y1 * x2, 1 + t)
    y3 = div(y1 * y2 - A * x1 * x2, 1 - t)
    return x3, y3


def double(pt: Point) -> Point:
    return add(pt, pt)


def mul(pt: Point, scalar: int) -> Point:
    acc = IDENTITY
    addend = pt
    while scalar:
        if scalar & 1:
            acc = add(acc, addend)
        addend = double(addend)
        scalar >>= 1
    return acc


def on_curve(pt: Point) -> bool:
    x, y = pt
    x2, y2 = x * x % P, y * y % P
    return (A * x2 + y2 - 1 - D * x2 * y2) % P == 0


def in_subgroup(pt: Point) -> bool:
    return on_curve(pt) and mul(pt, SUBORDER) == IDENTITY


def pack(pt: Point) -> int:
    """256-bit compressed form: y in bits 0..254, sign of x in bit 255"""
    x, y = pt
    return y | (int(is_negative(x)) << 255)


def recover_x(y: int, sign: int) -> Optional[int]:
    """x coordinate with the requested sign, or None when y is not on the curve"""
    y2 = y * y % P
    den = (A - D * y2) % P
    if den == 0:
        return None
    x = sqrt((1 - y2) * inv(den))
    if x is None:
        return None
    if int(is_negative(x)) != sign:
        x = (P - x) % P
    if x == 0 and sign:
        return None
    return x


def unpack(packed: int) -> Optional[Point]:
    y = packed & ((1 << 255) - 1)
    sign = packed >> 255 & 1
    if y >= P or packed >> 256:
        return None
    x = recover_x(y, sign)
    if x is None:
        return None
    return x, y


def base_powers(base: Point, count: int) -> List[Point]:
    """[base, 2*base, 4*base, ...]; the constants for fixed-base multiplication"""
    out = []
    pt = base
    for _ in range(count):
        out.append(pt)
        pt = double(pt)
    return out


_BASE8_POWERS = base_powers(BASE8, SUBORDER.bit_length())


# -- in-circuit -------------------------------------------------------------

def _const_point(pt: Point) -> CircuitPoint:
    return LinearCombination.constant(pt[0]), LinearCombination.constant(pt[1])


def point_add(cs: ConstraintSystem, p1, p2, label: str = "point add") -> CircuitPoint:
    """Edwards addition in six constraints"""
    x1, y1 = (LinearCombination.coerce(v) for v in p1)
    x2, y2 = (LinearCombination.coerce(v) for v in p2)
    if all(v.is_constant() for v in (x1, y1, x2, y2)):
        return _const_point(add((x1.constant_value, y1.constant_value),
                                (x2.constant_value, y2.constant_value)))

    beta = cs.mul(x1, y2, f"{label} x1*y2")
    gamma = cs.mul(y1, x2, f"{label} y1*x2")
    delta = cs.mul(y1 - x1 * A, x2 + y2, f"{label} delta")
    tau = cs.mul(beta, gamma, f"{label} tau")

    x_num = beta + gamma
    x_den = 1 + tau * D
    y_num = delta + beta * A - gamma
    y_den = 1 - tau * D
    x3 = cs.hint(lambda w: div(w(x_num), w(x_den)))
    y3 = cs.hint(lambda w: div(w(y_num), w(y_den)))
    cs.enforce(x3, x_den, x_num, f"{label} x")
    cs.enforce(y3, y_den, y_num, f"{label} y")
    return x3, y3


def point_double(cs: ConstraintSystem, pt, label: str = "point double") -> CircuitPoint:
    return point_add(cs, pt, pt, label)


def point_select(cs: ConstraintSystem, b: Signal, when_true, when_false, label: str = "point select") -> CircuitPoint:
    return (select(cs, b, when_true[0], when_false[0], f"{label} x"),
            select(cs, b, when_true[1], when_false[1], f"{label} y"))


def mul_fixed_base(cs: ConstraintSystem, bits: Sequence[Signal], label: str = "fixed-base mul") -> CircuitPoint:
    """
    Multiply B8 by the little-endian scalar ``bits``

    Each bit selects either 2^j*B8 or the identity with a linear expression,
    so only the additions cost constraints.
    """
    if len(bits) > len(_BASE8_POWERS):
        raise ValueError("scalar wider than the precomputed base powers")
    acc = None
    for j, b in enumerate(bits):
        b = LinearCombination.coerce(b)
        qx, qy = _BASE8_POWERS[j]
        term = (b * qx, 1 + b * (qy - 1))
        acc = term if acc is None else point_add(cs, acc, term, f"{label} step {j}")
    if acc is None:
        return _const_point(IDENTITY)
    return acc


def mul_any(cs: ConstraintSystem, bits: Sequence[Signal], pt, label: str = "variable-base mul") -> CircuitPoint:
    """Double-and-add over little-endian ``bits``, most significant bit first"""
    acc = _const_point(IDENTITY)
    for j in reversed(range(len(bits))):
        acc = point_double(cs, acc, f"{label} double {j}")
        summed = point_add(cs, acc, pt, f"{label} add {j}")
        acc = point_select(cs, bits[j], summed, acc, f"{label} select {j}")
    return acc


def decompress(cs: ConstraintSystem, bits: Sequence[Signal], enabled: Signal, label: str = "decompress") -> CircuitPoint:
    """
    Recover a point from its 256-bit compressed encoding

    The curve equation is gated by ``enabled`` so that disabled (all-zero)
    encodings stay satisfiable; the sign and range checks always apply.
    """
    y_bits = list(bits[:255])
    sign = LinearCombination.coerce(bits[255])
    assert_bits_less_than(cs, y_bits, P, f"{label} y below modulus")
    y = from_bits(y_bits)

    def _x(w):
        x = recover_x(w(y), w(sign))
        return 0 if x is None else x

    x = cs.hint(_x)
    x2 = cs.mul(x, x, f"{label} x^2")
    y2 = cs.mul(y, y, f"{label} y^2")
    x2y2 = cs.mul(x2, y2, f"{label} x^2*y^2")
    cs.enforce(enabled, x2 * A + y2 - 1 - x2y2 * D, 0, f"{label} on curve")

    x_bits = to_bits_strict(cs, x, f"{label} x")
    negative = bits_greater_than(cs, x_bits, HALF, f"{label} x sign")
    cs.assert_equal(negative, sign, f"{label} sign bit")
    return x, y


def assert_not_small_order(cs: ConstraintSystem, pt, enabled: Signal, label: str = "small order") -> CircuitPoint:
    """Multiply by the cofactor and reject the identity when enabled; returns 8*pt"""
    p2 = point_double(cs, pt, f"{label} 2P")
    p4 = point_double(cs, p2, f"{label} 4P")
    p8 = point_double(cs, p4, f"{label} 8P")
    cs.enforce(enabled, is_zero(cs, p8[0], f"{label} 8P.x"), 0, label)
    return p8
