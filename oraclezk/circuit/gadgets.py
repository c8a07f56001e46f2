"""
Reusable constraint gadgets: bit decomposition, comparison, selection

All gadgets take the ConstraintSystem as their first argument and return
linear combinations. Boolean outputs are constrained to {0, 1} either
directly or because they are a bit of a checked decomposition.
"""

from typing import List, Sequence

from ..errors import CircuitBuildError
from .field import P, inv
from .r1cs import ConstraintSystem, LinearCombination, Signal, lc_sum

MAX_SAFE_BITS = P.bit_length() - 1  # 253: 2**253 < P, so decompositions are unique
STRICT_BITS = P.bit_length()  # 254


def assert_boolean(cs: ConstraintSystem, b: Signal, label: str = "boolean") -> None:
    cs.enforce(b, LinearCombination.coerce(b) - 1, 0, label)


def from_bits(bits: Sequence[Signal]) -> LinearCombination:
    return lc_sum(LinearCombination.coerce(b) * (1 << i) for i, b in enumerate(bits))


def to_bits(cs: ConstraintSystem, x: Signal, n: int, label: str = "range") -> List[LinearCombination]:
    """
    Little-endian decomposition of x into n checked bits

    Unsatisfiable unless 0 <= x < 2**n. Restricted to n <= 253 so the
    recomposition cannot alias through the modulus; use to_bits_strict for
    full-width field elements.
    """
    if n > MAX_SAFE_BITS:
        raise CircuitBuildError(f"to_bits width {n} exceeds {MAX_SAFE_BITS}; use to_bits_strict")
    return _decompose(cs, x, n, label)


def _decompose(cs, x, n, label):
    x = LinearCombination.coerce(x)
    bits = []
    for i in range(n):
        b = cs.hint(lambda w, i=i: (w(x) >> i) & 1)
        assert_boolean(cs, b, f"{label} bit {i}")
        bits.append(b)
    cs.assert_equal(from_bits(bits), x, f"{label} recomposition")
    return bits


def to_bits_strict(cs: ConstraintSystem, x: Signal, label: str = "strict range") -> List[LinearCombination]:
    """254-bit decomposition of any field element, with the integer forced below P"""
    bits = _decompose(cs, x, STRICT_BITS, label)
    assert_bits_less_than(cs, bits, P, f"{label} below modulus")
    return bits


def bits_less_than(cs: ConstraintSystem, bits: Sequence[Signal], c: int, label: str = "compare") -> LinearCombination:
    """
    Boolean that is 1 iff the integer encoded by ``bits`` is below constant c

    Scans from the most significant bit, keeping a running "prefix equal"
    flag; one constraint per bit after the first non-constant step.
    """
    if c >= 1 << len(bits):
        return LinearCombination.constant(1)
    eq = LinearCombination.constant(1)
    lt = LinearCombination.constant(0)
    for i in reversed(range(len(bits))):
        b = LinearCombination.coerce(bits[i])
        t = cs.mul(eq, b, f"{label} prefix {i}")
        if (c >> i) & 1:
            lt = lt + eq - t
            eq = t
        else:
            eq = eq - t
    return lt


def assert_bits_less_than(cs: ConstraintSystem, bits: Sequence[Signal], c: int, label: str = "compare") -> None:
    cs.assert_equal(bits_less_than(cs, bits, c, label), 1, label)


def bits_greater_than(cs: ConstraintSystem, bits: Sequence[Signal], c: int, label: str = "compare") -> LinearCombination:
    return 1 - bits_less_than(cs, bits, c + 1, label)


def is_zero(cs: ConstraintSystem, x: Signal, label: str = "is zero") -> LinearCombination:
    x = LinearCombination.coerce(x)
    if x.is_constant():
        return LinearCombination.constant(int(x.constant_value == 0))
    x_inv = cs.hint(lambda w: inv(w(x)))
    out = 1 - cs.mul(x, x_inv, f"{label} inverse")
    cs.enforce(x, out, 0, label)
    return out


def is_equal(cs: ConstraintSystem, x: Signal, y: Signal, label: str = "is equal") -> LinearCombination:
    return is_zero(cs, LinearCombination.coerce(x) - y, label)


def less_than(cs: ConstraintSystem, x: Signal, y: Signal, n: int, label: str = "less than") -> LinearCombination:
    """Boolean x < y for inputs already known to lie in [0, 2**n)"""
    bits = to_bits(cs, (1 << n) + LinearCombination.coerce(x) - y, n + 1, label)
    return 1 - bits[n]


def greater_than(cs: ConstraintSystem, x: Signal, y: Signal, n: int, label: str = "greater than") -> LinearCombination:
    return less_than(cs, y, x, n, label)


def assert_less_equal(cs: ConstraintSystem, x: Signal, y: Signal, n: int, label: str = "less or equal") -> None:
    """Unsatisfiable unless 0 <= y - x < 2**n"""
    to_bits(cs, LinearCombination.coerce(y) - x, n, label)


def select(cs: ConstraintSystem, b: Signal, when_true: Signal, when_false: Signal, label: str = "select") -> LinearCombination:
    f = LinearCombination.coerce(when_false)
    return f + cs.mul(b, LinearCombination.coerce(when_true) - f, label)


def one_hot(cs: ConstraintSystem, idx: Signal, size: int, label: str = "one-hot") -> List[LinearCombination]:
    """
    ``size`` boolean selectors with exactly one set, at position idx

    Unsatisfiable when idx is not in [0, size).
    """
    idx = LinearCombination.coerce(idx)
    eqs = []
    for j in range(size):
        e = cs.hint(lambda w, j=j: int(w(idx) == j))
        assert_boolean(cs, e, f"{label} selector {j}")
        eqs.append(e)
    cs.assert_equal(lc_sum(eqs), 1, f"{label} single selection")
    cs.assert_equal(lc_sum(e * j for j, e in enumerate(eqs)), idx, f"{label} position")
    return eqs


def inner_product(cs: ConstraintSystem, selectors: Sequence[Signal], values: Sequence[Signal], label: str = "dot") -> LinearCombination:
    return lc_sum(cs.mul(s, v, f"{label} term {j}") for j, (s, v) in enumerate(zip(selectors, values)))


def mask_bits(cs: ConstraintSystem, bits: Sequence[Signal], enabled: Signal, label: str = "masked bit") -> List[LinearCombination]:
    """
    Gate raw input bits by an enable flag

    When enabled the result equals the input and the input must be boolean;
    when disabled the result is zero and the input is unconstrained.
    """
    out = []
    for i, b in enumerate(bits):
        t = cs.mul(enabled, b, f"{label} {i} gate")
        cs.enforce(t, LinearCombination.coerce(b) - 1, 0, f"{label} {i} boolean")
        out.append(t)
    return out
