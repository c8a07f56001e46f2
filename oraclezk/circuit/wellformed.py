"""
Active-count flags and the sentinel padding rule

Fixed-capacity arrays hold N active entries followed by padding. An entry
is padding iff it equals the sentinel (p - 1); every other value, including
zero, is a real entry.
"""

from typing import List, Sequence

from .field import SENTINEL
from .gadgets import assert_less_equal, is_equal, to_bits
from .r1cs import ConstraintSystem, LinearCombination, Signal


def active_flags(cs: ConstraintSystem, count: Signal, capacity: int) -> List[LinearCombination]:
    """
    Booleans ``active[i] = (i < count)`` for i in [0, capacity)

    Also constrains 0 <= count <= capacity.
    """
    width = capacity.bit_length() + 1
    to_bits(cs, count, width, "active count range")
    assert_less_equal(cs, count, capacity, width, "active count within capacity")
    count = LinearCombination.coerce(count)
    flags = []
    for i in range(capacity):
        bits = to_bits(cs, count + ((1 << width) - i - 1), width + 1, f"active flag {i}")
        flags.append(bits[width])
    return flags


def repeat_flags(flags: Sequence[LinearCombination], times: int) -> List[LinearCombination]:
    """Flags for an array with ``times`` entries per slot: ``i < times*N`` iff ``i // times < N``"""
    return [flags[i // times] for i in range(len(flags) * times)]


def assert_well_formed(cs: ConstraintSystem, values: Sequence[Signal], flags: Sequence[Signal],
                       label: str = "values") -> None:
    """Each entry is the sentinel iff its slot is inactive"""
    if len(values) != len(flags):
        raise ValueError("values and flags must have the same length")
    for i, (v, f) in enumerate(zip(values, flags)):
        with cs.scope("well-formedness", i):
            padding = is_equal(cs, v, SENTINEL, f"{label} sentinel test")
            cs.assert_equal(padding, 1 - LinearCombination.coerce(f), f"{label} padding matches active count")
