"""
Staleness check: every active timestamp within the threshold of the median
"""

from typing import Sequence

from .encoding import VALUE_BITS
from .gadgets import to_bits
from .percentile import select_percentile, sort_values
from .r1cs import ConstraintSystem, LinearCombination, Signal

TIMESTAMP_PAD = (1 << VALUE_BITS) - 1


def check_timestamps(cs: ConstraintSystem, masked: Sequence[Signal], flags: Sequence[Signal],
                     count: Signal, threshold: int) -> LinearCombination:
    """
    Constrain ``median - threshold < ts <= median`` for each active slot

    Args:
        masked: active-masked timestamps, already range checked to 64 bits
        flags: active flags per slot
        count: number of active slots
        threshold: staleness window, at least 1

    Returns:
        The median (lower median for even counts)
    """
    if not 1 <= threshold < 1 << VALUE_BITS:
        raise ValueError("timestamp threshold must lie in [1, 2^64)")

    padded = [LinearCombination.coerce(ts) + (1 - LinearCombination.coerce(f)) * TIMESTAMP_PAD
              for ts, f in zip(masked, flags)]
    ordered = sort_values(cs, padded, VALUE_BITS, "timestamp sort")
    median, _ = select_percentile(cs, ordered, count, 50, "timestamp median")

    for i, (ts, f) in enumerate(zip(masked, flags)):
        with cs.scope("staleness", i):
            age = cs.mul(f, median - ts, "age gate")
            to_bits(cs, age, VALUE_BITS, "not after median")
            to_bits(cs, LinearCombination.coerce(f) * (threshold - 1) - age, VALUE_BITS, "within threshold")
    return median
