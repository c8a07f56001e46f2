"""
Confidence interval from the percentile triple
"""

from .gadgets import greater_than, to_bits
from .r1cs import ConstraintSystem, LinearCombination, Signal


def confidence_interval(cs: ConstraintSystem, p25: Signal, p50: Signal, p75: Signal, width: int) -> LinearCombination:
    """max(p50 - p25, p75 - p50), each half-interval checked non-negative"""
    left = LinearCombination.coerce(p50) - p25
    right = LinearCombination.coerce(p75) - p50
    to_bits(cs, left, width, "lower half-interval")
    to_bits(cs, right, width, "upper half-interval")
    wider = greater_than(cs, right, left, width, "upper wider")
    return left + cs.mul(wider, right - left, "interval select")


def reference_confidence(p25: int, p50: int, p75: int) -> int:
    return max(p50 - p25, p75 - p50)
