"""
Price model evaluation: each entry derives a bid, mid or ask from one quote

An entry ``(price_index, conf_index, operation)`` selects a price and a
confidence from the active slots and yields ``price - conf``, ``price`` or
``price + conf``. Padding entries take ``DERIVED_PAD`` so the full array can
be required to be non-decreasing.
"""

from enum import IntEnum
from typing import List, Sequence

from .encoding import VALUE_BITS
from .gadgets import assert_boolean, inner_product, one_hot, to_bits
from .percentile import assert_sorted
from .r1cs import ConstraintSystem, LinearCombination, Signal, lc_sum

DERIVED_BITS = VALUE_BITS + 2
DERIVED_PAD = 1 << (VALUE_BITS + 1)
ENTRIES_PER_QUOTE = 3


class Operation(IntEnum):
    SUBTRACT_CONF = 0
    PASSTHROUGH = 1
    ADD_CONF = 2

    def apply(self, price: int, conf: int) -> int:
        if self is Operation.SUBTRACT_CONF:
            return price - conf
        if self is Operation.ADD_CONF:
            return price + conf
        return price


def _lookup(cs, table, slot_flags, idx, active, label):
    selectors = one_hot(cs, idx, len(table), f"{label} index")
    hits_active = inner_product(cs, selectors, slot_flags, f"{label} active")
    cs.enforce(active, 1 - hits_active, 0, f"{label} references an active slot")
    return inner_product(cs, selectors, table, f"{label} value")


def _operation_selectors(cs, op, active):
    """Boolean selectors for SUBTRACT_CONF, PASSTHROUGH and ADD_CONF; all zero on padding"""
    s = [cs.hint(lambda w, k=k: int(w(active) == 1 and w(op) == k)) for k in range(3)]
    for k, sk in enumerate(s):
        assert_boolean(cs, sk, f"operation selector {k}")
    cs.assert_equal(lc_sum(s), active, "single operation")
    cs.assert_equal(s[1] + s[2] * 2, op, "operation decode")
    return s


def evaluate_price_model(cs: ConstraintSystem,
                         model: Sequence[Sequence[Signal]],
                         prices: Sequence[Signal],
                         confs: Sequence[Signal],
                         slot_flags: Sequence[Signal],
                         entry_flags: Sequence[Signal]) -> List[LinearCombination]:
    """
    Derived values for every model entry, asserted non-decreasing

    Args:
        model: rows of (price_index, conf_index, operation)
        prices: active-masked prices per slot
        confs: active-masked confidences per slot
        slot_flags: active flags per slot
        entry_flags: active flags per model entry

    Returns:
        The padded derived array, each value range checked to DERIVED_BITS
    """
    derived = []
    for i, (row, active) in enumerate(zip(model, entry_flags)):
        with cs.scope("sortedness", i):
            active = LinearCombination.coerce(active)
            price_idx = cs.mul(active, row[0], "price index gate")
            conf_idx = cs.mul(active, row[1], "conf index gate")
            op = cs.mul(active, row[2], "operation gate")

            price = _lookup(cs, prices, slot_flags, price_idx, active, "price lookup")
            conf = _lookup(cs, confs, slot_flags, conf_idx, active, "conf lookup")

            s = _operation_selectors(cs, op, active)

            value = cs.mul(active, price, "price gate") + cs.mul(s[2] - s[0], conf, "conf term")
            value = value + (1 - active) * DERIVED_PAD
            to_bits(cs, value, DERIVED_BITS, "derived range")
            derived.append(value)

    with cs.scope("sortedness"):
        assert_sorted(cs, derived, DERIVED_BITS, "derived order")
    return derived


def reference_model(quotes) -> List[tuple]:
    """
    Default model: bid, mid and ask for each quote, ordered by derived value

    Args:
        quotes: sequence of (price, confidence) pairs

    Returns:
        Rows of (price_index, conf_index, operation)
    """
    rows = []
    for j, (price, conf) in enumerate(quotes):
        for op in Operation:
            rows.append((op.apply(price, conf), j, int(op)))
    rows.sort()
    return [(j, j, op) for _, j, op in rows]
