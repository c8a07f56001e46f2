"""
Nearest-rank percentile selection over a sorted, padded array

For M active entries and percentile q the selected element sits at 0-based
index ``ceil(q * M / 100) - 1``. Padding entries must compare greater than
or equal to every active entry so they occupy the tail after sorting.
"""

from typing import List, Sequence, Tuple

from .gadgets import assert_boolean, assert_less_equal, inner_product, is_zero, one_hot, to_bits
from .r1cs import ConstraintSystem, LinearCombination, Signal, lc_sum

PERCENTILES = (25, 50, 75)
_REMAINDER_BITS = 7  # 100*rank - q*M lies in [0, 99]


def nearest_rank(q: int, m: int) -> int:
    """0-based nearest-rank index; 0 when there are no entries"""
    if m == 0:
        return 0
    return (q * m + 99) // 100 - 1


def assert_sorted(cs: ConstraintSystem, values: Sequence[Signal], width: int, label: str = "sorted") -> None:
    """Non-decreasing order; every value must already be known to fit ``width`` bits"""
    for i in range(1, len(values)):
        assert_less_equal(cs, values[i - 1], values[i], width, f"{label} {i - 1}<={i}")


def sort_values(cs: ConstraintSystem, values: Sequence[Signal], width: int,
                label: str = "sort") -> List[LinearCombination]:
    """
    Constrained sorted copy of ``values`` via a boolean permutation matrix

    ``perm[i][j] = 1`` places input j at output i. Rows and columns each sum
    to one, and the output is asserted non-decreasing.
    """
    values = [LinearCombination.coerce(v) for v in values]
    n = len(values)

    def _order(w):
        return sorted(range(n), key=lambda j: (w(values[j]), j))

    perm = []
    for i in range(n):
        row = []
        for j in range(n):
            e = cs.hint(lambda w, i=i, j=j: int(_order(w)[i] == j))
            assert_boolean(cs, e, f"{label} perm[{i}][{j}]")
            row.append(e)
        cs.assert_equal(lc_sum(row), 1, f"{label} row {i}")
        perm.append(row)
    for j in range(n):
        cs.assert_equal(lc_sum(perm[i][j] for i in range(n)), 1, f"{label} column {j}")

    out = [inner_product(cs, perm[i], values, f"{label} output {i}") for i in range(n)]
    assert_sorted(cs, out, width, f"{label} order")
    return out


def rank_index(cs: ConstraintSystem, q: int, count: Signal, label: str = "rank") -> Tuple[LinearCombination, LinearCombination]:
    """
    Constrained nearest-rank index and an emptiness flag

    Returns:
        (index, empty) where ``empty`` is 1 iff count == 0 and the index is 0
    """
    count = LinearCombination.coerce(count)
    rank = cs.hint(lambda w: (q * w(count) + 99) // 100)
    remainder = rank * 100 - count * q
    to_bits(cs, remainder, _REMAINDER_BITS, f"{label} p{q} ceiling low")
    to_bits(cs, 99 - remainder, _REMAINDER_BITS, f"{label} p{q} ceiling high")
    empty = is_zero(cs, count, f"{label} p{q} empty")
    return rank - 1 + empty, empty


def select_percentile(cs: ConstraintSystem, sorted_values: Sequence[Signal], count: Signal, q: int,
                      label: str = "percentile") -> Tuple[LinearCombination, LinearCombination]:
    """
    Value at the nearest-rank position of ``sorted_values``

    Returns:
        (value, empty); callers mask the value when the array is empty
    """
    idx, empty = rank_index(cs, q, count, label)
    selectors = one_hot(cs, idx, len(sorted_values), f"{label} p{q} index")
    return inner_product(cs, selectors, sorted_values, f"{label} p{q} value"), empty


def percentiles(cs: ConstraintSystem, sorted_values: Sequence[Signal], count: Signal, width: int,
                qs: Sequence[int] = PERCENTILES, label: str = "percentile") -> List[LinearCombination]:
    """
    Masked percentiles of an already sorted array

    Sortedness is re-asserted on the input; outputs are zero when count is 0.
    """
    assert_sorted(cs, sorted_values, width, f"{label} input order")
    out = []
    for q in qs:
        value, empty = select_percentile(cs, sorted_values, count, q, label)
        out.append(cs.mul(1 - empty, value, f"{label} p{q} empty mask"))
    return out
