"""
Off-circuit witness construction for the aggregate circuit

Turns a list of signed quotes into the padded input arrays the circuit
expects and computes the reference outputs the circuit should reproduce.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .circuit.confidence import reference_confidence
from .circuit.eddsa import SIGNATURE_BITS, Signature
from .circuit.field import SENTINEL
from .circuit.percentile import PERCENTILES, nearest_rank
from .circuit.price_model import ENTRIES_PER_QUOTE, Operation, reference_model
from .errors import WitnessError
from .schemas.circuit import CircuitParams
from .schemas.witness import PublicOutputs, SignedQuote, WitnessInput

logger = logging.getLogger(__name__)


def padding_signature_bits() -> Tuple[List[int], List[int], List[int]]:
    """Bit arrays for an empty slot: sentinel in S[0], zeros elsewhere"""
    zeros = [0] * SIGNATURE_BITS
    return list(zeros), list(zeros), [SENTINEL] + [0] * (SIGNATURE_BITS - 1)


def derived_values(quotes: Sequence[SignedQuote], model: Sequence[Sequence[int]]) -> List[int]:
    out = []
    for price_idx, conf_idx, op in model:
        out.append(Operation(op).apply(quotes[price_idx].price, quotes[conf_idx].confidence))
    return out


def reference_outputs(quotes: Sequence[SignedQuote], model: Sequence[Sequence[int]], fee: int = 0) -> PublicOutputs:
    """What the circuit outputs for these quotes, computed directly"""
    if not quotes:
        return PublicOutputs(p25=0, p50=0, p75=0, confidence=0, fee=fee)
    values = sorted(derived_values(quotes, model))
    p25, p50, p75 = (values[nearest_rank(q, len(values))] for q in PERCENTILES)
    return PublicOutputs(p25=p25, p50=p50, p75=p75,
                         confidence=reference_confidence(p25, p50, p75), fee=fee)


def build_witness(quotes: Sequence[SignedQuote], params: CircuitParams, fee: int = 0,
                  price_model: Optional[Sequence[Sequence[int]]] = None) -> WitnessInput:
    """
    Pad ``quotes`` to the circuit capacity

    Args:
        quotes: active quotes in slot order
        params: circuit parameters (capacity)
        fee: public fee passed through the circuit
        price_model: rows of (price_index, conf_index, operation); defaults to
            bid/mid/ask per quote ordered by derived value

    Raises:
        WitnessError: too many quotes, a negative bid, or a model of the wrong length
    """
    cap = params.max_publishers
    n = len(quotes)
    if n > cap:
        raise WitnessError(f"{n} quotes exceed capacity {cap}")

    if price_model is None:
        for i, q in enumerate(quotes):
            if q.price < q.confidence:
                raise WitnessError(f"quote {i}: price {q.price} below confidence {q.confidence}")
        price_model = reference_model([(q.price, q.confidence) for q in quotes])
    elif len(price_model) != n * ENTRIES_PER_QUOTE:
        raise WitnessError(f"price model must have {n * ENTRIES_PER_QUOTE} rows, got {len(price_model)}")

    a_bits, r_bits, s_bits = [], [], []
    for q in quotes:
        ab, rb, sb = Signature(q.a, q.r, q.s).bits()
        a_bits.append(ab)
        r_bits.append(rb)
        s_bits.append(sb)
    for _ in range(cap - n):
        ab, rb, sb = padding_signature_bits()
        a_bits.append(ab)
        r_bits.append(rb)
        s_bits.append(sb)

    pad = [SENTINEL] * (cap - n)
    rows = [list(row) for row in price_model] + [[SENTINEL] * 3 for _ in range((cap - n) * ENTRIES_PER_QUOTE)]
    logger.debug("built witness: %d active of %d slots", n, cap)
    return WitnessInput(
        n=n,
        price_model=rows,
        prices=[q.price for q in quotes] + pad,
        confs=[q.confidence for q in quotes] + pad,
        timestamps=[q.timestamp for q in quotes] + pad,
        observed_online=[q.observed_online for q in quotes] + pad,
        a=a_bits,
        r=r_bits,
        s=s_bits,
        fee=fee,
    )
