"""
Fixed-width bit encoding of quote fields
"""

from typing import List

from .gadgets import from_bits, to_bits
from .r1cs import ConstraintSystem, LinearCombination, Signal

VALUE_BITS = 64
MESSAGE_BITS = 2 * VALUE_BITS


def encode64(cs: ConstraintSystem, x: Signal, label: str = "encode64") -> List[LinearCombination]:
    """Little-endian 64-bit encoding; unsatisfiable when x does not fit"""
    return to_bits(cs, x, VALUE_BITS, label)


def message_bits(price_bits: List[LinearCombination], conf_bits: List[LinearCombination]) -> List[LinearCombination]:
    """The signed message: price bits followed by confidence bits"""
    return list(price_bits) + list(conf_bits)


def message_element(bits: List[Signal]) -> LinearCombination:
    return from_bits(bits)


def pack_message(price: int, confidence: int) -> int:
    """Off-circuit field element of the 128-bit message"""
    if not (0 <= price < 1 << VALUE_BITS and 0 <= confidence < 1 << VALUE_BITS):
        raise ValueError("price and confidence must fit in 64 bits")
    return price | (confidence << VALUE_BITS)
