"""
MiMC7 permutation and the multi-input sponge used as the signature challenge hash

Round constants: c[0] = 0, c[i] is the i-th link of a SHA-256 chain seeded
with ``MIMC_SEED`` and read as a big-endian integer reduced mod P. Off-circuit
signers must reproduce this exactly.
"""

import hashlib
from functools import lru_cache
from typing import List, Sequence

from .field import P
from .r1cs import ConstraintSystem, LinearCombination, Signal

MIMC_ROUNDS = 91
MIMC_SEED = b"oraclezk.mimc7"


@lru_cache(maxsize=None)
def round_constants(seed: bytes = MIMC_SEED, rounds: int = MIMC_ROUNDS) -> tuple:
    out = [0]
    h = hashlib.sha256(seed).digest()
    for _ in range(1, rounds):
        h = hashlib.sha256(h).digest()
        out.append(int.from_bytes(h, "big") % P)
    return tuple(out)


def mimc7(x: int, k: int) -> int:
    c = round_constants()
    t7 = 0
    for i in range(MIMC_ROUNDS):
        t = (x + k) if i == 0 else (t7 + k + c[i])
        t7 = pow(t % P, 7, P)
    return (t7 + k) % P


def multi_mimc7(inputs: Sequence[int], key: int = 0) -> int:
    r = key % P
    for x in inputs:
        r = (r + x + mimc7(x % P, r)) % P
    return r


def mimc7_gadget(cs: ConstraintSystem, x: Signal, k: Signal, label: str = "mimc7") -> LinearCombination:
    """Four constraints per round: t^2, t^4, t^6, t^7"""
    c = round_constants()
    x = LinearCombination.coerce(x)
    k = LinearCombination.coerce(k)
    t7 = None
    for i in range(MIMC_ROUNDS):
        t = x + k if i == 0 else t7 + k + c[i]
        t2 = cs.mul(t, t, f"{label} round {i} t^2")
        t4 = cs.mul(t2, t2, f"{label} round {i} t^4")
        t6 = cs.mul(t4, t2, f"{label} round {i} t^6")
        t7 = cs.mul(t6, t, f"{label} round {i} t^7")
    return t7 + k


def multi_mimc7_gadget(cs: ConstraintSystem, inputs: List[Signal], key: Signal = 0,
                       label: str = "challenge hash") -> LinearCombination:
    r = LinearCombination.coerce(key)
    for n, x in enumerate(inputs):
        r = r + x + mimc7_gadget(cs, x, r, f"{label} input {n}")
    return r
