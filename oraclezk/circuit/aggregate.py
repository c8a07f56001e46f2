"""
Top-level price aggregation circuit

Wires the sub-circuits together for a fixed publisher capacity:

1. active flags from N, sentinel padding on every per-slot array
2. 64-bit encoding of the active-masked quote fields and the fee
3. one signature check per slot over ``price || confidence``
4. staleness of every active timestamp against the median
5. price model evaluation and sortedness of the derived array
6. p25 / p50 / p75 over the derived array and the confidence interval

Public outputs, in order: p25, p50, p75, confidence, fee.
"""

import logging
from typing import Dict, List, Optional, Union

from ..errors import CircuitBuildError, ConstraintViolation, Violation
from ..schemas.circuit import CircuitParams
from ..schemas.witness import PublicOutputs, WitnessInput
from .confidence import confidence_interval
from .eddsa import SIGNATURE_BITS, verify_gadget
from .encoding import encode64, message_bits
from .percentile import percentiles
from .price_model import DERIVED_BITS, ENTRIES_PER_QUOTE, evaluate_price_model
from .r1cs import ConstraintSystem, Witness
from .timestamps import check_timestamps
from .wellformed import active_flags, assert_well_formed, repeat_flags

logger = logging.getLogger(__name__)

OUTPUTS = ("p25", "p50", "p75", "confidence", "fee")


class AggregateCircuit:
    """
    The constraint system for one ``(max_publishers, timestamp_threshold)`` pair

    Args:
        params: Circuit parameters; see CircuitParams
    """

    def __init__(self, params: CircuitParams):
        self.params = params
        if params.valid_pub_keys:
            logger.warning("valid_pub_keys is declared (%d keys) but not enforced by the circuit",
                           len(params.valid_pub_keys))
        self.cs = ConstraintSystem(f"aggregate[{params.max_publishers}]")
        self._build()
        logger.debug("built %s: %d wires, %d constraints %s", self.cs.name,
                     self.cs.num_wires, len(self.cs.constraints), self.cs.stats())

    @property
    def capacity(self) -> int:
        return self.params.max_publishers

    def _build(self) -> None:
        cs = self.cs
        cap = self.capacity
        if cap < 1:
            raise CircuitBuildError("max_publishers must be at least 1")

        n = cs.input("N")
        model = cs.input("price_model", cap * ENTRIES_PER_QUOTE, 3)
        prices = cs.input("prices", cap)
        confs = cs.input("confs", cap)
        timestamps = cs.input("timestamps", cap)
        online = cs.input("observed_online", cap)
        a_bits = cs.input("A", cap, SIGNATURE_BITS)
        r_bits = cs.input("R", cap, SIGNATURE_BITS)
        s_bits = cs.input("S", cap, SIGNATURE_BITS)
        fee = cs.input("fee")

        with cs.scope("well-formedness"):
            flags = active_flags(cs, n, cap)
            entry_flags = repeat_flags(flags, ENTRIES_PER_QUOTE)
            assert_well_formed(cs, prices, flags, "prices")
            assert_well_formed(cs, confs, flags, "confs")
            assert_well_formed(cs, timestamps, flags, "timestamps")
            assert_well_formed(cs, online, flags, "observed_online")
            assert_well_formed(cs, [s[0] for s in s_bits], flags, "S low bit")
            for col, name in enumerate(("price_index", "conf_index", "operation")):
                assert_well_formed(cs, [row[col] for row in model], entry_flags, f"price_model {name}")

        prices_m, confs_m, ts_m, messages = [], [], [], []
        for i in range(cap):
            with cs.scope("encoding", i):
                p = cs.mul(flags[i], prices[i], "price gate")
                c = cs.mul(flags[i], confs[i], "conf gate")
                t = cs.mul(flags[i], timestamps[i], "timestamp gate")
                o = cs.mul(flags[i], online[i], "online gate")
                p_bits = encode64(cs, p, "price")
                c_bits = encode64(cs, c, "confidence")
                encode64(cs, t, "timestamp")
                encode64(cs, o, "observed_online")
            prices_m.append(p)
            confs_m.append(c)
            ts_m.append(t)
            messages.append(message_bits(p_bits, c_bits))
        with cs.scope("encoding"):
            encode64(cs, fee, "fee")

        for i in range(cap):
            with cs.scope("signature", i):
                verify_gadget(cs, a_bits[i], r_bits[i], s_bits[i], messages[i], flags[i])

        with cs.scope("staleness"):
            self.median = check_timestamps(cs, ts_m, flags, n, self.params.timestamp_threshold)

        derived = evaluate_price_model(cs, model, prices_m, confs_m, flags, entry_flags)

        with cs.scope("aggregation"):
            p25, p50, p75 = percentiles(cs, derived, n * ENTRIES_PER_QUOTE, DERIVED_BITS)
            conf = confidence_interval(cs, p25, p50, p75, DERIVED_BITS)

        with cs.scope("public"):
            for name, signal in zip(OUTPUTS, (p25, p50, p75, conf, fee)):
                cs.expose(name, signal)

    # -- evaluation -------------------------------------------------------

    def _inputs(self, witness: Union[WitnessInput, Dict]) -> Dict[str, object]:
        if not isinstance(witness, WitnessInput):
            witness = WitnessInput.model_validate(witness)
        return witness.to_circuit_inputs()

    def solve(self, witness: Union[WitnessInput, Dict]) -> Witness:
        return self.cs.solve(self._inputs(witness))

    def check(self, witness: Union[WitnessInput, Dict], limit: Optional[int] = None) -> List[Violation]:
        return self.cs.check(self.solve(witness), limit)

    def prove(self, witness: Union[WitnessInput, Dict]) -> PublicOutputs:
        """
        Evaluate the circuit and return its public outputs

        Raises:
            WitnessError: malformed witness input
            ConstraintViolation: the witness does not satisfy the circuit
        """
        try:
            solved = self.cs.prove(self._inputs(witness))
        except ConstraintViolation as exc:
            logger.info("witness rejected: %s", exc.first.describe())
            raise
        return PublicOutputs(**solved.outputs())

    def info(self) -> Dict[str, object]:
        return {
            "name": self.cs.name,
            "max_publishers": self.capacity,
            "timestamp_threshold": self.params.timestamp_threshold,
            "wires": self.cs.num_wires,
            "constraints": len(self.cs.constraints),
            "constraints_by_group": self.cs.stats(),
            "public_outputs": list(OUTPUTS),
            "digest": self.cs.digest(),
        }


_CACHE: Dict[tuple, AggregateCircuit] = {}


def build_circuit(params: CircuitParams) -> AggregateCircuit:
    """Build once per (max_publishers, timestamp_threshold, valid_pub_keys)"""
    key = (params.max_publishers, params.timestamp_threshold, tuple(params.valid_pub_keys))
    if key not in _CACHE:
        _CACHE[key] = AggregateCircuit(params)
    return _CACHE[key]
