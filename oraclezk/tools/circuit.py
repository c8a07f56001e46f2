from __future__ import annotations
from typing import Any, Dict, List, Optional

from ..circuit.aggregate import build_circuit
from ..errors import ConstraintViolation, OracleZkError
from ..schemas.base import ToolResult
from ..schemas.circuit import CircuitInfo
from ..schemas.witness import SignedQuote, WitnessInput
from ..utils.config import load_params
from ..witness import build_witness, reference_outputs
from . import register


def _params(config: Optional[str], max_publishers: Optional[int], timestamp_threshold: Optional[int]):
    return load_params(config, max_publishers=max_publishers, timestamp_threshold=timestamp_threshold)


@register("circuit.info")
def circuit_info(config: Optional[str] = None, max_publishers: Optional[int] = None,
                 timestamp_threshold: Optional[int] = None) -> ToolResult:
    """
    Build the aggregate circuit and report its size

    Args:
        config: Path to a circuit YAML (defaults to the bundled config)
        max_publishers: Override the configured capacity
        timestamp_threshold: Override the configured staleness window

    Returns:
        ToolResult with wire count, constraint counts per group and digest
    """
    params = _params(config, max_publishers, timestamp_threshold)
    circuit = build_circuit(params)
    info = CircuitInfo(**circuit.info())
    if params.valid_pub_keys:
        result = ToolResult.warning(info.model_dump(), ["valid_pub_keys is declared but not enforced"])
    else:
        result = ToolResult.success(info.model_dump())
    result.meta.circuit_digest = info.digest
    return result


@register("circuit.check")
def circuit_check(witness: Dict[str, Any], config: Optional[str] = None,
                  max_publishers: Optional[int] = None, timestamp_threshold: Optional[int] = None,
                  limit: int = 20) -> ToolResult:
    """
    Evaluate a witness against the aggregate circuit

    Args:
        witness: Input JSON (N, price_model, prices, confs, timestamps,
            observed_online, A, R, S, fee)
        limit: Maximum number of violations to report

    Returns:
        ToolResult with the public outputs, or the failing constraints
    """
    try:
        params = _params(config, max_publishers, timestamp_threshold)
        circuit = build_circuit(params)
        parsed = WitnessInput.model_validate(witness)
        outputs = circuit.prove(parsed)
    except ConstraintViolation as e:
        shown = e.violations[:limit]
        return ToolResult.error(
            [v.describe() for v in shown],
            data={
                "satisfied": False,
                "violation_count": len(e.violations),
                "groups": e.groups,
                "violations": [v.to_dict() for v in shown],
            },
        )
    except (OracleZkError, ValueError) as e:
        return ToolResult.error([str(e)], data={"satisfied": False})

    return ToolResult.success({
        "satisfied": True,
        "outputs": outputs.model_dump(),
        "public_signals": [str(v) for v in outputs.as_list()],
    })


@register("witness.build")
def witness_build(quotes: List[Dict[str, Any]], fee: int = 0,
                  price_model: Optional[List[List[int]]] = None, config: Optional[str] = None,
                  max_publishers: Optional[int] = None,
                  timestamp_threshold: Optional[int] = None) -> ToolResult:
    """
    Pad signed quotes into a circuit witness

    Args:
        quotes: Signed quotes (price, confidence, timestamp, observed_online, a, r, s)
        fee: Fee to pass through as a public output
        price_model: Optional explicit model rows; defaults to bid/mid/ask per quote

    Returns:
        ToolResult with the witness JSON and the expected public outputs
    """
    params = _params(config, max_publishers, timestamp_threshold)
    signed = [SignedQuote(**q) for q in quotes]
    witness = build_witness(signed, params, fee=fee, price_model=price_model)
    expected = reference_outputs(signed, witness.price_model[:len(signed) * 3], fee)
    return ToolResult.success({
        "witness": witness.to_json_dict(),
        "expected": expected.model_dump(),
        "active": len(signed),
        "capacity": params.max_publishers,
    })
