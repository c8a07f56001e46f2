from __future__ import annotations
from typing import Union

from ..circuit import eddsa
from ..schemas.base import ToolResult
from ..schemas.witness import Quote
from . import register


@register("publisher.keygen")
def publisher_keygen(seed: str) -> ToolResult:
    """
    Derive a deterministic publisher key pair from a seed string

    Returns:
        ToolResult with the secret scalar, packed public key and its coordinates
    """
    if not seed:
        return ToolResult.error(["seed must be non-empty"])
    key = eddsa.keygen(seed.encode())
    return ToolResult.success({
        "secret": str(key.secret),
        "public_key": f"0x{key.packed:064x}",
        "x": str(key.public[0]),
        "y": str(key.public[1]),
    })


@register("publisher.sign")
def publisher_sign(secret: Union[str, int], price: int, confidence: int,
                   timestamp: int = 0, observed_online: int = 1) -> ToolResult:
    """
    Sign a quote's (price, confidence) with a publisher secret

    Returns:
        ToolResult with a signed quote ready for witness.build
    """
    quote = Quote(price=price, confidence=confidence, timestamp=timestamp, observed_online=observed_online)
    key = eddsa.keypair_from_secret(int(secret))
    sig = eddsa.sign(key, quote.price, quote.confidence)
    return ToolResult.success({
        **quote.model_dump(),
        "a": str(sig.a),
        "r": str(sig.r),
        "s": str(sig.s),
    })
