from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import List

class CircuitParams(BaseModel):
    max_publishers: int = Field(4, ge=1, le=64)        # fixed array capacity (Max)
    timestamp_threshold: int = Field(10, ge=1, lt=2**64)  # staleness window, same unit as timestamps
    valid_pub_keys: List[str] = Field(default_factory=list)  # packed key hex; declared, not enforced

    @field_validator("valid_pub_keys")
    @classmethod
    def _hex_keys(cls, keys: List[str]) -> List[str]:
        out = []
        for k in keys:
            try:
                value = int(k, 16)
            except ValueError:
                raise ValueError(f"public key {k!r} is not hex")
            if value >> 256:
                raise ValueError(f"public key {k!r} wider than 256 bits")
            out.append(k.lower())
        return out

class CircuitInfo(BaseModel):
    name: str
    max_publishers: int
    timestamp_threshold: int
    wires: int
    constraints: int
    constraints_by_group: dict
    public_outputs: List[str]
    digest: str
