"""
Witness input and public output schemas

Numbers may arrive as JSON integers or decimal strings (field elements do
not fit a float). Every value must already be a canonical field element:
padding is the element p - 1, never the literal -1.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..circuit.field import P

U64 = 1 << 64


def _to_int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{where}: booleans are not field elements")
    if isinstance(value, int):
        out = value
    elif isinstance(value, str):
        try:
            out = int(value.strip(), 0) if value.strip().lower().startswith("0x") else int(value.strip(), 10)
        except ValueError:
            raise ValueError(f"{where}: {value!r} is not an integer")
    else:
        raise ValueError(f"{where}: expected integer or decimal string, got {type(value).__name__}")
    if not 0 <= out < P:
        raise ValueError(f"{where}: {out} is outside the field; encode -1 as p-1")
    return out


def _normalize(value: Any, where: str):
    if isinstance(value, (list, tuple)):
        return [_normalize(v, f"{where}[{i}]") for i, v in enumerate(value)]
    return _to_int(value, where)


class WitnessInput(BaseModel):
    """Private inputs of the aggregate circuit, keyed exactly like its input JSON"""
    model_config = ConfigDict(populate_by_name=True)

    n: int = Field(alias="N")
    price_model: List[List[int]]
    prices: List[int]
    confs: List[int]
    timestamps: List[int]
    observed_online: List[int]
    a: List[List[int]] = Field(alias="A")
    r: List[List[int]] = Field(alias="R")
    s: List[List[int]] = Field(alias="S")
    fee: int = 0

    @field_validator("n", "price_model", "prices", "confs", "timestamps", "observed_online",
                     "a", "r", "s", "fee", mode="before")
    @classmethod
    def _field_elements(cls, value, info):
        return _normalize(value, info.field_name)

    @model_validator(mode="after")
    def _consistent_capacity(self) -> "WitnessInput":
        cap = len(self.prices)
        for name in ("confs", "timestamps", "observed_online", "a", "r", "s"):
            if len(getattr(self, name)) != cap:
                raise ValueError(f"{name} has {len(getattr(self, name))} slots, prices has {cap}")
        if len(self.price_model) != 3 * cap:
            raise ValueError(f"price_model must have {3 * cap} rows, got {len(self.price_model)}")
        for i, row in enumerate(self.price_model):
            if len(row) != 3:
                raise ValueError(f"price_model[{i}] must have 3 columns")
        return self

    @property
    def capacity(self) -> int:
        return len(self.prices)

    def to_circuit_inputs(self) -> Dict[str, Any]:
        return {
            "N": self.n,
            "price_model": self.price_model,
            "prices": self.prices,
            "confs": self.confs,
            "timestamps": self.timestamps,
            "observed_online": self.observed_online,
            "A": self.a,
            "R": self.r,
            "S": self.s,
            "fee": self.fee,
        }

    def to_json_dict(self) -> Dict[str, Any]:
        """Input JSON with every number as a decimal string"""
        def _dump(v):
            return [_dump(x) for x in v] if isinstance(v, list) else str(v)
        return {k: _dump(v) for k, v in self.to_circuit_inputs().items()}


class Quote(BaseModel):
    price: int = Field(ge=0, lt=U64)
    confidence: int = Field(ge=0, lt=U64)
    timestamp: int = Field(ge=0, lt=U64)
    observed_online: int = Field(1, ge=0, lt=U64)


class SignedQuote(Quote):
    """A quote with its publisher signature (packed A, R and scalar S)"""
    publisher: Optional[str] = None
    a: int = Field(ge=0, lt=2**256)
    r: int = Field(ge=0, lt=2**256)
    s: int = Field(ge=0, lt=2**256)

    @field_validator("a", "r", "s", mode="before")
    @classmethod
    def _parse_int(cls, value, info):
        if isinstance(value, str):
            text = value.strip()
            return int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        return value


class PublicOutputs(BaseModel):
    p25: int
    p50: int
    p75: int
    confidence: int
    fee: int

    def as_list(self) -> List[int]:
        return [self.p25, self.p50, self.p75, self.confidence, self.fee]
