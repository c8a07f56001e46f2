"""
Base schemas for the oraclezk tool system
Provides uniform ToolResult and Meta structures for all tools
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ToolStatus(str, Enum):
    """Tool execution status"""
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class Meta(BaseModel):
    """Metadata for tool execution"""
    ts: datetime = Field(default_factory=_utcnow)
    duration_ms: int = 0
    provenance: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    inputs_hash: Optional[str] = None
    code_hash: Optional[str] = None
    circuit_digest: Optional[str] = None

    @field_serializer('ts')
    def _ser_ts(self, dt: datetime) -> str:
        return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ToolResult(BaseModel):
    """Uniform result structure for all oraclezk tools"""
    ok: bool = True
    status: ToolStatus = ToolStatus.SUCCESS
    data: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    meta: Meta = Field(default_factory=Meta)

    @classmethod
    def success(cls, data: Dict[str, Any], warnings: List[str] = None) -> "ToolResult":
        """Create successful result"""
        meta = Meta()
        if warnings:
            meta.warnings = warnings
        return cls(ok=True, status=ToolStatus.SUCCESS, data=data, meta=meta)

    @classmethod
    def error(cls, errors: List[str], data: Dict[str, Any] = None) -> "ToolResult":
        """Create error result"""
        return cls(ok=False, status=ToolStatus.ERROR, data=data or {}, errors=errors, meta=Meta())

    @classmethod
    def warning(cls, data: Dict[str, Any], warnings: List[str]) -> "ToolResult":
        """Create warning result (ok=True but with warnings)"""
        return cls(ok=True, status=ToolStatus.WARNING, data=data, meta=Meta(warnings=warnings))
