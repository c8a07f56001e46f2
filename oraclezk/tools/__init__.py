"""
oraclezk tools registry and decorators
"""

import functools
import time
from typing import Any, Callable, Dict

from ..schemas.base import ToolResult
from ..utils.audit import AuditLogger
from ..utils.hashing import hash_code, hash_inputs

# Global tool registry
TOOL_REGISTRY: Dict[str, Callable[..., ToolResult]] = {}

# Global audit logger
audit_logger = AuditLogger()


def register(name: str):
    """
    Decorator to register a tool in the global registry

    The registered callable never raises: exceptions become
    ``ToolResult.error`` and every call is timed, hashed and audited.

    Args:
        name: Tool name (e.g., "circuit.check", "publisher.sign")
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(**kwargs) -> ToolResult:
            start_time = time.time()
            inputs_hash = hash_inputs(kwargs)
            code_hash = hash_code(func)

            try:
                result = func(**kwargs)
                if not isinstance(result, ToolResult):
                    result = ToolResult.success({"result": result})
            except Exception as e:
                result = ToolResult.error([f"{type(e).__name__}: {e}"])

            result.meta.duration_ms = int((time.time() - start_time) * 1000)
            result.meta.inputs_hash = inputs_hash
            result.meta.code_hash = code_hash
            result.meta.provenance = {
                "tool_name": name,
                "inputs_hash": inputs_hash,
                "version": "1.0"
            }
            audit_logger.log_tool_execution(name, kwargs, result, code_hash)
            return result

        TOOL_REGISTRY[name] = wrapper
        return wrapper
    return decorator


def get_tool(name: str) -> Callable[..., ToolResult]:
    """
    Get tool by name from registry

    Raises:
        KeyError: If tool not found
    """
    if name not in TOOL_REGISTRY:
        raise KeyError(f"Tool '{name}' not found in registry")
    return TOOL_REGISTRY[name]


def list_tools() -> Dict[str, str]:
    """Dictionary mapping tool names to the first line of their docstrings"""
    tools = {}
    for name, func in sorted(TOOL_REGISTRY.items()):
        doc = (func.__doc__ or "No description available").strip()
        tools[name] = doc.splitlines()[0]
    return tools


def execute_tool(name: str, **kwargs: Any) -> ToolResult:
    """Execute a tool by name with given arguments"""
    return get_tool(name)(**kwargs)


def _import_all_tools():
    """Import all tool modules to ensure they're registered"""
    from . import circuit  # noqa: F401
    from . import publisher  # noqa: F401


_import_all_tools()
