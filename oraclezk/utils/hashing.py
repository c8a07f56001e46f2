"""
Hashing utilities for deterministic tool execution and audit records
"""

import hashlib
import inspect
import json
from pathlib import Path
from typing import Any, Dict


def _digest(data: bytes, algorithm: str) -> str:
    if algorithm not in ("sha256", "sha1", "md5"):
        raise ValueError(f"Unsupported algorithm: {algorithm}")
    return hashlib.new(algorithm, data).hexdigest()


def hash_inputs(inputs: Dict[str, Any], algorithm: str = "sha256") -> str:
    """
    Create deterministic hash of tool inputs

    Args:
        inputs: Input dictionary to hash
        algorithm: Hashing algorithm ('sha256', 'sha1', 'md5')

    Returns:
        Hex string hash of inputs
    """
    serialized = json.dumps(inputs, sort_keys=True, default=str)
    return _digest(serialized.encode(), algorithm)


def hash_code(func_or_file, algorithm: str = "sha256") -> str:
    """
    Create hash of function source code or file contents

    Args:
        func_or_file: Function object or file path
        algorithm: Hashing algorithm

    Returns:
        Hex string hash of code
    """
    if callable(func_or_file):
        try:
            source = inspect.getsource(func_or_file)
        except (OSError, TypeError):
            source = getattr(func_or_file, "__name__", repr(func_or_file))
    elif isinstance(func_or_file, (str, Path)):
        with open(func_or_file, 'r') as f:
            source = f.read()
    else:
        source = str(func_or_file)
    return _digest(source.encode(), algorithm)


def content_hash(data: bytes, algorithm: str = "sha256") -> str:
    """Hash of binary content"""
    return _digest(data, algorithm)
