"""
Circuit parameter loading from YAML
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import CircuitBuildError
from ..schemas.circuit import CircuitParams

logger = logging.getLogger(__name__)

CONFIG_ENV = "ORACLEZK_CONFIG"
DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "circuit.yaml"


def load_params(path: Optional[Union[str, Path]] = None, **overrides) -> CircuitParams:
    """
    Load circuit parameters

    Args:
        path: YAML file; defaults to $ORACLEZK_CONFIG, then the bundled config
        **overrides: values that win over the file (None values are ignored)

    Raises:
        CircuitBuildError: the file is unreadable or fails validation
    """
    if path is None:
        path = os.getenv(CONFIG_ENV) or DEFAULT_CONFIG
    path = Path(path)

    raw = {}
    if path.exists():
        try:
            with open(path, 'r') as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CircuitBuildError(f"invalid YAML in {path}: {e}")
        if not isinstance(raw, dict):
            raise CircuitBuildError(f"{path} must contain a mapping")
        raw = raw.get("circuit", raw)
    else:
        logger.debug("config %s not found, using defaults", path)

    raw.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return CircuitParams(**raw)
    except ValidationError as e:
        raise CircuitBuildError(f"invalid circuit parameters: {e}")
