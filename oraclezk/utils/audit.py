"""
Audit utilities for tool execution tracking and reproducibility

Runs are written under ``$ORACLEZK_RUNS_DIR`` (one directory per run, a
manifest plus one JSON record per tool execution). With the variable unset
the logger only emits log records and touches no files.
"""

import json
import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..schemas.base import ToolResult
from .hashing import content_hash, hash_inputs

logger = logging.getLogger(__name__)

RUNS_ENV = "ORACLEZK_RUNS_DIR"


def _summarize(value: Any) -> Any:
    """Keep audit records small: long arrays (signature bits) become a hash"""
    if isinstance(value, list) and len(value) > 16:
        blob = json.dumps(value, sort_keys=True, default=str).encode()
        return {"_type": "list", "len": len(value), "sha256": content_hash(blob)}
    if isinstance(value, dict):
        return {k: _summarize(v) for k, v in value.items()}
    return value


class AuditLogger:
    """
    Tracks tool executions for reproducibility and debugging
    """

    def __init__(self, runs_dir: Optional[Path] = None):
        env_dir = os.getenv(RUNS_ENV)
        if runs_dir is None and env_dir:
            runs_dir = Path(env_dir)
        self.runs_dir = runs_dir
        self.current_run_id = None
        self.current_run_dir = None

    @property
    def enabled(self) -> bool:
        return self.runs_dir is not None

    def start_run(self, run_id: str = None) -> str:
        """Start a new audit run"""
        if run_id is None:
            run_id = f"RUN_{datetime.now().strftime('%Y_%m_%d_%H%M%S')}"

        self.current_run_id = run_id
        if not self.enabled:
            return run_id

        self.current_run_dir = self.runs_dir / run_id
        self.current_run_dir.mkdir(parents=True, exist_ok=True)
        manifest = {
            "run_id": run_id,
            "start_time": datetime.now().isoformat(),
            "tools_executed": [],
            "total_duration_ms": 0,
            "status": "running"
        }
        self._write_manifest(manifest)
        return run_id

    def log_tool_execution(self, tool_name: str, inputs: Dict[str, Any],
                           result: ToolResult, func_code_hash: str = None) -> None:
        """Log a tool execution"""
        logger.info("tool %s ok=%s duration_ms=%d", tool_name, result.ok, result.meta.duration_ms)
        if not self.enabled:
            return
        if not self.current_run_id or self.current_run_dir is None:
            self.start_run(self.current_run_id)

        execution = {
            "tool_name": tool_name,
            "timestamp": datetime.now().isoformat(),
            "inputs": _summarize(inputs),
            "inputs_hash": hash_inputs(inputs),
            "code_hash": func_code_hash,
            "result": {
                "ok": result.ok,
                "status": result.status.value,
                "data_keys": list(result.data.keys()),
                "errors": result.errors,
                "warnings": result.meta.warnings,
                "duration_ms": result.meta.duration_ms
            }
        }

        exec_file = self.current_run_dir / f"{tool_name}_{time.time_ns()}.json"
        with open(exec_file, 'w') as f:
            json.dump(execution, f, indent=2, default=str)

        self._update_manifest_with_execution(execution)

    def end_run(self, status: str = "completed") -> None:
        """End the current audit run"""
        if not self.current_run_id:
            return

        if self.enabled:
            manifest = self._read_manifest()
            manifest["end_time"] = datetime.now().isoformat()
            manifest["status"] = status
            if "start_time" in manifest:
                start_time = datetime.fromisoformat(manifest["start_time"])
                end_time = datetime.fromisoformat(manifest["end_time"])
                manifest["total_duration_ms"] = int((end_time - start_time).total_seconds() * 1000)
            self._write_manifest(manifest)

        self.current_run_id = None
        self.current_run_dir = None

    def get_run_summary(self, run_id: str = None) -> Dict[str, Any]:
        """Get summary of a specific run"""
        run_id = run_id or self.current_run_id
        if not run_id or not self.enabled:
            return {}

        manifest_file = self.runs_dir / run_id / "manifest.json"
        if not manifest_file.exists():
            return {}
        with open(manifest_file, 'r') as f:
            return json.load(f)

    def list_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        """List recent runs"""
        if not self.enabled or not self.runs_dir.exists():
            return []
        runs = []
        for run_dir in sorted(self.runs_dir.iterdir(), reverse=True):
            if run_dir.is_dir() and len(runs) < limit:
                summary = self.get_run_summary(run_dir.name)
                if summary:
                    runs.append(summary)
        return runs

    def _read_manifest(self) -> Dict[str, Any]:
        if not self.current_run_dir:
            return {}
        manifest_file = self.current_run_dir / "manifest.json"
        if not manifest_file.exists():
            return {}
        with open(manifest_file, 'r') as f:
            return json.load(f)

    def _write_manifest(self, manifest: Dict[str, Any]) -> None:
        if not self.current_run_dir:
            return
        with open(self.current_run_dir / "manifest.json", 'w') as f:
            json.dump(manifest, f, indent=2)

    def _update_manifest_with_execution(self, execution: Dict[str, Any]) -> None:
        manifest = self._read_manifest()
        manifest.setdefault("tools_executed", []).append({
            "tool_name": execution["tool_name"],
            "timestamp": execution["timestamp"],
            "inputs_hash": execution["inputs_hash"],
            "code_hash": execution.get("code_hash"),
            "ok": execution["result"]["ok"],
            "duration_ms": execution["result"]["duration_ms"]
        })
        self._write_manifest(manifest)
