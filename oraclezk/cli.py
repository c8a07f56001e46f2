"""
oraclezk CLI using Typer for tool execution
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .schemas.base import ToolResult
from .tools import TOOL_REGISTRY, audit_logger, execute_tool, list_tools

app = typer.Typer(help="oraclezk CLI - private price aggregation circuit tools")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _emit(result: ToolResult, pretty: bool) -> None:
    payload = result.model_dump(mode="json")
    typer.echo(json.dumps(payload, indent=2 if pretty else None))
    if not result.ok:
        raise typer.Exit(code=1)


def _read_json(path: Path):
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"❌ Cannot read {path}: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def run(
    tool: str = typer.Argument(..., help="Tool name (e.g., circuit.info, publisher.sign)"),
    json_args: str = typer.Argument(..., help="JSON string with tool arguments"),
    run_id: Optional[str] = typer.Option(None, "--run-id", help="Audit run ID"),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty print output"),
):
    """
    Execute a tool with JSON arguments

    Examples:
        oraclezk run "publisher.keygen" '{"seed": "alice"}'
        oraclezk run "circuit.info" '{"max_publishers": 2}'
    """
    if run_id:
        audit_logger.start_run(run_id)

    if tool not in TOOL_REGISTRY:
        typer.echo(f"❌ Tool '{tool}' not found", err=True)
        typer.echo(f"Available tools: {list(TOOL_REGISTRY.keys())}")
        raise typer.Exit(code=1)

    try:
        args = json.loads(json_args)
    except json.JSONDecodeError as e:
        typer.echo(f"❌ Invalid JSON arguments: {e}", err=True)
        raise typer.Exit(code=1)
    if not isinstance(args, dict):
        typer.echo("❌ JSON arguments must be an object", err=True)
        raise typer.Exit(code=1)

    _emit(execute_tool(tool, **args), pretty)


@app.command("list")
def list_command():
    """List all available tools"""
    typer.echo("📋 Available oraclezk tools:")
    typer.echo()
    for name, description in list_tools().items():
        typer.echo(f"🔧 {name}")
        typer.echo(f"   {description}")
        typer.echo()


@app.command()
def info(
    config: Optional[Path] = typer.Option(None, "--config", help="Circuit YAML"),
    max_publishers: Optional[int] = typer.Option(None, "--max-publishers", help="Override capacity"),
):
    """Show constraint counts per group for the configured circuit"""
    result = execute_tool("circuit.info", config=str(config) if config else None,
                          max_publishers=max_publishers)
    if not result.ok:
        _emit(result, True)

    data = result.data
    table = Table(title=f"{data['name']}  ({data['constraints']} constraints, {data['wires']} wires)")
    table.add_column("group")
    table.add_column("constraints", justify="right")
    for group, count in data["constraints_by_group"].items():
        table.add_row(group, str(count))
    console.print(table)
    console.print(f"digest: {data['digest']}")
    for w in result.meta.warnings:
        console.print(f"[yellow]warning:[/yellow] {w}")


@app.command()
def check(
    witness_file: Path = typer.Argument(..., help="Witness input JSON"),
    config: Optional[Path] = typer.Option(None, "--config", help="Circuit YAML"),
    limit: int = typer.Option(20, "--limit", help="Maximum violations to list"),
):
    """Evaluate a witness and print the public outputs or the failing constraints"""
    witness = _read_json(witness_file)
    result = execute_tool("circuit.check", witness=witness,
                          config=str(config) if config else None, limit=limit)
    if result.ok:
        table = Table(title="public outputs")
        table.add_column("signal")
        table.add_column("value", justify="right")
        for name, value in result.data["outputs"].items():
            table.add_row(name, str(value))
        console.print(table)
        return

    violations = result.data.get("violations")
    if not violations:
        for e in result.errors:
            console.print(f"[red]error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"{result.data['violation_count']} unsatisfied constraints")
    for col in ("#", "group", "index", "check"):
        table.add_column(col)
    for v in violations:
        idx = "" if v["index"] is None else str(v["index"])
        table.add_row(str(v["constraint_id"]), v["group"], idx, v["label"])
    console.print(table)
    raise typer.Exit(code=1)


@app.command()
def keygen(seed: str = typer.Argument(..., help="Seed string")):
    """Derive a publisher key pair"""
    _emit(execute_tool("publisher.keygen", seed=seed), True)


@app.command()
def sign(
    secret: str = typer.Option(..., "--secret", help="Secret scalar (decimal)"),
    price: int = typer.Option(..., "--price"),
    confidence: int = typer.Option(..., "--confidence"),
    timestamp: int = typer.Option(0, "--timestamp"),
):
    """Sign a quote and print it as JSON"""
    _emit(execute_tool("publisher.sign", secret=secret, price=price,
                       confidence=confidence, timestamp=timestamp), True)


@app.command("build-witness")
def build_witness_command(
    quotes_file: Path = typer.Argument(..., help="JSON list of signed quotes"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write witness JSON here"),
    fee: int = typer.Option(0, "--fee"),
    config: Optional[Path] = typer.Option(None, "--config", help="Circuit YAML"),
):
    """Pad signed quotes into a witness input file"""
    quotes = _read_json(quotes_file)
    result = execute_tool("witness.build", quotes=quotes, fee=fee,
                          config=str(config) if config else None)
    if not result.ok or output is None:
        _emit(result, True)
        return
    with open(output, 'w') as f:
        json.dump(result.data["witness"], f)
    typer.echo(json.dumps({"witness": str(output), "expected": result.data["expected"]}, indent=2))


@app.command()
def runs(limit: int = typer.Option(10, "--limit", help="Maximum number of runs to show")):
    """List recent audit runs (requires ORACLEZK_RUNS_DIR)"""
    found = audit_logger.list_runs(limit=limit)
    if not found:
        typer.echo("No runs found")
        return
    for run_info in found:
        status = "✅" if run_info.get("status") == "completed" else "🏃"
        typer.echo(f"{status} {run_info['run_id']}  tools={len(run_info.get('tools_executed', []))}")


if __name__ == "__main__":
    app()
