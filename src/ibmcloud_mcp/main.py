from __future__ import annotations

from pathlib import Path
from datetime import datetime
import io
import json
import logging
import shutil
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .app_context import AppContext
from .config.loader import load_server_config
from .config.models import ServerConfig
from .events.store import EventStore
from .errors import AuthError, StartupError
from .rpc.dispatcher import install_signal_handlers
from .util.logs import default_log_file, setup_logging, stderr_console
from .util.redact import describe_secret

app = typer.Typer(add_completion=False, help="ibmcloud-mcp: MCP stdio server for the IBM Cloud CLI.")
console = Console()


def _resolve_cwd(cwd: Path | None) -> Path:
    cwd = Path(str(cwd or Path.cwd())).expanduser()
    cwd = cwd.resolve()
    if not cwd.is_dir():
        raise typer.BadParameter(f"--cwd must be an existing directory, got: {cwd}")
    return cwd


def _load(cwd: Path | None, config: Path | None) -> tuple[Path, ServerConfig]:
    cwd = _resolve_cwd(cwd)
    try:
        cfg = load_server_config(cwd=cwd, explicit_path=config)
    except StartupError as e:
        stderr_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)
    setup_logging(cfg.log_level, cfg.log_file)
    return cwd, cfg


def _build(cwd: Path, cfg: ServerConfig) -> AppContext:
    try:
        return AppContext.build(cfg, cwd=cwd)
    except StartupError as e:
        stderr_console.print(f"[red]Startup error:[/red] {e}")
        raise typer.Exit(code=1)


def _parse_kv(items: list[str] | None) -> dict[str, object]:
    out: dict[str, object] = {}
    for it in items or []:
        if "=" not in it:
            raise typer.BadParameter(f"--arg expects key=value, got: {it}")
        k, v = it.split("=", 1)
        try:
            out[k.strip()] = json.loads(v)
        except json.JSONDecodeError:
            out[k.strip()] = v
    return out


def _configure_stdio() -> None:
    # an undecodable byte must reach the parser as a bad line, not end the loop
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8")


@app.callback(invoke_without_command=True)
def _default(ctx: typer.Context):
    # MCP clients launch the bare executable; that means `serve`.
    if ctx.invoked_subcommand is None:
        serve(cwd=None, config=None)


@app.command()
def serve(
    cwd: Path = typer.Option(None, "--cwd", help="Working directory (used for .env and project config). Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit YAML config path."),
):
    """Run the JSON-RPC server on stdin/stdout until end of input."""
    cwd, cfg = _load(cwd, config)
    ctx = _build(cwd, cfg)
    logger = logging.getLogger("ibmcloud_mcp")

    if shutil.which(cfg.cli_binary) is None:
        logger.error("Required tool not found on PATH: %s", cfg.cli_binary)
        stderr_console.print("[red]Error:[/red] IBM Cloud CLI is not installed (see https://cloud.ibm.com/docs/cli)")
        raise typer.Exit(code=1)

    logger.info(
        "Starting %s %s (cli=%s, tools=%d, config=%s)",
        cfg.server.name,
        cfg.server.version,
        cfg.cli_binary,
        len(ctx.tools.names()),
        ", ".join(str(p) for p in cfg.loaded_from) or "(defaults)",
    )
    install_signal_handlers()
    _configure_stdio()
    ctx.dispatcher().serve(sys.stdin, sys.stdout)
    logger.info("Server exiting")


@app.command()
def tools(
    cwd: Path = typer.Option(None, "--cwd", help="Working directory. Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit YAML config path."),
):
    """List the tool catalogue (no backend access)."""
    cwd, cfg = _load(cwd, config)
    ctx = _build(cwd, cfg)
    table = Table(title=f"{cfg.server.name} tools")
    table.add_column("name", style="bold")
    table.add_column("parameters")
    table.add_column("description")
    for spec in ctx.tools.list_specs():
        props = spec.parameters.get("properties", {}) or {}
        required = set(spec.parameters.get("required", []) or [])
        params = ", ".join(f"{k}*" if k in required else k for k in props) or "-"
        table.add_row(spec.name, params, spec.description)
    console.print(table)


@app.command()
def doctor(
    cwd: Path = typer.Option(None, "--cwd", help="Working directory. Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit YAML config path."),
):
    """Check prerequisites, authentication and configuration paths."""
    cwd, cfg = _load(cwd, config)
    ctx = _build(cwd, cfg)

    table = Table.grid(padding=(0, 2))
    binary = shutil.which(cfg.cli_binary)
    table.add_row("[bold green]cli[/bold green]", binary or f"[red]{cfg.cli_binary} NOT FOUND[/red]")
    if binary is None:
        console.print(Panel(table, title="ibmcloud-mcp doctor", border_style="red"))
        raise typer.Exit(code=1)

    ver = ctx.invoker.invoke(["version"])
    table.add_row("[bold green]version[/bold green]", ver.output.splitlines()[0] if ver.ok and ver.output else "(unknown)")

    cred = ctx.gate.credentials.resolve()
    table.add_row("[bold green]credential[/bold green]", cred.describe() if cred else f"{cfg.api_key_env} {describe_secret(None)}")

    state = ctx.gate.status()
    table.add_row(
        "[bold green]authenticated[/bold green]",
        "[green]yes[/green]" if state.authenticated else "[yellow]no[/yellow] (login will be attempted per call)",
    )
    table.add_row("[bold green]region[/bold green]", cfg.region or "[NOT SET]")
    table.add_row("[bold green]resource group[/bold green]", cfg.resource_group or "[NOT SET]")
    table.add_row("[bold green]dotenv[/bold green]", f"{cfg.dotenv_path} ({'EXISTS' if cfg.dotenv_path.is_file() else 'NOT FOUND'})")
    table.add_row("[bold green]manifest[/bold green]", str(cfg.tools_manifest or "(packaged)"))
    table.add_row("[bold green]config[/bold green]", ", ".join(str(p) for p in cfg.loaded_from) or "(defaults)")
    table.add_row("[bold green]log file[/bold green]", str(cfg.log_file or default_log_file()))
    table.add_row("[bold green]events[/bold green]", str(ctx.events.path) if ctx.events.enabled else "(disabled)")
    console.print(Panel(table, title="ibmcloud-mcp doctor", border_style="bright_blue"))


@app.command()
def call(
    name: str = typer.Argument(..., help="Tool name (see `ibmcloud-mcp tools`)."),
    arg: list[str] = typer.Option(None, "--arg", "-A", help="Tool argument as key=value (value parsed as JSON when possible)."),
    cwd: Path = typer.Option(None, "--cwd", help="Working directory. Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit YAML config path."),
):
    """Run a single tool through the session gate and print its output."""
    args = _parse_kv(arg)
    cwd, cfg = _load(cwd, config)
    ctx = _build(cwd, cfg)

    tool = ctx.tools.get_optional(name)
    if tool is None:
        console.print(f"[red]Tool not found:[/red] {name}")
        raise typer.Exit(code=1)
    if tool.requires_session:
        try:
            ctx.gate.ensure()
        except AuthError as e:
            console.print(str(e), style="red", markup=False)
            raise typer.Exit(code=1)
    res = tool.execute(ctx.tool_ctx, args)
    if res.is_error:
        console.print(res.content, style="red", markup=False)
        raise typer.Exit(code=1)
    console.print(res.content, markup=False, highlight=False)


@app.command()
def events(
    tail: int = typer.Option(50, "--tail", help="Show last N events."),
    cwd: Path = typer.Option(None, "--cwd", help="Working directory. Defaults to current directory."),
    config: Path = typer.Option(None, "--config", help="Explicit YAML config path."),
):
    """Show recent request/response events recorded by the server."""
    _, cfg = _load(cwd, config)
    if not cfg.events:
        console.print("Event journal is disabled in config.")
        raise typer.Exit(code=0)

    es = EventStore.open()
    evs = list(es.iter_events())
    evs = evs[-tail:] if tail and tail > 0 else evs
    console.print(Panel.fit(f"file: {es.path}\nevents: {len(evs)}", title="Events"))
    for e in evs:
        ts = datetime.fromtimestamp(e.ts).strftime("%Y-%m-%d %H:%M:%S")
        console.print(f"{ts}  {e.type}  {json.dumps(e.data, ensure_ascii=False)}", markup=False, highlight=False)


if __name__ == "__main__":
    app()
