from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tapi.config import get_settings
from tapi.errors import TapiError
from tapi.logs import setup_logging
from tapi.orchestrator.generate import closure_of, load_reference, run_generate
from tapi.targets.registry import TARGETS

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def _root(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: TAPI_LOG_LEVEL or WARNING)"),
) -> None:
    setup_logging(log_level or get_settings().log_level, console=err_console)


def _fail(e: TapiError) -> typer.Exit:
    err_console.print(f"[bold red]error:[/bold red] {escape(str(e))}")
    return typer.Exit(code=1)


@app.command()
def generate(
    ref: str = typer.Argument(..., help="MODULE:ATTR of endpoints, handlers or types"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="ts | js | fs"),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
    client_name: Optional[str] = typer.Option(None, help="Name of the exported client constant"),
) -> None:
    settings = get_settings()
    target = target or settings.default_target
    if target.lower() not in TARGETS:
        raise typer.BadParameter(f"target must be one of: {', '.join(TARGETS)}")

    try:
        result = run_generate(
            load_reference(ref),
            target=target,
            client_name=client_name or settings.client_name,
        )
    except TapiError as e:
        raise _fail(e)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.text, encoding="utf-8")
        err_console.print(
            f"[bold green]Wrote[/bold green] {result.target}: {len(result.types)} types, "
            f"{result.endpoints} endpoints to: {out_path}"
        )
    else:
        # plain write: rich markup must not touch generated code
        typer.echo(result.text, nl=False)


@app.command()
def inspect(
    ref: str = typer.Argument(..., help="MODULE:ATTR of endpoints, handlers or types"),
) -> None:
    try:
        tys = closure_of(load_reference(ref))
        rows = [(t.id, t.name, ".".join(t.path), type(t.kind).__name__) for t in tys]
    except TapiError as e:
        raise _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("NAME", no_wrap=True)
    table.add_column("PATH")
    table.add_column("KIND", no_wrap=True)
    for row in rows:
        table.add_row(*row)

    console.print(table)
    console.print(f"Types: [bold]{len(rows)}[/bold]")


@app.command()
def targets() -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("NAME", no_wrap=True)
    table.add_column("LANGUAGE")
    table.add_column("EXT", no_wrap=True)
    table.add_column("CLIENT", no_wrap=True)
    for t in TARGETS.values():
        table.add_row(t.name, t.label, t.extension, "yes" if t.has_client else "no")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
