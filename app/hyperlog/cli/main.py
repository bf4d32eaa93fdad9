from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from hyperlog.core.config import DEFAULT_CONFIG_PATH, load_config
from hyperlog.core.log_view import InvalidFileName, build_log_payload, dialect_for, list_log_files

app = typer.Typer(add_completion=False)
console = Console()


def _fail(error: str, **extra):
    print(json.dumps({"ok": False, "error": error, **extra}, ensure_ascii=False, indent=2))
    raise typer.Exit(2)


@app.command("config-show")
def config_show(path: Path = DEFAULT_CONFIG_PATH):
    """Show current config.yaml."""
    cfg = load_config(path)
    print(json.dumps(cfg.model_dump(mode="json"), ensure_ascii=False, indent=2))


@app.command()
def files(json_output: bool = typer.Option(False, "--json", help="Output as JSON.")):
    """List viewable log files."""
    cfg = load_config()
    names = list_log_files(cfg.logs.dir, cfg.logs.file_regex)
    if json_output:
        print(json.dumps({"log_dir": cfg.logs.dir, "count": len(names), "files": names}, ensure_ascii=False, indent=2))
        return

    table = Table(title=Text(f"logs in {cfg.logs.dir}"))
    table.add_column("File")
    table.add_column("Dialect")
    for name in names:
        table.add_row(Text(name), dialect_for(cfg, name).value)
    console.print(table)


@app.command()
def dialect(file: str = typer.Argument(..., help="Log file name.")):
    """Show which dialect a file name resolves to."""
    cfg = load_config()
    print(dialect_for(cfg, file).value)


@app.command()
def view(
    file: str = typer.Argument(..., help="Log file name inside the log directory."),
    start: int | None = typer.Option(None, "--start", help="First line (1-based)."),
    end: int | None = typer.Option(None, "--end", help="Last line (inclusive)."),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
    trace: bool = typer.Option(True, "--trace/--no-trace", help="Show trace lines under their entry."),
):
    """Show a window of a log file as reconstructed entries."""
    cfg = load_config()
    try:
        payload = build_log_payload(cfg, file, start=start, end=end)
    except InvalidFileName:
        _fail("invalid_file_name", file=file)
    except FileNotFoundError:
        _fail("log_not_found", file=file)
    except OSError as e:
        _fail(f"log_read_failed: {e}", file=file)

    if json_output:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    table = Table(title=Text(f"{payload['file']} ({payload['dialect']}) lines {payload['start']}-{payload['end']}"))
    table.add_column("#", justify="right")
    if payload["has_stamps"]:
        table.add_column("Time")
    if payload["has_levels"]:
        table.add_column("Level")
    table.add_column("Text", overflow="fold")

    def add(entry: dict, level: str):
        row: list[str | Text] = [str(entry["number"])]
        if payload["has_stamps"]:
            row.append(Text(entry["timestamp"]))
        if payload["has_levels"]:
            row.append(Text(level))
        # log text is shown verbatim, never parsed as console markup
        row.append(Text(entry["text"]))
        table.add_row(*row)

    for entry in payload["entries"].values():
        add(entry, entry["level"])
        if trace:
            for item in entry["trace"]:
                add({**item, "text": f"    {item['text']}"}, "")
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
