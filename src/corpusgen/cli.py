import time
from pathlib import Path

import orjson
import typer
from rich.console import Console

from corpusgen.config import Config, load_config
from corpusgen.errors import CorpusGenError
from corpusgen.fields import Field, load_fields
from corpusgen.generator import TEMPLATE_TYPES, Generator, iter_records, new_generator
from corpusgen.observability import configure_logging
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.starter import (
    custom_template_for,
    jinja_template_for,
    mako_template_for,
)

app = typer.Typer(help="Generate synthetic telemetry corpora from a field schema.")
console = Console()
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG | INFO | WARNING | ERROR."),
    log_json: bool = typer.Option(False, "--log-json", help="Render logs as JSON lines."),
) -> None:
    level = log_level.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"Unsupported log level '{log_level}'. Choose from {LOG_LEVELS}.")
    configure_logging(level, json_format=log_json)


def _read_fields(path: Path) -> list[Field]:
    if not path.is_file():
        raise typer.BadParameter(f"Schema file not found: {path}")
    try:
        return load_fields(path)
    except CorpusGenError as exc:
        raise typer.BadParameter(exc.message) from exc


def _read_config(path: Path | None) -> Config:
    if path is None:
        return Config()
    if not path.is_file():
        raise typer.BadParameter(f"Config file not found: {path}")
    try:
        return load_config(path)
    except CorpusGenError as exc:
        raise typer.BadParameter(exc.message) from exc


def _build(
    fields: Path,
    config: Path | None,
    template: Path | None,
    template_type: str,
    seed: int | None,
) -> Generator:
    kind = template_type.lower()
    if kind not in TEMPLATE_TYPES:
        raise typer.BadParameter(
            f"Unsupported template type '{template_type}'. Choose from {TEMPLATE_TYPES}."
        )
    if kind != "json" and template is None:
        raise typer.BadParameter(f"--template is required for template type '{kind}'.")
    if template is not None and not template.is_file():
        raise typer.BadParameter(f"Template file not found: {template}")

    try:
        return new_generator(
            _read_config(config),
            _read_fields(fields),
            template=template.read_bytes() if template is not None else None,
            template_type=kind,
            providers=ValueProviders(seed=seed),
        )
    except CorpusGenError as exc:
        raise typer.BadParameter(exc.message) from exc


@app.command()
def generate(
    fields: Path = typer.Argument(..., help="Field schema (YAML or JSON list)."),
    output: Path = typer.Argument(..., help="Path to write the generated corpus."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Per-field config YAML."),
    template: Path | None = typer.Option(None, "--template", "-t", help="Record template file."),
    template_type: str = typer.Option(
        "json", "--template-type", help="Record renderer: json | custom | jinja | mako."
    ),
    count: int = typer.Option(100, "--count", "-n", help="Number of records to emit."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible generation."),
    separator: str = typer.Option("\n", "--separator", help="Bytes written after each record."),
) -> None:
    """Emit COUNT records into OUTPUT, one separator after each."""
    gen = _build(fields, config, template, template_type, seed)
    sep = separator.encode()
    state = GenState()
    written = 0
    try:
        with output.open("wb") as f:
            for record in iter_records(gen, state, count):
                f.write(record)
                f.write(sep)
                written += len(record) + len(sep)
    except CorpusGenError as exc:
        console.print(f"[bold red]Generation failed[/] after {state.counter} records: {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"[bold green]Wrote[/] {written} bytes to {output} ({count} records).")


@app.command()
def template(
    fields: Path = typer.Argument(..., help="Field schema (YAML or JSON list)."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Where to write the template."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Per-field config YAML."),
    template_type: str = typer.Option("custom", "--template-type", help="custom | jinja | mako."),
) -> None:
    """Write a starter template that renders the schema as a JSON document."""
    cfg = _read_config(config)
    flds = _read_fields(fields)
    kind = template_type.lower()
    if kind == "custom":
        text = custom_template_for(cfg, flds)
    elif kind == "jinja":
        text = jinja_template_for(cfg, flds).encode()
    elif kind == "mako":
        text = mako_template_for(cfg, flds).encode()
    else:
        raise typer.BadParameter(f"Unsupported template type '{template_type}'.")

    if output:
        output.write_bytes(text)
        console.print(f"[bold green]Wrote {kind} template[/] to {output}")
    else:
        console.print(text.decode(), markup=False, highlight=False)


@app.command()
def bench(
    fields: Path = typer.Argument(..., help="Field schema (YAML or JSON list)."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Per-field config YAML."),
    template: Path | None = typer.Option(None, "--template", "-t", help="Record template file."),
    template_type: str = typer.Option(
        "json", "--template-type", help="json | custom | jinja | mako."
    ),
    records: int = typer.Option(10_000, "--records", help="Records emitted per run."),
    runs: int = typer.Option(3, "--runs", help="Runs; the best one is reported."),
    seed: int | None = typer.Option(1234, "--seed", help="Seed for generation."),
) -> None:
    """Measure emit throughput for a schema/config/template combination."""
    gen = _build(fields, config, template, template_type, seed)
    best = None
    total_bytes = 0
    buf = bytearray()
    for _ in range(runs):
        state = GenState()
        total_bytes = 0
        start = time.perf_counter()
        for _i in range(records):
            buf.clear()
            gen.emit(state, buf)
            total_bytes += len(buf)
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best

    result = {
        "template_type": template_type.lower(),
        "records": records,
        "bytes": total_bytes,
        "best_seconds": best or 0.0,
        "records_per_second": records / best if best else 0.0,
        "ns_per_record": (best / records) * 1e9 if best and records else 0.0,
    }
    console.print(orjson.dumps(result, option=orjson.OPT_INDENT_2).decode())


if __name__ == "__main__":
    app()
