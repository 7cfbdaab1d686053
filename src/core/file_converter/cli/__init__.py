from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...settings import get_settings
from ..config import AppConfig, dump_config, load_config
from ..dispatcher import SUPPORTED_PAIRS, ConversionDispatcher, TransformerKind, select_transformer
from ..errors import ConversionError
from ..formats import resolve_format
from ..identity import Identity
from ..logs import configure_logging
from ..models import ConversionRequest, Upload
from ..recorder import UsageRecorder
from ..reporting import summarize_usage
from ..store import JsonlAuditStore
from ..transformers import pdf_to_images
from ..utils import atomic_write_bytes, slugify

console = Console()

app = typer.Typer(help="PDF, Word and image conversion toolkit")

CLI_IDENTITY = Identity(ip_address="local", user_agent="file-converter-cli")


def _load_config(path: Path | None) -> AppConfig:
    settings = get_settings()
    config = load_config(path or settings.config_path)
    if settings.store_path is not None:
        config.runtime.store_path = settings.store_path
    configure_logging(config.runtime.log_level)
    return config


def _write_pages(file: Path, target: str, output: Path | None, config: AppConfig) -> None:
    tag = resolve_format(target)
    raster = tag.raster if tag is not None else None
    if raster is None:
        console.print(f"[red]Cannot rasterize PDF pages to {target}[/red]")
        raise typer.Exit(2)
    try:
        images = pdf_to_images(
            file.read_bytes(),
            fmt=raster.value,
            dpi=config.transform.raster_dpi,
            quality=config.transform.image_quality,
        )
    except ConversionError as exc:
        console.print(f"[red]Conversion failed[/red]: {exc.code} - {exc}")
        raise typer.Exit(1) from exc
    destination_dir = output or file.parent
    for number, data in enumerate(images, start=1):
        name = f"{slugify(file.stem)}-page-{number}{raster.extension}"
        atomic_write_bytes(destination_dir / name, data)
    console.print(f"[green]Success[/green]: wrote {len(images)} page image(s) to {destination_dir}")


@app.command()
def convert(
    file: Path,
    source: str = typer.Option(..., "--from", help="Declared source format, e.g. pdf, docx, image"),
    target: str = typer.Option(..., "--to", help="Target format, e.g. pdf, docx, jpg, png"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file (directory with --all-pages)"),
    all_pages: bool = typer.Option(False, "--all-pages", help="Rasterize every page of a PDF"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    if all_pages:
        try:
            kind = select_transformer(source, target)
        except ConversionError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(2) from exc
        if kind is not TransformerKind.PDF_TO_IMAGE:
            console.print("[red]--all-pages only applies to PDF to image conversions[/red]")
            raise typer.Exit(2)
        _write_pages(file, target, output, cfg)
        return

    dispatcher = ConversionDispatcher(cfg, UsageRecorder(JsonlAuditStore(cfg.runtime.store_path)))
    request = ConversionRequest(
        source=source,
        target=target,
        file=Upload(filename=file.name, data=file.read_bytes()),
        identity=CLI_IDENTITY,
    )
    result = asyncio.run(dispatcher.dispatch(request))
    if result.error is not None:
        console.print(f"[red]Conversion failed[/red]: {result.error.code} - {result.error}")
        raise typer.Exit(1)
    converted = result.unwrap()
    destination = output or file.with_name(converted.filename)
    atomic_write_bytes(destination, converted.data)
    console.print(f"[green]Success[/green]: Converted {file.name} -> {destination} in {result.duration_ms}ms")


@app.command()
def stats(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    summary = summarize_usage(JsonlAuditStore(cfg.runtime.store_path).records())
    table = Table(title="Conversions by type")
    table.add_column("Type")
    table.add_column("Count", justify="right")
    for conversion_type, count in sorted(summary.by_type.items()):
        table.add_row(conversion_type, str(count))
    console.print(table)
    console.print(
        f"{summary.total} conversions, {summary.successful} succeeded, {summary.failed} failed "
        f"({summary.success_rate}% success). Last 30 days: {summary.recent} ({summary.change_percent:+}%)."
    )


@app.command()
def pairs() -> None:
    table = Table(title="Supported conversions")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Transformer")
    for source, target, kind in SUPPORTED_PAIRS:
        table.add_row(source, target, kind.value)
    console.print(table)


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    host: str | None = typer.Option(None, "--host", help="Override the configured API host"),
    port: int | None = typer.Option(None, "--port", help="Override the configured API port"),
) -> None:
    """Serve the HTTP API with uvicorn."""

    import uvicorn

    from api.app import create_app

    cfg = _load_config(config)
    uvicorn.run(create_app(config), host=host or cfg.api.host, port=port or cfg.api.port)


@app.command("config")
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    console.print_json(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
