"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from plottybot.core.errors import PlottybotError
from plottybot.core.model import DeviceEntry
from plottybot.core.preview import PreviewCanvas
from plottybot.core.service import PlottyService
from plottybot.core.settings import load_settings
from plottybot.core.shapes import Shape
from plottybot.core.turtle import Actor

app = typer.Typer(help="Drive Plotty pen plotters over WebSocket")

ConfigOption = typer.Option(None, "--config", help="Settings YAML overriding the packaged defaults")
DeviceOption = typer.Option(None, "--device", help="1-based device index from 'plottybot devices'")
NameOption = typer.Option(None, "--name", help="Device name from 'plottybot devices'")
TimeoutOption = typer.Option(None, "--timeout", help="Seconds to wait for the socket to open")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log connection activity")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_service(config: Path | None = None, renderer: PreviewCanvas | None = None) -> PlottyService:
    if config is not None:
        service = PlottyService(settings=load_settings(config).settings, renderer=renderer)
    else:
        service = PlottyService(renderer=renderer)
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _connect(service: PlottyService, device: int | None, name: str | None, timeout: float | None) -> DeviceEntry:
    if name is not None:
        entry = service.connect_by_name(name)
    else:
        entry = service.connect_by_index(device if device is not None else 1)
    if entry is None:
        target = name if name is not None else f"#{device or 1}"
        typer.echo(f"Error: Could not resolve device {target}", err=True)
        raise typer.Exit(code=1)

    if not service.wait_until_connected(timeout):
        typer.echo(
            f"Error: {entry.name} at {entry.address} did not connect ({service.connection_status()})",
            err=True,
        )
        service.close()
        raise typer.Exit(code=1)
    return entry


@app.command("devices")
def list_devices(config: Path | None = ConfigOption) -> None:
    """List plotters announced by the discovery endpoint."""
    try:
        service = _build_service(config)
        if not service.refresh_devices():
            typer.echo("Error: Device discovery failed", err=True)
            raise typer.Exit(code=1)

        devices = service.list_devices()
        if not devices:
            typer.echo("No Devices Found")
            return

        for entry in devices:
            typer.echo(f"{entry.index}. {entry.name} {entry.address}")
    except PlottybotError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("status")
def connection_status(
    device: int | None = DeviceOption,
    name: str | None = NameOption,
    timeout: float | None = TimeoutOption,
    config: Path | None = ConfigOption,
) -> None:
    """Connect to a plotter and report the connection status."""
    try:
        service = _build_service(config)
        entry = _connect(service, device, name, timeout)
        typer.echo(f"{entry.name} ({entry.address}): {service.connection_status()}")
        service.close()
    except PlottybotError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("draw")
def draw(
    shape: Shape,
    size: float = typer.Option(100.0, "--size", help="Shape size in stage units"),
    device: int | None = DeviceOption,
    name: str | None = NameOption,
    timeout: float | None = TimeoutOption,
    offline: bool = typer.Option(False, "--offline", help="Only render the preview"),
    preview: Path | None = typer.Option(None, "--preview", help="Write the preview as SVG"),
    config: Path | None = ConfigOption,
) -> None:
    """Draw a shape on a plotter, mirroring it into a preview."""
    try:
        canvas = PreviewCanvas()
        service = _build_service(config, renderer=canvas)
        if not offline:
            entry = _connect(service, device, name, timeout)
            typer.echo(f"Connected to {entry.name} ({entry.address})")

        actor = Actor("turtle", heading=0.0)
        service.turtle.pen_down(actor)
        count = service.draw_shape(actor, shape, size)
        service.turtle.pen_up(actor)
        service.close()

        segments = sum(1 for stroke in canvas.strokes() if not stroke.is_point)
        typer.echo(f"Drew {shape.value} (size {size:g}): {count} instructions, {segments} segments")
        if preview is not None:
            preview.write_text(canvas.to_svg(), encoding="utf-8")
            typer.echo(f"Preview written to {preview}")
    except PlottybotError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("stop")
def stop(
    device: int | None = DeviceOption,
    name: str | None = NameOption,
    timeout: float | None = TimeoutOption,
    config: Path | None = ConfigOption,
) -> None:
    """Send the global stop command to a plotter."""
    try:
        service = _build_service(config)
        entry = _connect(service, device, name, timeout)
        sent = service.stop()
        service.close()
        if not sent:
            typer.echo(f"Error: stop was not delivered to {entry.name}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Sent stop to {entry.name} ({entry.address})")
    except PlottybotError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
