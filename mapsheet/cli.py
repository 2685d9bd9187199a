"""Command-line interface for map sheet export."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from PIL import UnidentifiedImageError
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import get_config
from .errors import ExportError
from .models.geometry import Extent
from .models.template import PAGE_DIMENSIONS, PageSize, Template

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show pipeline logging")
def main(verbose: bool):
    """Map Sheet Export - Compose printable map sheets from a map view."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command()
@click.argument("template_path", type=click.Path(exists=True))
@click.argument("basemap_path", type=click.Path(exists=True))
@click.option(
    "--extent", "-e",
    nargs=4,
    type=float,
    required=True,
    help="World extent of the basemap image: XMIN YMIN XMAX YMAX",
)
@click.option("--view", nargs=4, type=float, default=None, help="Current view extent (defaults to the whole basemap)")
@click.option("--viewport", nargs=2, type=int, default=(1280, 800), show_default=True, help="View size in pixels")
@click.option("--scale", "-s", type=float, default=None, help="Feet per page inch (default: fit the view)")
@click.option("--center", nargs=2, type=float, default=None, help="Center of the export area: X Y")
@click.option(
    "--format", "-f", "fmt",
    type=click.Choice(["pdf", "png", "jpg"]),
    default="pdf",
    show_default=True,
    help="Output format",
)
@click.option("--title", "-t", default=None, help="Map title")
@click.option("--legend", "legend_path", type=click.Path(exists=True), default=None, help="Legend YAML/JSON file")
@click.option("--logo", "logo_url", default=None, help="Logo URL or path for logo elements without one")
@click.option("--dpi", type=int, default=None, help="Output DPI (default from config)")
@click.option("--output", "-o", type=click.Path(), help="Output directory")
def export(
    template_path: str,
    basemap_path: str,
    extent: tuple[float, float, float, float],
    view: Optional[tuple[float, float, float, float]],
    viewport: tuple[int, int],
    scale: Optional[float],
    center: Optional[tuple[float, float]],
    fmt: str,
    title: Optional[str],
    legend_path: Optional[str],
    logo_url: Optional[str],
    dpi: Optional[int],
    output: Optional[str],
):
    """Export a map sheet from TEMPLATE_PATH over the BASEMAP_PATH image."""
    from .services.legend_service import load_legend_file
    from .services.raster_view import GeoRasterView

    config = get_config()

    try:
        template = Template.from_file(Path(template_path))
        legend_items = load_legend_file(legend_path) if legend_path else []
        image_extent = Extent.from_bounds(extent)
        view_extent = Extent.from_bounds(view) if view else None
    except (ValidationError, ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[bold]Template:[/bold] {template.name or template_path} ({template.page_label})")

    try:
        raster_view = GeoRasterView.from_file(basemap_path, image_extent, viewport_size=tuple(viewport))
    except (OSError, UnidentifiedImageError) as e:
        console.print(f"[red]Error:[/red] Could not open basemap {basemap_path}: {e}")
        raise SystemExit(1)
    if view_extent is not None:
        asyncio.run(raster_view.set_extent(view_extent))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Exporting map sheet...", total=None)
        try:
            result = asyncio.run(
                _run_export(
                    template,
                    raster_view,
                    title=title,
                    fmt=fmt,
                    scale=scale,
                    anchor=tuple(center) if center else None,
                    legend_items=legend_items,
                    logo_url=logo_url,
                    dpi=dpi,
                )
            )
        except ExportError as e:
            progress.update(task, description="[red]Export failed")
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        progress.update(task, completed=True, description="[green]Map sheet composed")

    from .services.export_service import ExportService

    path = ExportService(config).write(result.data, result.filename, output)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    area = result.export_area
    console.print(f"[bold]Scale:[/bold] 1 in = {area.scale:,.0f} ft{' (auto)' if area.is_auto else ''}")
    console.print(f"[green]Saved:[/green] {path}")


async def _run_export(template: Template, view, **kwargs):
    from .services.map_export_service import MapExportService
    from .services.session import ExportSession

    async with ExportSession() as session:
        return await MapExportService(session).export(template, view, **kwargs)


@main.command("legend-layout")
@click.argument("legend_path", type=click.Path(exists=True))
@click.option("--width", "-w", type=float, required=True, help="Legend box width in pixels")
@click.option("--height", "-h", type=float, required=True, help="Legend box height in pixels")
@click.option("--title/--no-title", default=True, help="Reserve a title row")
def legend_layout(legend_path: str, width: float, height: float, title: bool):
    """Show the legend layout chosen for a box."""
    from .services.legend_layout_service import LegendLayoutService
    from .services.legend_service import load_legend_file

    try:
        items = load_legend_file(legend_path)
    except (ValidationError, ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)

    layout = LegendLayoutService().compute_layout(width, height, items, show_title=title)

    table = Table(title=f"Legend layout: {len(items)} items in {width:g} x {height:g} px")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Columns", str(layout.num_columns))
    table.add_row("Items per column", str(layout.items_per_column))
    table.add_row("Column width", f"{layout.column_width:.1f} px")
    table.add_row("Item height", f"{layout.item_height} px")
    table.add_row("Font size", f"{layout.font_size} px")
    table.add_row("Symbol size", f"{layout.symbol_size} px")
    table.add_row("Column ranges", ", ".join(f"{start}-{end - 1}" for start, end in layout.columns if end > start))
    console.print(table)

    if layout.overflow:
        console.print("[yellow]Warning:[/yellow] Labels do not fit; consider a larger legend box.")


@main.command("scale-bar")
@click.argument("scale", type=float)
@click.option("--width", "-w", type=float, required=True, help="Scale bar box width in pixels")
@click.option(
    "--units", "-u",
    type=click.Choice(["feet", "ft", "meters", "m"]),
    default="feet",
    show_default=True,
)
@click.option("--dpi", type=int, default=None, help="Output DPI (default from config)")
def scale_bar(scale: float, width: float, units: str, dpi: Optional[int]):
    """Show the scale bar drawn at SCALE feet per inch."""
    from .services.marginalia_service import format_scale_label, scale_bar_length

    if scale <= 0:
        console.print("[red]Error:[/red] Scale must be positive")
        raise SystemExit(1)

    config = get_config()
    dpi = dpi or config.export_dpi
    length, bar_px = scale_bar_length(width, scale, dpi, config.nice_numbers)
    console.print(f"[bold]Length:[/bold] {length:,g} ft")
    console.print(f"[bold]Label:[/bold] {format_scale_label(length, units)}")
    console.print(f"[bold]Bar width:[/bold] {bar_px:.1f} px at {dpi} dpi")


@main.command("page-sizes")
def page_sizes():
    """List the supported page sizes."""
    config = get_config()
    table = Table(title="Page sizes")
    table.add_column("Key", style="cyan")
    table.add_column("Label")
    table.add_column("Inches", justify="right")
    table.add_column(f"Pixels @ {config.export_dpi} dpi", justify="right", style="green")
    for size, (width, height, label) in PAGE_DIMENSIONS.items():
        table.add_row(
            size.value,
            label,
            f"{width:g} x {height:g}",
            f"{round(width * config.export_dpi)} x {round(height * config.export_dpi)}",
        )
    console.print(table)


@main.command("init-template")
@click.argument("output_path", type=click.Path())
@click.option(
    "--page-size", "-p",
    type=click.Choice([size.value for size in PageSize if size != PageSize.CUSTOM]),
    default=PageSize.LETTER_LANDSCAPE.value,
    show_default=True,
)
def init_template(output_path: str, page_size: str):
    """Write the default template to OUTPUT_PATH."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    template = Template.default(PageSize(page_size))
    template.to_yaml(path)
    console.print(f"[green]Created template:[/green] {path}")
    console.print(f"[dim]{len(template.elements)} elements on {template.page_label}[/dim]")


if __name__ == "__main__":
    main()
