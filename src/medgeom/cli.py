"""CLI entry point for medgeom."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from medgeom import __version__
from medgeom.core.errors import GeometryError
from medgeom.core.slice import SliceGeometry, orientation_letters
from medgeom.core.types import Outline, PosterConfig
from medgeom.core.volume import ValidatedVolumeGeometry, from_slices

app = typer.Typer(
    name="medgeom",
    help="Slice geometry and localizer posting for cross-sectional images.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("medgeom")

_AXIAL = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
_SAGITTAL = (0.0, 1.0, 0.0, 0.0, 0.0, -1.0)


def version_callback(value: bool):
    if value:
        console.print(f"medgeom {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="Show detailed processing information.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """Slice geometry and localizer posting for cross-sectional images."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")


@app.command()
def orientation(
    row: Tuple[float, float, float] = typer.Option(
        (1.0, 0.0, 0.0), "--row", help="Row direction cosines X Y Z.",
    ),
    column: Tuple[float, float, float] = typer.Option(
        (0.0, 1.0, 0.0), "--column", help="Column direction cosines X Y Z.",
    ),
    quadruped: bool = typer.Option(
        False, "--quadruped", help="Use quadruped rather than biped labels.",
    ),
):
    """Print anatomical orientation letters of the row and column directions."""
    try:
        row_letters = orientation_letters(row, quadruped)
        column_letters = orientation_letters(column, quadruped)
    except GeometryError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"Row: [bold]{row_letters or '-'}[/bold]")
    console.print(f"Column: [bold]{column_letters or '-'}[/bold]")


@app.command("list-posters")
def list_posters_command():
    """List the available localizer posting strategies."""
    from medgeom.posters.registry import list_posters

    console.print("\n[bold]Available localizer posters:[/bold]\n")
    for p in list_posters():
        console.print(f"  [bold]{p['name']:<18}[/bold] {p['description']}")
    console.print()


@app.command()
def post(
    localizer_orientation: Tuple[float, float, float, float, float, float] = typer.Option(
        _SAGITTAL,
        "--localizer-orientation",
        help="Localizer row then column direction cosines (6 values).",
    ),
    localizer_position: Tuple[float, float, float] = typer.Option(
        (0.0, -127.5, 127.5),
        "--localizer-position",
        help="Localizer TLHC position X Y Z in mm.",
    ),
    localizer_spacing: Tuple[float, float] = typer.Option(
        (0.5, 0.5), "--localizer-spacing", help="Localizer row and column spacing in mm.",
    ),
    localizer_size: Tuple[int, int] = typer.Option(
        (512, 512), "--localizer-size", help="Localizer rows and columns.",
    ),
    source_orientation: Tuple[float, float, float, float, float, float] = typer.Option(
        _AXIAL,
        "--source-orientation",
        help="Source row then column direction cosines (6 values).",
    ),
    source_position: Tuple[float, float, float] = typer.Option(
        (-63.5, -63.5, 0.0),
        "--source-position",
        help="Source TLHC position X Y Z in mm.",
    ),
    source_spacing: Tuple[float, float] = typer.Option(
        (0.5, 0.5), "--source-spacing", help="Source row and column spacing in mm.",
    ),
    source_size: Tuple[int, int] = typer.Option(
        (256, 256), "--source-size", help="Source rows and columns.",
    ),
    source_thickness: float = typer.Option(
        0.0, "--source-thickness", help="Source slice thickness in mm.",
    ),
    frames: int = typer.Option(
        1, "--frames", min=1, help="Number of source frames stacked along the normal.",
    ),
    frame_spacing: float = typer.Option(
        1.0, "--frame-spacing", help="Distance between stacked source frames in mm.",
    ),
    project: bool = typer.Option(
        False, "--project/--intersect", help="Project onto the localizer or intersect with it.",
    ),
    plane: bool = typer.Option(
        True, "--plane/--volume", help="Intersect the slice rectangle or the volume cuboid.",
    ),
    quadruped: bool = typer.Option(
        False, "--quadruped", help="Use quadruped orientation labels.",
    ),
):
    """Post a source slice or stack onto a localizer and print the outline."""
    from medgeom.posters.registry import get_localizer_poster

    config = PosterConfig(project=project, plane=plane, quadruped=quadruped)
    try:
        localizer = SliceGeometry.from_image_plane(
            localizer_orientation, localizer_position, localizer_spacing,
            0.0, localizer_size[0], localizer_size[1],
        )
        volume = _build_source_volume(
            source_orientation, source_position, source_spacing, source_thickness,
            source_size, frames, frame_spacing,
        )
        poster = get_localizer_poster(config.project, config.plane)
        poster.set_localizer_slice(localizer)
        outlines = poster.outline_for_volume(volume)
    except GeometryError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    first = volume.slices[0]
    console.print(
        f"Localizer {localizer.row_orientation(config.quadruped)}/"
        f"{localizer.column_orientation(config.quadruped)}, "
        f"source {first.row_orientation(config.quadruped)}/"
        f"{first.column_orientation(config.quadruped)} "
        f"({len(volume)} frame{'s' if len(volume) != 1 else ''})"
    )
    if volume.is_volume:
        console.print(f"Regularly sampled volume, spacing {volume.slice_spacing:g} mm")
    console.print(f"Poster: [magenta]{poster.name}[/magenta]")
    _print_outline_table(outlines)


def _build_source_volume(
    orientation: Tuple[float, ...],
    position: Tuple[float, float, float],
    spacing: Tuple[float, float],
    thickness: float,
    size: Tuple[int, int],
    frames: int,
    frame_spacing: float,
) -> ValidatedVolumeGeometry:
    """Stack ``frames`` copies of a slice along its right-handed normal."""
    first = SliceGeometry.from_image_plane(orientation, position, spacing, thickness, *size)
    normal = np.cross(first.row, first.column)
    with np.errstate(divide="ignore", invalid="ignore"):
        normal = normal / np.linalg.norm(normal)
    if not np.all(np.isfinite(normal)):
        raise GeometryError("Source row and column directions are parallel or zero")
    slices = [
        SliceGeometry.from_image_plane(
            orientation, first.tlhc + normal * frame_spacing * k, spacing, thickness, *size,
        )
        for k in range(frames)
    ]
    return from_slices(slices)


def _print_outline_table(outlines: list[Outline]) -> None:
    """Display a Rich table of outline vertices in localizer pixels."""
    if not outlines:
        console.print("[dim]Source does not reach the localizer plane; nothing to draw.[/dim]")
        return

    table = Table(title="Outline on localizer (pixels)")
    table.add_column("Outline", style="bold", justify="right")
    table.add_column("Closed", justify="center")
    table.add_column("Point", justify="right")
    table.add_column("X", style="cyan", justify="right")
    table.add_column("Y", style="cyan", justify="right")

    for i, outline in enumerate(outlines, 1):
        closed = "[green]Yes[/green]" if outline.closed else "[dim]No[/dim]"
        for j, (x, y) in enumerate(outline.points, 1):
            table.add_row(
                str(i) if j == 1 else "",
                closed if j == 1 else "",
                str(j),
                f"{x:.2f}",
                f"{y:.2f}",
            )

    console.print(table)
