"""nucleoprofile analyze — profile, segment and validate a set of outlines."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from nucleoprofile.cli.utils import (
    cell_progress,
    console,
    error_handler,
    make_progress,
    print_messages,
)

REQUIRED_COLUMNS = ("cell", "x", "y")


def load_cells(path: Path, spacing: float) -> list:
    """Read a cell,x,y outline table into evenly resampled cells.

    Rows are grouped by ``cell`` in file order; within a cell the rows give
    the border points in order.
    """
    import pandas as pd

    from nucleoprofile.core.models import Cell
    from nucleoprofile.profiling.outline import ensure_counter_clockwise, resample_outline

    frame = pd.read_csv(path)
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        console.print(f"[red]Error:[/red] {path} is missing columns: {', '.join(missing)}")
        raise SystemExit(1)

    cells = []
    for name, group in frame.groupby("cell", sort=False):
        points = group[["x", "y"]].to_numpy(dtype=float)
        outline = ensure_counter_clockwise(resample_outline(points, spacing))
        cells.append(Cell(outline, name=str(name)))
    return cells


def segments_frame(dataset, profile_type):
    """One row per cell segment, indexed from the cell's reference point."""
    import pandas as pd

    from nucleoprofile.core.models import REFERENCE_POINT

    rows = []
    for cell in dataset.cells:
        if not cell.has_segments() or not cell.has_profile(profile_type):
            continue
        rp = cell.get_border_index(REFERENCE_POINT)
        profile = cell.get_profile(profile_type, REFERENCE_POINT)
        for segment in profile.get_ordered_segments():
            rows.append({
                "cell": cell.name,
                "segment": segment.name,
                "start": segment.start,
                "end": segment.end,
                "length": segment.length,
                "border_start": (segment.start + rp) % cell.border_length,
            })
    return pd.DataFrame(
        rows, columns=["cell", "segment", "start", "end", "length", "border_start"],
    )


@click.command()
@click.argument("outlines", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--name", default=None,
    help="Dataset name. Defaults to the file stem.",
)
@click.option(
    "--preset", default="round", show_default=True,
    type=click.Choice(["round", "pointed"], case_sensitive=False),
    help="Landmark rule preset for the nucleus shape.",
)
@click.option(
    "--spacing", type=click.FloatRange(min=0, min_open=True),
    default=1.0, show_default=True,
    help="Distance between resampled outline points.",
)
@click.option(
    "--window-proportion",
    type=click.FloatRange(min=0, max=0.5, min_open=True, max_open=True),
    default=0.05, show_default=True,
    help="Angle window as a fraction of the perimeter.",
)
@click.option(
    "--min-segment-length", type=click.IntRange(min=3), default=10, show_default=True,
    help="Shortest segment the segmenter will create.",
)
@click.option(
    "--max-segments", type=click.IntRange(min=1), default=12, show_default=True,
    help="Most segments the template may have.",
)
@click.option(
    "--workers", type=click.IntRange(min=1), default=None,
    help="Worker threads. The executor decides if omitted.",
)
@click.option(
    "-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Write per-cell segments to this CSV file.",
)
@error_handler
def analyze(
    outlines: Path,
    name: str | None,
    preset: str,
    spacing: float,
    window_proportion: float,
    min_segment_length: int,
    max_segments: int,
    workers: int | None,
    output: Path | None,
) -> None:
    """Profile, segment and validate the cell outlines in OUTLINES.

    OUTLINES is a CSV file with columns cell, x, y.
    """
    from nucleoprofile.core.models import ProfileType
    from nucleoprofile.dataset import Dataset
    from nucleoprofile.profiling import (
        DatasetProfilingMethod,
        DatasetSegmentationMethod,
        ProfilingParams,
        SegmentationParams,
    )
    from nucleoprofile.rules import PRESETS
    from nucleoprofile.segment import SegmenterParams

    cells = load_cells(outlines, spacing)
    if not cells:
        console.print(f"[red]Error:[/red] No outlines found in {outlines}")
        raise SystemExit(1)

    dataset = Dataset(name or outlines.stem, cells, rule_sets=PRESETS[preset.lower()]())
    profiling_params = ProfilingParams(
        window_proportion=window_proportion, max_workers=workers,
    )
    segmentation_params = SegmentationParams(
        segmenter=SegmenterParams(
            min_segment_length=min_segment_length, max_segments=max_segments,
        ),
        max_workers=workers,
    )

    with make_progress() as progress:
        task = progress.add_task("Profiling...", total=len(cells))
        profiling = DatasetProfilingMethod(dataset, profiling_params).run(
            progress_callback=cell_progress(progress, task, "Profiling"),
        )
        task = progress.add_task("Segmenting...", total=len(cells))
        result = DatasetSegmentationMethod(dataset, segmentation_params).run(
            progress_callback=cell_progress(progress, task, "Fitting"),
        )

    # Summary
    console.print()
    status = "[green]valid[/green]" if result.valid else "[red]invalid[/red]"
    console.print(f"[green]Analysis complete:[/green] dataset {dataset.name} is {status}")
    console.print(f"  Cells profiled: {profiling.cells_profiled} of {len(cells)}")
    console.print(f"  Template segments: {result.segment_count}")
    console.print(f"  Cells fitted: {result.cells_fitted}")
    console.print(
        f"  Elapsed: {profiling.elapsed_seconds + result.elapsed_seconds:.1f}s"
    )

    table = Table(title="Template")
    table.add_column("Landmark")
    table.add_column("Index", justify="right")
    collection = dataset.collection
    for landmark, index in collection.landmarks.items():
        table.add_row(landmark.name, str(index))
    console.print(table)

    print_messages("Warnings", profiling.warnings + result.warnings, "yellow")
    print_messages("Validation errors", result.validation_errors, "red")

    if output is not None:
        frame = segments_frame(dataset, ProfileType.ANGLE)
        frame.to_csv(output, index=False)
        console.print(f"\nWrote {len(frame)} segment rows to {output}")

    if not result.valid:
        raise SystemExit(1)
