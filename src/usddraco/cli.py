"""CLI entry point for usddraco.

Usage:
    usddraco descriptors                     # List the attributes carried by the codec
    usddraco roundtrip in.usda out.usda      # USD -> compressed -> USD
    usddraco roundtrip in.usda out.usda --export-config export.yaml
    usddraco info in.usda                    # Show mesh statistics
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from usddraco.core.logging import setup_logging

app = typer.Typer(name="usddraco", help="Polygonal USD mesh <-> compressed triangle mesh codec")
console = Console()


def _require_pxr() -> None:
    from usddraco.geom.usd_io import has_pxr

    if not has_pxr():
        console.print("[red]usd-core is not installed (pip install usd-core)[/red]")
        raise typer.Exit(1)


@app.command()
def descriptors() -> None:
    """Show the fixed attribute descriptors and side channels."""
    from usddraco.translators.attribute_descriptor import AttributeDescriptor

    table = Table(title="Attribute descriptors")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Value type")
    table.add_column("Data type", style="dim")
    table.add_column("Primvar", style="yellow")
    table.add_column("Metadata name", style="dim")

    for descriptor in [
        AttributeDescriptor.for_positions(),
        AttributeDescriptor.for_tex_coords(),
        AttributeDescriptor.for_normals(),
        AttributeDescriptor.for_hole_faces(),
        AttributeDescriptor.for_added_edges(),
        AttributeDescriptor.for_pos_order(),
    ]:
        table.add_row(
            descriptor.name,
            descriptor.attribute_type.name,
            descriptor.value_type,
            f"{descriptor.data_type.name} x{descriptor.num_components}",
            "Y" if descriptor.is_primvar else "N",
            descriptor.metadata_name or "-",
        )
    console.print(table)


@app.command()
def roundtrip(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Input USD file"),
    output_path: Path = typer.Argument(..., help="Output USD file"),
    config: Path = typer.Option(None, "--config", "-c", help="codec.yaml path"),
    export_config: Path = typer.Option(None, "--export-config", help="YAML overriding the export section"),
    import_config: Path = typer.Option(None, "--import-config", help="YAML overriding the import section"),
    prim_path: str = typer.Option(None, "--prim", help="Mesh prim path in the input (default: first mesh)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Encode a USD mesh into the compressed model and decode it back."""
    setup_logging(verbose=verbose)
    _require_pxr()
    from usddraco.core.config import load_codec_config, load_section_config
    from usddraco.geom.usd_io import read_usd_file, write_usd_file
    from usddraco.translators.export_mesh.contracts import summarize_compressed_mesh
    from usddraco.translators.export_mesh.translator import ExportTranslator
    from usddraco.translators.import_mesh.contracts import summarize_general_mesh
    from usddraco.translators.import_mesh.translator import ImportTranslator

    codec_cfg = load_codec_config(config)
    if export_config is not None:
        codec_cfg.export = load_section_config(export_config, ExportTranslator.config_type)
    if import_config is not None:
        codec_cfg.import_ = load_section_config(import_config, ImportTranslator.config_type)
    mesh = read_usd_file(input_path, prim_path)

    compressed = ExportTranslator.translate(mesh, codec_cfg.export)
    if compressed is None:
        console.print("[red]Export failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Exported:[/green] {summarize_compressed_mesh(compressed).model_dump_json(indent=2)}")

    restored = ImportTranslator.translate(compressed, codec_cfg.import_)
    if restored is None:
        console.print("[red]Import failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Imported:[/green] {summarize_general_mesh(restored).model_dump_json(indent=2)}")

    write_usd_file(
        restored,
        output_path,
        codec_cfg.usd.prim_path,
        up_axis=codec_cfg.usd.up_axis,
        meters_per_unit=codec_cfg.usd.meters_per_unit,
    )
    console.print(f"[green]Done.[/green] Wrote {output_path}")


@app.command()
def info(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Input USD file"),
    prim_path: str = typer.Option(None, "--prim", help="Mesh prim path (default: first mesh)"),
) -> None:
    """Show face, point and primvar statistics of a USD mesh."""
    _require_pxr()
    from usddraco.geom.usd_io import read_usd_file

    mesh = read_usd_file(input_path, prim_path)
    counts = mesh.face_vertex_counts
    console.print(f"[cyan]{input_path}[/cyan]")
    console.print(
        f"{mesh.num_faces} faces, {mesh.num_points} points, "
        f"{mesh.num_corners} corners, {len(mesh.hole_indices)} holes"
    )
    if mesh.num_faces:
        console.print(
            f"Face sizes: min {int(counts.min())}, max {int(counts.max())}, "
            f"triangles only: {'Y' if mesh.has_triangles_only() else 'N'}"
        )

    table = Table(title="Primvars")
    table.add_column("Name", style="cyan")
    table.add_column("Interpolation", style="green")
    table.add_column("Type")
    table.add_column("Values", justify="right")
    table.add_column("Indices", justify="right", style="dim")
    for name, primvar in mesh.primvars.items():
        table.add_row(
            name,
            primvar.interpolation.value,
            primvar.type_name or "-",
            str(len(primvar.values)),
            str(len(primvar.indices)) if primvar.is_indexed else "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
