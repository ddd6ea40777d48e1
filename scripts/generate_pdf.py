#!/usr/bin/env python3
"""
Resume PDF Generation and Publishing CLI

Renders a resume record (YAML or JSON) into a paginated A4 PDF with header and
watermark overlays, and optionally publishes it to the remote store.

Commands:
    generate - Render a resume file to PDF and save it locally
    publish  - Save the record, render the PDF, upload it and link its URL
    records  - List records stored remotely

Examples:\n

    generate_pdf.py generate data/jane_doe.yaml                      # Render with defaults

    generate_pdf.py generate data/jane_doe.yaml -c config/render.yaml

    generate_pdf.py generate data/jane_doe.json --name "Jane Doe"    # Override filename

    generate_pdf.py publish data/jane_doe.yaml                       # Needs SUPABASE_URL/KEY

    generate_pdf.py records
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from omegaconf import OmegaConf
from typing_extensions import Annotated

from resumark.contexts.authoring import ResumeData, build_content_tree
from resumark.contexts.publishing import PersistenceFailure, SupabaseStorageAdapter, publish_resume
from resumark.contexts.publishing.logger import setup_publishing_logger
from resumark.contexts.rendering import RenderError, generate_sync, load_render_config
from resumark.contexts.rendering.logger import setup_rendering_logger
from resumark.utils.timestamp import now

LOG_ROOT = Path("outs/logs")
DEFAULT_CONFIG = Path("config/render.yaml")


def display_path(path: Path) -> str:
    """Return path relative to the working directory for cleaner display."""
    try:
        return str(Path(path).resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def load_resume(resume_file: Path) -> ResumeData:
    """Load a YAML or JSON resume record (JSON is valid YAML)."""
    if not resume_file.exists():
        typer.secho(f"Error: Resume file not found: {resume_file}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    data = OmegaConf.to_container(OmegaConf.load(resume_file), resolve=True)
    if not isinstance(data, dict):
        typer.secho(f"Error: {resume_file} does not contain a resume mapping\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return ResumeData.from_dict(data)


def resolve_config_path(config_file: Optional[Path]) -> Optional[Path]:
    if config_file is not None:
        return config_file
    return DEFAULT_CONFIG if DEFAULT_CONFIG.exists() else None


app = typer.Typer(
    help="Render resumes to paginated PDFs with header and watermark overlays",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("generate")
def generate_command(
    resume_file: Annotated[
        Path,
        typer.Argument(help="Resume record (YAML or JSON)"),
    ],
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Render config YAML (default: config/render.yaml if present)"),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Directory for the generated PDF"),
    ] = None,
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Subject name for the filename (default: the resume's full name)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug output (page geometry, overlay loading)"),
    ] = False,
):
    """
    Render a resume file to PDF.

    The PDF is saved as <name>_Resume.pdf (or Resume.pdf when the resume has
    no name) in the configured output directory. Overlays that cannot be
    loaded are left out and reported; the PDF is still produced.

    Examples:\n

        $ generate_pdf.py generate data/jane_doe.yaml

        $ generate_pdf.py generate data/jane_doe.yaml -o outs/pdfs --verbose
    """
    overrides = {"output_dir": str(output_dir)} if output_dir else None
    try:
        config = load_render_config(resolve_config_path(config_file), overrides=overrides)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    resume = load_resume(resume_file)
    log_file = setup_rendering_logger(LOG_ROOT / f"render_{now()}", dpi=config.dpi, verbose=verbose)

    typer.secho(f"\nGenerating: {display_path(resume_file)}", fg=typer.colors.BLUE, bold=True)
    typer.echo("")

    tree = build_content_tree(resume, include_preview_overlays=False)
    try:
        artifact = generate_sync(tree, name if name is not None else resume.subject_name, config)
    except RenderError as e:
        typer.secho(f"\n✗ Generation failed: {e}\n", fg=typer.colors.RED, bold=True, err=True)
        typer.echo(f"  Log: {display_path(log_file)}")
        raise typer.Exit(code=1)

    typer.echo("")
    typer.secho("✓ Generation succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Pages: {artifact.page_count}")
    if artifact.missing_overlays:
        typer.secho(f"  Missing overlays: {', '.join(artifact.missing_overlays)}", fg=typer.colors.YELLOW)
    if artifact.saved_path:
        typer.echo(f"  PDF: {display_path(artifact.saved_path)}")
    elif artifact.save_error:
        typer.secho(f"  Not saved: {artifact.save_error}", fg=typer.colors.YELLOW)
    typer.echo(f"  Log: {display_path(log_file)}")
    typer.echo("")


@app.command("publish")
def publish_command(
    resume_file: Annotated[
        Path,
        typer.Argument(help="Resume record (YAML or JSON)"),
    ],
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Render config YAML (default: config/render.yaml if present)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug output (HTTP requests)"),
    ] = False,
):
    """
    Save a resume record remotely, render its PDF, upload it and link the URL.

    Requires SUPABASE_URL and SUPABASE_KEY (environment or .env). Storage
    failures are reported without discarding the generated PDF.

    Examples:\n

        $ generate_pdf.py publish data/jane_doe.yaml
    """
    try:
        config = load_render_config(resolve_config_path(config_file))
        adapter = SupabaseStorageAdapter.from_env()
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    resume = load_resume(resume_file)
    log_file = setup_publishing_logger(LOG_ROOT / f"publish_{now()}", record_id=resume.id, verbose=verbose)

    typer.secho(f"\nPublishing: {resume.title} ({resume.id})", fg=typer.colors.BLUE, bold=True)
    typer.echo("")

    try:
        result = asyncio.run(publish_resume(resume, config, adapter))
    except RenderError as e:
        typer.secho(f"\n✗ Generation failed: {e}\n", fg=typer.colors.RED, bold=True, err=True)
        typer.echo(f"  Log: {display_path(log_file)}")
        raise typer.Exit(code=1)

    typer.echo("")
    if result.succeeded:
        typer.secho("✓ Published", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho("⚠ PDF generated, but storage was incomplete", fg=typer.colors.YELLOW, bold=True)
        for failure in result.failures:
            typer.secho(f"  - {failure.stage}: {failure.message}", fg=typer.colors.RED)

    typer.echo(f"  Pages: {result.artifact.page_count}")
    if result.pdf_url:
        typer.echo(f"  URL: {result.pdf_url}")
    if result.artifact.saved_path:
        typer.echo(f"  PDF: {display_path(result.artifact.saved_path)}")
    typer.echo(f"  Log: {display_path(log_file)}")
    typer.echo("")

    raise typer.Exit(code=0 if result.succeeded else 1)


@app.command("records")
def records_command():
    """
    List resume records stored remotely, most recently updated first.

    Examples:\n

        $ generate_pdf.py records
    """
    try:
        adapter = SupabaseStorageAdapter.from_env()
        records = asyncio.run(adapter.fetch_records())
    except (ValueError, PersistenceFailure) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not records:
        typer.echo("No records stored.")
        return

    for record in records:
        typer.echo(f"{record.id}  {record.title}")
        if record.pdf_url:
            typer.echo(f"    {record.pdf_url}")


if __name__ == "__main__":
    app()
