"""
Command-line interface for the Analyze Image client.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from az_analyze_image import __version__
from az_analyze_image.errors import AnalyzeImageError, HTTPError
from az_analyze_image.vision.versions import (
    VERSION_PROFILES,
    ApiVersion,
    Details,
    VisualFeature,
)

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
def cli():
    """Analyze Image - Azure AI Services image analysis client."""
    pass


@cli.command()
@click.argument("source")
@click.option(
    "--api-version", "-a",
    type=click.Choice([v.value for v in ApiVersion]),
    default=None,
    help="API version (default: from API_VERSION, else 4.0)"
)
@click.option(
    "--feature", "-F", "features",
    type=click.Choice([f.value for f in VisualFeature]),
    multiple=True,
    help="Visual feature to compute (can be specified multiple times)"
)
@click.option("--language", "-l", help="Output language, e.g. en, es")
@click.option("--model-version", help="Model version, 'latest' or YYYY-MM-DD")
@click.option("--model-name", help="(4.0) Custom model name")
@click.option(
    "--gender-neutral-caption/--no-gender-neutral-caption",
    default=None,
    help="(4.0) Generate gender neutral captions"
)
@click.option(
    "--smartcrops-aspect-ratio", "smartcrops_aspect_ratios",
    type=float,
    multiple=True,
    help="(4.0) Smart crop aspect ratio (can be specified multiple times)"
)
@click.option(
    "--details", "details",
    type=click.Choice([d.value for d in Details], case_sensitive=False),
    multiple=True,
    help="(3.2) Domain-specific details"
)
@click.option(
    "--description-exclude", "description_exclude",
    type=click.Choice([d.value for d in Details], case_sensitive=False),
    multiple=True,
    help="(3.2) Domain models to exclude from the description"
)
@click.option(
    "--format", "-f",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format"
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path for JSON (default: stdout)"
)
@click.option("--key", envvar="CV_KEY", help="Azure AI Services key (default: CV_KEY)")
@click.option("--endpoint", envvar="CV_ENDPOINT", help="Service endpoint (default: CV_ENDPOINT)")
def analyze(
    source: str,
    api_version: Optional[str],
    features: tuple,
    language: Optional[str],
    model_version: Optional[str],
    model_name: Optional[str],
    gender_neutral_caption: Optional[bool],
    smartcrops_aspect_ratios: tuple,
    details: tuple,
    description_exclude: tuple,
    format: str,
    output: Optional[str],
    key: Optional[str],
    endpoint: Optional[str]
):
    """Analyze an image given by URL or local file path."""
    from az_analyze_image.config import get_settings
    from az_analyze_image.observability.logging import get_logger, setup_logging
    from az_analyze_image.vision import AnalyzeImageClient, AnalyzeImageOptions

    settings = get_settings()
    setup_logging(log_format="console")

    key = key or settings.cv_key.get_secret_value()
    endpoint = endpoint or settings.cv_endpoint
    api_version = api_version or settings.api_version

    logger = get_logger(__name__)
    logger.debug("cli_analyze", source=source, api_version=api_version, features=list(features))

    async def run():
        options = AnalyzeImageOptions(
            features=features,
            language=language,
            model_version=model_version,
            details=details,
            description_exclude=description_exclude,
            model_name=model_name,
            gender_neutral_caption=gender_neutral_caption,
            smartcrops_aspect_ratios=smartcrops_aspect_ratios,
        )
        async with AnalyzeImageClient(
            key,
            endpoint,
            api_version,
            timeout=settings.request_timeout
        ) as client:
            if _is_url(source):
                return await client.analyze_image_url(source, options)
            image_path = Path(source)
            if not image_path.is_file():
                raise click.BadParameter(f"'{source}' is neither a URL nor a file", param_hint="SOURCE")
            return await client.analyze_image_data(image_path.read_bytes(), options)

    try:
        result = asyncio.run(run())
    except AnalyzeImageError as e:
        _print_error(e)
        sys.exit(1)

    if format == "json" or output:
        content = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        if output:
            with open(output, "w", encoding="utf-8") as f:
                f.write(content)
            console.print(f"[green]✓[/green] Output saved to {output}")
        else:
            click.echo(content)
        return

    _print_tables(result)


@cli.command()
def features():
    """List the visual features supported by each API version."""
    table = Table(title="Visual Features")
    table.add_column("Feature", style="cyan")
    for version in ApiVersion:
        table.add_column(f"v{version.value}", style="green")

    for feature in VisualFeature:
        row = [feature.value]
        for version in ApiVersion:
            row.append(VERSION_PROFILES[version].feature_wire_names.get(feature, "-"))
        table.add_row(*row)

    console.print(table)


def _is_url(source: str) -> bool:
    parts = urlsplit(source)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _print_error(error: AnalyzeImageError):
    lines = [f"[red]{type(error).__name__}[/red]: {error.message}"]
    if isinstance(error, HTTPError) and error.error is not None:
        lines.append(f"[cyan]Code:[/cyan] {error.error.error.code}")
    path = error.details.get("path")
    if path:
        lines.append(f"[cyan]Field:[/cyan] {path}")
    err_console.print(Panel("\n".join(lines), title="Analysis Failed", expand=False))


def _print_tables(result):
    summary = Table(title="Analysis", show_header=False)
    summary.add_column("Field", style="cyan")
    summary.add_column("Value", style="green")
    if result.metadata is not None:
        summary.add_row("Image size", f"{result.metadata.width} x {result.metadata.height}")
    if result.model_version:
        summary.add_row("Model version", result.model_version)
    for kind, count in result.detection_counts().items():
        summary.add_row(kind.replace("_", " ").capitalize(), str(count))
    console.print(summary)

    boxes = list(result.iter_boxes())
    if boxes:
        table = Table(title="Bounding Boxes")
        table.add_column("Path", style="cyan")
        table.add_column("x", justify="right")
        table.add_column("y", justify="right")
        table.add_column("w", justify="right")
        table.add_column("h", justify="right")
        for path, rect in boxes:
            table.add_row(path, str(rect.x), str(rect.y), str(rect.width), str(rect.height))
        console.print(table)

    caption = getattr(result, "caption_result", None)
    if caption is not None:
        console.print(Panel(f"{caption.text} ({caption.confidence:.2%})", title="Caption", expand=False))
    description = getattr(result, "description", None)
    if description is not None:
        for item in description.captions:
            console.print(Panel(f"{item.text} ({item.confidence:.2%})", title="Caption", expand=False))


if __name__ == "__main__":
    cli()
