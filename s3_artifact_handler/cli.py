"""Command line entry point for the S3 Artifact Handler."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import click

from .exceptions import ArtifactHandlerError
from .main import ArtifactHandler

LOGGER = logging.getLogger(__name__)

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)


def _split_files(ctx, param, value: Tuple[str, ...]) -> Tuple[str, ...]:
    files = tuple(item for raw in value for item in raw.split(",") if item)
    if not files:
        raise click.BadParameter("at least one path is required", ctx=ctx, param=param)
    return files


@click.group()
@click.version_option(version="1.0.0")
def main() -> None:
    """Archive files into an S3-compatible bucket and fetch them back."""


@main.command()
@click.option("--config-file", "-c", "config_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Path to the YAML configuration file.")
@click.option("--bucket", required=True, help="Bucket to upload to (created if it does not exist).")
@click.option("--object", "object_key", help="Object name; a random UUID is used when omitted.")
@click.option("--files", required=True, multiple=True, callback=_split_files, help="Comma separated paths or glob patterns. A trailing '/' recurses into a directory.")
@click.option("--ensure-bucket/--no-ensure-bucket", default=None, help="Check for the bucket and create it when missing (default from config).")
@click.option("--progress/--no-progress", "show_progress", default=None, help="Show the packing progress bar (default from config).")
@click.option("--log-level", type=LOG_LEVELS, help="Override logging level.")
def upload(
    config_path: str,
    bucket: str,
    object_key: Optional[str],
    files: Tuple[str, ...],
    ensure_bucket: Optional[bool],
    show_progress: Optional[bool],
    log_level: Optional[str],
) -> None:
    """Pack FILES into an archive and upload it; prints the object key."""
    try:
        handler = ArtifactHandler.from_config(
            config_path,
            bucket,
            log_level=log_level,
            ensure_bucket=ensure_bucket,
            show_progress=show_progress,
        )
        key = handler.upload(files, object_key)
    except ArtifactHandlerError as exc:
        LOGGER.error("Upload failed: %s", exc)
        raise SystemExit(1) from exc
    click.echo(key)


@main.command()
@click.option("--config-file", "-c", "config_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Path to the YAML configuration file.")
@click.option("--bucket", required=True, help="Bucket holding the archive.")
@click.option("--object", "object_key", required=True, help="Object name returned by upload.")
@click.option("--output", "extract_to", type=click.Path(file_okay=False), help="Extract into this directory instead of the configured one.")
@click.option("--remove", is_flag=True, help="Delete the remote object after a successful download.")
@click.option("--log-level", type=LOG_LEVELS, help="Override logging level.")
def download(
    config_path: str,
    bucket: str,
    object_key: str,
    extract_to: Optional[str],
    remove: bool,
    log_level: Optional[str],
) -> None:
    """Download an archive and extract it."""
    try:
        handler = ArtifactHandler.from_config(config_path, bucket, log_level=log_level)
        handler.download(object_key, extract_to, remove=remove)
    except ArtifactHandlerError as exc:
        LOGGER.error("Download failed: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
