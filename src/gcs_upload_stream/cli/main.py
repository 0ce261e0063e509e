"""CLI interface for resumable chunked uploads."""

import logging
import sys
from pathlib import Path

import click
import requests
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from ..core.api import ResumableFileUploader
from ..core.exceptions import UploadStreamError
from ..core.models import MIN_CHUNK_SIZE, UploadConfiguration
from ..core.session import UploadSession
from ..core.storage import JsonFileChecksumStore, MemoryChecksumStore

DEFAULT_STORE_DIR = Path.home() / ".gcs-upload-stream" / "checksums"

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()

CLI_ERRORS = (UploadStreamError, requests.exceptions.RequestException, OSError, ValueError)

url_option = click.option(
    "--url",
    envvar="UPLOAD_STREAM_URL",
    required=True,
    help="Resumable upload URL (or set UPLOAD_STREAM_URL env var)",
)
id_option = click.option(
    "--id",
    "upload_id",
    envvar="UPLOAD_STREAM_ID",
    required=True,
    help="Upload id used to key stored checksums (or set UPLOAD_STREAM_ID env var)",
)
store_option = click.option(
    "--store-dir",
    envvar="UPLOAD_STREAM_STORE_DIR",
    type=click.Path(file_okay=False),
    default=str(DEFAULT_STORE_DIR),
    show_default=True,
    help="Directory for stored checksums (or set UPLOAD_STREAM_STORE_DIR env var)",
)
chunk_size_option = click.option(
    "--chunk-size",
    type=int,
    default=MIN_CHUNK_SIZE,
    show_default=True,
    help="Chunk size in bytes, a multiple of 262144",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """Upload Stream CLI - Resumable chunked uploads."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.ensure_object(dict)


@cli.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@url_option
@id_option
@chunk_size_option
@click.option("--content-type", default="application/octet-stream", show_default=True)
@click.option("--retries", type=int, default=5, show_default=True, help="Retries per chunk")
@click.option(
    "--backoff-ms", type=int, default=1000, show_default=True, help="Delay between retries"
)
@store_option
@click.option(
    "--restart-on-mismatch",
    is_flag=True,
    help="Start over if the file changed since the previous attempt",
)
def upload(
    local_path,
    url,
    upload_id,
    chunk_size,
    content_type,
    retries,
    backoff_ms,
    store_dir,
    restart_on_mismatch,
):
    """Upload a file, resuming a previous attempt when possible."""
    try:
        file_size = Path(local_path).stat().st_size

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Uploading {Path(local_path).name}", total=file_size)

            def on_progress(chunk):
                progress.update(task, completed=chunk.uploaded_bytes)

            def on_chunk_upload(chunk):
                progress.update(task, completed=chunk.uploaded_bytes)
                logger.debug(f"Chunk {chunk.chunk_index} uploaded")

            config = UploadConfiguration(
                id=upload_id,
                url=url,
                chunk_size=chunk_size,
                content_type=content_type,
                backoff_delay_millis=backoff_ms,
                backoff_retry_limit=retries,
                on_progress=on_progress,
                on_chunk_upload=on_chunk_upload,
                storage=JsonFileChecksumStore(store_dir),
            )
            uploader = ResumableFileUploader(config, restart_on_mismatch=restart_on_mismatch)
            uploader.upload(local_path)

        console.print(f"[green]✓[/green] Uploaded [cyan]{local_path}[/cyan] ({file_size} bytes)")

    except KeyboardInterrupt:
        console.print("[yellow]Upload interrupted. Run the same command again to resume.[/yellow]")
        sys.exit(130)
    except CLI_ERRORS as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@url_option
@id_option
@chunk_size_option
@store_option
def status(url, upload_id, chunk_size, store_dir):
    """Show how far an upload has progressed on the server."""
    try:
        stored = JsonFileChecksumStore(store_dir).checksums(upload_id)
        # Probe only; a throwaway store keeps a mistyped chunk size from resetting saved state
        session = UploadSession(
            UploadConfiguration(
                id=upload_id,
                url=url,
                chunk_size=chunk_size,
                storage=MemoryChecksumStore(),
            )
        )
        resume_index = session.get_remote_resume_index()

        table = Table(title="Upload Status")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Id", upload_id)
        table.add_row("Chunk size", str(chunk_size))
        table.add_row("Resume index", str(resume_index))
        table.add_row("Bytes on server", str(resume_index * chunk_size))
        table.add_row("Stored checksums", str(len(stored)))
        console.print(table)

    except CLI_ERRORS as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
@id_option
@store_option
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def cancel(upload_id, store_dir, yes):
    """Forget stored checksums so the next upload starts over."""
    if not yes and not click.confirm(f"Clear stored checksums for '{upload_id}'?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    try:
        store = JsonFileChecksumStore(store_dir)
        count = len(store.checksums(upload_id))
        store.clear(upload_id)
        console.print(f"[green]✓[/green] Cleared {count} stored checksums for {upload_id}")
    except CLI_ERRORS as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()
