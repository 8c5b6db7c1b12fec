"""attachkit CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="attachkit",
    help="Encrypted attachment uploads",
    add_completion=False
)
console = Console()

# Exit codes
EXIT_FATAL = 1
EXIT_RETRY_LATER = 2


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Attachment to upload", exists=True, dir_okay=False),
    v3: Optional[bool] = typer.Option(None, "--v3/--v2", help="Upload protocol (default from config)"),
    rest_only: bool = typer.Option(False, "--rest-only", help="Do not use the websocket"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Encrypt and upload an attachment."""
    from attachkit import AttachmentClient, ServiceConfig, AttachmentUploadError, setup_logging
    from attachkit.core.upload import UploadV3Result
    
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
        setup_logging(logging.DEBUG)
    
    async def do_upload():
        config = ServiceConfig.from_env()
        async with AttachmentClient(config, use_websocket=not rest_only) as client:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)
                
                def on_progress(fraction: float):
                    progress.update(task, completed=fraction * 100)
                
                try:
                    result = await client.upload(file_path, progress=on_progress, use_v3=v3)
                except AttachmentUploadError as e:
                    console.print(f"[red]Upload failed: {e}[/red]")
                    if e.retryable:
                        console.print("[yellow]Network problem, try again later.[/yellow]")
                        raise typer.Exit(EXIT_RETRY_LATER)
                    raise typer.Exit(EXIT_FATAL)
        
        table = Table(show_header=False)
        if isinstance(result, UploadV3Result):
            table.add_row("CDN key", result.cdn_key)
            table.add_row("CDN", str(result.cdn_number))
        else:
            table.add_row("Object key", result.object_key)
            table.add_row("Server id", str(result.server_id))
        table.add_row("Key", result.encryption_key.hex())
        table.add_row("Digest", result.digest.hex())
        table.add_row("Uploaded at", str(result.upload_timestamp))
        console.print("[green]Uploaded[/green]")
        console.print(table)
    
    run_async(do_upload())


@app.command()
def config():
    """Show configuration resolved from the environment."""
    from attachkit import ServiceConfig
    
    cfg = ServiceConfig.from_env()
    table = Table(title="attachkit configuration")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Service URL", cfg.service_url)
    table.add_row("Websocket URL", cfg.websocket_url or "-")
    for number, url in sorted(cfg.cdn_urls.items()):
        table.add_row(f"CDN {number}", url)
    table.add_row("Protocol", "v3" if cfg.use_v3 else "v2")
    table.add_row("Username", cfg.username or "-")
    table.add_row("Session open attempts", str(cfg.retry.session_open_attempts))
    table.add_row("Upload attempts", str(cfg.retry.upload_attempts))
    table.add_row("Retry delay", f"{cfg.retry.retry_delay:.1f}s")
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
