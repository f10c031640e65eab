"""RawBox CLI - Main commands."""
import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from rawbox.core.logging import setup_logging

app = typer.Typer(
    name="rawbox",
    help="RawBox file-sharing CLI",
    add_completion=False
)
console = Console()


# Store path: ~/.config/rawbox/credentials.db
def get_store_path() -> Path:
    override = os.environ.get("RAWBOX_STORE_PATH")
    if override:
        return Path(override)
    config_dir = Path.home() / ".config" / "rawbox"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "credentials.db"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


async def run_action(action):
    """
    Run ``action(model)`` against a fresh client and model.

    Failures are printed and turned into exit code 1.
    """
    from rawbox import APIConfig, FileServiceClient, RawBoxError, SessionStateModel, SQLiteCredentialStore

    config = APIConfig.from_env()
    store = SQLiteCredentialStore(get_store_path(), config.storage)
    try:
        async with FileServiceClient(config, store=store) as client:
            model = SessionStateModel(client)
            try:
                return await action(model)
            except RawBoxError as e:
                console.print(f"[red]{e.message}[/red]")
                if model.state.needs_login:
                    console.print("[yellow]Run 'rawbox login' to sign in again.[/yellow]")
                raise typer.Exit(1)
    finally:
        store.close()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (default: $RAWBOX_LOG_LEVEL or INFO)"),
):
    setup_logging(log_level)


@app.command()
def login(
    username: str = typer.Option(None, "--username", "-u", help="RawBox username"),
    password: str = typer.Option(None, "--password", "-p", help="RawBox password"),
):
    """Login to RawBox and save the session."""
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True)

    async def do_login(model):
        await model.login(username, password)
        console.print(f"[green]Logged in as {username}[/green]")
        console.print(f"Session saved to: {get_store_path()}")

    run_async(run_action(do_login))


@app.command()
def logout():
    """Logout and delete the stored credentials."""
    async def do_logout(model):
        was_logged_in = model.state.is_authenticated
        model.logout()
        if was_logged_in:
            console.print("[green]Logged out successfully[/green]")
        else:
            console.print("[yellow]No active session[/yellow]")

    run_async(run_action(do_logout))


@app.command()
def whoami():
    """Show which credentials are stored."""
    async def show(model):
        state = model.state
        if not state.is_authenticated:
            console.print("[red]Not logged in. Run 'rawbox login' first.[/red]")
            raise typer.Exit(1)
        console.print(f"Server: {model.client.config.base_url}")
        console.print(f"Session: {get_store_path()}")
        console.print(f"API token: {'set' if state.api_credential else 'not set'}")

    run_async(run_action(show))


@app.command()
def ls(
    path: str = typer.Argument("/", help="Path to list"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
):
    """List files and folders."""
    async def list_files(model):
        entries = await model.list_directory(path)

        if long:
            table = Table()
            table.add_column("Type", style="cyan")
            table.add_column("Size", justify="right")
            table.add_column("Modified", style="dim")
            table.add_column("Name")

            for entry in entries:
                type_str = "D" if entry.is_dir else "F"
                size_str = "-" if entry.is_dir else f"{entry.size:,}"
                modified = entry.modified_at.strftime("%Y-%m-%d %H:%M") if entry.modified_at else ""
                table.add_row(type_str, size_str, modified, entry.name)

            console.print(table)
        else:
            for entry in entries:
                if entry.is_dir:
                    console.print(f"[blue]{entry.name}/[/blue]")
                else:
                    console.print(entry.name)

    run_async(run_action(list_files))


@app.command()
def info(
    path: str = typer.Argument(..., help="File path"),
):
    """Show file information."""
    async def show_info(model):
        entry = await model.file_info(path)
        console.print(f"[bold]Name:[/bold] {entry.name}")
        console.print(f"[bold]Type:[/bold] {'Folder' if entry.is_dir else 'File'}")
        if entry.is_file:
            console.print(f"[bold]Size:[/bold] {entry.size:,} bytes ({format_size(entry.size)})")
        if entry.modified_at:
            console.print(f"[bold]Modified:[/bold] {entry.modified_at.isoformat()}")
        console.print(f"[bold]URL:[/bold] {model.download_url(path)}")

    run_async(run_action(show_info))


@app.command()
def url(
    path: str = typer.Argument(..., help="File path"),
):
    """Print the download URL of a file."""
    async def show_url(model):
        console.print(model.download_url(path), soft_wrap=True)

    run_async(run_action(show_url))


@app.command("set-api-token")
def set_api_token(
    token: str = typer.Argument(..., help="API token used in download URLs"),
):
    """Store the API token."""
    async def store_token(model):
        model.set_api_token(token)
        console.print("[green]API token saved[/green]")

    run_async(run_action(store_token))


@app.command()
def stats(
    start: Optional[str] = typer.Option(None, "--start", help="First day (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="Last day (YYYY-MM-DD)"),
):
    """Show usage statistics."""
    async def show_stats(model):
        summary = await model.fetch_stats(start, end)

        if not summary.has_numbers:
            console.print(
                f"[yellow]Server returned {len(summary.raw_logs)} raw log entries "
                f"without statistics. Set RAWBOX_SUMMARIZE_LOGS=1 to count them locally.[/yellow]"
            )
            return

        rate = "n/a" if summary.success_rate is None else f"{summary.success_rate:.2f}%"
        source = "server" if summary.aggregated else "local summary of raw logs"
        console.print(f"[bold]Total requests:[/bold] {summary.total_requests}")
        console.print(f"[bold]Success rate:[/bold] {rate}")
        console.print(f"[bold]Unique IPs:[/bold] {summary.unique_ips}")
        console.print(f"[dim]Source: {source}[/dim]")

        for title, rows in (("Hot files", summary.hot_files), ("Active IPs", summary.hot_ips)):
            if not rows:
                continue
            table = Table(title=title)
            table.add_column("#", justify="right", style="cyan")
            table.add_column("Name")
            table.add_column("Requests", justify="right")
            for rank, (name, count) in enumerate(rows[:10], start=1):
                table.add_row(str(rank), name, str(count))
            console.print(table)

    run_async(run_action(show_stats))


@app.command()
def logs(
    date: Optional[str] = typer.Option(None, "--date", help="Day to show (YYYY-MM-DD)"),
):
    """Show raw access-log entries."""
    async def show_logs(model):
        entries = await model.fetch_logs(date)
        if not entries:
            console.print("[yellow]No log entries[/yellow]")
            return

        columns = sorted({key for entry in entries for key in entry})
        table = Table()
        for column in columns:
            table.add_column(column)
        for entry in entries:
            table.add_row(*(str(entry.get(column, "")) for column in columns))
        console.print(table)

    run_async(run_action(show_logs))


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
