"""
RepoView CLI - serve repositories and browse them from the terminal.

Usage:
    repoview serve --repos /srv/git --port 8080
    repoview ls my-project src --ref main
    repoview show my-project <commit>
"""

import os
import sys
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

DEFAULT_SERVER = "http://localhost:8080"

LINE_STYLES = {"add": "green", "delete": "red", "context": "dim"}
LINE_PREFIXES = {"add": "+", "delete": "-", "context": " "}


def get_server_url() -> str:
    """Get the RepoView server URL from env or default."""
    return os.environ.get("REPOVIEW_SERVER", DEFAULT_SERVER).rstrip("/")


def api_get(server: str | None, path: str, **params) -> httpx.Response:
    """GET an API path, exiting with a readable message on failure."""
    server_url = server or get_server_url()
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.get(f"{server_url}{path}", params=params or None)
            response.raise_for_status()
            return response
    except httpx.ConnectError:
        console.print(f"[red]Error:[/red] Could not connect to {server_url}")
        console.print("Is the RepoView server running?")
        sys.exit(1)
    except httpx.HTTPStatusError as e:
        try:
            detail = e.response.json().get("detail", e.response.text)
        except ValueError:
            detail = e.response.text
        console.print(f"[red]Error:[/red] API returned {e.response.status_code}: {detail}")
        sys.exit(1)


def format_size(size: int | None) -> str:
    if size is None:
        return ""
    if size < 1024:
        return f"{size} B"
    kb = size / 1024
    if kb < 1024:
        return f"{kb:.1f} KB"
    return f"{kb / 1024:.1f} MB"


@click.group()
@click.version_option(package_name="repoview")
def cli():
    """RepoView - browse bare git repositories over HTTP."""
    pass


@cli.command()
@click.option("--repos", "repos_path", envvar="REPOVIEW_REPOS_PATH", required=True,
              help="Directory holding <name>.git repositories")
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", "-p", envvar="REPOVIEW_PORT", default=8080, type=int, help="Port to listen on")
@click.option("--public-url", envvar="REPOVIEW_PUBLIC_URL", default=None, help="Base URL for public HTTPS clones")
@click.option("--tailnet-url", envvar="REPOVIEW_TAILNET_URL", default=None, help="Base URL for tailnet clones")
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve(repos_path: str, host: str, port: int, public_url: str | None, tailnet_url: str | None, reload: bool):
    """Run the RepoView API server."""
    import uvicorn

    path = Path(repos_path).resolve()
    if not path.is_dir():
        console.print(f"[red]Error:[/red] repos directory does not exist: {path}")
        sys.exit(1)

    # Settings are read from the environment when the app is imported
    os.environ["REPOVIEW_REPOS_PATH"] = str(path)
    if public_url:
        os.environ["REPOVIEW_PUBLIC_URL"] = public_url
    if tailnet_url:
        os.environ["REPOVIEW_TAILNET_URL"] = tailnet_url

    console.print(Panel.fit(
        f"Serving [cyan]{path}[/cyan]\n"
        f"Listening on [blue]http://{host}:{port}[/blue]",
        title="RepoView",
    ))
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)


@cli.command("repos")
@click.option("--server", "-s", default=None, help="RepoView server URL")
def list_repos(server: str | None):
    """List repositories visible to this client."""
    repos = api_get(server, "/api/repos").json()
    if not repos:
        console.print("No repositories found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Visibility")
    table.add_column("Last commit")
    table.add_column("Description")
    for repo in repos:
        visibility = "[green]public[/green]" if repo["is_public"] else "[yellow]private[/yellow]"
        table.add_row(repo["name"], visibility, repo.get("last_commit") or "", repo.get("description", ""))
    console.print(table)


@cli.command("ls")
@click.argument("repo")
@click.argument("path", default="")
@click.option("--ref", "-r", default="HEAD", help="Branch, tag or commit")
@click.option("--server", "-s", default=None, help="RepoView server URL")
def list_tree(repo: str, path: str, ref: str, server: str | None):
    """List a directory of REPO at --ref."""
    listing = api_get(server, f"/api/repos/{repo}/tree/{ref}/{path.strip('/')}").json()
    if listing["is_empty"]:
        console.print(f"[yellow]{repo} is empty.[/yellow] Push some content first.")
        return

    console.print(f"[bold]{repo}[/bold] @ {listing['revision'][:8]}  /{listing['path']}\n")
    submodules = listing.get("submodules", {})
    for entry in listing["entries"]:
        if entry["kind"] == "dir":
            console.print(f"  [blue]{entry['name']}/[/blue]")
        elif entry["kind"] == "submodule":
            info = submodules.get(entry["name"], {})
            target = info.get("web_url") or info.get("url") or ""
            console.print(f"  [magenta]{entry['name']}[/magenta] @ {entry['hash'][:8]}  {target}")
        else:
            console.print(f"  {entry['name']}  [dim]{format_size(entry.get('size'))}[/dim]")


@cli.command("cat")
@click.argument("repo")
@click.argument("path")
@click.option("--ref", "-r", default="HEAD", help="Branch, tag or commit")
@click.option("--server", "-s", default=None, help="RepoView server URL")
def cat_file(repo: str, path: str, ref: str, server: str | None):
    """Print a file of REPO at --ref."""
    response = api_get(server, f"/api/repos/{repo}/raw/{ref}/{path.strip('/')}")
    sys.stdout.buffer.write(response.content)


@cli.command("log")
@click.argument("repo")
@click.option("--ref", "-r", default="HEAD", help="Branch, tag or commit")
@click.option("--limit", "-n", default=20, type=int, help="Maximum number of commits")
@click.option("--server", "-s", default=None, help="RepoView server URL")
def log(repo: str, ref: str, limit: int, server: str | None):
    """Show commit history of REPO starting at --ref."""
    data = api_get(server, f"/api/repos/{repo}/commits/{ref}", limit=limit).json()
    if data["is_empty"]:
        console.print(f"[yellow]{repo} is empty.[/yellow]")
        return
    for commit in data["commits"]:
        first_line = commit["message"].split("\n", 1)[0]
        console.print(f"[yellow]{commit['short_id']}[/yellow] {first_line} [dim]- {commit['author']}, {commit['date']}[/dim]")


@cli.command()
@click.argument("repo")
@click.argument("commit_id")
@click.option("--server", "-s", default=None, help="RepoView server URL")
def show(repo: str, commit_id: str, server: str | None):
    """Show a commit and its diff."""
    diff = api_get(server, f"/api/repos/{repo}/commit/{commit_id}").json()
    commit = diff["commit"]
    stats = diff["stats"]

    console.print(Panel.fit(
        f"[yellow]{commit['id']}[/yellow]\n"
        f"Author: {commit['author']} <{commit['email']}>\n"
        f"Date:   {commit['date']}\n"
        f"Parent: {diff.get('parent_hash') or '(root commit)'}\n\n"
        f"{commit['message']}",
        title=commit["short_id"],
    ))
    console.print(
        f"{stats['files_changed']} file(s) changed, "
        f"[green]+{stats['additions']}[/green] [red]-{stats['deletions']}[/red]\n"
    )

    for file_diff in diff["files"]:
        name = file_diff["name"]
        if file_diff["status"] == "renamed":
            name = f"{file_diff['old_name']} -> {name}"
        console.print(f"[bold]{file_diff['status']}[/bold] {name}")
        if file_diff["is_binary"]:
            console.print("  [dim]Binary file[/dim]")
            continue
        for chunk in file_diff["chunks"]:
            console.print(
                f"[cyan]@@ -{chunk['old_start']},{chunk['old_lines']} "
                f"+{chunk['new_start']},{chunk['new_lines']} @@[/cyan]"
            )
            for line in chunk["lines"]:
                style = LINE_STYLES[line["type"]]
                console.print(f"{LINE_PREFIXES[line['type']]}{line['content']}", style=style, markup=False)
        console.print()


if __name__ == "__main__":
    cli()
