"""DocVault CLI tool (docvault)."""

import asyncio
import mimetypes
import os
from typing import List, Optional

import httpx
import typer

from docvault.core.config import settings

app = typer.Typer(name="docvault", help="DocVault CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")

API_URL = os.environ.get("DOCVAULT_API_URL", "http://localhost:8000")


def _headers(token: Optional[str]) -> dict:
    token = token or os.environ.get("DOCVAULT_TOKEN")
    if not token:
        typer.echo("No token: pass --token or set DOCVAULT_TOKEN", err=True)
        raise typer.Exit(code=2)
    return {"Authorization": f"Bearer {token}"}


def _fail(resp: httpx.Response) -> None:
    try:
        detail = resp.json().get("detail", resp.text)
    except ValueError:
        detail = resp.text
    typer.echo(f"Error {resp.status_code}: {detail}", err=True)
    raise typer.Exit(code=1)


@db_app.command("init")
def db_init():
    """Create the files and profiles tables if they don't exist."""
    from docvault.db.session import create_all

    asyncio.run(create_all())
    typer.echo("Tables ready")


@app.command("upload")
def upload_files(
    paths: List[str] = typer.Argument(..., help="Files to upload"),
    description: Optional[str] = typer.Option(None, help="Description applied to every file"),
    tags: Optional[str] = typer.Option(None, help="Comma-separated tags applied to every file"),
    token: Optional[str] = typer.Option(None, help="Bearer token"),
):
    """Upload files via the API."""
    handles = [open(p, "rb") for p in paths]
    try:
        files = [
            ("files", (os.path.basename(p), f, mimetypes.guess_type(p)[0] or "application/octet-stream"))
            for p, f in zip(paths, handles)
        ]
        data = {}
        if description:
            data["descriptions"] = [description] * len(paths)
        if tags:
            data["tags"] = [tags] * len(paths)
        resp = httpx.post(
            f"{API_URL}/api/files/upload",
            files=files,
            data=data,
            headers=_headers(token),
            timeout=120,
        )
    finally:
        for f in handles:
            f.close()
    if resp.is_error:
        _fail(resp)
    for outcome in resp.json()["outcomes"]:
        line = f"  {outcome['status']:<16} {outcome['file_name']}"
        if outcome.get("error"):
            line += f"  ({outcome['error']})"
        typer.echo(line)


@app.command("browse")
def browse(
    text: str = typer.Option("", help="Search name, description and tags"),
    category: str = typer.Option("all", help="Category filter"),
    sort: str = typer.Option("created_at", help="name | created_at | size_bytes | category"),
    direction: str = typer.Option("desc", "--dir", help="asc | desc"),
    token: Optional[str] = typer.Option(None, help="Bearer token"),
):
    """List files in the vault."""
    from docvault.services.classifier import format_size

    resp = httpx.get(
        f"{API_URL}/api/files/",
        params={"text": text, "category": category, "sort": sort, "dir": direction},
        headers=_headers(token),
    )
    if resp.is_error:
        _fail(resp)
    for f in resp.json():
        typer.echo(f"  [{f['id']}] {f['name']}  {f['category']}  {format_size(f['size_bytes'])}")


@app.command("link")
def link(
    file_id: str = typer.Argument(..., help="File id"),
    token: Optional[str] = typer.Option(None, help="Bearer token"),
):
    """Print a fresh time-limited URL for a file."""
    resp = httpx.get(f"{API_URL}/api/files/{file_id}/link", headers=_headers(token))
    if resp.is_error:
        _fail(resp)
    body = resp.json()
    typer.echo(body["url"])
    typer.echo(f"expires {body['expires_at']}", err=True)


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(settings.DEBUG, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("docvault.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
