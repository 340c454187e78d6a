"""projecthub CLI — run the server and talk to its API.

Usage:
    projecthub serve                                  # Run the API with uvicorn
    projecthub init-db                                # Create database tables
    projecthub gen-secret                             # Print a random JWT secret
    projecthub register bob bob@x.com                 # Create an account
    projecthub login bob                              # Print a bearer token
    projecthub verify                                 # Check PROJECTHUB_TOKEN
    projecthub projects list --page 2 --sort-by name  # List your projects
    projecthub projects import projects.json          # Bulk-create projects
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import secrets
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from projecthub import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("PROJECTHUB_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the projecthub API."""
    headers = {"Authorization": f"Bearer {token}"} if token else None
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("PROJECTHUB_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set PROJECTHUB_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _unwrap(response: httpx.Response):
    """Return the envelope's data, or print the error message and exit."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if response.is_error or body.get("code", 0) != 0:
        message = body.get("message") or response.reason_phrase
        click.secho(f"Error ({response.status_code}): {message}", fg="red", err=True)
        for err in body.get("errors", []):
            click.secho(f"  {err.get('field')}: {err.get('message')}", fg="red", err=True)
        sys.exit(1)
    return body.get("data")


def _load_import_file(path: Path) -> list:
    """Accept either a bare JSON list or {"projects": [...]}."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON ({e})", param_hint="FILE")
    if isinstance(data, dict):
        data = data.get("projects", [])
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON list of projects", param_hint="FILE")
    return data


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="projecthub")
def main():
    """projecthub — owner-scoped projects behind bearer-token auth."""


# ---------------------------------------------------------------------------
# Server management
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: PROJECTHUB_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: PROJECTHUB_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from projecthub.config import settings

    uvicorn.run(
        "projecthub.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create any missing database tables."""
    from projecthub.config import settings
    from projecthub.db.engine import build_engine, init_models

    async def _init():
        engine = build_engine(settings.database_url)
        await init_models(engine)
        await engine.dispose()

    _run(_init())
    click.secho("Database tables are ready.", fg="green")


@main.command("gen-secret")
def gen_secret():
    """Print a random value suitable for PROJECTHUB_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(32))


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create a new account."""

    async def _register():
        async with _client() as c:
            return await c.post(
                "/api/auth/register",
                json={"username": username, "email": email, "password": password},
            )

    user = _unwrap(_run(_register()))
    click.secho(f"Registered {user['username']} ({user['id']})", fg="green")


@main.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, password: str):
    """Log in and print the bearer token (export it as PROJECTHUB_TOKEN)."""

    async def _login():
        async with _client() as c:
            return await c.post(
                "/api/auth/login",
                json={"username": username, "password": password},
            )

    data = _unwrap(_run(_login()))
    click.echo(data["accessToken"])
    hours = data["expiresIn"] // 3600
    click.secho(f"Token valid for {hours} hours.", fg="green", err=True)


@main.command()
@click.option("--token", help="Bearer token (or set PROJECTHUB_TOKEN)")
def verify(token: Optional[str]):
    """Check that a token is still valid."""
    tok = _require_token(token)

    async def _verify():
        async with _client(tok) as c:
            return await c.get("/api/auth/verify")

    user = _unwrap(_run(_verify()))
    click.secho(f"Token is valid for {user['username']} <{user['email']}>", fg="green")


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@main.group()
def projects():
    """Manage your projects."""


@projects.command("list")
@click.option("--token", help="Bearer token (or set PROJECTHUB_TOKEN)")
@click.option("--page", "-p", default=1, help="Page number")
@click.option("--page-size", "-n", default=20, help="Items per page (max 100)")
@click.option(
    "--sort-by",
    default="updatedAt",
    type=click.Choice(["name", "createdAt", "updatedAt"]),
)
@click.option("--order", default="desc", type=click.Choice(["asc", "desc"]))
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def list_projects(token, page, page_size, sort_by, order, as_json):
    """List your projects."""
    tok = _require_token(token)

    async def _list():
        async with _client(tok) as c:
            return await c.get(
                "/api/projects",
                params={
                    "page": page,
                    "pageSize": page_size,
                    "sortBy": sort_by,
                    "order": order,
                },
            )

    data = _unwrap(_run(_list()))
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
        return

    items = data["projects"]
    pagination = data["pagination"]
    if not items:
        click.echo("No projects found.")
        return

    click.secho(
        f"Projects (page {pagination['page']}/{pagination['totalPages']}, "
        f"{pagination['total']} total):",
        bold=True,
    )
    for p in items:
        click.echo(
            f"  {p['id'][:8]}  {p['name']:50s}  "
            f"{len(p['components']):3d} components  updated {p['updatedAt']}"
        )


@projects.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--token", help="Bearer token (or set PROJECTHUB_TOKEN)")
def import_projects(file: Path, token: Optional[str]):
    """Bulk-create projects from a JSON FILE (max 100 per batch)."""
    tok = _require_token(token)
    items = _load_import_file(file)

    async def _import():
        async with _client(tok) as c:
            return await c.post("/api/projects/batch-import", json={"projects": items})

    result = _unwrap(_run(_import()))
    click.secho(f"Imported {result['importedCount']} project(s).", fg="green")
    if result["failedCount"]:
        click.secho(f"Failed {result['failedCount']}:", fg="yellow")
        for name in result.get("failedItems", []):
            click.echo(f"  - {name}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
