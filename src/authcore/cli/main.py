"""authcore CLI: run the server and operate on the credential store.

Usage:
    authcore serve                          # Run the API with uvicorn
    authcore init-db                        # Create tables in AUTHCORE_DATABASE_URL
    authcore create-user alice@example.com  # Register an identity (prompts for password)
    authcore verify-token <token>           # Print the claims in a token, or why it's rejected
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys

import click

from authcore.config import Settings, get_settings
from authcore.errors import AuthError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


async def _with_service(settings: Settings, fn):
    """Build engine + AuthService, run ``fn(service)``, dispose the engine."""
    from authcore.db.engine import create_all, create_engine, create_session_factory
    from authcore.services.auth_service import build_auth_service

    engine = create_engine(settings)
    try:
        if settings.db_create_all:
            await create_all(engine)
        service = build_auth_service(settings, create_session_factory(engine))
        return await fn(service)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """authcore: email/password identities and bearer tokens."""
    ctx.ensure_object(dict)
    if "settings" in ctx.obj:
        return
    try:
        ctx.obj["settings"] = get_settings()
    except ValueError as e:
        _fail(f"invalid configuration: {e}")


@cli.command()
@click.option("--host", default=None, help="Bind address (default: AUTHCORE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: AUTHCORE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    settings = _settings(ctx)
    uvicorn.run(
        "authcore.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context):
    """Create the users table if it doesn't exist."""
    from authcore.db.engine import create_all, create_engine

    settings = _settings(ctx)

    async def _init():
        engine = create_engine(settings)
        try:
            await create_all(engine)
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Tables created.", fg="green")


@cli.command("create-user")
@click.argument("email")
@click.password_option(help="Password (prompted if omitted)")
@click.pass_context
def create_user(ctx: click.Context, email: str, password: str):
    """Register a new identity."""
    settings = _settings(ctx)

    async def _create(service):
        return await service.register(email, password)

    try:
        user_id = _run(_with_service(settings, _create))
    except AuthError as e:
        _fail(e.message)
    click.secho(f"Created user {email} ({user_id})", fg="green")


@cli.command("verify-token")
@click.argument("token")
@click.pass_context
def verify_token(ctx: click.Context, token: str):
    """Verify a token and print its claims as JSON."""
    from authcore.services.auth_service import build_token_issuer

    settings = _settings(ctx)
    try:
        claims = build_token_issuer(settings).verify(token)
    except AuthError as e:
        _fail(e.message)

    click.echo(
        json.dumps(
            {
                "id": claims.subject,
                "email": claims.email,
                "issuedAt": claims.issued_at.isoformat(),
                "expiresAt": claims.expires_at.isoformat(),
            },
            indent=2,
        )
    )
