"""Workbench CLI tool."""

import typer

app = typer.Typer(name="workbench", help="Workbench RBAC CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


def _build_registry():
    from fastapi import FastAPI

    from workbench.api.routes import register_routes
    from workbench.core.config import settings
    from workbench.services.resource_service import ResourceRegistry

    registry = ResourceRegistry(settings.HTTP_METHOD_ACTIONS)
    register_routes(FastAPI(), registry, settings)
    return registry


@db_app.command("create-all")
def db_create_all():
    """Create every table that does not exist yet."""
    import workbench.models  # noqa: F401
    from workbench.core.config import settings
    from workbench.db.base import Base
    from workbench.db.session import create_db_engine

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    Base.metadata.create_all(bind=engine)
    typer.echo("Tables created (or already exist)")


@db_app.command("seed")
def db_seed():
    """Seed the super-admin role, permissions and user."""
    import workbench.models  # noqa: F401
    from workbench.core.config import settings
    from workbench.db.seeds.seed_super_admin import seed_super_admin
    from workbench.db.session import create_db_engine, create_session_factory

    if settings.is_production:
        typer.echo("Refusing to seed in production")
        raise typer.Exit(code=1)

    session_factory = create_session_factory(create_db_engine(settings.DATABASE_URL))
    db = session_factory()
    try:
        user = seed_super_admin(db, _build_registry(), settings)
        typer.echo(f"Super admin ready: {user.email}")
    finally:
        db.close()


@db_app.command("purge-tokens")
def db_purge_tokens():
    """Delete expired refresh, reset-password and verify-email tokens."""
    import workbench.models  # noqa: F401
    from workbench.core.config import settings
    from workbench.db.session import create_db_engine, create_session_factory, transaction
    from workbench.services.token_service import TokenService

    session_factory = create_session_factory(create_db_engine(settings.DATABASE_URL))
    db = session_factory()
    try:
        with transaction(db):
            deleted = TokenService(settings).purge_expired(db)
    finally:
        db.close()
    typer.echo(f"Purged {deleted} expired tokens")


@app.command("resources")
def list_resources():
    """Print the protected resources and the actions each accepts."""
    for entry in _build_registry().resources():
        typer.echo(f"  {entry['path']:<18} {entry['name']:<16} {', '.join(entry['actions'])}")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload"),
):
    """Start the FastAPI server."""
    import uvicorn
    uvicorn.run("workbench.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
