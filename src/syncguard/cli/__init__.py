"""syncguard command-line interface (typer)."""

from syncguard.cli.app import app

__all__ = ["app"]
