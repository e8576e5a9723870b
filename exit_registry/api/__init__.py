"""HTTP transport adapter."""

from .server import create_app, run_app

__all__ = ["create_app", "run_app"]
