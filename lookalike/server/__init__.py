"""HTTP surface - FastAPI application and schemas."""

from .app import create_app

__all__ = ["create_app"]
