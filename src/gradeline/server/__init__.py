# Copyright (c) Syntropy Systems
"""gradeline HTTP server."""

from .app import create_app

__all__ = ["create_app"]
