"""HTTP API for article processing and reading sessions."""

from .app import create_app

__all__ = ['create_app']
