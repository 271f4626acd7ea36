"""Middleware for shortlink web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
