"""Middleware package for the application."""

from progression.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
