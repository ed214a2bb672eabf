"""API routers."""

from studyaid.routers import health, processing

__all__ = ["health", "processing"]
