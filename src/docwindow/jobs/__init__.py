"""Background jobs."""

from docwindow.jobs.janitor import CacheJanitor

__all__ = ["CacheJanitor"]
