"""Application model, health checks, incidents and SQLite project storage."""

__version__ = "0.1.0"