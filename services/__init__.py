"""
Service layer for the offers loader.

This package contains framework-agnostic ingestion logic used by the
API, the Celery worker and the CLI.
"""

__version__ = "1.0.0"
