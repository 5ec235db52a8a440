"""
FastAPI application for the offers loader.

This package contains the REST API for registering sellers, uploading
offer spreadsheets and tracking ingestion tasks.
"""

__version__ = "1.0.0"
