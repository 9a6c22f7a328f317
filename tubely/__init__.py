"""Tubely: video upload ingest service."""

__version__ = "0.1.0"
