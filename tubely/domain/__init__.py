"""Ingest building blocks reused by the service layer and the CLI."""

from tubely.ingest.faststart import FastStartRewriter
from tubely.ingest.geometry import GeometryCategory, GeometryClassifier, classify_dimensions
from tubely.ingest.keys import compose_storage_key, media_type_extension
from tubely.ingest.tempfiles import remove_quietly, scoped_temp_file, stage_upload

__all__ = [
    "FastStartRewriter",
    "GeometryCategory",
    "GeometryClassifier",
    "classify_dimensions",
    "compose_storage_key",
    "media_type_extension",
    "remove_quietly",
    "scoped_temp_file",
    "stage_upload",
]
