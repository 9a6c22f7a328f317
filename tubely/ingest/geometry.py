from __future__ import annotations

import enum
import json
import math
from pathlib import Path
from typing import Any, Tuple

from tubely.core.logging import get_logger
from tubely.core.process import ProcessRunner
from tubely.ingest.errors import ExternalToolFailure, IngestStage, MalformedProbeOutput


class GeometryCategory(str, enum.Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


def classify_dimensions(width: int | float, height: int | float) -> GeometryCategory:
    """Map a frame size to its coarse orientation.

    The two tests truncate the scaled ratio and compare against exact integers,
    in this order. This is narrower than a tolerance check: ratios just below
    16:9 or 9:16 fall through to ``other``.

    Args:
        width: Frame width in pixels.
        height: Frame height in pixels, non-zero.

    Returns:
        The geometry category.
    """
    ratio = width / height
    if math.floor(ratio * 9) == 16:
        return GeometryCategory.landscape
    if math.floor(ratio * 16) == 9:
        return GeometryCategory.portrait
    return GeometryCategory.other


def probe_arguments(target: Path) -> list[str]:
    return [
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height",
        "-of",
        "json",
        str(target),
    ]


def parse_probe_output(raw: str) -> Tuple[float, float]:
    """Extract the first video stream's width and height from ffprobe JSON.

    Args:
        raw: The ffprobe stdout.

    Returns:
        A ``(width, height)`` tuple.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedProbeOutput("probe output is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise MalformedProbeOutput("probe output is not a JSON object")

    streams = payload.get("streams")
    if not isinstance(streams, list) or not streams:
        raise MalformedProbeOutput("no video streams reported")
    first = streams[0]
    if not isinstance(first, dict):
        raise MalformedProbeOutput("stream entry is not an object")

    width = _dimension(first, "width")
    height = _dimension(first, "height")
    if height == 0:
        raise MalformedProbeOutput("stream height is zero")
    return width, height


def _dimension(stream: dict[str, Any], key: str) -> float:
    value = stream.get(key)
    if isinstance(value, bool) or value is None:
        raise MalformedProbeOutput(f"stream {key} missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedProbeOutput(f"stream {key} is not numeric: {value!r}") from exc
    if not math.isfinite(number) or number < 0:
        raise MalformedProbeOutput(f"stream {key} is out of range: {value!r}")
    return number


class GeometryClassifier:
    def __init__(self, runner: ProcessRunner, *, ffprobe_binary: str = "ffprobe"):
        self.runner = runner
        self.ffprobe_binary = ffprobe_binary
        self.logger = get_logger(component="geometry_classifier")

    def classify(self, file_path: Path) -> GeometryCategory:
        try:
            result = self.runner.run(self.ffprobe_binary, probe_arguments(file_path), file_path)
        except ExternalToolFailure as exc:
            exc.stage = IngestStage.classify
            raise
        width, height = parse_probe_output(result.stdout)
        category = classify_dimensions(width, height)
        self.logger.info("geometry_classified", path=str(file_path), width=width, height=height, category=category.value)
        return category


__all__ = [
    "GeometryCategory",
    "GeometryClassifier",
    "classify_dimensions",
    "parse_probe_output",
    "probe_arguments",
]
