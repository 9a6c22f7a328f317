from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .core.config import get_settings
from .core.process import SubprocessRunner
from .ingest.errors import IngestError
from .ingest.faststart import FastStartRewriter
from .ingest.geometry import GeometryClassifier

console = Console()


def main(argv: Optional[list[str]] = None) -> None:
    """The main entry point for the CLI.

    Args:
        argv: The command-line arguments.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "check", False):
        _run_environment_check()
        return

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tubely ingest developer CLI")
    parser.add_argument("--check", action="store_true", help="Validate presence of ffmpeg/ffprobe dependencies")

    subparsers = parser.add_subparsers(dest="command")

    classify_parser = subparsers.add_parser("classify", help="Probe a video and print its geometry category")
    classify_parser.add_argument("--file", required=True, help="Path to the source media file")
    classify_parser.set_defaults(func=_cmd_classify)

    faststart_parser = subparsers.add_parser("faststart", help="Remux a video with its index at the front")
    faststart_parser.add_argument("--file", required=True, help="Path to the source media file")
    faststart_parser.set_defaults(func=_cmd_faststart)
    return parser


def _runner() -> SubprocessRunner:
    return SubprocessRunner(timeout_s=get_settings().tool_timeout_s)


def _resolve_media(raw: str) -> Path:
    media_path = Path(raw).expanduser().resolve()
    if not media_path.exists():
        console.print(f"[red]File not found: {media_path}[/]")
        sys.exit(2)
    return media_path


def _cmd_classify(args: argparse.Namespace) -> None:
    media_path = _resolve_media(args.file)
    classifier = GeometryClassifier(_runner(), ffprobe_binary=get_settings().ffprobe_binary)
    try:
        category = classifier.classify(media_path)
    except IngestError as exc:
        console.print(f"[red]{exc.kind}:[/] {exc.message}")
        sys.exit(3)
    console.print(category.value)


def _cmd_faststart(args: argparse.Namespace) -> None:
    """Rewrite the file next to the original and print the new path.

    Args:
        args: The command-line arguments.
    """
    media_path = _resolve_media(args.file)
    rewriter = FastStartRewriter(_runner(), ffmpeg_binary=get_settings().ffmpeg_binary)
    try:
        output_path = rewriter.rewrite(media_path)
    except IngestError as exc:
        console.print(f"[red]{exc.kind}:[/] {exc.message}")
        sys.exit(3)
    console.print(f"[green]Rewritten to {output_path}[/]")


def _run_environment_check() -> None:
    """Check for the presence of required external dependencies."""
    settings = get_settings()
    checks = {
        "ffmpeg": [settings.ffmpeg_binary, "-version"],
        "ffprobe": [settings.ffprobe_binary, "-version"],
    }
    results = {}
    for label, cmd in checks.items():
        try:
            subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
            results[label] = True
        except (OSError, subprocess.CalledProcessError):
            results[label] = False

    console.rule("[bold]Environment Check")
    for label, ok in results.items():
        console.print(f"[bold]{label}[/]: {'✅' if ok else '❌'}")

    if not all(results.values()):
        console.print("[red]Missing dependencies detected. Install ffmpeg and make sure it is on PATH.[/]")
        sys.exit(1)
    console.print("[green]Environment looks good![/]")


if __name__ == "__main__":
    main()
