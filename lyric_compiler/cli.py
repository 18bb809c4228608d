"""Command-line interface for the lyric scene compiler.

WHY: Render workers and artists need a way to compile a scene payload
from the terminal (or a build script) without embedding the library.
The CLI wires together payload loading, compilation, pluggable formatter
output, and file saving behind a single command.

HOW: Uses argparse to accept a payload JSON path, output format
selection, output directory, frame rate, and an optional font file for
real text metrics. Status messages go to stderr; output files are saved
next to the payload (or to --output-dir).

RULES:
- Positional argument: payload JSON file path
- --formats: comma-separated formatter keys (default: all registered)
- --fps only affects baked formats (keyframes)
- --font switches measurement from the built-in character widths to
  Pillow metrics for that font file
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-scene-2.json)
- Status output goes to stderr (not stdout)
- Errors print "Error: ..." to stderr and exit 1; Ctrl-C exits 130
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from lyric_compiler.config import DEFAULT_EXPORT_FPS, DEFAULT_FONT_PATH
from lyric_compiler.core.compiler import compile_scene
from lyric_compiler.core.layout import CharWidthMeasurer, PillowMeasurer, TextMeasurer
from lyric_compiler.core.payload import PayloadError, load_payload
from lyric_compiler.formatters import FORMATTERS
from lyric_compiler.formatters.base import BaseFormatter, FormatterOutput
from lyric_compiler.formatters.keyframes import KeyframesFormatter


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """``{stem}{suffix}``, or the first free ``{stem}-scene-N.json`` style name.

    A re-run while tuning a direction keeps the earlier scene files, so
    renders can be compared side by side.
    """
    path = output_dir / "{}{}".format(stem, suffix)
    name, ext = os.path.splitext(suffix)
    counter = 2
    while path.exists():
        path = output_dir / "{}{}-{}{}".format(stem, name, counter, ext)
        counter += 1
    return path


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _make_formatter(key: str, fps: int) -> BaseFormatter:
    if key == "keyframes":
        return KeyframesFormatter(fps=fps)
    return FORMATTERS[key]()


def _make_measurer(font_path: Optional[str]) -> TextMeasurer:
    if font_path:
        return PillowMeasurer(font_path=font_path)
    return CharWidthMeasurer()


def _run(args: argparse.Namespace) -> None:
    """Load, compile, format, save.

    RULES:
    - Validate paths and formats before compiling
    - Save each formatter's output files with conflict avoidance
    """
    payload_path = Path(args.payload).resolve()
    if not payload_path.is_file():
        _fail("File not found: {}".format(payload_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else payload_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
        for key in format_keys:
            if key not in FORMATTERS:
                available = ", ".join(sorted(FORMATTERS.keys()))
                _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    else:
        format_keys = list(FORMATTERS.keys())

    if args.fps <= 0:
        _fail("--fps must be a positive integer, got {}".format(args.fps))

    font_path = args.font or DEFAULT_FONT_PATH
    if font_path and not Path(font_path).is_file():
        _fail("Font file not found: {}".format(font_path))

    _status("Loading payload {}...".format(payload_path.name))
    payload = load_payload(payload_path)
    _status("  {} lines, {} words".format(len(payload.lines), len(payload.words)))

    _status("Compiling scene...")
    scene = compile_scene(payload, measurer=_make_measurer(font_path))
    _status("  {} phrase groups, {} words, {} beats, {} chapters".format(
        len(scene.phrase_groups),
        scene.word_count,
        len(scene.beat_events),
        len(scene.chapters),
    ))
    for warning in scene.warnings:
        _status("  Warning: {}".format(warning))

    _status("Formatting output...")
    stem = payload_path.stem
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = _make_formatter(key, args.fps)
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(scene):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="lyric-compiler",
        description="Compile a lyric scene payload (timed words, beat grid, direction) "
                    "into a resolved animation timeline.",
    )

    parser.add_argument(
        "payload",
        help="Path to the scene payload JSON file.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as payload file).",
    )

    parser.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_EXPORT_FPS,
        help="Frame rate for baked keyframes (default: %(default)s).",
    )

    parser.add_argument(
        "--font",
        default=None,
        help="TrueType/OpenType font file used to measure text. "
             "Defaults to LYRIC_FONT_PATH, else built-in character widths.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        _run(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (PayloadError, OSError, ValueError) as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
