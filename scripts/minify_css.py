#!/usr/bin/env python3
"""
CSS minifier: strips comments, collapses whitespace and tightens punctuation.

Usage:
    python3 scripts/minify_css.py                         # ocr-widget.css -> ocr-widget.min.css
    python3 scripts/minify_css.py styles.css              # styles.css -> styles.min.css
    python3 scripts/minify_css.py styles.css out.css      # styles.css -> out.css
    python3 scripts/minify_css.py https://host/site.css   # fetched, written to ./site.min.css

The rewrites are purely textual. Strings, url() values and attribute selectors
that contain ``{ } : ; , > + ~ ( )`` or comment markers are rewritten exactly
like structural syntax, so such stylesheets can come out altered.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import re
import sys
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence, Tuple
from urllib.parse import urlparse

import requests

DEFAULT_INPUT = os.environ.get("MINIFY_CSS_DEFAULT_INPUT", "ocr-widget.css")
DEFAULT_ENCODING = os.environ.get("MINIFY_CSS_ENCODING", "utf-8")
DEFAULT_TIMEOUT = float(os.environ.get("MINIFY_CSS_TIMEOUT", "30"))
REMOTE_FALLBACK_NAME = "stylesheet.css"

PUNCTUATION = ("{", "}", ":", ";", ",", ">", "+", "~", "(", ")")


class MinifyError(Exception):
    """Raised by the file driver when a stylesheet cannot be processed."""


class InputNotFoundError(MinifyError):
    pass


@dataclasses.dataclass(frozen=True)
class RewriteStep:
    stage: str
    pattern: re.Pattern
    replacement: str

    def apply(self, css: str) -> str:
        return self.pattern.sub(self.replacement, css)


@dataclasses.dataclass
class MinifyReport:
    input_path: str
    output_path: Path
    original_size: int
    minified_size: int

    @property
    def saved(self) -> int:
        return self.original_size - self.minified_size

    @property
    def compression(self) -> str:
        return compression_ratio(self.original_size, self.minified_size)


def _build_steps() -> Tuple[RewriteStep, ...]:
    steps = [
        RewriteStep("Removing comments", re.compile(r"/\*[\s\S]*?\*/"), ""),
        RewriteStep("Removing whitespace", re.compile(r"[\s\ufeff]+"), " "),
    ]
    # Order matters: each rule sees the output of the previous one.
    for char in PUNCTUATION:
        steps.append(
            RewriteStep("Optimizing syntax", re.compile(r"\s*" + re.escape(char) + r"\s*"), char)
        )
    steps.append(RewriteStep("Optimizing syntax", re.compile(r";}"), "}"))
    steps.append(RewriteStep("Optimizing syntax", re.compile(r"^ +| +$"), ""))
    return tuple(steps)


REWRITE_STEPS = _build_steps()


def minify(source: str) -> str:
    """Return ``source`` with every rewrite in ``REWRITE_STEPS`` applied in order."""
    logging.info("Starting CSS minification...")
    minified = source
    stage = None
    for step in REWRITE_STEPS:
        if step.stage != stage:
            stage = step.stage
            logging.info("  -> %s...", stage)
        minified = step.apply(minified)
    logging.info("CSS minification completed")
    return minified


def is_remote(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def derive_output_path(input_path: str) -> Path:
    """Insert ``.min`` before the extension: ``a/b.css`` -> ``a/b.min.css``.

    Remote stylesheets are written to the current directory under the URL's
    basename.
    """
    if is_remote(input_path):
        name = PurePosixPath(urlparse(input_path).path).name or REMOTE_FALLBACK_NAME
        path = Path(name)
    else:
        path = Path(input_path)
    return path.with_name(f"{path.stem}.min{path.suffix}")


def read_source(source: str, encoding: str, timeout: float) -> Tuple[str, int]:
    """Return ``(text, size_in_bytes)`` for a local path or an http(s) URL."""
    if is_remote(source):
        try:
            response = requests.get(source, timeout=timeout)
        except requests.RequestException as exc:
            raise MinifyError(f"request error: {exc}") from exc
        if response.status_code >= 300:
            raise MinifyError(f"Fetching {source} failed ({response.status_code})")
        body = response.content
        return body.decode(encoding), len(body)

    path = Path(source)
    if not path.is_file():
        raise InputNotFoundError(f"Input file not found: {source}")
    return path.read_text(encoding=encoding), path.stat().st_size


def process_file(
    input_path: str,
    output_path: Optional[Path] = None,
    encoding: str = DEFAULT_ENCODING,
    timeout: float = DEFAULT_TIMEOUT,
) -> MinifyReport:
    original_css, original_size = read_source(input_path, encoding, timeout)
    if output_path is None:
        output_path = derive_output_path(input_path)

    logging.info("Input:  %s", input_path)
    logging.info("Output: %s", output_path)

    minified_css = minify(original_css)
    # Written in place; a failed write can leave a truncated file behind.
    output_path.write_text(minified_css, encoding=encoding)

    return MinifyReport(
        input_path=input_path,
        output_path=output_path,
        original_size=original_size,
        minified_size=output_path.stat().st_size,
    )


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def compression_ratio(original_size: int, minified_size: int) -> str:
    if original_size == 0:
        return "0.0%"
    ratio = (original_size - minified_size) / original_size * 100
    return f"{ratio:.1f}%"


def print_report(report: MinifyReport) -> None:
    print()
    print("RESULTS:")
    print(f"   Original size:  {format_size(report.original_size)}")
    print(f"   Minified size:  {format_size(report.minified_size)}")
    print(f"   Compression:    {report.compression} smaller")
    print(f"   Saved:          {format_size(report.saved)}")
    print()
    print(f"Successfully created: {report.output_path}")


def print_usage(prog: str) -> None:
    print(f"Usage: {prog} [input-file] [output-file]")
    print()
    print("Examples:")
    print(f"  {prog}                          # Minify {DEFAULT_INPUT} to {derive_output_path(DEFAULT_INPUT)}")
    print(f"  {prog} styles.css               # Minify styles.css to styles.min.css")
    print(f"  {prog} styles.css minified.css  # Minify styles.css to minified.css")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Minify a CSS file.")
    parser.add_argument(
        "input",
        nargs="?",
        default=None,
        help=f"Path or http(s) URL of the source CSS (default: {DEFAULT_INPUT})",
    )
    parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        default=None,
        help="Where to write the minified CSS (default: input name with .min before the extension)",
    )
    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        help="Text encoding used to read and write the CSS (default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Seconds to wait when fetching a remote stylesheet (default: %(default)s)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    return parser.parse_args(argv)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(level)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(logging.WARNING if args.quiet else logging.INFO)

    print("CSS Minifier")
    print("============")
    print()

    input_path = args.input
    if input_path is None:
        if not Path(DEFAULT_INPUT).is_file():
            print_usage(Path(sys.argv[0]).name)
            print()
            print(f"error: No input file specified and {DEFAULT_INPUT} not found.", file=sys.stderr)
            return 1
        input_path = DEFAULT_INPUT

    try:
        report = process_file(input_path, args.output, encoding=args.encoding, timeout=args.timeout)
    except (MinifyError, OSError, UnicodeError, LookupError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
