"""
Main CLI entry point for ugconv.

Usage:
    ugconv https://www.pixiv.net/en/artworks/44298467
    ugconv https://www.pixiv.net/en/artworks/44298467 out.gif
    ugconv --meta ugoira_meta.json --zip frames.zip -f gif
    ugconv --ugoira 44298467.ugoira animations/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__
from ..config import DEFAULT_USER_AGENT, ConverterConfig, session_id_from_env
from ..converter import Converter
from ..exceptions import UgconvError, UsageError
from ..meta import parse_post_id
from ..types import OutputFormat, parse_format
from .progress import TqdmProgressSink


def determine_format(output: Path | None, fmt_flag: str | None) -> OutputFormat:
    """Pick the output format from ``--format``, else the extension, else WebM."""
    if fmt_flag:
        fmt = parse_format(fmt_flag)
        if fmt is None:
            raise UsageError(f"Unrecognized format {fmt_flag}")
        return fmt
    if output is not None and output.suffix:
        fmt = parse_format(output.suffix[1:])
        if fmt is None:
            raise UsageError(f"Unrecognized extension {output.suffix}")
        return fmt
    return OutputFormat.WEBM


def resolve_output_path(
    output: Path | None,
    fmt: OutputFormat,
    post_id: int | None,
) -> Path:
    """Fill in a file name when *output* is missing or a directory."""
    if output is not None and not output.is_dir():
        return output
    stem = str(post_id) if post_id is not None else "out"
    name = Path(f"{stem}.{fmt.extension}")
    if output is not None:
        return output / name
    return name


def apply_inputs(converter: Converter, args: argparse.Namespace) -> list[str]:
    """Configure the converter's input source; return unused positionals."""
    positional = list(args.args)

    if args.ugoira:
        converter.set_ugoira(Path(args.ugoira))

    if args.meta:
        if args.ugoira:
            raise UsageError("--meta doesn't make sense with --ugoira")
        converter.set_meta_path(Path(args.meta))

    if args.zip:
        if not args.meta:
            raise UsageError("--zip can only be supplied if --meta is supplied as well")
        converter.set_zip(Path(args.zip))

    if args.id is not None:
        if args.ugoira:
            raise UsageError("--id doesn't make sense with --ugoira")
        if args.meta:
            raise UsageError("--id doesn't make sense with --meta")
        try:
            post_id = parse_post_id(args.id)
        except UgconvError:
            raise UsageError("--id should be a non-negative integer") from None
        converter.set_post_id(post_id)

    if not (args.ugoira or args.meta or args.id is not None):
        if not positional:
            raise UsageError("Expected an artwork URL")
        converter.set_post_url(positional.pop(0))

    return positional


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ugconv",
        description="Convert a Pixiv ugoira into an animated GIF or WebM",
    )
    p.add_argument("--version", action="version", version=f"ugconv {__version__}")
    p.add_argument(
        "args", nargs="*", metavar="URL [OUTPUT]",
        help="Artwork URL (unless --meta, --id or --ugoira is given), then the output path",
    )
    p.add_argument(
        "-u", "--user-agent", default=None,
        help="User-Agent header sent to Pixiv (default: Firefox 91)",
    )
    p.add_argument(
        "-s", "--session-id", default=None,
        help="PHPSESSID cookie value (default: $UGCONV_SESSION_ID)",
    )
    p.add_argument(
        "-f", "--format", choices=[f.value for f in OutputFormat], default=None,
        help="Output format (default: from the output extension, else webm)",
    )
    p.add_argument("--ugoira", default=None, help="Bundled ugoira archive with animation.json")
    p.add_argument("--meta", default=None, help="Pre-downloaded ugoira_meta JSON file")
    p.add_argument("--zip", default=None, help="Pre-downloaded frames zip (requires --meta)")
    p.add_argument("--id", default=None, help="Pixiv post ID instead of a URL")
    p.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    session_id = args.session_id if args.session_id is not None else session_id_from_env()
    config = ConverterConfig(
        user_agent=args.user_agent or DEFAULT_USER_AGENT,
        session_id=session_id,
        show_progress=not args.quiet,
    )
    sink = TqdmProgressSink()
    converter = Converter(config=config, progress_sink=sink)

    try:
        positional = apply_inputs(converter, args)
        output = Path(positional.pop(0)) if positional else None
        if positional:
            raise UsageError(f"Unexpected argument {positional[0]}")
        fmt = determine_format(output, args.format)
        dest = resolve_output_path(output, fmt, converter.post_id)
    except UgconvError as exc:
        print(exc.message, file=sys.stderr)
        return 1

    try:
        result = converter.convert(dest, fmt)
    finally:
        sink.close()
    if not result:
        print(result.message, file=sys.stderr)
        return 1
    return 0


def cli_entry() -> None:
    sys.exit(main())
