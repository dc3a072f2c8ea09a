"""
Command-line interface for pdm2dsf.

Reads a raw PDM bitstream from disk and writes it out as a mono DSF file. The
result can be converted further with e.g. ``ffmpeg -i out.dsf out.wav``.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import AppConfig, load_config
from .dsf_writer import DsfStream, is_standard_dsd_rate, write_dsf
from .errors import ConfigError, InputReadError, Pdm2DsfError
from .logging_utils import create_event_logger

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the top-level argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pdm2dsf",
        usage="%(prog)s [options] PDMFILE",
        description="Convert a raw PDM bitstream to a DSF (DSD stream file).",
    )
    parser.add_argument(
        "pdm_file",
        nargs="?",
        metavar="PDMFILE",
        help="Raw 1-bit PDM input file.",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="PATH",
        help="Output filename (default out.dsf).",
    )
    parser.add_argument(
        "-r",
        "--rate",
        type=int,
        help="PDM/DSF bit rate in bits per second (default 2822400).",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to an optional configuration file (pdm2dsf.toml).",
    )
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Emit logs as JSON lines.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the resulting layout without writing the output file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pdm2dsf {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress the stream summary and non-essential log output.",
    )
    return parser


def _configure_logging(verbosity: int, quiet: bool) -> None:
    """Configure root logger based on verbosity flags."""
    if quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
        if verbosity == 1:
            level = logging.INFO
        elif verbosity >= 2:
            level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logger.debug("Logging configured (level=%s)", logging.getLevelName(level))


def _read_pdm_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise InputReadError(path, exc) from exc


def _print_summary(stream: DsfStream) -> None:
    print(
        f"       PDM stream: {stream.sample_count} bits ({len(stream.pdm_data)} bytes)"
        f" @ {stream.bit_rate} bits / second"
    )
    print(f"         Duration: {stream.duration_seconds:.2f} seconds")
    print(f"Unpadded PDM data: {len(stream.pdm_data)} bytes")
    print(f"  Padded PDM data: {stream.padded_size} bytes")


def _run(args: argparse.Namespace, config: AppConfig) -> None:
    pdm_path = Path(args.pdm_file)
    pdm_data = _read_pdm_file(pdm_path)
    logger.info("Read %d bytes from %s", len(pdm_data), pdm_path)

    if not is_standard_dsd_rate(config.bit_rate):
        logger.warning("Bit rate %d is not a standard DSD rate.", config.bit_rate)

    event_logger = create_event_logger(logging.getLogger("pdm2dsf.events"), config.log_format)

    if config.dry_run:
        stream = DsfStream(pdm_data=pdm_data, bit_rate=config.bit_rate)
        stream.report(event_logger)
        if not args.quiet:
            print("Dry run mode. No file written.")
            _print_summary(stream)
            print(f"Output: {config.output_path} ({stream.total_size} bytes)")
        return

    stream = write_dsf(pdm_data, config.bit_rate, config.output_path, event_logger=event_logger)
    if not args.quiet:
        _print_summary(stream)
    logger.info("Wrote %s (%d bytes)", config.output_path, stream.total_size)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point invoked by `python -m pdm2dsf` or console scripts."""
    parser = create_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose, args.quiet)

    if not args.pdm_file:
        parser.print_help()
        return 2

    try:
        config = load_config(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        print(f"ERROR: {exc}")
        return 2
    logger.debug("Loaded configuration: %s", config)

    try:
        _run(args, config)
    except Pdm2DsfError as exc:
        logger.error("Conversion failed: %s", exc)
        print(f"ERROR: {exc}")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - allows `python cli.py`
    raise SystemExit(main())
