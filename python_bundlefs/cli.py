"""Command line interface for python-bundlefs."""

import argparse
import logging
import pathlib
import sys

from python_bundlefs.compression import DEFAULT_COMPRESSLEVEL, Compression
from python_bundlefs.emit import DEFAULT_MODULE_NAME
from python_bundlefs.errors import BundleFSError
from python_bundlefs.generate import generate
from python_bundlefs.partition import IncludedFile, read_include_file


def _configure_logging(*, verbose: int, quiet: int) -> logging.Logger:
    """Configure the python-bundlefs logger.

    :param verbose: Verbosity count (0+).
    :param quiet: Quietness count (0+).
    :returns: Configured logger.
    """

    level: int = logging.INFO
    if quiet >= 2:
        level = logging.ERROR
    elif quiet >= 1:
        level = logging.WARNING
    elif verbose >= 1:
        level = logging.DEBUG

    logger: logging.Logger = logging.getLogger("python_bundlefs")
    logger.setLevel(level)
    logger.propagate = False

    handler: logging.Handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def _collect_includes(ns: argparse.Namespace) -> list[IncludedFile]:
    """Turn parsed include options into declarations.

    :param ns: Parsed arguments.
    :returns: Declarations in command line order per option kind.
    :raises HostIOError: If an include-list file cannot be read.
    """

    includes: list[IncludedFile] = []
    for path in ns.include:
        includes.append(IncludedFile(included_path=path))
    for declaring_file, path in ns.include_for:
        includes.append(IncludedFile(included_path=path, declaring_file=declaring_file))
    for list_file in ns.include_from:
        includes.extend(read_include_file(list_file))
    for declaring_file, list_file in ns.include_from_for:
        includes.extend(read_include_file(list_file, declaring_file=declaring_file))
    return includes


def main(argv: list[str] | None = None) -> int:
    """Run the python-bundlefs CLI.

    :param argv: Optional argv list (excluding program name).
    :returns: Exit code.
    """

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="python-bundlefs",
        description="Embed files into importable Python modules, one per OS/arch bundle.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_build = subparsers.add_parser(
        "build",
        help="Generate bundle modules.",
    )
    p_build.add_argument(
        "-i",
        "--include",
        action="append",
        default=[],
        metavar="PATH",
        help="Relative file or directory to embed in the default bundle. Repeatable.",
    )
    p_build.add_argument(
        "--include-for",
        action="append",
        nargs=2,
        default=[],
        metavar=("DECLARING_FILE", "PATH"),
        help=(
            "Embed PATH as if declared in DECLARING_FILE; a suffix such as _linux or "
            "_windows_amd64 in that name selects the bundle. Repeatable."
        ),
    )
    p_build.add_argument(
        "--include-from",
        action="append",
        type=pathlib.Path,
        default=[],
        metavar="LISTFILE",
        help="Read include paths (one per line) from LISTFILE; its own name selects the bundle.",
    )
    p_build.add_argument(
        "--include-from-for",
        action="append",
        nargs=2,
        default=[],
        metavar=("DECLARING_FILE", "LISTFILE"),
        help="Read include paths from LISTFILE as if declared in DECLARING_FILE. Repeatable.",
    )
    p_build.add_argument(
        "-o",
        "--output-dir",
        type=pathlib.Path,
        default=pathlib.Path("."),
        help="Directory for the generated modules (default: current directory).",
    )
    p_build.add_argument(
        "--root",
        type=pathlib.Path,
        default=None,
        help="Directory include paths are relative to (default: current directory).",
    )
    p_build.add_argument(
        "--name",
        type=str,
        default=DEFAULT_MODULE_NAME,
        help=f"Base name of the generated modules (default: {DEFAULT_MODULE_NAME}).",
    )
    p_build.add_argument(
        "--gzip",
        action="store_true",
        help="Compress files with gzip (already-compressed formats are skipped).",
    )
    p_build.add_argument(
        "--compresslevel",
        type=int,
        default=DEFAULT_COMPRESSLEVEL,
        help=f"gzip compression level 0-9 (default: {DEFAULT_COMPRESSLEVEL}).",
    )
    p_build.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable verbose logging. Pass multiple times for more detail.",
    )
    p_build.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Reduce logging. Pass multiple times to suppress more output.",
    )

    ns = parser.parse_args(argv)
    if ns.command == "build":
        logger: logging.Logger = _configure_logging(verbose=ns.verbose, quiet=ns.quiet)
        compression: Compression = Compression.GZIP if ns.gzip is True else Compression.NONE

        try:
            includes: list[IncludedFile] = _collect_includes(ns)
            if len(includes) == 0:
                parser.error("nothing to embed; pass an --include* option")
            generate(
                includes,
                output_dir=ns.output_dir,
                root=ns.root,
                compression=compression,
                compresslevel=ns.compresslevel,
                base=ns.name,
                logger=logger,
            )
        except BundleFSError as exc:
            logger.error(f"python-bundlefs: failed: {exc}")
            return 1
        return 0

    raise AssertionError(f"Unhandled command: {ns.command}")
