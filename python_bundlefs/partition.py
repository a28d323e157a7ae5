"""Bundle partitioner.

Walks every included path and records each file and directory found into the
bundle selected by the declaring file's name (see
:mod:`python_bundlefs.target`). The same path may land in several bundles;
every bundle is self-contained.
"""

from dataclasses import dataclass
import logging
import os
import pathlib

from python_bundlefs.errors import HostIOError, InvalidInputError, host_io_error
from python_bundlefs.filesystem import File, FileSystem
from python_bundlefs.target import DEFAULT_KEY, bundle_key


@dataclass(frozen=True, slots=True)
class IncludedFile:
    """One include declaration.

    :ivar included_path: Relative path (file or directory) to embed.
    :ivar declaring_file: Name of the file that declared the include; its
        suffix selects the bundle. Empty means the default bundle.
    """

    included_path: str
    declaring_file: str = ""


def read_include_file(
    path: str | os.PathLike[str],
    *,
    declaring_file: str | None = None,
) -> list[IncludedFile]:
    """Read include paths from a text file, one per line.

    Surrounding whitespace is stripped and blank lines are skipped.

    :param path: Include-list file.
    :param declaring_file: File whose name selects the bundle for every entry.
        Defaults to the list file itself.
    :returns: Include declarations in file order.
    :raises HostIOError: If the file cannot be read.
    """

    try:
        text: str = pathlib.Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise host_io_error(exc, path) from exc

    declaring: str = os.fspath(path) if declaring_file is None else declaring_file
    includes: list[IncludedFile] = []
    for line in text.splitlines():
        entry: str = line.strip()
        if len(entry) == 0:
            continue
        includes.append(IncludedFile(included_path=entry, declaring_file=declaring))
    return includes


def validate_includes(
    includes: list[IncludedFile],
    *,
    root: pathlib.Path | None = None,
) -> list[IncludedFile]:
    """Check include declarations before partitioning.

    :param includes: Declarations as produced by the caller.
    :param root: Directory the included paths are relative to (defaults to cwd).
    :returns: Declarations with a leading ``./`` removed from each path.
    :raises InvalidInputError: For empty or absolute include paths.
    :raises HostIOError: If an included path does not exist.
    """

    if root is None:
        root = pathlib.Path.cwd()

    validated: list[IncludedFile] = []
    for inc in includes:
        raw: str = inc.included_path
        if len(raw.strip()) == 0:
            raise InvalidInputError(f"Empty include path declared in {inc.declaring_file!r}.")
        if os.path.isabs(raw) is True or raw.startswith("/") is True:
            raise InvalidInputError(f"Only relative include paths are supported: {raw!r}")

        cleaned: str = raw
        while cleaned.startswith("./") is True:
            cleaned = cleaned[2:]
        if len(cleaned) == 0:
            cleaned = "."

        try:
            os.stat(root / cleaned)
        except OSError as exc:
            raise host_io_error(exc, raw) from exc

        validated.append(IncludedFile(included_path=cleaned, declaring_file=inc.declaring_file))
    return validated


def _record_for(path: pathlib.Path) -> File:
    """Build a file record from a host path.

    :param path: Host file or directory.
    :returns: Record holding the raw bytes (empty for directories).
    :raises HostIOError: If the path cannot be read.
    """

    try:
        st: os.stat_result = path.stat()
        content: bytes = b""
        if path.is_dir() is False:
            content = path.read_bytes()
    except OSError as exc:
        raise host_io_error(exc, path) from exc

    return File(filename=path.name, mode=st.st_mode, mtime=st.st_mtime, content=content)


def _walk_into(
    *,
    fs: FileSystem,
    root: pathlib.Path,
    included_path: str,
    logger: logging.Logger,
) -> int:
    """Record ``included_path`` and everything below it into ``fs``.

    :param fs: Bundle being populated.
    :param root: Directory the included path is relative to.
    :param included_path: Relative include path (forward slashes).
    :param logger: Logger for debug output.
    :returns: Number of records written.
    :raises HostIOError: If any part of the walk fails.
    """

    start: pathlib.Path = root / included_path
    prefix: str = pathlib.PurePath(included_path).as_posix()
    written: int = 0

    def add(host: pathlib.Path) -> None:
        nonlocal written
        rel: str = host.relative_to(start).as_posix()
        key: str = prefix
        if rel != ".":
            key = rel if prefix == "." else f"{prefix}/{rel}"
        fs.files[key] = _record_for(host)
        written += 1
        if logger.isEnabledFor(logging.DEBUG) is True:
            logger.debug(f"python-bundlefs:   + {key}")

    # The bundle root is implicit; a "." record would list itself.
    if prefix != ".":
        add(start)
    if start.is_dir() is False:
        return written

    def on_error(exc: OSError) -> None:
        raise host_io_error(exc, exc.filename if exc.filename is not None else start) from exc

    for root_str, dirs, files in os.walk(start, topdown=True, onerror=on_error):
        dirs.sort()
        root_path: pathlib.Path = pathlib.Path(root_str)
        for name in sorted(dirs + files):
            add(root_path / name)

    return written


def build_bundles(
    includes: list[IncludedFile],
    *,
    root: pathlib.Path | None = None,
    logger: logging.Logger | None = None,
) -> dict[str, FileSystem]:
    """Partition included paths into bundles keyed by build constraint.

    :param includes: Validated include declarations (see :func:`validate_includes`).
    :param root: Directory the included paths are relative to (defaults to cwd).
    :param logger: Optional logger for progress output.
    :returns: Mapping of bundle key to filesystem; ``default`` is always present.
    :raises InvalidInputError: For absolute include paths.
    :raises HostIOError: If a path is missing or the walk fails.
    """

    if logger is None:
        logger = logging.getLogger("python_bundlefs")
    if root is None:
        root = pathlib.Path.cwd()

    bundles: dict[str, FileSystem] = {DEFAULT_KEY: FileSystem(debug=False)}

    for inc in includes:
        if os.path.isabs(inc.included_path) is True:
            raise InvalidInputError(f"Only relative include paths are supported: {inc.included_path!r}")
        if (root / inc.included_path).exists() is False:
            raise HostIOError(f"Included path does not exist: {inc.included_path}")

        key: str = bundle_key(inc.declaring_file)
        fs: FileSystem | None = bundles.get(key)
        if fs is None:
            fs = FileSystem(debug=False)
            bundles[key] = fs

        written: int = _walk_into(fs=fs, root=root, included_path=inc.included_path, logger=logger)
        logger.info(
            f"python-bundlefs: {inc.included_path} -> {key} ({written} entries, declared in "
            f"{inc.declaring_file or '<none>'})"
        )

    return bundles
