"""Render bundles as importable Python modules.

Each bundle becomes one module holding a literal of its encoded files and a
ready-to-use :class:`~python_bundlefs.filesystem.FileSystem` named ``fs``.
"""

import logging
import os
import pathlib
import textwrap

from python_bundlefs.errors import InvalidInputError, host_io_error
from python_bundlefs.filesystem import FileLiteral, FileSystem
from python_bundlefs.target import DEFAULT_KEY

DEFAULT_MODULE_NAME: str = "bundled"

_WRAP_WIDTH: int = 88

_MODULE_TEMPLATE: str = textwrap.dedent(
    '''\
    # This file was generated by python-bundlefs. Do not edit.
    #
    # Bundle key: __BUNDLEFS_KEY__

    from python_bundlefs import FileSystem

    BUNDLE_KEY: str = __BUNDLEFS_KEY_REPR__

    _FILES = {
    __BUNDLEFS_FILES__}

    fs: FileSystem = FileSystem.from_literal(_FILES)
    '''
)


def bundle_module_name(base: str, key: str) -> str:
    """Name of the module generated for a bundle.

    :param base: Base module name (e.g. ``bundled``).
    :param key: Bundle key.
    :returns: ``base`` for the default bundle, ``base + key`` otherwise.
    :raises InvalidInputError: If the result is not a valid module name.
    """

    name: str = base if key == DEFAULT_KEY else base + key
    if name.isidentifier() is False:
        raise InvalidInputError(f"Not a valid module name: {name!r}")
    return name


def _render_content(content: bytes, indent: str) -> str:
    """Render hex content as a (possibly multi-line) bytes literal.

    :param content: Encoded content (ASCII hex).
    :param indent: Indentation for continuation lines.
    :returns: Python source for the literal.
    """

    if len(content) <= _WRAP_WIDTH:
        return repr(content)

    lines: list[str] = []
    i: int = 0
    n: int = len(content)
    while i < n:
        lines.append(indent + repr(content[i : i + _WRAP_WIDTH]))
        i += _WRAP_WIDTH
    return "(\n" + "\n".join(lines) + "\n" + indent[0:-4] + ")"


def _render_entry(path: str, entry: FileLiteral) -> str:
    filename, mode, mtime, compression, content = entry
    return (
        f"    {path!r}: (\n"
        f"        {filename!r},\n"
        f"        {mode:#o},\n"
        f"        {mtime!r},\n"
        f"        {compression},\n"
        f"        {_render_content(content, ' ' * 12)},\n"
        f"    ),\n"
    )


def render_bundle(key: str, fs: FileSystem) -> str:
    """Render one bundle as Python source.

    The filesystem is expected to be encoded already (see
    :meth:`FileSystem.compress`); the generated module decodes it on import.

    :param key: Bundle key.
    :param fs: Encoded bundle.
    :returns: Module source code.
    """

    entries: str = "".join(_render_entry(path, entry) for path, entry in fs.to_literal().items())

    source: str = _MODULE_TEMPLATE
    source = source.replace("__BUNDLEFS_KEY_REPR__", repr(key))
    source = source.replace("__BUNDLEFS_KEY__", key)
    source = source.replace("__BUNDLEFS_FILES__", entries)
    return source


def write_bundles(
    bundles: dict[str, FileSystem],
    *,
    output_dir: pathlib.Path,
    base: str = DEFAULT_MODULE_NAME,
    logger: logging.Logger | None = None,
) -> list[pathlib.Path]:
    """Write one module per bundle.

    All modules are rendered before any file is written.

    :param bundles: Encoded bundles keyed by bundle key.
    :param output_dir: Directory that receives the modules.
    :param base: Base module name.
    :param logger: Optional logger for progress output.
    :returns: Written paths, sorted by bundle key.
    :raises HostIOError: If a module cannot be written.
    """

    if logger is None:
        logger = logging.getLogger("python_bundlefs")

    rendered: list[tuple[pathlib.Path, str]] = []
    for key in sorted(bundles):
        out_path: pathlib.Path = output_dir / f"{bundle_module_name(base, key)}.py"
        rendered.append((out_path, render_bundle(key, bundles[key])))

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise host_io_error(exc, output_dir) from exc

    written: list[pathlib.Path] = []
    for out_path, source in rendered:
        try:
            out_path.write_text(source, encoding="utf-8")
        except OSError as exc:
            raise host_io_error(exc, out_path) from exc
        logger.info(f"python-bundlefs: wrote {out_path} ({os.path.getsize(out_path)} bytes)")
        written.append(out_path)
    return written
