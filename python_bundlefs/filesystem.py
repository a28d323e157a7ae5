"""Read-only virtual filesystem over a flat path -> file mapping.

Directories are ordinary records with a directory mode. Parent/child
relationships are not stored; they are recomputed from the path strings
whenever a directory is listed.

Example:
    >>> fs = FileSystem({"a.txt": File(filename="a.txt", mode=0o100644, mtime=0.0, content=b"hello")})
    >>> fs.read_file("a.txt")
    b'hello'
"""

from dataclasses import dataclass
import io
import os
import posixpath
import shutil
import stat
import threading
from typing import BinaryIO

from python_bundlefs.compression import (
    DEFAULT_COMPRESSLEVEL,
    Compression,
    compress_files,
    decompress_files,
)
from python_bundlefs.config import debug_enabled
from python_bundlefs.errors import DecodeError, NotFoundError, host_io_error


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Snapshot of a file's metadata.

    :ivar name: Base name of the file.
    :ivar mode: Full mode (file type and permission bits).
    :ivar size: Length of the stored content in bytes.
    :ivar mtime: Modification time in seconds since the epoch.
    """

    name: str
    mode: int
    size: int
    mtime: float

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    @property
    def perm(self) -> int:
        """Permission bits only."""
        return stat.S_IMODE(self.mode)


@dataclass(slots=True)
class File:
    """A stored file or directory.

    :ivar filename: Base name, used for directory listings.
    :ivar mode: Full mode (file type and permission bits).
    :ivar mtime: Modification time captured at build time.
    :ivar content: Raw bytes, or encoded bytes after :meth:`FileSystem.compress`.
    :ivar compression: Compression applied to ``content``.
    """

    filename: str
    mode: int
    mtime: float
    content: bytes = b""
    compression: Compression = Compression.NONE

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    def info(self) -> FileInfo:
        return FileInfo(name=self.filename, mode=self.mode, size=len(self.content), mtime=self.mtime)


Files = dict[str, File]

FileLiteral = tuple[str, int, float, int, bytes]


def clean_path(name: str) -> str:
    """Strip a single leading ``./`` from a bundle path.

    No other normalization is applied.
    """

    if name.startswith("./") is True:
        return name[2:]
    return name


def parent_dir(path: str) -> str:
    """Return the directory containing ``path`` (``.`` at the top level)."""

    d: str = posixpath.dirname(path)
    if len(d) == 0:
        return "."
    return d


class _Handle:
    """Read, seek and directory-listing behaviour shared by open handles.

    Subclasses set ``_path`` and ``_reader`` and implement :meth:`_listing`.
    """

    _path: str
    _reader: BinaryIO | None
    _dir_pos: int = 0

    def __enter__(self) -> "_Handle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self._path!r} closed={self.closed}>"

    @property
    def name(self) -> str:
        """Path as presented to :meth:`FileSystem.open`."""
        return self._path

    @property
    def closed(self) -> bool:
        return self._reader is None

    def _checked_reader(self) -> BinaryIO:
        if self._reader is None:
            raise ValueError("I/O operation on closed file.")
        return self._reader

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        return self._checked_reader().read(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        return self._checked_reader().readinto(buffer)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._checked_reader().seek(offset, whence)

    def tell(self) -> int:
        return self._checked_reader().tell()

    def close(self) -> None:
        self._reader = None

    def _listing(self) -> list[FileInfo]:
        raise NotImplementedError

    def readdir(self, n: int = -1) -> list[FileInfo]:
        """List the directory this handle refers to.

        For a regular file, the directory containing it is listed instead.

        :param n: ``<= 0`` returns every entry. ``> 0`` returns at most ``n``
            entries, continuing where the previous call stopped; an empty list
            means the listing is exhausted.
        :returns: Entries sorted by name.
        """

        self._checked_reader()

        infos: list[FileInfo] = self._listing()
        if n <= 0:
            return infos

        page: list[FileInfo] = infos[self._dir_pos : self._dir_pos + n]
        self._dir_pos += len(page)
        return page


class BundleFile(_Handle):
    """An open file from a :class:`FileSystem`.

    Each handle owns a private reader, so reads and seeks on one handle never
    affect another handle of the same path.
    """

    def __init__(self, *, fs: "FileSystem", record: File, path: str) -> None:
        self._fs: FileSystem = fs
        self._record: File = record
        self._path = path
        self._reader = io.BytesIO(record.content)

    def size(self) -> int:
        """Length of the stored content, independent of the read position."""
        return len(self._record.content)

    def stat(self) -> FileInfo:
        return self._record.info()

    def _listing(self) -> list[FileInfo]:
        directory: str = self._path
        if self._record.is_dir is False:
            directory = parent_dir(self._path)
        return self._fs._list_dir(directory)


class HostFile(_Handle):
    """An open file on the host filesystem, returned in debug mode.

    Directories open with an empty reader, like bundled directories.
    """

    def __init__(self, *, name: str) -> None:
        host: str = _host_path(name)
        try:
            st: os.stat_result = os.stat(host)
            if stat.S_ISDIR(st.st_mode) is True:
                self._reader = io.BytesIO(b"")
            else:
                self._reader = open(host, "rb")
        except FileNotFoundError as exc:
            raise NotFoundError("open", name) from exc
        except OSError as exc:
            raise host_io_error(exc, name) from exc

        self._path = name
        self._is_dir: bool = stat.S_ISDIR(st.st_mode)

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
        self._reader = None

    def size(self) -> int:
        return self.stat().size

    def stat(self) -> FileInfo:
        return _host_stat(self._path)

    def _listing(self) -> list[FileInfo]:
        directory: str = self._path
        if self._is_dir is False:
            directory = posixpath.dirname(self._path) or "."
        return _host_read_dir(directory)


class FileSystem:
    """Read-only filesystem over a :data:`Files` mapping.

    A single lock serializes :meth:`open` and directory scans; reads on an
    already-open :class:`BundleFile` do not take it.

    :ivar files: The underlying content store.
    :ivar debug: When ``True``, every operation goes to the host filesystem
        instead (paths are translated to host separators).
    """

    def __init__(self, files: Files | None = None, *, debug: bool | None = None) -> None:
        self.files: Files = files if files is not None else {}
        self.debug: bool = debug_enabled() if debug is None else debug
        self._lock: threading.Lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<FileSystem files={len(self.files)} debug={self.debug}>"

    @classmethod
    def from_literal(
        cls,
        literal: dict[str, FileLiteral],
        *,
        debug: bool | None = None,
    ) -> "FileSystem":
        """Load a filesystem from the tuple format written by the emitter.

        Content in ``literal`` is expected in encoded (hex) form and is decoded
        before the filesystem is returned.

        :param literal: Mapping of path to ``(filename, mode, mtime, compression, content)``.
        :param debug: Optional debug bypass override.
        :returns: Decoded filesystem.
        :raises DecodeError: If any payload or compression tag is malformed.
        """

        files: Files = {}
        for path, (filename, mode, mtime, compression, content) in literal.items():
            try:
                tag: Compression = Compression(compression)
            except ValueError as exc:
                raise DecodeError(f"unknown compression tag {compression!r} for {path!r}") from exc
            files[path] = File(
                filename=filename,
                mode=mode,
                mtime=mtime,
                content=content,
                compression=tag,
            )

        fs: FileSystem = cls(files, debug=debug)
        fs.decompress()
        return fs
    def to_literal(self) -> dict[str, FileLiteral]:
        """Return the store as ``path -> (filename, mode, mtime, compression, content)``."""

        with self._lock:
            return {
                path: (f.filename, f.mode, f.mtime, int(f.compression), f.content)
                for path, f in sorted(self.files.items())
            }

    def compress(self, algo: Compression, *, compresslevel: int = DEFAULT_COMPRESSLEVEL) -> int:
        """Encode every file for embedding. See :mod:`python_bundlefs.compression`.

        :returns: Number of files that were gzip-compressed.
        """

        with self._lock:
            return compress_files(self.files, algo, compresslevel=compresslevel)

    def decompress(self) -> None:
        """Decode every file back to raw bytes.

        :raises DecodeError: If any payload is malformed.
        """

        with self._lock:
            decompress_files(self.files)

    def open(self, name: str) -> BundleFile | HostFile:
        """Open a file or directory.

        :param name: Slash-separated path; a leading ``./`` is ignored.
        :returns: A new handle with its own read position. In debug mode the
            handle reads the host file instead.
        :raises NotFoundError: If no record matches the path exactly.
        """

        if self.debug is True:
            return HostFile(name=name)

        path: str = clean_path(name)
        with self._lock:
            record: File | None = self.files.get(path)
            if record is None:
                raise NotFoundError("open", path)
            return BundleFile(fs=self, record=record, path=path)

    def stat(self, name: str) -> FileInfo:
        """Return metadata for ``name``.

        :raises NotFoundError: If the path is not in the bundle.
        """

        if self.debug is True:
            return _host_stat(name)

        with self.open(name) as f:
            return f.stat()

    def read_file(self, name: str) -> bytes:
        """Read the whole content of ``name``.

        :raises NotFoundError: If the path is not in the bundle.
        """

        with self.open(name) as f:
            return f.read()

    def read_dir(self, dirname: str) -> list[FileInfo]:
        """List the entries of a directory, sorted by name.

        If ``dirname`` names a file, its siblings are listed. A directory
        without its own record is listed as long as some entry lives in it.

        :raises NotFoundError: If nothing is found at or under ``dirname``.
        """

        if self.debug is True:
            with self.open(dirname) as host:
                return host.readdir(-1)

        try:
            f = self.open(dirname)
        except NotFoundError:
            infos: list[FileInfo] = self._list_dir(clean_path(dirname))
            if len(infos) == 0:
                raise
            return infos

        with f:
            return f.readdir(-1)

    def copy_file(self, bundle_path: str, host_path: str | os.PathLike[str]) -> None:
        """Copy a file out of the bundle onto the host filesystem.

        The destination is created or truncated and gets the permission bits
        of the bundled file.

        :raises NotFoundError: If ``bundle_path`` is not in the bundle.
        :raises HostIOError: If the destination cannot be written.
        """

        info: FileInfo = self.stat(bundle_path)
        with self.open(bundle_path) as src:
            flags: int = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
            try:
                fd: int = os.open(host_path, flags, info.perm)
                with os.fdopen(fd, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                # os.open() is subject to the umask and keeps the mode of an existing file.
                os.chmod(host_path, info.perm)
            except OSError as exc:
                raise host_io_error(exc, host_path) from exc

    def _list_dir(self, directory: str) -> list[FileInfo]:
        with self._lock:
            infos: list[FileInfo] = [
                f.info()
                for path, f in self.files.items()
                if path != directory and parent_dir(path) == directory
            ]
        infos.sort(key=lambda info: info.name)
        return infos


def _host_path(name: str) -> str:
    return name.replace("/", os.sep)


def _info_from_stat(name: str, st: os.stat_result) -> FileInfo:
    size: int = 0 if stat.S_ISDIR(st.st_mode) else st.st_size
    return FileInfo(name=name, mode=st.st_mode, size=size, mtime=st.st_mtime)


def _host_stat(name: str) -> FileInfo:
    host: str = _host_path(name)
    try:
        st: os.stat_result = os.stat(host)
    except FileNotFoundError as exc:
        raise NotFoundError("stat", name) from exc
    except OSError as exc:
        raise host_io_error(exc, name) from exc
    return _info_from_stat(os.path.basename(os.path.normpath(host)), st)


def _host_read_dir(dirname: str) -> list[FileInfo]:
    host: str = _host_path(dirname)
    try:
        with os.scandir(host) as it:
            infos: list[FileInfo] = [_info_from_stat(e.name, e.stat()) for e in it]
    except FileNotFoundError as exc:
        raise NotFoundError("readdir", dirname) from exc
    except OSError as exc:
        raise host_io_error(exc, dirname) from exc
    infos.sort(key=lambda info: info.name)
    return infos
