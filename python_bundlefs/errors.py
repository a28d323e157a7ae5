"""Error kinds raised by python-bundlefs.

Every error derives from :class:`BundleFSError` and from the builtin exception
that best matches it, so callers can use either ``except BundleFSError`` or the
usual ``except FileNotFoundError`` / ``except OSError`` / ``except ValueError``.
"""

import errno


class BundleFSError(Exception):
    """Base class for all python-bundlefs errors."""


class NotFoundError(BundleFSError, FileNotFoundError):
    """Raised when a path is not present in a bundle.

    :ivar op: Operation that failed (``open``, ``stat``, ...).
    :ivar filename: Path as given by the caller.
    """

    def __init__(self, op: str, path: str) -> None:
        super().__init__(errno.ENOENT, f"{op}: file does not exist in bundle", path)
        self.op: str = op


class DecodeError(BundleFSError, ValueError):
    """Raised when stored content cannot be hex-decoded or decompressed."""


class HostIOError(BundleFSError, OSError):
    """Raised when reading from or writing to the host filesystem fails."""


class InvalidInputError(BundleFSError, ValueError):
    """Raised for invalid include declarations or build options."""


def host_io_error(exc: OSError, path: object) -> HostIOError:
    """Wrap an ``OSError`` from the host filesystem.

    :param exc: Original error.
    :param path: Path involved in the failing call.
    :returns: A :class:`HostIOError` carrying the original errno.
    """

    strerror: str = exc.strerror if exc.strerror is not None else str(exc)
    return HostIOError(exc.errno, strerror, str(path))
