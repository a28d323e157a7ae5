"""python-bundlefs.

Embed a tree of static files into importable Python modules and read them back
at runtime through a read-only, filesystem-like interface.
"""

from python_bundlefs.compression import Compression
from python_bundlefs.errors import (
    BundleFSError,
    DecodeError,
    HostIOError,
    InvalidInputError,
    NotFoundError,
)
from python_bundlefs.filesystem import BundleFile, File, FileInfo, Files, FileSystem, HostFile

__all__: list[str] = [
    "BundleFSError",
    "BundleFile",
    "Compression",
    "DecodeError",
    "File",
    "FileInfo",
    "FileSystem",
    "Files",
    "HostFile",
    "HostIOError",
    "InvalidInputError",
    "NotFoundError",
    "__version__",
]

__version__: str = "0.1.0"
