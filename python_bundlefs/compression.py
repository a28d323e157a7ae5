"""Compression pipeline for bundle content.

Encoded content is always hex text so it can be embedded verbatim in a
generated Python module:

- Files that compress well are gzip-compressed first (when requested).
- Files whose sniffed type is already a compressed format are stored as plain
  hex, keeping :attr:`Compression.NONE`.
- Directory records are never touched.
"""

import binascii
import enum
import gzip
import zlib
from typing import TYPE_CHECKING

import filetype

from python_bundlefs.errors import DecodeError, InvalidInputError

if TYPE_CHECKING:
    from python_bundlefs.filesystem import Files


class Compression(enum.IntEnum):
    """Per-file compression tag.

    The integer values are part of the generated module format.
    """

    NONE = 0
    GZIP = 1


DEFAULT_COMPRESSLEVEL: int = 6

# Formats that are already compressed; running gzip over them wastes CPU and
# usually grows the payload.
COMPRESS_EXCLUDE: frozenset[str] = frozenset(
    {
        "application/x-7z-compressed",
        "application/zip",
        "application/x-bzip2",
        "application/gzip",
        "image/png",
        "image/jpeg",
        "image/gif",
    }
)


def validate_compresslevel(compresslevel: int) -> None:
    """Validate a gzip compression level.

    :param compresslevel: Compression level (0-9).
    :raises InvalidInputError: If the level is out of range.
    """

    if compresslevel < 0 or compresslevel > 9:
        raise InvalidInputError(f"Invalid compresslevel={compresslevel}; expected 0-9.")


def sniff_mime(content: bytes) -> str | None:
    """Detect a MIME type from the leading bytes of ``content``.

    :param content: Raw file bytes.
    :returns: MIME type string, or ``None`` if unknown.
    """

    if len(content) == 0:
        return None
    return filetype.guess_mime(content)


def should_compress(content: bytes) -> bool:
    """Decide whether ``content`` is worth compressing.

    :param content: Raw file bytes.
    :returns: ``False`` for already-compressed archive and image formats.
    """

    return sniff_mime(content) not in COMPRESS_EXCLUDE


def encode_content(
    content: bytes,
    algo: Compression,
    *,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> tuple[bytes, Compression]:
    """Encode raw content for embedding.

    :param content: Raw file bytes.
    :param algo: Requested algorithm.
    :param compresslevel: gzip level used when ``algo`` is gzip.
    :returns: Hex-encoded payload and the tag that was actually applied.
    """

    applied: Compression = Compression.NONE
    payload: bytes = content
    if algo == Compression.GZIP and should_compress(content) is True:
        # mtime=0 keeps generated modules reproducible across builds.
        payload = gzip.compress(content, compresslevel=compresslevel, mtime=0)
        applied = Compression.GZIP
    return binascii.hexlify(payload), applied


def decode_content(content: bytes, compression: Compression, *, path: str = "") -> bytes:
    """Reverse :func:`encode_content`.

    :param content: Hex-encoded payload.
    :param compression: Tag recorded when the payload was encoded.
    :param path: Path used in error messages.
    :returns: Raw file bytes.
    :raises DecodeError: If the payload is malformed.
    """

    try:
        raw: bytes = binascii.unhexlify(content)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"hex decode failed for {path!r}: {exc}") from exc

    if compression == Compression.GZIP:
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError, zlib.error) as exc:
            raise DecodeError(f"gzip decode failed for {path!r}: {exc}") from exc
    return raw


def compress_files(
    files: "Files",
    algo: Compression,
    *,
    compresslevel: int = DEFAULT_COMPRESSLEVEL,
) -> int:
    """Encode every non-directory record of a content store in place.

    :param files: Mapping of path to file record.
    :param algo: Requested algorithm.
    :param compresslevel: gzip level used when ``algo`` is gzip.
    :returns: Number of records that were gzip-compressed.
    """

    validate_compresslevel(compresslevel)

    compressed: int = 0
    for record in files.values():
        if record.is_dir is True:
            continue
        payload, applied = encode_content(record.content, algo, compresslevel=compresslevel)
        record.content = payload
        record.compression = applied
        if applied == Compression.GZIP:
            compressed += 1
    return compressed


def decompress_files(files: "Files") -> None:
    """Decode every record of a content store in place.

    All records are decoded before any is replaced, so a corrupt payload
    leaves the store untouched.

    :param files: Mapping of path to file record.
    :raises DecodeError: If any payload is malformed.
    """

    decoded: dict[str, bytes] = {}
    for path, record in files.items():
        decoded[path] = decode_content(record.content, record.compression, path=path)

    for path, raw in decoded.items():
        files[path].content = raw
        files[path].compression = Compression.NONE
