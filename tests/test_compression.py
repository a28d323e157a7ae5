"""Tests for the compression pipeline."""

import binascii
import gzip
import stat
import unittest

from python_bundlefs import Compression, DecodeError, File, FileSystem, InvalidInputError
from python_bundlefs.compression import (
    compress_files,
    decode_content,
    decompress_files,
    encode_content,
    should_compress,
    sniff_mime,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 64
GIF_BYTES = b"GIF89a" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64
TEXT_BYTES = b"the quick brown fox jumps over the lazy dog\n" * 40


def _fs(entries: dict[str, bytes | None]) -> FileSystem:
    files = {}
    for path, content in entries.items():
        name = path.rsplit("/", 1)[-1]
        if content is None:
            files[path] = File(filename=name, mode=stat.S_IFDIR | 0o755, mtime=0.0)
        else:
            files[path] = File(filename=name, mode=stat.S_IFREG | 0o644, mtime=0.0, content=content)
    return FileSystem(files, debug=False)


class CompressibilityTests(unittest.TestCase):
    def test_sniffed_types(self) -> None:
        self.assertEqual(sniff_mime(PNG_BYTES), "image/png")
        self.assertEqual(sniff_mime(GIF_BYTES), "image/gif")
        self.assertEqual(sniff_mime(JPEG_BYTES), "image/jpeg")
        self.assertEqual(sniff_mime(gzip.compress(TEXT_BYTES)), "application/gzip")
        self.assertIsNone(sniff_mime(b""))

    def test_excluded_formats_are_not_compressed(self) -> None:
        for content in (PNG_BYTES, GIF_BYTES, JPEG_BYTES, gzip.compress(TEXT_BYTES)):
            self.assertFalse(should_compress(content))

    def test_text_is_compressed(self) -> None:
        self.assertTrue(should_compress(TEXT_BYTES))
        self.assertTrue(should_compress(b""))


class EncodeDecodeTests(unittest.TestCase):
    def test_encoded_content_is_hex(self) -> None:
        payload, applied = encode_content(TEXT_BYTES, Compression.GZIP)

        self.assertEqual(applied, Compression.GZIP)
        self.assertTrue(set(payload) <= set(b"0123456789abcdef"))
        self.assertLess(len(payload), len(TEXT_BYTES) * 2)

    def test_none_is_plain_hex(self) -> None:
        payload, applied = encode_content(b"hi", Compression.NONE)

        self.assertEqual(applied, Compression.NONE)
        self.assertEqual(payload, b"6869")

    def test_gzip_output_is_reproducible(self) -> None:
        self.assertEqual(
            encode_content(TEXT_BYTES, Compression.GZIP),
            encode_content(TEXT_BYTES, Compression.GZIP),
        )

    def test_malformed_hex(self) -> None:
        with self.assertRaises(DecodeError):
            decode_content(b"abc", Compression.NONE)
        with self.assertRaises(DecodeError):
            decode_content(b"zz", Compression.NONE)

    def test_corrupt_gzip(self) -> None:
        good, _ = encode_content(TEXT_BYTES, Compression.GZIP)
        truncated = good[0 : len(good) // 2]
        # Keep an even number of hex digits so only the gzip stage fails.
        truncated = truncated[0 : len(truncated) - len(truncated) % 2]

        with self.assertRaises(DecodeError):
            decode_content(truncated, Compression.GZIP)
        with self.assertRaises(DecodeError):
            decode_content(binascii.hexlify(b"not gzip at all"), Compression.GZIP)


class FileSystemCompressionTests(unittest.TestCase):
    def test_round_trip_gzip(self) -> None:
        original = {
            "assets": None,
            "assets/page.html": b"<html>" + TEXT_BYTES + b"</html>",
            "assets/empty.txt": b"",
            "assets/bytes.bin": bytes(range(256)) * 8,
            "assets/logo.png": PNG_BYTES,
        }
        fs = _fs(original)

        compressed = fs.compress(Compression.GZIP)
        self.assertEqual(compressed, 3)
        fs.decompress()

        for path, content in original.items():
            self.assertEqual(fs.read_file(path), content if content is not None else b"")
            self.assertEqual(fs.files[path].compression, Compression.NONE)

    def test_round_trip_none(self) -> None:
        fs = _fs({"a.txt": TEXT_BYTES})

        self.assertEqual(fs.compress(Compression.NONE), 0)
        self.assertEqual(fs.files["a.txt"].content, binascii.hexlify(TEXT_BYTES))
        fs.decompress()
        self.assertEqual(fs.read_file("a.txt"), TEXT_BYTES)

    def test_png_is_left_uncompressed(self) -> None:
        fs = _fs({"logo.png": PNG_BYTES})

        fs.compress(Compression.GZIP)

        record = fs.files["logo.png"]
        self.assertEqual(record.compression, Compression.NONE)
        self.assertEqual(record.content, binascii.hexlify(PNG_BYTES))

    def test_directories_untouched(self) -> None:
        fs = _fs({"d": None})

        fs.compress(Compression.GZIP)

        self.assertEqual(fs.files["d"].content, b"")
        self.assertEqual(fs.files["d"].compression, Compression.NONE)

    def test_failed_decompress_leaves_store_untouched(self) -> None:
        fs = _fs({"a.txt": TEXT_BYTES, "b.txt": TEXT_BYTES})
        fs.compress(Compression.GZIP)
        fs.files["b.txt"].content = b"xyz"
        before = fs.files["a.txt"].content

        with self.assertRaises(DecodeError):
            fs.decompress()
        self.assertEqual(fs.files["a.txt"].content, before)
        self.assertEqual(fs.files["a.txt"].compression, Compression.GZIP)

    def test_store_helpers_work_on_a_files_mapping(self) -> None:
        files = _fs({"d": None, "d/a.txt": TEXT_BYTES}).files

        self.assertEqual(compress_files(files, Compression.GZIP), 1)
        decompress_files(files)

        self.assertEqual(files["d/a.txt"].content, TEXT_BYTES)
        self.assertEqual(files["d"].content, b"")

    def test_invalid_compresslevel(self) -> None:
        fs = _fs({"a.txt": TEXT_BYTES})

        with self.assertRaises(InvalidInputError):
            fs.compress(Compression.GZIP, compresslevel=10)


if __name__ == "__main__":
    unittest.main()
