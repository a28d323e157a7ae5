"""Tests for the error hierarchy."""

import errno
import unittest

from python_bundlefs.errors import (
    BundleFSError,
    DecodeError,
    HostIOError,
    InvalidInputError,
    NotFoundError,
    host_io_error,
)


class ErrorTests(unittest.TestCase):
    def test_not_found_is_a_file_not_found_error(self) -> None:
        exc = NotFoundError("open", "missing.txt")

        self.assertIsInstance(exc, BundleFSError)
        self.assertIsInstance(exc, FileNotFoundError)
        self.assertEqual(exc.errno, errno.ENOENT)
        self.assertEqual(exc.filename, "missing.txt")
        self.assertEqual(exc.op, "open")
        self.assertIn("missing.txt", str(exc))

    def test_value_error_kinds(self) -> None:
        self.assertTrue(issubclass(DecodeError, ValueError))
        self.assertTrue(issubclass(InvalidInputError, ValueError))
        self.assertTrue(issubclass(DecodeError, BundleFSError))

    def test_host_io_error_keeps_errno(self) -> None:
        original = PermissionError(errno.EACCES, "Permission denied")
        wrapped = host_io_error(original, "/x/y")

        self.assertIsInstance(wrapped, HostIOError)
        self.assertIsInstance(wrapped, OSError)
        self.assertEqual(wrapped.errno, errno.EACCES)
        self.assertEqual(wrapped.filename, "/x/y")


if __name__ == "__main__":
    unittest.main()
