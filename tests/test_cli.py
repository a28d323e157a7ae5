"""Tests for the command line interface."""

import contextlib
import io
import logging
import pathlib
import tempfile
import unittest

from python_bundlefs import cli


class CliTests(unittest.TestCase):
    def tearDown(self) -> None:
        logging.getLogger("python_bundlefs").handlers.clear()

    def _tree(self, tmp: str) -> pathlib.Path:
        root = pathlib.Path(tmp) / "src"
        (root / "asset").mkdir(parents=True)
        (root / "asset" / "a.txt").write_text("alpha\n", encoding="utf-8")
        return root

    def test_build(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._tree(tmp)
            out = pathlib.Path(tmp) / "out"
            list_file = pathlib.Path(tmp) / "assets_darwin.txt"
            list_file.write_text("asset\n", encoding="utf-8")

            code = cli.main(
                [
                    "build",
                    "--root",
                    str(root),
                    "-i",
                    "asset",
                    "--include-for",
                    "x_linux.py",
                    "./asset",
                    "--include-from",
                    str(list_file),
                    "-o",
                    str(out),
                    "--name",
                    "assets",
                    "--gzip",
                    "-q",
                ]
            )

            self.assertEqual(code, 0)
            self.assertEqual(
                sorted(p.name for p in out.iterdir()),
                ["assets.py", "assets_darwin.py", "assets_linux.py"],
            )

    def test_build_include_list_for_declaring_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._tree(tmp)
            out = pathlib.Path(tmp) / "out"
            list_file = pathlib.Path(tmp) / "assets.txt"
            list_file.write_text("asset\n", encoding="utf-8")

            code = cli.main(
                [
                    "build",
                    "--root",
                    str(root),
                    "--include-from-for",
                    "x_windows_amd64.py",
                    str(list_file),
                    "-o",
                    str(out),
                    "-q",
                ]
            )

            self.assertEqual(code, 0)
            self.assertEqual(
                sorted(p.name for p in out.iterdir()),
                ["bundled.py", "bundled_windows_amd64.py"],
            )

    def test_build_failure_returns_one(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._tree(tmp)
            out = pathlib.Path(tmp) / "out"

            code = cli.main(["build", "--root", str(root), "-i", "missing", "-o", str(out), "-q"])

            self.assertEqual(code, 1)
            self.assertFalse(out.exists())

    def test_build_rejects_absolute_include(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = self._tree(tmp)

            code = cli.main(["build", "--root", str(root), "-i", str(root / "asset"), "-q"])

            self.assertEqual(code, 1)

    def test_build_requires_an_include(self) -> None:
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as ctx:
            cli.main(["build", "-q"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
