import os
import tempfile
import unittest
from pathlib import Path

from web.errors import PathTraversalError
from web.static_files import (
    check_directory_traversal,
    guess_content_type,
    resolve_encoded_variant,
    resolve_static_file,
)


class DirectoryTraversalCheckTests(unittest.TestCase):
    def test_accepts_root_and_descendants(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "attachments"
            root.mkdir()

            check_directory_traversal(root, root)
            check_directory_traversal(root, root / "photos")
            check_directory_traversal(root, root / "a" / ".." / "photos")

    def test_rejects_dot_dot_escape(self) -> None:
        with self.assertRaises(PathTraversalError) as context:
            check_directory_traversal(
                Path("/data/attachments"),
                Path("/data/attachments/../../etc/passwd"),
            )

        self.assertEqual(Path("/data/attachments"), context.exception.root)
        self.assertEqual(
            Path("/data/attachments/../../etc/passwd"),
            context.exception.candidate,
        )

    def test_rejects_sibling_sharing_string_prefix(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            with self.assertRaises(PathTraversalError):
                check_directory_traversal(base / "attachments", base / "attachments-old")

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_rejects_symlink_pointing_outside_root(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            root = base / "attachments"
            root.mkdir()
            outside = base / "secrets"
            outside.mkdir()
            (root / "link").symlink_to(outside, target_is_directory=True)

            with self.assertRaises(PathTraversalError):
                check_directory_traversal(root, root / "link")


class StaticFileResolutionTests(unittest.TestCase):
    def test_resolve_static_file_returns_file_inside_root(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            app_js = root / "assets" / "app.js"
            app_js.parent.mkdir(parents=True, exist_ok=True)
            app_js.write_text("console.log('ok');", encoding="utf-8")

            resolved = resolve_static_file(root, "/assets/app.js")
            self.assertEqual(app_js.resolve(), resolved)

    def test_resolve_static_file_rejects_path_traversal(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            root = base / "static"
            root.mkdir(parents=True, exist_ok=True)
            (base / "secret.txt").write_text("x", encoding="utf-8")

            self.assertIsNone(resolve_static_file(root, "/../secret.txt"))

    def test_resolve_static_file_rejects_root_missing_file_and_nul(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "dir").mkdir()
            self.assertIsNone(resolve_static_file(root, "/"))
            self.assertIsNone(resolve_static_file(root, "/missing.txt"))
            self.assertIsNone(resolve_static_file(root, "/dir"))
            self.assertIsNone(resolve_static_file(root, "/a\x00b"))

    def test_resolve_encoded_variant_prefers_brotli(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            original = root / "app.js"
            original.write_text("x", encoding="utf-8")
            (root / "app.js.gz").write_bytes(b"gz")
            (root / "app.js.br").write_bytes(b"br")

            self.assertEqual(
                (root / "app.js.br", "br"),
                resolve_encoded_variant(original, "gzip, deflate, br"),
            )
            self.assertEqual(
                (root / "app.js.gz", "gzip"),
                resolve_encoded_variant(original, "gzip;q=1.0"),
            )
            self.assertEqual((original, None), resolve_encoded_variant(original, None))

    def test_guess_content_type_sets_charset_for_text(self) -> None:
        self.assertEqual("text/css; charset=utf-8", guess_content_type(Path("styles.css")))
        self.assertEqual("text/html; charset=utf-8", guess_content_type(Path("index.html")))
        self.assertEqual("image/png", guess_content_type(Path("logo.png")))

    def test_guess_content_type_falls_back_for_unknown_extensions(self) -> None:
        self.assertEqual(
            "application/octet-stream",
            guess_content_type(Path("blob.unknownbinaryextension")),
        )


if __name__ == "__main__":
    unittest.main()
