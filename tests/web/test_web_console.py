import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from web.console import ConsoleIndexResponder
from web.errors import ResourceResolutionError
from web.http import HttpRequest


class ConsoleIndexResponderTests(unittest.TestCase):
    def test_serves_index_with_no_store(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            location = Path(temp_dir)
            (location / "index.html").write_text("<div id=app></div>", encoding="utf-8")
            responder = ConsoleIndexResponder(location)

            response = responder.serve_console_index(
                HttpRequest.build("GET", "/console/posts")
            )

            self.assertEqual(200, response.status_code)
            self.assertEqual(b"<div id=app></div>", response.body)
            self.assertEqual("no-store", response.headers["Cache-Control"])
            self.assertEqual("text/html; charset=utf-8", response.headers["Content-Type"])

    def test_picks_up_replaced_index(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            location = Path(temp_dir)
            index = location / "index.html"
            index.write_text("v1", encoding="utf-8")
            responder = ConsoleIndexResponder(location)
            request = HttpRequest.build("GET", "/console")

            self.assertEqual(b"v1", responder(request).body)
            index.write_text("v2", encoding="utf-8")
            self.assertEqual(b"v2", responder(request).body)

    def test_missing_index_raises_not_found(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            responder = ConsoleIndexResponder(Path(temp_dir))

            with self.assertRaises(ResourceResolutionError) as context:
                responder.serve_console_index(HttpRequest.build("GET", "/console"))

            self.assertEqual(404, context.exception.status_code)
            self.assertEqual(Path(temp_dir) / "index.html", context.exception.resource)

    def test_io_error_is_propagated(self) -> None:
        responder = ConsoleIndexResponder(Path("/srv/app/console"))

        with patch.object(Path, "read_bytes", side_effect=PermissionError("denied")):
            with self.assertRaises(ResourceResolutionError) as context:
                responder.serve_console_index(HttpRequest.build("GET", "/console"))

        self.assertEqual(500, context.exception.status_code)
        self.assertIsInstance(context.exception.__cause__, PermissionError)


if __name__ == "__main__":
    unittest.main()
