import json
import tempfile
import unittest
from pathlib import Path

from app_config_schema import (
    AppConfig,
    AttachmentSettings,
    ConsoleSettings,
    HaloProperties,
    ResourceMapping,
    ServerSettings,
    WebResourcesSettings,
)
from web.errors import PathTraversalError
from web.http import HttpRequest, make_response
from web.predicates import method, path
from web.router import Route, build_router


def _app_config(work_dir: Path, *mappings: ResourceMapping) -> AppConfig:
    return AppConfig(
        server=ServerSettings(),
        halo=HaloProperties(
            work_dir=work_dir,
            console=ConsoleSettings(location=work_dir / "console"),
            attachment=AttachmentSettings(resource_mappings=tuple(mappings)),
        ),
        web_resources=WebResourcesSettings(),
        source_file=str(work_dir / "config.toml"),
    )


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


class RouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.work_dir = Path(self._temp_dir.name)
        _write(self.work_dir / "console" / "index.html", b"<html>console</html>")
        _write(self.work_dir / "console" / "assets" / "app.js", b"app()")
        _write(self.work_dir / "attachments" / "photos" / "cat.png", b"cat")
        _write(self.work_dir / "attachments" / "upload" / "doc.txt", b"doc")
        _write(self.work_dir / "static" / "robots.txt", b"User-agent: *")
        self.router = build_router(
            _app_config(
                self.work_dir,
                ResourceMapping(path_pattern="/files/**", locations=("photos",)),
            )
        )

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_console_navigation_gets_index(self) -> None:
        response = self.router.route(
            HttpRequest.build("GET", "/console/dashboard", {"Accept": "text/html"})
        )
        self.assertEqual(b"<html>console</html>", response.body)
        self.assertEqual("no-store", response.headers["Cache-Control"])

    def test_console_assets_bypass_index(self) -> None:
        response = self.router.route(
            HttpRequest.build("GET", "/console/assets/app.js", {"Accept": "text/html"})
        )
        self.assertEqual(b"app()", response.body)

    def test_attachment_mapping_and_upload_are_served(self) -> None:
        self.assertEqual(
            b"cat",
            self.router.route(HttpRequest.build("GET", "/files/cat.png")).body,
        )
        self.assertEqual(
            b"doc",
            self.router.route(HttpRequest.build("GET", "/upload/doc.txt")).body,
        )

    def test_static_fallback_uses_no_cache(self) -> None:
        response = self.router.route(HttpRequest.build("GET", "/robots.txt"))
        self.assertEqual(b"User-agent: *", response.body)
        self.assertEqual("no-cache", response.headers["Cache-Control"])

    def test_health_route(self) -> None:
        response = self.router.route(HttpRequest.build("GET", "/actuator/health"))
        self.assertEqual(200, response.status_code)
        self.assertEqual({"status": "UP"}, json.loads(response.body))

    def test_unknown_path_returns_json_not_found(self) -> None:
        response = self.router.route(HttpRequest.build("GET", "/missing.css"))

        self.assertEqual(404, response.status_code)
        payload = json.loads(response.body)
        self.assertEqual(404, payload["status"])
        self.assertEqual("Not Found", payload["error"])
        self.assertEqual("/missing.css", payload["path"])
        self.assertIn("timestamp", payload)

    def test_missing_console_index_is_reported_as_error_response(self) -> None:
        (self.work_dir / "console" / "index.html").unlink()

        with self.assertLogs("halo.web", level="ERROR"):
            response = self.router.route(
                HttpRequest.build("GET", "/console", {"Accept": "text/html"})
            )

        self.assertEqual(404, response.status_code)
        self.assertEqual("application/json; charset=utf-8", response.headers["Content-Type"])

    def test_caller_routes_run_before_console_and_resources(self) -> None:
        router = build_router(
            _app_config(self.work_dir),
            routes=[
                Route(
                    method("GET") & path("/console/custom"),
                    lambda request: make_response(200, b"custom", "text/plain"),
                )
            ],
        )
        response = router.route(
            HttpRequest.build("GET", "/console/custom", {"Accept": "text/html"})
        )
        self.assertEqual(b"custom", response.body)

    def test_mapping_nested_under_upload_is_served(self) -> None:
        _write(self.work_dir / "attachments" / "avatars" / "a.png", b"avatar")
        router = build_router(
            _app_config(
                self.work_dir,
                ResourceMapping(path_pattern="/upload/avatars/**", locations=("avatars",)),
            )
        )

        nested = router.route(HttpRequest.build("GET", "/upload/avatars/a.png"))
        upload = router.route(HttpRequest.build("GET", "/upload/doc.txt"))

        self.assertEqual(200, nested.status_code)
        self.assertEqual(b"avatar", nested.body)
        self.assertEqual(b"doc", upload.body)


class BuildRouterTests(unittest.TestCase):
    def test_traversal_mapping_aborts_build(self) -> None:
        config = _app_config(
            Path("/srv/app"),
            ResourceMapping(path_pattern="/etc/**", locations=("../../etc",)),
        )

        with self.assertLogs("halo.web.resources", level="ERROR"):
            with self.assertRaises(PathTraversalError):
                build_router(config)

    def test_end_to_end_mapping_targets_attachments_directory(self) -> None:
        config = _app_config(
            Path("/srv/app"),
            ResourceMapping(path_pattern="/files/**", locations=("photos",)),
        )

        router = build_router(config)
        registration = router.registry.lookup(HttpRequest.build("GET", "/files/a.png"))

        self.assertEqual("/files/**", registration.path_pattern.pattern)
        self.assertEqual([Path("/srv/app/attachments/photos")], registration.locations)


if __name__ == "__main__":
    unittest.main()
